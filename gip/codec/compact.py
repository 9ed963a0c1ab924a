"""Compact line-oriented notation for display, export and authoring.

The notation nests labelled sections in parentheses::

    ; Gip Manifest
    (manifest
      (schemaVersion 2.0)
      (commit #HEAD)
      (entries
        (entry
          (anchor
            (file src/payment.py)
            (symbol process_payment)
            (hunkId H#1)
          )
          (changeType modify)
          (behaviorClass [ feature ])
          (rationale \"\"\"Support a second currency\"\"\")
        )
      )
    )

Simple values are written bare. Free text goes inside ``\"\"\"`` quotes and may
span lines; inside quotes a backslash takes the next character literally, so
text containing ``\"\"\"`` is written with its quote characters escaped.
Single-line ``"..."`` and ``'...'`` strings are accepted when reading. Lists are bracketed and whitespace separated. Lines starting with ``;`` are
comments.

Decoding parses and validates the text. It does not promise a byte-exact
round-trip; that is what :mod:`gip.codec.canonical` is for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..errors import ManifestParseError
from ..models import (
    Anchor,
    Compatibility,
    Contract,
    Entry,
    GlobalIntent,
    Manifest,
    PerfBudget,
    SignatureDelta,
)

HEADER = "; Gip Manifest"
_INDENT = "  "
_BARE_ATOM = re.compile(r"^[^\s()\[\]\"';\\]+$")
_QUOTE = '"""'

_OBJECT_MODELS: Dict[str, Type[BaseModel]] = {
    "manifest": Manifest,
    "globalIntent": GlobalIntent,
    "entry": Entry,
    "anchor": Anchor,
    "signatureDelta": SignatureDelta,
    "contract": Contract,
    "compatibility": Compatibility,
    "perfBudget": PerfBudget,
}

_LIST_FIELDS = {
    "behaviorClass",
    "inputs",
    "preconditions",
    "postconditions",
    "errorModel",
    "sideEffects",
    "deprecations",
    "migrations",
    "testsTouched",
    "securityNotes",
    "featureFlags",
}

_LABEL_ALIASES = {"hunk": "hunkId"}


# ----------------------------------------------------------------------
# Encoding


def encode_compact(manifest: Manifest) -> str:
    """Render ``manifest`` in compact notation."""
    writer = _Writer()
    writer.line(HEADER)
    writer.open("manifest")
    writer.field("schemaVersion", manifest.schema_version)
    writer.line(f"(commit #{manifest.commit})")

    if manifest.global_intent is not None:
        intent = manifest.global_intent
        writer.open("globalIntent")
        writer.list_field("behaviorClass", intent.behavior_class)
        writer.text_field("rationale", intent.rationale)
        writer.close()

    writer.open("entries")
    for entry in manifest.entries:
        _write_entry(writer, entry)
    writer.close()
    writer.close()
    return writer.render()


def _write_entry(writer: "_Writer", entry: Entry) -> None:
    writer.open("entry")
    writer.open("anchor")
    writer.field("file", entry.anchor.file)
    writer.field("symbol", entry.anchor.symbol)
    writer.field("hunkId", entry.anchor.hunk_id)
    writer.close()
    writer.field("changeType", entry.change_type)
    if entry.behavior_class:
        writer.list_field("behaviorClass", entry.behavior_class)
    if entry.rationale:
        writer.text_field("rationale", entry.rationale)

    if entry.signature_delta is not None:
        writer.open("signatureDelta")
        writer.text_field("before", entry.signature_delta.before)
        writer.text_field("after", entry.signature_delta.after)
        writer.close()

    contract = entry.contract
    if (
        contract.inputs is not None
        or contract.outputs is not None
        or contract.preconditions
        or contract.postconditions
        or contract.error_model
    ):
        writer.open("contract")
        if contract.inputs is not None:
            writer.list_field("inputs", contract.inputs)
        if contract.outputs is not None:
            writer.text_field("outputs", contract.outputs)
        if contract.preconditions:
            writer.list_field("preconditions", contract.preconditions)
        if contract.postconditions:
            writer.list_field("postconditions", contract.postconditions)
        if contract.error_model:
            writer.list_field("errorModel", contract.error_model)
        writer.close()

    if entry.side_effects:
        writer.list_field("sideEffects", entry.side_effects)

    compat = entry.compatibility
    if compat is not None:
        writer.open("compatibility")
        writer.field("breaking", _bool(compat.breaking))
        if compat.deprecations is not None:
            writer.list_field("deprecations", compat.deprecations)
        if compat.migrations is not None:
            writer.list_field("migrations", compat.migrations)
        if compat.binary_breaking is not None:
            writer.field("binaryBreaking", _bool(compat.binary_breaking))
        if compat.source_breaking is not None:
            writer.field("sourceBreaking", _bool(compat.source_breaking))
        if compat.data_model_migration is not None:
            writer.field("dataModelMigration", _bool(compat.data_model_migration))
        writer.close()

    if entry.tests_touched is not None:
        writer.list_field("testsTouched", entry.tests_touched)
    if entry.perf_budget is not None:
        writer.open("perfBudget")
        if entry.perf_budget.expected_max_latency_ms is not None:
            writer.field(
                "expectedMaxLatencyMs", str(entry.perf_budget.expected_max_latency_ms)
            )
        if entry.perf_budget.cpu_delta_pct is not None:
            writer.field("cpuDeltaPct", str(entry.perf_budget.cpu_delta_pct))
        writer.close()
    if entry.security_notes is not None:
        writer.list_field("securityNotes", entry.security_notes)
    if entry.feature_flags is not None:
        writer.list_field("featureFlags", entry.feature_flags)
    if entry.inherits_global_intent is not None:
        writer.field("inheritsGlobalIntent", _bool(entry.inherits_global_intent))
    writer.close()


class _Writer:
    def __init__(self) -> None:
        self._lines: List[str] = []
        self._depth = 0

    def line(self, text: str) -> None:
        self._lines.append(f"{_INDENT * self._depth}{text}")

    def open(self, label: str) -> None:
        self.line(f"({label}")
        self._depth += 1

    def close(self) -> None:
        self._depth -= 1
        self.line(")")

    def field(self, label: str, value: str) -> None:
        self.line(f"({label} {format_scalar(value)})")

    def text_field(self, label: str, value: str) -> None:
        self.line(f"({label} {quote(value)})")

    def list_field(self, label: str, values: Sequence[str]) -> None:
        items = " ".join(format_scalar(value) for value in values)
        self.line(f"({label} [ {items} ])" if items else f"({label} [ ])")

    def render(self) -> str:
        return "\n".join(self._lines) + "\n"


def format_scalar(value: str) -> str:
    """Return ``value`` bare when it is a simple atom, quoted otherwise."""
    if _BARE_ATOM.match(value):
        return value
    return quote(value)


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\")
    if _QUOTE in escaped or escaped.endswith('"'):
        escaped = escaped.replace('"', '\\"')
    return f"{_QUOTE}{escaped}{_QUOTE}"


def _bool(value: bool) -> str:
    return "true" if value else "false"


# ----------------------------------------------------------------------
# Decoding


@dataclass
class _Token:
    kind: str
    value: str
    line: int


@dataclass
class _Scalar:
    value: str
    line: int


@dataclass
class _ListValue:
    items: List[str]
    line: int


@dataclass
class _Section:
    label: str
    line: int
    children: List["_Node"] = field(default_factory=list)


_Node = Union[_Scalar, _ListValue, _Section]


def decode_compact(text: str) -> Manifest:
    """Parse compact notation into a validated manifest."""
    tokens = list(_tokenize(text))
    parser = _Parser(tokens)
    root = parser.parse_root()
    if root.label != "manifest":
        raise ManifestParseError(
            f"Expected a (manifest ...) section, found ({root.label} ...)",
            line=root.line,
        )
    payload = _section_to_mapping(root, Manifest)
    commit = payload.get("commit")
    if isinstance(commit, str):
        payload["commit"] = commit.lstrip("#")
    try:
        return Manifest.model_validate(payload)
    except PydanticValidationError as exc:
        raise ManifestParseError(f"Manifest does not match schema: {exc}") from exc


def _tokenize(text: str) -> Iterator[_Token]:
    index = 0
    line = 1
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\n":
            line += 1
            index += 1
        elif char.isspace():
            index += 1
        elif char == ";":
            end = text.find("\n", index)
            index = length if end == -1 else end
        elif char in "()[]":
            yield _Token(char, char, line)
            index += 1
        elif text.startswith(_QUOTE, index):
            start_line = line
            index += len(_QUOTE)
            chars: List[str] = []
            while True:
                if index >= length:
                    raise ManifestParseError(
                        "Unterminated triple-quoted string", line=start_line
                    )
                if text.startswith(_QUOTE, index):
                    index += len(_QUOTE)
                    break
                current = text[index]
                if current == "\\" and index + 1 < length:
                    current = text[index + 1]
                    index += 1
                if current == "\n":
                    line += 1
                chars.append(current)
                index += 1
            yield _Token("string", "".join(chars), start_line)
        elif char in "\"'":
            end = text.find(char, index + 1)
            if end == -1 or "\n" in text[index:end]:
                raise ManifestParseError("Unterminated quoted string", line=line)
            yield _Token("string", text[index + 1 : end], line)
            index = end + 1
        else:
            start = index
            while index < length and not (
                text[index].isspace() or text[index] in "()[]"
            ):
                index += 1
            yield _Token("atom", text[start:index], line)


class _Parser:
    def __init__(self, tokens: List[_Token]) -> None:
        self._tokens = tokens
        self._position = 0

    def parse_root(self) -> _Section:
        if not self._tokens:
            raise ManifestParseError("Manifest is empty")
        node = self._parse_node()
        if not isinstance(node, _Section):
            raise ManifestParseError("Manifest must start with a section", line=node.line)
        leftover = self._peek()
        if leftover is not None:
            raise ManifestParseError(
                f"Unexpected {leftover.value!r} after the manifest section",
                line=leftover.line,
            )
        return node

    def _peek(self) -> Optional[_Token]:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self, expecting: str) -> _Token:
        token = self._peek()
        if token is None:
            last_line = self._tokens[-1].line if self._tokens else None
            raise ManifestParseError(f"Unexpected end of input, expected {expecting}", line=last_line)
        self._position += 1
        return token

    def _parse_node(self) -> _Node:
        token = self._next("a value")
        if token.kind == "(":
            label = self._next("a section label")
            if label.kind != "atom":
                raise ManifestParseError("Section label must be a bare word", line=label.line)
            section = _Section(label=label.value, line=token.line)
            while True:
                upcoming = self._peek()
                if upcoming is None:
                    raise ManifestParseError(
                        f"Section ({label.value} ...) is never closed", line=token.line
                    )
                if upcoming.kind == ")":
                    self._position += 1
                    return section
                section.children.append(self._parse_node())
        if token.kind == "[":
            items: List[str] = []
            while True:
                item = self._next("']'")
                if item.kind == "]":
                    return _ListValue(items=items, line=token.line)
                if item.kind not in {"atom", "string"}:
                    raise ManifestParseError(
                        f"Unexpected {item.value!r} inside a list", line=item.line
                    )
                items.append(item.value)
        if token.kind in {"atom", "string"}:
            return _Scalar(value=token.value, line=token.line)
        raise ManifestParseError(f"Unexpected {token.value!r}", line=token.line)


def _section_to_mapping(section: _Section, model: Type[BaseModel]) -> Dict[str, Any]:
    known = {to_camel(name) for name in model.model_fields}
    mapping: Dict[str, Any] = {}
    for child in section.children:
        if not isinstance(child, _Section):
            raise ManifestParseError(
                f"Expected labelled fields inside ({section.label} ...)", line=child.line
            )
        key = _LABEL_ALIASES.get(child.label, child.label)
        if key not in known:
            raise ManifestParseError(
                f"Unknown field {child.label!r} in ({section.label} ...)", line=child.line
            )
        if key in mapping:
            raise ManifestParseError(
                f"Duplicate field {child.label!r} in ({section.label} ...)", line=child.line
            )
        mapping[key] = _field_value(key, child)
    return mapping


def _field_value(key: str, section: _Section) -> Any:
    if key == "entries":
        entries: List[Dict[str, Any]] = []
        for child in section.children:
            if not isinstance(child, _Section) or child.label != "entry":
                raise ManifestParseError(
                    "(entries ...) may only contain (entry ...) sections", line=child.line
                )
            entries.append(_section_to_mapping(child, Entry))
        return entries

    if key in _OBJECT_MODELS:
        return _section_to_mapping(section, _OBJECT_MODELS[key])

    if key in _LIST_FIELDS:
        values: List[str] = []
        for child in section.children:
            if isinstance(child, _ListValue):
                values.extend(child.items)
            elif isinstance(child, _Scalar):
                values.append(child.value)
            else:
                raise ManifestParseError(
                    f"({key} ...) must contain a list", line=child.line
                )
        return values

    if not section.children:
        return ""
    if len(section.children) > 1 or not isinstance(section.children[0], _Scalar):
        raise ManifestParseError(f"({key} ...) must contain a single value", line=section.line)
    return section.children[0].value


__all__ = ["HEADER", "decode_compact", "encode_compact", "format_scalar", "quote"]
