"""Tests for the compact manifest notation."""

from __future__ import annotations

import textwrap

import pytest

from gip.codec import compact as compact_module
from gip.codec.compact import HEADER, decode_compact, encode_compact, format_scalar, quote
from gip.errors import ManifestParseError
from gip.models import (
    Anchor,
    Compatibility,
    Contract,
    Entry,
    GlobalIntent,
    Manifest,
    PerfBudget,
    SignatureDelta,
)

SAMPLE = '''
; Gip Manifest
(manifest
  (schemaVersion 2.0)
  (commit #HEAD)
  (globalIntent
    (behaviorClass [ feature ])
    (rationale """Support a second currency""")
  )
  (entries
    (entry
      (anchor
        (file src/payment.py)
        (symbol process_payment)
        (hunk H#1)
      )
      (changeType modify)
      (behaviorClass [ feature validation ])
      ; free text may span lines
      (rationale """Validate the currency
before charging""")
      (contract
        (preconditions [ "amount > 0" currency_known ])
        (errorModel [ 'ValueError' ])
      )
      (compatibility
        (breaking true)
        (migrations [ ])
      )
      (perfBudget
        (expectedMaxLatencyMs 120)
      )
    )
  )
)
'''


def test_decode_reads_sections_lists_and_multiline_text() -> None:
    manifest = decode_compact(SAMPLE)

    assert manifest.schema_version == "2.0"
    assert manifest.commit == "HEAD"
    assert manifest.global_intent == GlobalIntent(
        behavior_class=["feature"], rationale="Support a second currency"
    )
    entry = manifest.entries[0]
    assert entry.anchor == Anchor(file="src/payment.py", symbol="process_payment", hunk_id="H#1")
    assert entry.behavior_class == ["feature", "validation"]
    assert entry.rationale == "Validate the currency\nbefore charging"
    assert entry.contract.preconditions == ["amount > 0", "currency_known"]
    assert entry.contract.error_model == ["ValueError"]
    assert entry.compatibility.breaking is True
    assert entry.compatibility.migrations == []
    assert entry.perf_budget.expected_max_latency_ms == 120


def test_encode_writes_header_commit_marker_and_triple_quoted_text() -> None:
    manifest = Manifest.new("abc123")
    manifest.entries = [
        Entry(
            anchor=Anchor(file="src/a.py", symbol="run", hunk_id="H#1"),
            behavior_class=["bugfix"],
            rationale="Fix the off-by-one",
        )
    ]

    text = encode_compact(manifest)

    assert text.startswith(f"{HEADER}\n(manifest\n")
    assert "  (commit #abc123)\n" in text
    assert '(rationale """Fix the off-by-one""")' in text
    assert "(behaviorClass [ bugfix ])" in text
    assert text.endswith(")\n")


def test_encoded_manifest_decodes_to_the_same_content() -> None:
    manifest = Manifest.new("0123abcd")
    manifest.global_intent = GlobalIntent(behavior_class=["feature"], rationale="Multi-currency")
    manifest.entries = [
        Entry(
            anchor=Anchor(file="src/payment.py", symbol="process_payment", hunk_id="H#1"),
            rationale='Accept "EUR" as well\nand keep USD default',
            behavior_class=["feature", "validation"],
            signature_delta=SignatureDelta(before="pay(amount)", after="pay(amount, currency)"),
            contract=Contract(
                inputs=["amount", "currency"],
                outputs="receipt",
                preconditions=["amount > 0"],
                error_model=["ValueError on bad currency"],
            ),
            side_effects=["writes ledger"],
            compatibility=Compatibility(breaking=True, deprecations=[], migrations=["pass currency"]),
            tests_touched=["tests/test_payment.py"],
            perf_budget=PerfBudget(expected_max_latency_ms=120, cpu_delta_pct=5),
            security_notes=["currency is validated"],
            feature_flags=["multi_currency"],
            inherits_global_intent=False,
        )
    ]

    assert decode_compact(encode_compact(manifest)) == manifest


@pytest.mark.parametrize(
    "value",
    ['ends with a quote"', 'contains """ inside', "back\\slash", ""],
)
def test_quoted_text_survives_escaping(value: str) -> None:
    manifest = Manifest.new("abc")
    manifest.entries = [Entry(anchor=Anchor(file="a.py"), rationale=value or "x", side_effects=[value])]

    decoded = decode_compact(encode_compact(manifest))

    assert decoded.entries[0].side_effects == [value]


def test_format_scalar_quotes_only_when_needed() -> None:
    assert format_scalar("feature") == "feature"
    assert format_scalar("H#1") == "H#1"
    assert format_scalar("two words") == '"""two words"""'
    assert format_scalar("") == '""""""'
    assert quote('a\\b') == '"""a\\\\b"""'


def test_embedded_triple_quotes_are_backslash_escaped() -> None:
    assert quote('x"""y') == '"""x\\"\\"\\"y"""'
    assert quote('say "hi"') == '"""say \\"hi\\""""'
    assert quote('a "word" inside') == '"""a "word" inside"""'


def test_single_line_quoted_strings_are_accepted() -> None:
    manifest = decode_compact(
        "(manifest (commit #abc) (entries (entry (anchor (file 'my file.py')) "
        '(rationale "short note"))))'
    )

    assert manifest.entries[0].anchor.file == "my file.py"
    assert manifest.entries[0].rationale == "short note"


def test_module_docstring_example_decodes() -> None:
    doc = compact_module.__doc__
    assert doc is not None
    example = textwrap.dedent(doc.split("::", 1)[1].split("\n\n")[1])

    manifest = decode_compact(example)

    assert manifest.commit == "HEAD"
    assert manifest.entries[0].anchor.symbol == "process_payment"
    assert manifest.entries[0].rationale == "Support a second currency"


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("", "empty"),
        ("(manifest (commit #abc)", "never closed"),
        ('(manifest (rationale """open', "Unterminated"),
        ("(entry (changeType add))", "Expected a (manifest"),
        ("(manifest (bogus 1))", "Unknown field 'bogus'"),
        ("(manifest (commit a) (commit b))", "Duplicate field"),
        ("(manifest (entries (anchor (file a.py))))", "may only contain (entry"),
        ("(manifest) (manifest)", "after the manifest"),
    ],
)
def test_decode_reports_malformed_input(text: str, fragment: str) -> None:
    with pytest.raises(ManifestParseError) as excinfo:
        decode_compact(text)
    assert fragment in str(excinfo.value)


def test_parse_errors_carry_line_numbers() -> None:
    text = "(manifest\n  (schemaVersion 2.0)\n  (mystery x)\n)\n"
    with pytest.raises(ManifestParseError) as excinfo:
        decode_compact(text)
    assert excinfo.value.line == 3
    assert str(excinfo.value).startswith("line 3: ")


def test_schema_mismatch_is_a_parse_error() -> None:
    with pytest.raises(ManifestParseError):
        decode_compact("(manifest (entries (entry (changeType add))))")
