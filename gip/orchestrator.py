"""Workflows behind the gip commands."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .codec.canonical import encode_canonical
from .codec.compact import decode_compact, encode_compact
from .config import GipConfig, load_config
from .errors import ExternalToolError, GipError, ManifestNotFoundError
from .git.adapter import GitAdapter
from .git.runner import ToolRunner
from .logging import get_logger
from .merge.enricher import ConflictEnricher, EnrichmentReport
from .merge.markers import MarkerRewriter
from .models import Entry, Manifest
from .rendering import PLACEHOLDER_RATIONALE, CommitContext, render_context
from .stores.manifest_store import ManifestStore
from .validators.authoring import AuthoringValidator


@dataclass
class InitOutcome:
    """Result of ``gip init``."""

    root: Path
    authoring_path: Path
    template_created: bool
    gitignore_updated: bool


@dataclass
class CommitOutcome:
    """Result of ``gip commit``."""

    status: int
    commit: Optional[str] = None
    manifest_attached: bool = False


@dataclass
class PushOutcome:
    status: int
    remote: Optional[str] = None
    notes_transferred: bool = False


@dataclass
class MergeOutcome:
    """Result of ``gip merge``/``gip rebase``.

    ``status`` is always git's own exit status, whatever enrichment did.
    """

    status: int
    attempted: bool = False
    report: Optional[EnrichmentReport] = None


@dataclass
class ContextOutcome:
    output: str
    found: bool
    contexts: List[CommitContext] = field(default_factory=list)


class Orchestrator:
    """Coordinates git, the manifest store and conflict enrichment."""

    def __init__(
        self,
        cwd: Path | str | None = None,
        *,
        runner: ToolRunner | None = None,
        git: GitAdapter | None = None,
        config: GipConfig | None = None,
        validator: AuthoringValidator | None = None,
    ) -> None:
        self.git = git or GitAdapter(cwd, runner=runner)
        self._config = config
        self.validator = validator or AuthoringValidator()
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------
    # Wiring

    @property
    def config(self) -> GipConfig:
        if self._config is None:
            self._config = load_config(self.git.repo_root())
        return self._config

    def store(self) -> ManifestStore:
        config = self.config
        return ManifestStore(
            self.git, notes_ref=config.notes_ref, control_dir=config.control_dir
        )

    def enricher(self) -> ConflictEnricher:
        config = self.config
        rewriter = MarkerRewriter(
            ours_window=config.ours_context_lines,
            theirs_window=config.theirs_context_lines,
        )
        return ConflictEnricher(
            self.git, self.store(), rewriter=rewriter, root=config.root
        )

    # ------------------------------------------------------------------
    # Commands

    def run_init(self) -> InitOutcome:
        """Prepare the control directory, authoring template and .gitignore."""
        if not self.git.is_repo():
            raise GipError("Not a git repository. Run 'git init' first.")
        config = self.config
        self.logger.info("Initializing gip in %s", config.root)
        config.control_dir.mkdir(parents=True, exist_ok=True)

        template_created = False
        if not config.authoring_path.exists():
            self.validator.write_template(config.authoring_path)
            template_created = True

        gitignore_updated = _ensure_ignored(
            config.root / ".gitignore", config.control_dir_name
        )
        return InitOutcome(
            root=config.root,
            authoring_path=config.authoring_path,
            template_created=template_created,
            gitignore_updated=gitignore_updated,
        )

    def run_commit(
        self,
        message: Optional[str] = None,
        *,
        force: bool = False,
        extra_args: Sequence[str] = (),
    ) -> CommitOutcome:
        """Validate the authored manifest, commit, and attach it as a note."""
        config = self.config
        store = self.store()
        authoring_path = config.authoring_path

        manifest: Optional[Manifest]
        if force:
            manifest = self._forced_manifest(authoring_path)
        else:
            manifest = self.validator.validate(authoring_path)

        if manifest is not None:
            store.save_pending(manifest)

        git_args = ["commit"]
        if message:
            git_args.extend(["-m", message])
        git_args.extend(extra_args)
        status = self.git.run_interactive(git_args)
        if status != 0:
            self.logger.debug("git commit exited with %d; pending manifest kept", status)
            return CommitOutcome(status=status)

        sha = self.git.current_commit()
        if manifest is None:
            return CommitOutcome(status=0, commit=sha)

        bound = store.load_pending().model_copy(update={"commit": sha})
        store.save(bound, sha)
        store.clear_pending()
        # The next commit needs its own intent, so the authoring file starts over.
        self.validator.write_template(authoring_path)
        self.logger.debug("Attached manifest to %s", sha)
        return CommitOutcome(status=0, commit=sha, manifest_attached=True)

    def run_push(self, args: Sequence[str] = ()) -> PushOutcome:
        """Push code, then the notes namespace to the same remote."""
        status = self.git.run_interactive(["push", *args])
        if status != 0:
            return PushOutcome(status=status)
        remote = _remote_from_args(args) or self.config.remote
        try:
            self.store().push_notes(remote)
        except ExternalToolError as exc:
            self.logger.warning("Failed to push context notes: %s", exc)
            return PushOutcome(status=0, remote=remote)
        return PushOutcome(status=0, remote=remote, notes_transferred=True)

    def run_fetch(self, args: Sequence[str] = ()) -> PushOutcome:
        """Fetch code, then the notes namespace from the same remote."""
        status = self.git.run_interactive(["fetch", *args])
        if status != 0:
            return PushOutcome(status=status)
        remote = _remote_from_args(args) or self.config.remote
        try:
            self.store().fetch_notes(remote)
        except ExternalToolError as exc:
            self.logger.warning("Failed to fetch context notes: %s", exc)
            return PushOutcome(status=0, remote=remote)
        return PushOutcome(status=0, remote=remote, notes_transferred=True)

    def run_merge(self, args: Sequence[str] = ()) -> MergeOutcome:
        return self._run_with_enrichment("merge", args, theirs_ref="MERGE_HEAD")

    def run_rebase(self, args: Sequence[str] = ()) -> MergeOutcome:
        # During a rebase HEAD is the upstream being rebased onto and
        # REBASE_HEAD is the commit being replayed.
        return self._run_with_enrichment("rebase", args, theirs_ref="REBASE_HEAD")

    def run_context(
        self,
        target: Optional[str] = None,
        *,
        as_json: bool = False,
        export: bool = False,
        behavior: Optional[str] = None,
    ) -> ContextOutcome:
        """Describe the stored intent for a commit or for a file's history."""
        if target is not None:
            relative = self._tracked_path(target)
            if relative is not None:
                return self._file_context(relative, as_json=as_json, export=export, behavior=behavior)

        ref = target or "HEAD"
        sha = self.git.resolve_commit(ref)
        if sha is None:
            raise GipError(f"{ref} is neither a commit nor a file in this repository")
        try:
            manifest = self.store().load(sha)
        except ManifestNotFoundError:
            return ContextOutcome(output=f"No context found for commit {sha}", found=False)

        entries = _filter_entries(manifest, manifest.entries, behavior)
        context = CommitContext(manifest=manifest, entries=entries)
        if as_json:
            output = encode_canonical(manifest.model_copy(update={"entries": entries}))
        elif export:
            output = encode_compact(manifest.model_copy(update={"entries": entries}))
        else:
            output = render_context([context])
        return ContextOutcome(output=output, found=True, contexts=[context])

    def run_passthrough(self, args: Sequence[str]) -> int:
        return self.git.run_interactive(args)

    # ------------------------------------------------------------------
    # Internals

    def _run_with_enrichment(
        self, command: str, args: Sequence[str], *, theirs_ref: str
    ) -> MergeOutcome:
        status = self.git.run_interactive([command, *args])
        if status == 0:
            return MergeOutcome(status=0)

        self.logger.info("%s stopped with conflicts. Enriching markers...", command.capitalize())
        try:
            ours = self.git.resolve_commit("HEAD")
            theirs = self.git.resolve_commit(theirs_ref)
            if ours is None or theirs is None:
                self.logger.warning("Could not determine %s. Skipping enrichment.", theirs_ref)
                return MergeOutcome(status=status)
            report = self.enricher().enrich_all(ours, theirs)
        except GipError as exc:
            self.logger.warning("Conflict enrichment failed: %s", exc)
            return MergeOutcome(status=status, attempted=True)
        return MergeOutcome(status=status, attempted=True, report=report)

    def _forced_manifest(self, path: Path) -> Optional[Manifest]:
        if not path.exists():
            self.logger.warning("No manifest found. Committing without context (force).")
            return None
        content = path.read_text(encoding="utf-8")
        if PLACEHOLDER_RATIONALE in content:
            self.logger.warning("Manifest is still the template. Committing without context (force).")
            return None
        return decode_compact(content)

    def _tracked_path(self, target: str) -> Optional[str]:
        root = self.config.root
        candidate = Path(target)
        if not candidate.is_absolute():
            cwd_candidate = (self.git.cwd / candidate).resolve()
            candidate = cwd_candidate if cwd_candidate.exists() else root / candidate
        if not candidate.is_file():
            return None
        try:
            return candidate.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            return None

    def _file_context(
        self,
        relative: str,
        *,
        as_json: bool,
        export: bool,
        behavior: Optional[str],
    ) -> ContextOutcome:
        store = self.store()
        contexts: List[CommitContext] = []
        for sha in self.git.commits_touching(relative):
            try:
                manifest = store.load(sha)
            except ManifestNotFoundError:
                continue
            except GipError as exc:
                self.logger.warning("Skipping manifest for %s: %s", sha, exc)
                continue
            entries = _filter_entries(manifest, manifest.entries_for(relative), behavior)
            if entries:
                contexts.append(CommitContext(manifest=manifest, entries=entries))

        if not contexts:
            return ContextOutcome(output=f"No context found for {relative}", found=False)

        if as_json:
            history = [
                json.loads(encode_canonical(item.manifest.model_copy(update={"entries": item.entries})))
                for item in contexts
            ]
            output = json.dumps({"file": relative, "history": history}, indent=2)
        elif export:
            output = "\n".join(
                encode_compact(item.manifest.model_copy(update={"entries": item.entries}))
                for item in contexts
            )
        else:
            output = render_context(contexts, target=relative)
        return ContextOutcome(output=output, found=True, contexts=contexts)


def _filter_entries(
    manifest: Manifest, entries: Sequence[Entry], behavior: Optional[str]
) -> List[Entry]:
    if not behavior:
        return list(entries)
    return [
        entry
        for entry in entries
        if behavior in entry.effective_behavior_class(manifest.global_intent)
    ]


def _remote_from_args(args: Sequence[str]) -> Optional[str]:
    for arg in args:
        if not arg.startswith("-"):
            return arg
    return None


def _ensure_ignored(gitignore: Path, entry: str) -> bool:
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    if any(line.strip().rstrip("/") == entry for line in content.splitlines()):
        return False
    if content and not content.endswith("\n"):
        content += "\n"
    gitignore.write_text(f"{content}{entry}\n", encoding="utf-8")
    return True


__all__ = [
    "CommitOutcome",
    "ContextOutcome",
    "InitOutcome",
    "MergeOutcome",
    "Orchestrator",
    "PushOutcome",
]
