"""Tests for enriching every conflicted file after a failed merge."""

from __future__ import annotations

from gip.merge.enricher import ConflictEnricher
from gip.models import Anchor, Entry, Manifest
from gip.stores.manifest_store import ManifestStore
from tests._fixtures.fake_git import HEAD_SHA, OTHER_SHA, FakeGit

CONFLICT = """\
def run():
<<<<<<< HEAD
    return 1
=======
    return 2
>>>>>>> feature
"""


def _manifest(commit: str, rationale: str) -> Manifest:
    manifest = Manifest.new(commit)
    manifest.entries = [
        Entry(anchor=Anchor(file="src/app.py", symbol="run", hunk_id="H#1"), rationale=rationale)
    ]
    return manifest


def _enricher(fake_git: FakeGit) -> tuple[ConflictEnricher, ManifestStore]:
    git = fake_git.adapter()
    store = ManifestStore(git)
    fake_git.refs["MERGE_HEAD"] = OTHER_SHA
    return ConflictEnricher(git, store), store


def test_conflicted_files_are_rewritten_in_place(fake_git: FakeGit) -> None:
    enricher, store = _enricher(fake_git)
    store.save(_manifest(HEAD_SHA, "ours"), HEAD_SHA)
    store.save(_manifest(OTHER_SHA, "theirs"), OTHER_SHA)
    fake_git.write({"src/app.py": CONFLICT, "notes.txt": "no markers\n"})
    fake_git.conflicted = ["src/app.py", "notes.txt"]

    report = enricher.enrich_all(HEAD_SHA, OTHER_SHA)

    assert report.enriched == ["src/app.py"]
    assert report.skipped == ["notes.txt"]
    assert report.count == 1
    assert report.ours_available and report.theirs_available
    content = (fake_git.root / "src/app.py").read_text(encoding="utf-8")
    assert "||| rationale: ours" in content
    assert "||| rationale: theirs" in content
    assert (fake_git.root / "notes.txt").read_text(encoding="utf-8") == "no markers\n"


def test_files_are_skipped_when_neither_side_has_a_manifest(fake_git: FakeGit) -> None:
    enricher, _ = _enricher(fake_git)
    fake_git.write({"src/app.py": CONFLICT})
    fake_git.conflicted = ["src/app.py"]

    report = enricher.enrich_all(HEAD_SHA, OTHER_SHA)

    assert report.enriched == []
    assert report.skipped == ["src/app.py"]
    assert (fake_git.root / "src/app.py").read_text(encoding="utf-8") == CONFLICT


def test_one_sided_manifest_still_enriches(fake_git: FakeGit) -> None:
    enricher, store = _enricher(fake_git)
    store.save(_manifest(OTHER_SHA, "theirs"), OTHER_SHA)
    fake_git.write({"src/app.py": CONFLICT})
    fake_git.conflicted = ["src/app.py"]

    report = enricher.enrich_all(HEAD_SHA, OTHER_SHA)

    assert report.enriched == ["src/app.py"]
    assert not report.ours_available
    content = (fake_git.root / "src/app.py").read_text(encoding="utf-8")
    assert "Your changes" not in content
    assert "||| rationale: theirs" in content


def test_unreadable_manifests_count_as_missing(fake_git: FakeGit) -> None:
    enricher, store = _enricher(fake_git)
    fake_git.notes[("gip", HEAD_SHA)] = "{broken"
    store.save(_manifest(OTHER_SHA, "theirs"), OTHER_SHA)

    assert enricher.load_manifest(HEAD_SHA) is None
    assert enricher.load_manifest(OTHER_SHA).entries[0].rationale == "theirs"


def test_failures_on_one_file_do_not_stop_the_others(fake_git: FakeGit) -> None:
    enricher, store = _enricher(fake_git)
    store.save(_manifest(HEAD_SHA, "ours"), HEAD_SHA)
    fake_git.write({"src/app.py": CONFLICT})
    (fake_git.root / "binary.bin").write_bytes(b"\xff\xfe<<<<<<< HEAD\n")
    fake_git.conflicted = ["binary.bin", "deleted.py", "src/app.py"]

    report = enricher.enrich_all(HEAD_SHA, OTHER_SHA)

    assert [path for path, _ in report.failed] == ["binary.bin"]
    assert report.skipped == ["deleted.py"]
    assert report.enriched == ["src/app.py"]


def test_crlf_files_keep_their_line_endings(fake_git: FakeGit) -> None:
    enricher, store = _enricher(fake_git)
    store.save(_manifest(HEAD_SHA, "ours"), HEAD_SHA)
    path = fake_git.root / "src" / "app.py"
    path.parent.mkdir(parents=True)
    path.write_bytes(CONFLICT.replace("\n", "\r\n").encode("utf-8"))
    fake_git.conflicted = ["src/app.py"]

    enricher.enrich_all(HEAD_SHA, OTHER_SHA)

    data = path.read_bytes()
    assert b"||| rationale: ours\r\n" in data
    assert b"\n" not in data.replace(b"\r\n", b"")


def test_no_conflicts_means_no_manifest_lookups(fake_git: FakeGit) -> None:
    enricher, _ = _enricher(fake_git)

    report = enricher.enrich_all(HEAD_SHA, OTHER_SHA)

    assert report.conflicted == []
    assert not any(command[0] == "notes" for command in fake_git.commands())
