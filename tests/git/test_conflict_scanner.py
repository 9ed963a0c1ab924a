"""Tests for conflicted-file discovery."""

from __future__ import annotations

from gip.git.conflicts import ConflictScanner
from tests._fixtures.fake_git import FakeGit


def test_scanner_lists_unmerged_paths(fake_git: FakeGit) -> None:
    fake_git.conflicted = ["src/payment.py", "docs/notes.md"]
    scanner = ConflictScanner(fake_git.adapter())

    assert scanner.list_conflicted_files() == ["src/payment.py", "docs/notes.md"]
    assert fake_git.commands()[-1] == ["diff", "--name-only", "--diff-filter=U"]


def test_scanner_queries_git_on_every_call(fake_git: FakeGit) -> None:
    scanner = ConflictScanner(fake_git.adapter())
    fake_git.conflicted = ["a.py"]
    assert scanner.list_conflicted_files() == ["a.py"]

    fake_git.conflicted = []
    assert scanner.list_conflicted_files() == []
    assert len(fake_git.commands()) == 2
