"""CLI parser and dispatch tests."""

from __future__ import annotations

from typing import Iterator

import pytest

from gip import cli
from gip.cli import _build_parser, _split_command, main
from gip.logging import reset_logging
from gip.orchestrator import Orchestrator
from tests._fixtures.fake_git import NEW_SHA, FakeGit

FILLED = '''
(manifest
  (schemaVersion 2.0)
  (commit #HEAD)
  (globalIntent
    (behaviorClass [ docs ])
    (rationale """Clarify the guide""")
  )
  (entries)
)
'''


@pytest.fixture
def use_fake_git(monkeypatch: pytest.MonkeyPatch, fake_git: FakeGit) -> Iterator[FakeGit]:
    monkeypatch.setattr(cli, "Orchestrator", lambda *args, **kwargs: Orchestrator(git=fake_git.adapter()))
    yield fake_git
    # main() installs console handlers bound to the captured streams.
    reset_logging()


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "init"])
    assert args.verbose is True
    assert args.command == "init"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["context", "--verbose"])
    assert args.verbose is True
    assert args.command == "context"


def test_cli_parses_context_options() -> None:
    args = _build_parser().parse_args(["context", "src/app.py", "--json", "--behavior", "perf"])
    assert args.target == "src/app.py"
    assert args.as_json is True
    assert args.export is False
    assert args.behavior == "perf"


def test_cli_rejects_unknown_behavior_classes() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["context", "--behavior", "shiny"])


def test_split_command_separates_leading_options() -> None:
    assert _split_command(["-v", "merge", "--no-ff", "topic"]) == (["-v"], "merge", ["--no-ff", "topic"])
    assert _split_command(["--help"]) == (["--help"], None, [])


def test_unknown_commands_pass_through_to_git(use_fake_git: FakeGit) -> None:
    main(["-v", "log", "--oneline", "-3"])
    assert use_fake_git.commands(interactive=True) == [["log", "--oneline", "-3"]]


def test_passthrough_exit_status_is_propagated(use_fake_git: FakeGit) -> None:
    use_fake_git.statuses["status"] = 128
    with pytest.raises(SystemExit) as excinfo:
        main(["status"])
    assert excinfo.value.code == 128


def test_wrapped_commands_keep_git_options(use_fake_git: FakeGit) -> None:
    use_fake_git.statuses["merge"] = 1

    with pytest.raises(SystemExit) as excinfo:
        main(["merge", "--no-ff", "-m", "Merge topic", "topic"])

    assert excinfo.value.code == 1
    assert use_fake_git.commands(interactive=True) == [["merge", "--no-ff", "-m", "Merge topic", "topic"]]


def test_push_is_followed_by_a_notes_push(use_fake_git: FakeGit) -> None:
    main(["push", "-u", "origin", "main"])
    assert use_fake_git.commands()[-1] == ["push", "origin", "refs/notes/gip"]


def test_commit_prints_remediation_when_manifest_is_missing(
    use_fake_git: FakeGit, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["commit", "-m", "msg"])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "Error: Manifest file was missing" in err
    assert "To fix this:\n  1. Read the file at:" in err
    assert "Template:\n; Gip Manifest Template" in err
    assert use_fake_git.commands(interactive=True) == []


def test_commit_forwards_unknown_options_to_git(
    use_fake_git: FakeGit, capsys: pytest.CaptureFixture[str]
) -> None:
    use_fake_git.write({".gip/manifest.gip": FILLED})

    main(["commit", "-m", "docs", "--signoff"])

    assert use_fake_git.commands(interactive=True) == [["commit", "-m", "docs", "--signoff"]]
    assert f"Attached manifest to {NEW_SHA}" in capsys.readouterr().out


def test_init_reports_what_it_created(use_fake_git: FakeGit, capsys: pytest.CaptureFixture[str]) -> None:
    main(["init"])
    out = capsys.readouterr().out
    assert "Initialized gip in" in out
    assert "Manifest template created at" in out
    assert "Added control directory to .gitignore" in out


def test_context_prints_a_message_when_nothing_is_recorded(
    use_fake_git: FakeGit, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["context"])
    assert capsys.readouterr().out.startswith("No context found for commit")


def test_context_errors_exit_with_status_one(
    use_fake_git: FakeGit, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["context", "no-such-ref"])
    assert excinfo.value.code == 1
    assert "gip context failed" in capsys.readouterr().err


def test_unrecognized_context_options_are_rejected(use_fake_git: FakeGit) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["context", "--oneline"])
    assert excinfo.value.code == 2
