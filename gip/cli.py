"""CLI entrypoints for gip commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .errors import GipError, ValidationError
from .logging import configure_logging
from .models import BEHAVIOR_CLASSES
from .orchestrator import Orchestrator

# Subcommands whose options gip parses itself; every other command word,
# including push, fetch, merge and rebase, hands its arguments to git.
_PARSED_COMMANDS = ("init", "commit", "context")
_VERBOSE_FLAGS = ("-v", "--verbose")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gip",
        description=(
            "Git wrapper that records structured change intent with each commit "
            "and annotates merge conflicts with it."
        ),
        epilog="Any other command is passed through to git unchanged.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Create the manifest template and ignore the control directory.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path inside the repository (defaults to current directory).",
    )

    commit_parser = subparsers.add_parser(
        "commit",
        help="Validate the authored manifest, commit, and attach it to the commit.",
    )
    _add_verbose_option(commit_parser, suppress_default=True)
    commit_parser.add_argument("-m", "--message", help="Commit message passed to git.")
    commit_parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Skip manifest validation (not recommended).",
    )

    context_parser = subparsers.add_parser(
        "context",
        help="Show the recorded intent for a commit or for a file's history.",
    )
    _add_verbose_option(context_parser, suppress_default=True)
    context_parser.add_argument(
        "target",
        nargs="?",
        help="Commit-ish or file path (defaults to HEAD).",
    )
    output_group = context_parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the manifests as canonical JSON.",
    )
    output_group.add_argument(
        "--export",
        action="store_true",
        help="Print the manifests in compact notation.",
    )
    context_parser.add_argument(
        "--behavior",
        choices=BEHAVIOR_CLASSES,
        help="Only show entries tagged with this behavior class.",
    )

    for name, help_text in (
        ("push", "Run git push, then push the manifest notes."),
        ("fetch", "Run git fetch, then fetch the manifest notes."),
        ("merge", "Run git merge and annotate conflicts with intent."),
        ("rebase", "Run git rebase and annotate conflicts with intent."),
    ):
        subparsers.add_parser(name, help=help_text, add_help=False)

    return parser


def _split_command(argv: Sequence[str]) -> Tuple[List[str], Optional[str], List[str]]:
    """Split ``argv`` into leading options, the command word and the rest."""
    for index, arg in enumerate(argv):
        if not arg.startswith("-"):
            return list(argv[:index]), arg, list(argv[index + 1 :])
    return list(argv), None, []


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for gip commands."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()

    leading, command, rest = _split_command(argv)
    passthrough = (
        command is not None
        and command not in _PARSED_COMMANDS
        and all(flag in _VERBOSE_FLAGS for flag in leading)
    )
    if passthrough:
        # Wrapped and unknown commands reach git with their arguments untouched.
        args = argparse.Namespace(command=command, verbose=bool(leading))
        git_args = rest
    else:
        args, git_args = parser.parse_known_args(argv)
        if git_args and args.command != "commit":
            parser.error(f"unrecognized arguments: {' '.join(git_args)}")

    configure_logging(verbose=bool(args.verbose))

    if args.command == "init":
        orchestrator = Orchestrator(Path(args.path))
    else:
        orchestrator = Orchestrator()

    try:
        status = _dispatch(orchestrator, args, git_args)
    except ValidationError as exc:
        _print_validation_error(exc)
        parser.exit(1)
    except GipError as exc:
        parser.exit(
            1, f"gip {args.command} failed: {exc}\nRun with --verbose for more details.\n"
        )
    if status:
        parser.exit(status)


def _dispatch(orchestrator: Orchestrator, args: argparse.Namespace, git_args: List[str]) -> int:
    if args.command == "init":
        init = orchestrator.run_init()
        print(f"Initialized gip in {init.root}")
        if init.template_created:
            print(f"Manifest template created at {_relativize(init.authoring_path)}")
        if init.gitignore_updated:
            print("Added control directory to .gitignore")
        return 0

    if args.command == "commit":
        outcome = orchestrator.run_commit(
            args.message,
            force=bool(args.force),
            extra_args=git_args,
        )
        if outcome.manifest_attached and outcome.commit:
            print(f"Attached manifest to {outcome.commit}")
        return outcome.status

    if args.command == "context":
        result = orchestrator.run_context(
            args.target,
            as_json=bool(args.as_json),
            export=bool(args.export),
            behavior=args.behavior,
        )
        print(result.output)
        return 0

    if args.command == "push":
        return orchestrator.run_push(git_args).status
    if args.command == "fetch":
        return orchestrator.run_fetch(git_args).status

    if args.command in ("merge", "rebase"):
        runner = orchestrator.run_merge if args.command == "merge" else orchestrator.run_rebase
        merge = runner(git_args)
        if merge.report is not None and merge.report.count:
            print(f"Enriched {merge.report.count} conflicted file(s) with gip context.")
        return merge.status

    return orchestrator.run_passthrough([args.command, *git_args])


def _print_validation_error(exc: ValidationError) -> None:
    lines = [f"Error: {exc.reason}", ""]
    if exc.remediation:
        lines.append("To fix this:")
        lines.extend(f"  {number}. {step}" for number, step in enumerate(exc.remediation, 1))
        lines.append("")
    if exc.template:
        lines.append("Template:")
        lines.append(exc.template.rstrip("\n"))
    print("\n".join(lines), file=sys.stderr)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
