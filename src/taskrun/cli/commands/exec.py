"""`taskrun exec` command implementation."""

from __future__ import annotations

import argparse

from taskrun.cli.commands.common import add_common_arguments, run_target


def add_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the `exec` command."""
    parser = subparsers.add_parser(
        "exec",
        help="Run a callable, then exit with 0 if it returned or 1 if it raised.",
    )
    add_common_arguments(parser)
    parser.set_defaults(command="exec")


def run(args: argparse.Namespace) -> None:
    """Execute the `exec` command. Exits the process; the result is logged, not printed."""
    run_target(args, exit_when_done=True, sound_on_success=True)
