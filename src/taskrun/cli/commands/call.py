"""`taskrun call` command implementation."""

from __future__ import annotations

import argparse

from taskrun.cli.commands.common import add_common_arguments, run_target


def add_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the `call` command."""
    parser = subparsers.add_parser("call", help="Run a callable, then return to the shell normally.")
    add_common_arguments(parser)
    parser.set_defaults(command="call")


def run(args: argparse.Namespace) -> None:
    """Execute the `call` command; prints the callable's result when it is not None."""
    result = run_target(args, exit_when_done=False, sound_on_success=False)
    if result is not None:
        print(result)
