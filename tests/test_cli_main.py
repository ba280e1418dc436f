from __future__ import annotations

from types import SimpleNamespace

import pytest

from taskrun.cli import main as cli_main
from taskrun.errors import ConfigError


def test_build_arg_parser_accepts_all_registered_commands() -> None:
    parser = cli_main.build_arg_parser()
    for command in ("call", "exec"):
        args = parser.parse_args([command, "json:dumps", "x"])
        assert args.command == command
        assert args.target == "json:dumps"
        assert args.args == ["x"]


def test_build_arg_parser_requires_add_subparser(monkeypatch: pytest.MonkeyPatch) -> None:
    bad_module = SimpleNamespace(run=lambda _args: None)
    monkeypatch.setattr(cli_main, "_COMMANDS", {"bad": bad_module})
    with pytest.raises(RuntimeError, match="missing add_subparser"):
        cli_main.build_arg_parser()


def _fake_add_subparser(subparsers: object) -> None:
    parser = subparsers.add_parser("fake")  # type: ignore[attr-defined]
    parser.set_defaults(command="fake")


def test_main_dispatches_to_selected_command(monkeypatch: pytest.MonkeyPatch) -> None:
    called: list[str] = []

    def _run(args: object) -> None:
        called.append(str(args.command))  # type: ignore[attr-defined]

    fake_module = SimpleNamespace(add_subparser=_fake_add_subparser, run=_run)
    monkeypatch.setattr(cli_main, "_COMMANDS", {"fake": fake_module})

    cli_main.main(["fake"])
    assert called == ["fake"]


def test_main_requires_run_function(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_module = SimpleNamespace(add_subparser=_fake_add_subparser)
    monkeypatch.setattr(cli_main, "_COMMANDS", {"fake": fake_module})

    with pytest.raises(RuntimeError, match="missing run"):
        cli_main.main(["fake"])


def test_main_reports_config_errors_as_usage_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _run(args: object) -> None:
        raise ConfigError("bad target")

    fake_module = SimpleNamespace(add_subparser=_fake_add_subparser, run=_run)
    monkeypatch.setattr(cli_main, "_COMMANDS", {"fake": fake_module})

    with pytest.raises(SystemExit) as info:
        cli_main.main(["fake"])

    assert info.value.code == 2
    assert "bad target" in capsys.readouterr().err
