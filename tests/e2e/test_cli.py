"""End-to-end CLI coverage for the commands exposed by lib_property_resolver.

The tests drive the real click group through ``CliRunner`` with files in a
temporary directory and ``--no-system-env`` so the host environment never
leaks into assertions.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

import lib_cli_exit_tools

from lib_property_resolver import cli


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def _config(tmp_path: Path) -> Path:
    path = tmp_path / "app.toml"
    path.write_text(
        '[server]\nport = "8080"\nurl = "http://localhost:${server.port}"\n[feature]\nflags = "a,b"\n',
        encoding="utf-8",
    )
    return path


def test_cli_get_resolves_placeholders(tmp_path: Path) -> None:
    result = _runner().invoke(cli.cli, ["get", "server.url", "--no-system-env", "--file", str(_config(tmp_path))])
    assert result.exit_code == 0
    assert result.output.strip() == "http://localhost:8080"


def test_cli_trailing_arguments_override_files(tmp_path: Path) -> None:
    result = _runner().invoke(
        cli.cli,
        ["get", "server.url", "--no-system-env", "--file", str(_config(tmp_path)), "--", "--server.port=9090"],
    )
    assert result.exit_code == 0
    assert result.output.strip() == "http://localhost:9090"


def test_cli_get_with_type(tmp_path: Path) -> None:
    config = str(_config(tmp_path))
    runner = _runner()
    as_int = runner.invoke(cli.cli, ["get", "server.port", "--type", "int", "--no-system-env", "--file", config])
    as_list = runner.invoke(cli.cli, ["get", "feature.flags", "--type", "list", "--no-system-env", "--file", config])
    assert as_int.output.strip() == "8080"
    assert as_list.output.strip() == "a,b"


def test_cli_get_missing_key(tmp_path: Path) -> None:
    runner = _runner()
    missing = runner.invoke(cli.cli, ["get", "nope", "--no-system-env"])
    assert missing.exit_code == 1
    assert "nope" in missing.output
    defaulted = runner.invoke(cli.cli, ["get", "nope", "--default", "fallback", "--no-system-env"])
    assert defaulted.exit_code == 0
    assert defaulted.output.strip() == "fallback"


def test_cli_get_conversion_error_exits_non_zero() -> None:
    result = _runner().invoke(cli.cli, ["get", "port", "--type", "int", "--no-system-env", "--property", "port=abc"])
    assert result.exit_code == 1
    assert "Cannot convert" in result.output


def test_cli_resolve_lenient_and_strict() -> None:
    runner = _runner()
    base = ["--no-system-env", "--property", "name=demo"]
    lenient = runner.invoke(cli.cli, ["resolve", "${name}/${other}", *base])
    assert lenient.exit_code == 0
    assert lenient.output.strip() == "demo/${other}"
    strict = runner.invoke(cli.cli, ["resolve", "${name}/${other}", "--strict", *base])
    assert strict.exit_code == 1
    assert "other" in strict.output


def test_cli_sources_lists_precedence(tmp_path: Path) -> None:
    result = _runner().invoke(
        cli.cli,
        ["sources", "--no-system-env", "--property", "a=1", "--file", str(_config(tmp_path)), "--", "--b=2"],
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert [entry["name"] for entry in payload] == [
        "commandLineArgs",
        "inlineProperties",
        f"file [{tmp_path / 'app.toml'}]",
    ]
    assert payload[0]["type"] == "CommandLinePropertySource"


def test_cli_profiles_reports_and_evaluates(tmp_path: Path) -> None:
    result = _runner().invoke(
        cli.cli,
        ["profiles", "--no-system-env", "--profile", "dev", "--accepts", "prod", "--accepts", "dev & !eu"],
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {"active": ["dev"], "default": ["default"], "accepts": True}


def test_cli_profiles_rejects_bad_expression() -> None:
    result = _runner().invoke(cli.cli, ["profiles", "--no-system-env", "--accepts", "dev &"])
    assert result.exit_code == 1


def test_cli_config_dir_with_profile(tmp_path: Path) -> None:
    (tmp_path / "service.json").write_text('{"mode": "base"}', encoding="utf-8")
    (tmp_path / "service-prod.json").write_text('{"mode": "prod"}', encoding="utf-8")
    command = ["get", "mode", "--no-system-env", "--config-dir", str(tmp_path), "--base-name", "service"]
    runner = _runner()
    assert runner.invoke(cli.cli, command).output.strip() == "base"
    assert runner.invoke(cli.cli, [*command, "--profile", "prod"]).output.strip() == "prod"


def test_cli_validate_lists_every_missing_key() -> None:
    runner = _runner()
    ok = runner.invoke(cli.cli, ["validate", "--require", "a", "--no-system-env", "--property", "a=1"])
    assert ok.exit_code == 0
    failed = runner.invoke(
        cli.cli,
        ["validate", "--require", "a", "--require", "b", "--require", "c", "--no-system-env", "--property", "a=1"],
    )
    assert failed.exit_code == 1
    assert "b, c" in failed.output


def test_cli_rejects_malformed_inline_property() -> None:
    result = _runner().invoke(cli.cli, ["get", "a", "--no-system-env", "--property", "novalue"])
    assert result.exit_code == 2


def test_cli_env_prefix_reads_environment() -> None:
    result = _runner().invoke(
        cli.cli,
        ["get", "db.host", "--env-prefix", "LPR_CLI"],
        env={"LPR_CLI_DB_HOST": "from-env"},
    )
    assert result.exit_code == 0
    assert result.output.strip() == "from-env"


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    """`cli info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag() -> None:
    """`cli main` should restore lib_cli_exit_tools tracebacks after execution."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    exit_code = cli.main(
        ["--traceback", "get", "a", "--no-system-env", "--property", "a=1"],
        restore_traceback=True,
    )
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback
