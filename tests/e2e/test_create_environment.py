"""End-to-end bootstrap through :func:`create_environment`.

These scenarios assemble real files, dotenv files and environment mappings
and check the documented precedence order.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from lib_property_resolver import (
    CompositePropertySource,
    LayerLoadError,
    MissingRequiredProperties,
    create_environment,
)


def _write(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text(body, encoding="utf-8")
    return path


def test_layers_are_ordered_by_precedence(tmp_path: Path, clean_environ: dict[str, str]) -> None:
    config = _write(tmp_path, "extra.toml", '[app]\nname = "file"\nlevel = "file"\nsource = "file"\n')
    (tmp_path / ".env").write_text("APP__NAME=dotenv\nAPP__LEVEL=dotenv\n", encoding="utf-8")
    clean_environ.update({"APP_NAME": "env", "APP_REGION": "env"})

    env = create_environment(
        args=["--app.name=cli"],
        properties={"app": {"name": "inline", "level": "inline"}},
        files=[config],
        dotenv=True,
        start_dir=str(tmp_path),
        environ=clean_environ,
    )

    assert env.property_sources.names() == (
        "commandLineArgs",
        "inlineProperties",
        f"file [{config}]",
        "dotenv",
        "systemEnvironment",
    )
    assert env.get_property("app.name") == "cli"
    assert env.get_property("app.level") == "inline"
    assert env.get_property("app.source") == "file"
    assert env.get_property("app.region") == "env"


def test_earlier_files_win(tmp_path: Path) -> None:
    first = _write(tmp_path, "first.json", '{"mode": "first"}')
    second = _write(tmp_path, "second.yaml", "mode: second\nonly: second\n")
    env = create_environment(files=[first, second], include_system_env=False)
    assert env.get_property("mode") == "first"
    assert env.get_property("only") == "second"


def test_config_dir_profiles(tmp_path: Path) -> None:
    _write(tmp_path, "application.yaml", "db:\n  url: jdbc://${db.host}/app\n  host: base-host\nmode: base\n")
    _write(tmp_path, "application-dev.toml", '[db]\nhost = "dev-host"\n')
    _write(tmp_path, "application-eu.json", '{"db": {"host": "eu-host"}, "region": "eu"}')
    _write(tmp_path, "application-prod.json", '{"mode": "prod"}')

    env = create_environment(config_dir=tmp_path, profiles=["dev", "eu"], include_system_env=False)

    assert env.property_sources.names() == ("application-eu", "application-dev", "application")
    assert isinstance(env.property_sources.get("application"), CompositePropertySource)
    assert env.get_property("db.url") == "jdbc://eu-host/app"
    assert env.get_property("region") == "eu"
    assert env.get_property("mode") == "base"
    assert env.accepts_profiles("dev & eu", "prod")


def test_profiles_activated_from_command_line(tmp_path: Path) -> None:
    _write(tmp_path, "application.json", '{"greeting": "hello"}')
    _write(tmp_path, "application-loud.json", '{"greeting": "HELLO"}')

    env = create_environment(args=["--profiles.active=loud"], config_dir=tmp_path, include_system_env=False)

    assert env.active_profiles == ("loud",)
    assert env.get_property("greeting") == "HELLO"


def test_default_profile_files_without_active_profiles(tmp_path: Path) -> None:
    _write(tmp_path, "application.json", '{"greeting": "hello"}')
    _write(tmp_path, "application-dev.json", '{"greeting": "dev"}')
    env = create_environment(config_dir=tmp_path, include_system_env=False)
    assert env.property_sources.names() == ("application",)
    assert env.get_property("greeting") == "hello"


def test_env_prefix_filters_environment(clean_environ: dict[str, str]) -> None:
    clean_environ.update({"MY_APP_DB_HOST": "scoped", "DB_HOST": "global"})
    env = create_environment(environ=clean_environ, env_prefix="my-app")
    assert env.get_property("db.host") == "scoped"


def test_environment_defaults_to_process_environ(monkeypatch) -> None:
    monkeypatch.setitem(os.environ, "LPR_E2E_TOKEN", "from-os")
    env = create_environment(env_prefix="LPR_E2E")
    assert env.get_property("token") == "from-os"


def test_required_keys_are_validated(clean_environ: dict[str, str]) -> None:
    with pytest.raises(MissingRequiredProperties) as excinfo:
        create_environment(properties={"a": "1"}, environ=clean_environ, required=["a", "b", "c"])
    assert excinfo.value.missing == ("b", "c")


@pytest.mark.parametrize(
    ("build", "layer"),
    [
        (lambda root: {"args": ["--=oops"]}, "command line"),
        (lambda root: {"files": [root / "missing.toml"]}, "file"),
        (lambda root: {"config_dir": root / "missing-dir"}, "config directory"),
    ],
)
def test_adapter_failures_become_layer_load_errors(tmp_path: Path, build, layer: str) -> None:
    with pytest.raises(LayerLoadError) as excinfo:
        create_environment(include_system_env=False, **build(tmp_path))
    assert excinfo.value.layer == layer
    assert excinfo.value.__cause__ is not None


def test_invalid_file_content_is_wrapped(tmp_path: Path) -> None:
    broken = _write(tmp_path, "broken.json", "{not json")
    with pytest.raises(LayerLoadError, match="broken.json"):
        create_environment(files=[broken], include_system_env=False)


def test_invalid_dotenv_is_wrapped(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("NO_EQUALS\n", encoding="utf-8")
    with pytest.raises(LayerLoadError) as excinfo:
        create_environment(dotenv=True, start_dir=str(tmp_path), include_system_env=False)
    assert excinfo.value.layer == "dotenv"


def test_bootstrap_logs_layers(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_property_resolver")
    create_environment(args=["--a=1"], properties={"b": "2"}, include_system_env=False)
    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("layer_loaded") == 2
    assert messages[-1] == "environment_ready"
    ready = caplog.records[-1].context
    assert ready["sources"] == ["commandLineArgs", "inlineProperties"]


def test_properties_profile_file_overrides_base(tmp_path: Path) -> None:
    _write(tmp_path, "application.yaml", "db:\n  host: base-host\n")
    _write(tmp_path, "application-dev.properties", "# dev overrides\ndb.host=dev-host\ndb.url=jdbc://${db.host}/app\n")

    env = create_environment(config_dir=tmp_path, profiles=["dev"], include_system_env=False)

    assert env.get_property("db.url") == "jdbc://dev-host/app"
