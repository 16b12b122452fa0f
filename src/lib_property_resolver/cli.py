"""CLI adapter for ``lib_property_resolver`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators ask "what would the application see for this key" without
writing Python: build an environment from files, inline properties, dotenv,
the process environment and trailing ``--name=value`` arguments, then query it.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_get` / :func:`cli_resolve` / :func:`cli_sources` /
  :func:`cli_profiles` / :func:`cli_validate` – query commands.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root
(:func:`lib_property_resolver.core.create_environment`) and never reaches
into adapter implementation details directly. Arguments after ``--`` form
the command-line property source, e.g.::

    lib_property_resolver get server.port --file app.toml -- --server.port=9090
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from decimal import Decimal
from functools import wraps
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Iterator, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .application.conversion import to_text
from .application.environment import StandardEnvironment
from .core import DEFAULT_BASE_NAME, create_environment
from .domain.errors import MissingRequiredProperties, PropertyError

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

TYPE_CHOICES: Final[dict[str, type]] = {
    "str": str,
    "int": int,
    "float": float,
    "decimal": Decimal,
    "bool": bool,
    "list": list,
    "path": Path,
}


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version("lib_property_resolver")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def environment_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the layer options shared by every query command.

    The wrapped command receives a ready :class:`StandardEnvironment` as its
    ``environment`` keyword instead of the raw option values.
    """

    @click.option(
        "--file",
        "files",
        multiple=True,
        type=click.Path(path_type=Path, dir_okay=False),
        help="TOML/JSON/YAML file to load (repeatable, earlier files win)",
    )
    @click.option(
        "--config-dir",
        type=click.Path(path_type=Path, file_okay=False),
        default=None,
        help="Directory holding <base-name>.<ext> and <base-name>-<profile>.<ext> files",
    )
    @click.option("--base-name", default=DEFAULT_BASE_NAME, show_default=True, help="Stem of files in --config-dir")
    @click.option("--property", "inline", multiple=True, metavar="KEY=VALUE", help="Inline property (repeatable)")
    @click.option("--profile", "profiles", multiple=True, help="Profile to activate (repeatable)")
    @click.option("--dotenv/--no-dotenv", default=False, help="Load the nearest .env walking upwards from CWD")
    @click.option("--env-prefix", default=None, help="Only consider environment variables starting with this prefix")
    @click.option("--no-system-env", is_flag=True, default=False, help="Ignore process environment variables")
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @wraps(command)
    def wrapper(
        *,
        files: Sequence[Path],
        config_dir: Optional[Path],
        base_name: str,
        inline: Sequence[str],
        profiles: Sequence[str],
        dotenv: bool,
        env_prefix: Optional[str],
        no_system_env: bool,
        args: Sequence[str],
        **kwargs: Any,
    ) -> Any:
        with _translate_errors():
            environment = create_environment(
                args=list(args) or None,
                properties=_parse_inline(inline),
                files=files,
                config_dir=config_dir,
                base_name=base_name,
                dotenv=dotenv,
                env_prefix=env_prefix,
                include_system_env=not no_system_env,
                profiles=list(profiles) or None,
            )
        return command(environment=environment, **kwargs)

    return wrapper


@click.group(
    help="Layered property resolution with placeholders and profiles",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_property_resolver",
    message="lib_property_resolver version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_property_resolver")
    except metadata.PackageNotFoundError:
        click.echo("lib_property_resolver (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_property_resolver')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option(
    "--type",
    "type_name",
    type=click.Choice(sorted(TYPE_CHOICES), case_sensitive=False),
    default="str",
    show_default=True,
    help="Convert the value to this type before printing",
)
@click.option("--default", "default", default=None, help="Value printed when KEY does not resolve")
@environment_options
def cli_get(environment: StandardEnvironment, key: str, type_name: str, default: Optional[str]) -> None:
    """Print the fully resolved value of KEY.

    Exits with status 1 when KEY does not resolve and no ``--default`` is set.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["get", "app.name", "--no-system-env", "--property", "app.name=demo"])
    >>> result.output.strip()
    'demo'
    """

    with _translate_errors():
        value = environment.get_property(key, TYPE_CHOICES[type_name.lower()])
    if value is None:
        if default is None:
            raise click.ClickException(f"Property '{key}' not found")
        value = default
    click.echo(_render(value))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("text")
@click.option(
    "--strict/--lenient",
    default=False,
    help="Fail on unresolvable placeholders instead of leaving them verbatim",
)
@environment_options
def cli_resolve(environment: StandardEnvironment, text: str, strict: bool) -> None:
    """Expand ``${...}`` placeholders in TEXT against the configured layers."""

    with _translate_errors():
        if strict:
            resolved = environment.resolve_required_placeholders(text)
        else:
            resolved = environment.resolve_placeholders(text)
    click.echo(resolved)


@cli.command("sources", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@environment_options
def cli_sources(environment: StandardEnvironment, indent: Optional[int]) -> None:
    """Print the property sources as JSON, highest precedence first."""

    payload = [
        {"name": source.name, "type": type(source).__name__, "precedence": index}
        for index, source in enumerate(environment.property_sources)
    ]
    click.echo(json.dumps(payload, indent=indent))


@cli.command("profiles", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--accepts",
    "expressions",
    multiple=True,
    metavar="EXPR",
    help="Profile expression to evaluate, e.g. 'prod & !eu' (repeatable, OR-combined)",
)
@environment_options
def cli_profiles(environment: StandardEnvironment, expressions: Sequence[str]) -> None:
    """Print active and default profiles as JSON, optionally evaluating expressions."""

    with _translate_errors():
        payload: dict[str, Any] = {
            "active": list(environment.active_profiles),
            "default": list(environment.default_profiles),
        }
        if expressions:
            payload["accepts"] = environment.accepts_profiles(*expressions)
    click.echo(json.dumps(payload))


@cli.command("validate", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--require", "required", multiple=True, required=True, metavar="KEY", help="Required key (repeatable)")
@environment_options
def cli_validate(environment: StandardEnvironment, required: Sequence[str]) -> None:
    """Check that every ``--require`` key resolves; list all missing keys otherwise."""

    environment.set_required_properties(required)
    try:
        environment.validate_required_properties()
    except MissingRequiredProperties as exc:
        raise click.ClickException(f"Missing required properties: {', '.join(exc.missing)}") from exc
    except PropertyError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"All {len(required)} required properties resolved")


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Turn library errors into :class:`click.ClickException` for clean exit codes."""

    try:
        yield
    except PropertyError as exc:
        raise click.ClickException(str(exc)) from exc


def _parse_inline(values: Sequence[str]) -> dict[str, str]:
    """Split ``KEY=VALUE`` pairs from ``--property``.

    Examples
    --------
    >>> _parse_inline(["a=1", "b=x=y"])
    {'a': '1', 'b': 'x=y'}
    """

    parsed: dict[str, str] = {}
    for item in values:
        key, separator, value = item.partition("=")
        if not separator or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got '{item}'", param_hint="--property")
        parsed[key.strip()] = value
    return parsed


def _render(value: Any) -> str:
    if isinstance(value, Path):
        return str(value)
    return to_text(value)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_property_resolver",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
