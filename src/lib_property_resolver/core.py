"""Composition root for ``lib_property_resolver``.

Purpose
-------
Provide the single entry point that wires adapters (command line, structured
files, dotenv, process environment) into a precedence-ordered chain and hands
back a ready :class:`StandardEnvironment`.

Contents
--------
* :class:`LayerLoadError` – error raised when a layer fails to materialise.
* :func:`create_environment` – high-level bootstrap API.
* :func:`_profile_file_sources` / :func:`_file_source` – helpers used by the
  composition flow.

Precedence
----------
Highest first::

    commandLineArgs > inlineProperties > <base>-<profile> ... > <base>
        > file [...] > dotenv > systemEnvironment

Within the configuration directory, later activated profiles win over earlier
ones and the plain ``<base>.<ext>`` file is always loaded last.

System Role
-----------
This module connects adapters with the domain and application layers while
emitting structured observability signals. It is the canonical location for
adjusting precedence rules or wiring new adapters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from .adapters.command_line.simple import command_line_property_source
from .adapters.dotenv.default import DefaultDotEnvLoader
from .adapters.env.default import SYSTEM_ENVIRONMENT_PROPERTY_SOURCE_NAME, SystemEnvironmentPropertySource, default_env_prefix
from .adapters.file_loaders.structured import discover_profile_files, load_property_source
from .application.environment import StandardEnvironment
from .domain.errors import InvalidCommandLineArgument, InvalidFormat, PropertyError, ResourceNotFound
from .domain.profiles import RESERVED_DEFAULT_PROFILE_NAME
from .domain.property_sources import PropertySources
from .domain.sources import CompositePropertySource, MapPropertySource
from .observability import bind_trace_id, log_debug, log_info, make_event

INLINE_PROPERTY_SOURCE_NAME = "inlineProperties"
DOTENV_PROPERTY_SOURCE_NAME = "dotenv"
DEFAULT_BASE_NAME = "application"


class LayerLoadError(PropertyError):
    """Raised when a configuration layer cannot be materialised.

    Why
    ----
    The composition root needs to surface adapter failures using the domain
    error taxonomy so callers can catch a single exception family.

    What
    -----
    Wraps :class:`InvalidFormat`, :class:`ResourceNotFound` or
    :class:`InvalidCommandLineArgument` with the layer name and, where known,
    the offending path. The original error stays available as ``__cause__``.
    """

    def __init__(self, layer: str, message: str) -> None:
        super().__init__(f"Failed to load {layer} layer: {message}")
        self.layer = layer


def create_environment(
    *,
    args: Sequence[str] | None = None,
    properties: Mapping[str, Any] | None = None,
    files: Iterable[str | Path] = (),
    config_dir: str | Path | None = None,
    base_name: str = DEFAULT_BASE_NAME,
    dotenv: bool = False,
    start_dir: str | None = None,
    environ: Mapping[str, str] | None = None,
    env_prefix: str | None = None,
    include_system_env: bool = True,
    profiles: Sequence[str] | None = None,
    required: Iterable[str] = (),
) -> StandardEnvironment:
    """Return a :class:`StandardEnvironment` assembled from the requested layers.

    Why
    ----
    Applications want one call that turns "argv, a few files and the process
    environment" into a resolver with well-defined precedence.

    Parameters
    ----------
    args:
        Argument vector (without program name) parsed with the ``--name=value``
        grammar. ``None`` skips the command-line layer.
    properties:
        In-memory properties; nested mappings are flattened into dotted keys.
    files:
        Explicit TOML/JSON/YAML files, earlier files win.
    config_dir / base_name:
        Directory scanned for ``<base_name>.<ext>`` and
        ``<base_name>-<profile>.<ext>``.
    dotenv / start_dir:
        When *dotenv* is true, the nearest ``.env`` walking upwards from
        *start_dir* (default: CWD) becomes a layer.
    environ / env_prefix / include_system_env:
        Environment mapping (default :data:`os.environ`), optional variable
        prefix, and a switch to leave the environment out entirely.
    profiles:
        Profiles to activate. When omitted, ``profiles.active`` resolved from
        the other layers decides.
    required:
        Keys validated once the chain is complete.

    Raises
    ------
    LayerLoadError
        When a file, directory, dotenv file or argument cannot be loaded.
    MissingRequiredProperties
        When any *required* key does not resolve.

    Side Effects
    ------------
    Clears the trace identifier via :func:`bind_trace_id` and emits one
    ``layer_loaded`` event per layer plus a final ``environment_ready``.

    Examples
    --------
    >>> env = create_environment(
    ...     args=["--server.port=9090"],
    ...     properties={"server": {"port": 8080, "url": "http://localhost:${server.port}"}},
    ...     include_system_env=False,
    ... )
    >>> env.get_property("server.url")
    'http://localhost:9090'
    >>> env.property_sources.names()
    ('commandLineArgs', 'inlineProperties')
    """

    bind_trace_id(None)
    environment = StandardEnvironment(PropertySources())
    chain = environment.property_sources

    if args is not None:
        try:
            _register(chain, command_line_property_source(args))
        except InvalidCommandLineArgument as exc:
            raise LayerLoadError("command line", str(exc)) from exc

    if properties:
        _register(chain, MapPropertySource.from_nested(INLINE_PROPERTY_SOURCE_NAME, properties))

    if dotenv:
        _register(chain, _dotenv_source(start_dir))

    if include_system_env:
        prefix = default_env_prefix(env_prefix) if env_prefix else None
        _register(chain, SystemEnvironmentPropertySource(SYSTEM_ENVIRONMENT_PROPERTY_SOURCE_NAME, environ, prefix=prefix))

    # Active profiles may come from the layers registered so far, so files are
    # slotted in once those are in place.
    if profiles:
        environment.set_active_profiles(*profiles)

    file_sources = [_file_source(path) for path in files]
    if config_dir is not None:
        file_sources = _profile_file_sources(environment, config_dir, base_name) + file_sources
    for source in file_sources:
        _register_file(chain, source)

    if required:
        environment.set_required_properties(required)
        environment.validate_required_properties()

    log_info(
        "environment_ready",
        **make_event(
            None,
            None,
            {"sources": list(chain.names()), "active_profiles": list(environment.active_profiles)},
        ),
    )
    return environment


def _register(chain: PropertySources, source: Any) -> None:
    """Append *source* with the lowest precedence so far."""

    chain.add_last(source)
    log_debug("layer_loaded", **make_event(source.name, None, {"precedence": len(chain) - 1}))


def _register_file(chain: PropertySources, source: Any) -> None:
    """Insert a file-backed *source* ahead of the dotenv and environment layers."""

    for anchor in (DOTENV_PROPERTY_SOURCE_NAME, SYSTEM_ENVIRONMENT_PROPERTY_SOURCE_NAME):
        if chain.contains(anchor):
            chain.add_before(anchor, source)
            log_debug("layer_loaded", **make_event(source.name, None, {"precedence": chain.precedence_of(source)}))
            return
    _register(chain, source)


def _file_source(path: str | Path) -> MapPropertySource:
    """Load one structured file, translating adapter errors into :class:`LayerLoadError`."""

    try:
        return load_property_source(path)
    except (InvalidFormat, ResourceNotFound) as exc:
        raise LayerLoadError("file", str(exc)) from exc


def _dotenv_source(start_dir: str | None) -> MapPropertySource:
    loader = DefaultDotEnvLoader()
    try:
        data = loader.load(start_dir)
    except InvalidFormat as exc:
        raise LayerLoadError("dotenv", str(exc)) from exc
    return MapPropertySource(DOTENV_PROPERTY_SOURCE_NAME, data)


def _profile_file_sources(
    environment: StandardEnvironment, config_dir: str | Path, base_name: str
) -> list[CompositePropertySource]:
    """Return the profile groups found in *config_dir*, highest precedence first.

    Each group becomes a :class:`CompositePropertySource` named after its file
    stem (``application-dev``); files sharing a stem keep their sorted order.
    The plain ``<base_name>`` group is always present when such a file exists
    and ranks last.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> _ = (Path(tmp.name) / "application.json").write_text('{"mode": "base"}', encoding="utf-8")
    >>> _ = (Path(tmp.name) / "application-dev.json").write_text('{"mode": "dev"}', encoding="utf-8")
    >>> env = StandardEnvironment()
    >>> env.set_active_profiles("dev")
    >>> [group.name for group in _profile_file_sources(env, tmp.name, "application")]
    ['application-dev', 'application']
    >>> tmp.cleanup()
    """

    try:
        grouped = discover_profile_files(config_dir, base_name)
    except ResourceNotFound as exc:
        raise LayerLoadError("config directory", str(exc)) from exc

    sources: list[CompositePropertySource] = []
    for profile in reversed(environment.active_profiles or environment.default_profiles):
        if profile != RESERVED_DEFAULT_PROFILE_NAME and profile in grouped:
            sources.append(_composite(f"{base_name}-{profile}", grouped[profile]))
    if RESERVED_DEFAULT_PROFILE_NAME in grouped:
        sources.append(_composite(base_name, grouped[RESERVED_DEFAULT_PROFILE_NAME]))
    return sources


def _composite(name: str, paths: Sequence[Path]) -> CompositePropertySource:
    return CompositePropertySource(name, [_file_source(path) for path in paths])


__all__ = [
    "DEFAULT_BASE_NAME",
    "DOTENV_PROPERTY_SOURCE_NAME",
    "INLINE_PROPERTY_SOURCE_NAME",
    "LayerLoadError",
    "create_environment",
    "default_env_prefix",
]
