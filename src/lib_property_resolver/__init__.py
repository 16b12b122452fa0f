"""Public package surface for ``lib_property_resolver``.

Property sources, the precedence chain, the placeholder-aware resolver and
the profile-aware environment are re-exported here so consumers only need
``import lib_property_resolver``. :func:`create_environment` is the usual
starting point; the building blocks stay available for callers that assemble
their own chain.
"""

from __future__ import annotations

from .adapters.command_line.simple import SimpleCommandLineArgsParser, command_line_property_source
from .adapters.dotenv.default import DefaultDotEnvLoader
from .adapters.env.default import SystemEnvironmentPropertySource, default_env_prefix
from .adapters.file_loaders.structured import discover_profile_files, load_property_source
from .application.conversion import DefaultConversionService
from .application.environment import (
    ACTIVE_PROFILES_PROPERTY_NAME,
    DEFAULT_PROFILES_PROPERTY_NAME,
    StandardEnvironment,
)
from .application.placeholders import PlaceholderHelper
from .application.ports import ConversionService, EnumerablePropertySource, PropertySource
from .application.resolver import PropertySourcesPropertyResolver
from .core import LayerLoadError, create_environment
from .domain.command_line import CommandLineArgs, CommandLinePropertySource
from .domain.errors import (
    CircularPlaceholderReference,
    DuplicateSource,
    InvalidCommandLineArgument,
    InvalidFormat,
    InvalidProfileExpression,
    InvalidProfileName,
    MissingRequiredProperties,
    PlaceholderError,
    ProfileError,
    PropertyError,
    PropertyNotFound,
    PropertySourceError,
    ResourceNotFound,
    SourceNotFound,
    TypeConversionFailed,
    UnresolvablePlaceholder,
)
from .domain.profiles import Profiles
from .domain.property_sources import PropertySources
from .domain.sources import CompositePropertySource, MapPropertySource
from .observability import bind_trace_id, get_logger

__all__ = [
    "ACTIVE_PROFILES_PROPERTY_NAME",
    "DEFAULT_PROFILES_PROPERTY_NAME",
    "CircularPlaceholderReference",
    "CommandLineArgs",
    "CommandLinePropertySource",
    "CompositePropertySource",
    "ConversionService",
    "DefaultConversionService",
    "DefaultDotEnvLoader",
    "DuplicateSource",
    "EnumerablePropertySource",
    "InvalidCommandLineArgument",
    "InvalidFormat",
    "InvalidProfileExpression",
    "InvalidProfileName",
    "LayerLoadError",
    "MapPropertySource",
    "MissingRequiredProperties",
    "PlaceholderError",
    "PlaceholderHelper",
    "ProfileError",
    "Profiles",
    "PropertyError",
    "PropertyNotFound",
    "PropertySource",
    "PropertySourceError",
    "PropertySources",
    "PropertySourcesPropertyResolver",
    "ResourceNotFound",
    "SimpleCommandLineArgsParser",
    "SourceNotFound",
    "StandardEnvironment",
    "SystemEnvironmentPropertySource",
    "TypeConversionFailed",
    "UnresolvablePlaceholder",
    "bind_trace_id",
    "command_line_property_source",
    "create_environment",
    "default_env_prefix",
    "discover_profile_files",
    "get_logger",
    "load_property_source",
]
