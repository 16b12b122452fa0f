"""Command-line arguments as a property source.

Purpose
-------
Expose an already-tokenised argument vector through the property-source
capability. Tokenisation lives in
:mod:`lib_property_resolver.adapters.command_line.simple`; this module only
consumes its result.

Contents
--------
* :class:`CommandLineArgs` – option names mapped to ordered value lists plus
  the ordered non-option arguments.
* :class:`CommandLinePropertySource` – enumerable source serving both groups.
* :data:`COMMAND_LINE_PROPERTY_SOURCE_NAME` / :data:`DEFAULT_NON_OPTION_ARGS_PROPERTY_NAME`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .sources import NamedSource

COMMAND_LINE_PROPERTY_SOURCE_NAME: Final[str] = "commandLineArgs"
"""Default chain name of the command-line source."""

DEFAULT_NON_OPTION_ARGS_PROPERTY_NAME: Final[str] = "nonOptionArgs"
"""Reserved key under which positional arguments are published."""


@dataclass(slots=True)
class CommandLineArgs:
    """Structured result of command-line tokenisation.

    A flag given without a value is recorded with an empty list so "flag set,
    no value" stays distinguishable from "flag not set".

    Examples
    --------
    >>> args = CommandLineArgs()
    >>> args.add_option_arg("debug")
    >>> args.add_option_arg("tag", "a")
    >>> args.add_option_arg("tag", "b")
    >>> args.get_option_values("debug"), args.get_option_values("tag"), args.get_option_values("missing")
    ([], ['a', 'b'], None)
    """

    option_values: dict[str, list[str]] = field(default_factory=dict)
    non_option_args: list[str] = field(default_factory=list)

    def add_option_arg(self, name: str, value: str | None = None) -> None:
        values = self.option_values.setdefault(name, [])
        if value is not None:
            values.append(value)

    def add_non_option_arg(self, value: str) -> None:
        self.non_option_args.append(value)

    def option_names(self) -> tuple[str, ...]:
        return tuple(self.option_values)

    def contains_option(self, name: str) -> bool:
        return name in self.option_values

    def get_option_values(self, name: str) -> list[str] | None:
        values = self.option_values.get(name)
        return list(values) if values is not None else None

    def get_non_option_args(self) -> list[str]:
        return list(self.non_option_args)


class CommandLinePropertySource(NamedSource):
    """Property source exposing option and non-option command-line arguments.

    Why
    ----
    Command-line overrides should join the resolution chain with the same
    lookup contract as every other source.

    What
    ----
    Option values are published comma-joined under their option name; a flag
    without value resolves to ``""``. Positional arguments are published
    comma-joined under :attr:`non_option_args_property_name`.

    Examples
    --------
    >>> args = CommandLineArgs({"app.name": ["CLI"], "verbose": []}, ["a.txt", "b.txt"])
    >>> source = CommandLinePropertySource(args)
    >>> source.get_property("app.name"), source.get_property("verbose")
    ('CLI', '')
    >>> source.get_property("nonOptionArgs")
    'a.txt,b.txt'
    >>> source.get_property("missing") is None
    True
    """

    def __init__(
        self,
        args: CommandLineArgs,
        *,
        name: str = COMMAND_LINE_PROPERTY_SOURCE_NAME,
        non_option_args_property_name: str = DEFAULT_NON_OPTION_ARGS_PROPERTY_NAME,
    ) -> None:
        super().__init__(name, args)
        self.non_option_args_property_name = non_option_args_property_name

    def get_option_values(self, name: str) -> list[str] | None:
        return self._source.get_option_values(name)

    def get_non_option_args(self) -> list[str]:
        return self._source.get_non_option_args()

    def contains_property(self, key: str) -> bool:
        if key == self.non_option_args_property_name:
            return bool(self._source.non_option_args)
        return self._source.contains_option(key)

    def get_property(self, key: str) -> str | None:
        if key == self.non_option_args_property_name:
            non_option_args = self.get_non_option_args()
            return ",".join(non_option_args) if non_option_args else None
        values = self.get_option_values(key)
        if values is None:
            return None
        return ",".join(values)

    def property_names(self) -> tuple[str, ...]:
        names = self._source.option_names()
        if self._source.non_option_args:
            names += (self.non_option_args_property_name,)
        return names
