"""Command-line tokenisation adapter.

Purpose
-------
Implement the :class:`lib_property_resolver.application.ports.CommandLineParser`
protocol with the simple ``--name=value`` grammar and build the matching
property source.

Grammar
-------
* ``--name=value`` – option argument; repeatable, values accumulate in order.
* ``--name`` – flag; recorded with no values.
* anything else – non-option argument, kept in order.

A bare ``--`` or an option without a name (``--=value``) is rejected with
:class:`~lib_property_resolver.domain.errors.InvalidCommandLineArgument`.
"""

from __future__ import annotations

from typing import Sequence

from ...domain.command_line import COMMAND_LINE_PROPERTY_SOURCE_NAME, CommandLineArgs, CommandLinePropertySource
from ...domain.errors import InvalidCommandLineArgument
from ...observability import log_debug, make_event


class SimpleCommandLineArgsParser:
    """Parse an argument vector into :class:`CommandLineArgs`.

    Examples
    --------
    >>> parsed = SimpleCommandLineArgsParser().parse(["--tag=a", "--tag=b", "--debug", "input.txt"])
    >>> parsed.option_values
    {'tag': ['a', 'b'], 'debug': []}
    >>> parsed.non_option_args
    ['input.txt']
    """

    def parse(self, args: Sequence[str]) -> CommandLineArgs:
        result = CommandLineArgs()
        for arg in args:
            if arg.startswith("--"):
                name, separator, value = arg[2:].partition("=")
                if not name:
                    raise InvalidCommandLineArgument(arg)
                result.add_option_arg(name, value if separator else None)
            else:
                result.add_non_option_arg(arg)
        return result


def command_line_property_source(
    args: Sequence[str],
    *,
    name: str = COMMAND_LINE_PROPERTY_SOURCE_NAME,
) -> CommandLinePropertySource:
    """Tokenise *args* and wrap the result as a property source.

    Examples
    --------
    >>> source = command_line_property_source(["--app.name=CLI"])
    >>> source.name, source.get_property("app.name")
    ('commandLineArgs', 'CLI')
    """

    parsed = SimpleCommandLineArgsParser().parse(args)
    log_debug(
        "command_line_parsed",
        **make_event(name, None, {"options": list(parsed.option_names()), "non_option_args": len(parsed.non_option_args)}),
    )
    return CommandLinePropertySource(parsed, name=name)
