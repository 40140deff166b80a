"""
Variable interpolation for configuration sources.

Supports ``${NAME}`` and ``${NAME:default}``. Values are looked up through a
callable, so callers decide the precedence of process variables, the
environment and ``.env`` files.
"""

import os
from typing import Callable, Mapping, Optional, Sequence

from ..errors import ConfigurationError


Lookup = Callable[[str], Optional[str]]


def chain_lookup(*sources: Optional[Mapping[str, str]]) -> Lookup:
    """Build a lookup that checks each mapping in order."""
    mappings: Sequence[Mapping[str, str]] = [s for s in sources if s is not None]

    def lookup(name: str) -> Optional[str]:
        for mapping in mappings:
            value = mapping.get(name)
            if value is not None:
                return str(value)
        return None

    return lookup


def default_lookup(
    variables: Optional[Mapping[str, str]] = None,
    dotenv: Optional[Mapping[str, Optional[str]]] = None,
) -> Lookup:
    """Process variables first, then the environment, then ``.env`` values."""
    return chain_lookup(variables, os.environ, dotenv)


def _line_of(text: str, index: int) -> int:
    return text.count("\n", 0, index) + 1


def resolve_variable(expression: str, lookup: Lookup) -> Optional[str]:
    """Resolve ``NAME`` or ``NAME:default``; None when unresolvable."""
    name, sep, default = expression.partition(":")
    value = lookup(name)
    if value is not None:
        return value
    if sep:
        return default.strip()
    return None


def substitute_variables(text: str, lookup: Lookup, source: Optional[str] = None) -> str:
    """
    Replace every ``${...}`` in ``text``.

    Substituted values are not rescanned.

    Raises:
        ConfigurationError: unterminated ``${``, multi-line variable, or a
            variable with no value and no default.
    """
    parts = []
    position = 0

    while True:
        start = text.find("${", position)
        if start == -1:
            break

        end = text.find("}", start)
        if end == -1:
            raise ConfigurationError(
                f"Invalid config file. Could not find a closing curly bracket '}}' "
                f"for variable at line: {_line_of(text, start)}",
                source=source,
            )

        expression = text[start + 2:end]
        if "\n" in expression:
            raise ConfigurationError(
                f"Invalid config file. File contains multi-line variable, "
                f"possibly missing curly bracket '}}' at line: {_line_of(text, start)}",
                source=source,
            )

        replacement = resolve_variable(expression, lookup)
        if replacement is None:
            raise ConfigurationError(
                f"Could not find a value for property '{expression}'",
                source=source,
            )

        parts.append(text[position:start])
        parts.append(replacement)
        position = end + 1

    parts.append(text[position:])
    return "".join(parts)
