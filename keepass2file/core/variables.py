"""Template variables supplied on the command line."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)


def parse_variables(tokens: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` tokens into a mapping.

    The token is split on the first ``=`` so values may contain ``=``. Keys are
    stripped and must not be empty; an empty value is kept as ``""``.
    Malformed tokens are logged as warnings and skipped.

    Args:
        tokens: Raw ``key=value`` strings

    Returns:
        Parsed variables, later tokens overriding earlier ones
    """
    parsed: dict[str, str] = {}
    for token in tokens:
        if "=" not in token:
            logger.warning(f'Malformed variable "{token}": please use var=content')
            continue
        key, value = token.split("=", 1)
        key = key.strip()
        if not key:
            logger.warning(
                f'Malformed variable "{token}": variable name cannot be empty'
            )
            continue
        parsed[key] = value
    return parsed


def merge_variables(
    defaults: Mapping[str, str], overrides: Iterable[str] = ()
) -> dict[str, str]:
    """Layer command-line ``key=value`` overrides on top of configured defaults."""
    merged = dict(defaults)
    merged.update(parse_variables(overrides))
    return merged
