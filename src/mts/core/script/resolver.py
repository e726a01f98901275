"""Argument and element resolution against the lookup dictionaries."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from types import MappingProxyType, ModuleType
from typing import Any, Optional

from mts.core.errors import ResolutionError

logger = logging.getLogger(__name__)

# Finite decimal numbers only: no hex, no inf/nan, no digit separators.
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def is_numeric(text: str) -> bool:
    """Check whether a token is a finite decimal number literal."""
    return NUMBER_PATTERN.fullmatch(text) is not None


def is_quoted_literal(text: str) -> bool:
    """Check whether text is delimited front and back by matching quotes."""
    return len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"')


def freeze(data: Any) -> Any:
    """Return a read-only deep copy of nested mappings and lists."""
    if isinstance(data, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in data.items()})
    if isinstance(data, list):
        return tuple(freeze(v) for v in data)
    return data


def lookup(root: Any, path: str, kind: str = "value") -> Any:
    """Traverse a dot-separated path into nested mappings.

    Sequences accept integer segments, so ``items.0.name`` works on lists
    of mappings. Modules loaded from ``.py`` lookup files expose their
    public attributes. Any other value is a leaf and ends the walk.

    Raises:
        ResolutionError: If any segment is missing or the leaf is None
    """
    value = root
    walked = []
    for part in path.split("."):
        walked.append(part)
        if isinstance(value, Mapping):
            if part not in value:
                value = None
            else:
                value = value[part]
        elif isinstance(value, (list, tuple)) and part.lstrip("-").isdigit():
            try:
                value = value[int(part)]
            except IndexError:
                value = None
        elif isinstance(value, ModuleType) and not part.startswith("_"):
            value = getattr(value, part, None)
        else:
            value = None

        if value is None:
            raise ResolutionError(
                f"Undefined {kind} '{path}' (no '{'.'.join(walked)}')", path=path
            )
    return value


class ArgumentResolver:
    """Resolve argument tokens to literals or dictionary values.

    Args:
        values: Global data dictionary (argument values)
        locators: Global element dictionary (element locators)
    """

    def __init__(
        self,
        values: Optional[Mapping] = None,
        locators: Optional[Mapping] = None,
    ):
        self.values = freeze(values or {})
        self.locators = freeze(locators or {})

    def resolve_arg(self, token: str) -> Any:
        """Resolve one argument token.

        Quoted tokens are string literals, numeric tokens pass through as
        their text, anything else is a dot path into the values dictionary.
        """
        if getattr(token, "quoted", False):
            value = str(token)
        elif is_quoted_literal(token):
            value = token[1:-1]
        elif is_numeric(token):
            value = str(token)
        else:
            value = lookup(self.values, token, kind="value")

        logger.debug(f"Resolve arg: {token}: {value}")
        return value

    def resolve_command_args(self, args) -> list[Any]:
        """Resolve arguments for a capability call.

        Returns:
            ``[None, *resolved]``; the leading slot is the call receiver
        """
        return [None, *(self.resolve_arg(a) for a in args)]

    def resolve_element(self, token: str) -> str:
        """Resolve an element path to its locator string.

        Raises:
            ResolutionError: If the path is undefined or not a string
        """
        value = lookup(self.locators, token, kind="element")
        if not isinstance(value, str):
            raise ResolutionError(
                f"Element '{token}' resolves to {type(value).__name__}, expected a locator string",
                path=str(token),
            )

        logger.debug(f"Resolve element: {token}: {value}")
        return value
