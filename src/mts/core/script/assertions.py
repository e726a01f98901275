"""Assertion checks and the ``assert`` command."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from mts.core.driver import LocatorStrategy
from mts.core.errors import AssertionFailure, MissingArgumentError, UnknownCapabilityError
from mts.core.script.resolver import is_numeric

if TYPE_CHECKING:
    from mts.core.driver import Driver
    from mts.core.script.parser import Command
    from mts.core.script.resolver import ArgumentResolver

logger = logging.getLogger(__name__)


def _loose_equal(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    if actual is None or expected is None:
        return False
    a, e = str(actual), str(expected)
    if is_numeric(a) and is_numeric(e):
        return float(a) == float(e)
    return a == e


def _fail(message: str, actual: Any = None, expected: Any = None) -> None:
    raise AssertionFailure(message, actual=actual, expected=expected)


def equal(actual, expected):
    if not _loose_equal(actual, expected):
        _fail(f"expected {actual!r} to equal {expected!r}", actual, expected)


def not_equal(actual, expected):
    if _loose_equal(actual, expected):
        _fail(f"expected {actual!r} to not equal {expected!r}", actual, expected)


def strict_equal(actual, expected):
    if actual != expected:
        _fail(f"expected {actual!r} to strictly equal {expected!r}", actual, expected)


def not_strict_equal(actual, expected):
    if actual == expected:
        _fail(f"expected {actual!r} to not strictly equal {expected!r}", actual, expected)


def ok(actual):
    if not actual:
        _fail(f"expected {actual!r} to be truthy", actual)


def not_ok(actual):
    if actual:
        _fail(f"expected {actual!r} to be falsy", actual)


def is_true(actual):
    if actual not in (True, "true"):
        _fail(f"expected {actual!r} to be true", actual, True)


def is_false(actual):
    if actual not in (False, "false"):
        _fail(f"expected {actual!r} to be false", actual, False)


def is_null(actual):
    if actual is not None:
        _fail(f"expected {actual!r} to be null", actual, None)


def is_not_null(actual):
    if actual is None:
        _fail("expected value to not be null", actual)


def is_empty(actual):
    if actual:
        _fail(f"expected {actual!r} to be empty", actual, "")


def is_not_empty(actual):
    if not actual:
        _fail(f"expected {actual!r} to not be empty", actual)


def include(actual, expected):
    if actual is None or str(expected) not in str(actual):
        _fail(f"expected {actual!r} to include {expected!r}", actual, expected)


def not_include(actual, expected):
    if actual is not None and str(expected) in str(actual):
        _fail(f"expected {actual!r} to not include {expected!r}", actual, expected)


def match(actual, pattern):
    if actual is None or not re.search(str(pattern), str(actual)):
        _fail(f"expected {actual!r} to match /{pattern}/", actual, pattern)


def not_match(actual, pattern):
    if actual is not None and re.search(str(pattern), str(actual)):
        _fail(f"expected {actual!r} not to match /{pattern}/", actual, pattern)


ASSERTIONS: dict[str, Callable[..., None]] = {
    "equal": equal,
    "notEqual": not_equal,
    "strictEqual": strict_equal,
    "notStrictEqual": not_strict_equal,
    "ok": ok,
    "isOk": ok,
    "notOk": not_ok,
    "isNotOk": not_ok,
    "isTrue": is_true,
    "isFalse": is_false,
    "isNull": is_null,
    "isNotNull": is_not_null,
    "exists": is_not_null,
    "notExists": is_null,
    "isEmpty": is_empty,
    "isNotEmpty": is_not_empty,
    "include": include,
    "notInclude": not_include,
    "match": match,
    "notMatch": not_match,
}


class AssertionEngine:
    """Runs ``assert <check> <elementPath> [<expected>]`` commands."""

    def __init__(
        self,
        resolver: "ArgumentResolver",
        driver: "Driver",
        label_attribute: str = "label",
        library: Optional[Mapping[str, Callable[..., None]]] = None,
    ):
        self.resolver = resolver
        self.driver = driver
        self.label_attribute = label_attribute
        self.library = library if library is not None else ASSERTIONS

    def check_for(self, name: str, command: "Command") -> Callable[..., None]:
        check = self.library.get(name)
        if check is None:
            raise UnknownCapabilityError(
                f"Unknown assertion '{name}'",
                line_number=command.line_number,
                source=command.source,
            )
        return check

    async def execute(self, command: "Command") -> Any:
        """Run an assert command.

        Returns:
            The element's label value

        Raises:
            AssertionFailure: If the check fails
        """
        logger.debug(f"assert: {','.join(command.args)}")

        if len(command.args) < 2:
            raise MissingArgumentError(
                "A check name and an element path must be supplied for assert command",
                line_number=command.line_number,
                source=command.source,
            )

        check_name, element_path = str(command.args[0]), command.args[1]
        locator = self.resolver.resolve_element(element_path)
        check = self.check_for(check_name, command)

        strategy = LocatorStrategy.for_locator(locator)
        element = await self.driver.find_element(strategy, locator)
        actual = await self.driver.get_attribute(element, self.label_attribute)

        if len(command.args) > 2:
            expected = str(command.args[2])
            check(actual, expected)
        else:
            check(actual)

        logger.info(f"Assertion {check_name} passed for {element_path}")
        return actual
