"""Element actions for the ``element`` and ``waitForElement`` commands.

    element|waitForElement <element> click
    element|waitForElement <element> tap x y
    element|waitForElement <element> swipe startX startY endX endY duration
    element|waitForElement <element> type|keys|setValue "text"
    element|waitForElement <element> "text"        (same as type)
    element|waitForElement <element>               (locate only)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mts.core.driver import LocatorStrategy
from mts.core.errors import MissingArgumentError, ParseError
from mts.core.script.parser import ACTION_ARITY
from mts.core.script.resolver import is_numeric, is_quoted_literal

if TYPE_CHECKING:
    from mts.core.driver import Driver
    from mts.core.script.parser import Command
    from mts.core.script.resolver import ArgumentResolver

logger = logging.getLogger(__name__)

NO_ACTION = "none"
TEXT_ACTIONS = ("type", "keys", "setValue")


class ElementActionEngine:
    """Locate elements and perform gestures or text input on them."""

    def __init__(
        self,
        resolver: "ArgumentResolver",
        driver: "Driver",
        poll_interval_ms: int = 1000,
        wait_timeout_ms: int = 9000,
    ):
        self.resolver = resolver
        self.driver = driver
        self.poll_interval_ms = poll_interval_ms
        self.wait_timeout_ms = wait_timeout_ms

    async def locate(self, locator: str, wait: bool = False) -> Any:
        """Find an element, polling when ``wait`` is set."""
        strategy = LocatorStrategy.for_locator(locator)
        if wait:
            return await self.driver.wait_for_element(
                strategy, locator, self.poll_interval_ms, self.wait_timeout_ms
            )
        return await self.driver.find_element(strategy, locator)

    async def execute(self, command: "Command", wait: bool = False) -> Any:
        """Run an element command.

        Args:
            command: Parsed ``element``/``waitForElement`` command
            wait: Poll for the element instead of a single lookup

        Returns:
            The located element

        Raises:
            MissingArgumentError: If the action lacks required arguments
        """
        args = command.args
        if not args:
            raise MissingArgumentError(
                f"An element must be supplied for {command.core_command} command",
                line_number=command.line_number,
                source=command.source,
            )

        name = str(args[0])
        action = str(args[1]) if len(args) > 1 else NO_ACTION
        params = [str(a) for a in args[2:]]

        # A quoted string in the action slot is text to type.
        if len(args) > 1:
            if getattr(args[1], "quoted", False):
                action, params = "type", [action]
            elif is_quoted_literal(action):
                action, params = "type", [action[1:-1]]

        locator = self.resolver.resolve_element(name)
        element = await self.locate(locator, wait=wait)

        required = ACTION_ARITY.get(action, ())
        if len(params) < len(required):
            raise MissingArgumentError(
                self._missing_message(action, required),
                line_number=command.line_number,
                source=command.source,
            )

        if action == "click":
            logger.info(f"Clicking element {name}")
            await self.driver.click(element)

        elif action == "tap":
            logger.info(f"Tapping element {name}")
            x, y = self._numbers(params[:2], command)
            await self.driver.tap(element, x, y)

        elif action == "swipe":
            logger.info(f"Swiping element {name}")
            sx, sy, ex, ey, duration = self._numbers(params[:5], command)
            await self.driver.swipe(element, sx, sy, ex, ey, duration)

        elif action in TEXT_ACTIONS:
            text = params[0]
            logger.info(f"Typing text {text} into element {name}")
            if action == "type":
                await self.driver.type(element, text)
            elif action == "keys":
                await self.driver.keys(element, text)
            else:
                await self.driver.set_value(element, text)

        else:
            logger.info(f"Element no-op {name}")

        return element

    @staticmethod
    def _numbers(params: list[str], command: "Command") -> list[float]:
        for value in params:
            if not is_numeric(value):
                raise ParseError(
                    f"Expected a number for {command.args[1]}, got '{value}'",
                    line_number=command.line_number,
                    source=command.source,
                )
        return [float(p) for p in params]

    @staticmethod
    def _missing_message(action: str, required: tuple[str, ...]) -> str:
        if action in TEXT_ACTIONS:
            return f"No text given for {action} command"
        if len(required) == 2:
            names = " and ".join(required)
            return f"Both {names} coordinates (in that order) must be supplied for {action} command"
        names = ", ".join(required[:-1]) + f", and {required[-1]}"
        return f"{names} (in that order) must be supplied for {action} command"
