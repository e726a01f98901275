"""Automation driver interface and the Playwright implementation."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from contextvars import ContextVar
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from mts.core.errors import DriverError, ElementNotFoundError

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

XPATH_PREFIX = "//*"


class LocatorStrategy(str, Enum):
    """How a locator string finds an element."""
    XPATH = "xpath"
    ACCESSIBILITY_ID = "accessibility_id"

    @classmethod
    def for_locator(cls, locator: str) -> "LocatorStrategy":
        """Locators starting with ``//*`` are XPath, anything else an accessibility id."""
        if locator.startswith(XPATH_PREFIX):
            return cls.XPATH
        return cls.ACCESSIBILITY_ID


class Driver(ABC):
    """Automation session used by the script engine.

    Element references returned by ``find_element`` are opaque to the
    engine and only passed back into the gesture and text methods.
    """

    @abstractmethod
    async def find_element(self, strategy: LocatorStrategy, locator: str) -> Any:
        """Locate an element with a single attempt.

        Raises:
            ElementNotFoundError: If nothing matches
        """

    async def wait_for_element(
        self,
        strategy: LocatorStrategy,
        locator: str,
        interval_ms: int,
        timeout_ms: int,
    ) -> Any:
        """Poll ``find_element`` every ``interval_ms`` until ``timeout_ms``.

        Raises:
            ElementNotFoundError: If the element does not appear in time
        """
        elapsed = 0
        while True:
            try:
                return await self.find_element(strategy, locator)
            except ElementNotFoundError:
                if elapsed >= timeout_ms:
                    break
            wait = min(interval_ms, timeout_ms - elapsed)
            await self.sleep(wait)
            elapsed += wait

        raise ElementNotFoundError(
            f"Element '{locator}' ({strategy.value}) not found within {timeout_ms}ms"
        )

    @abstractmethod
    async def click(self, element: Any) -> None:
        ...

    @abstractmethod
    async def tap(self, element: Any, x: float, y: float) -> None:
        ...

    @abstractmethod
    async def swipe(
        self,
        element: Any,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        duration: float,
    ) -> None:
        ...

    @abstractmethod
    async def type(self, element: Any, text: str) -> None:
        """Type text into the element as simulated typing."""

    @abstractmethod
    async def keys(self, element: Any, text: str) -> None:
        """Send text as raw key events to the focused element."""

    @abstractmethod
    async def set_value(self, element: Any, text: str) -> None:
        """Set the element value directly, without keystrokes."""

    @abstractmethod
    async def get_attribute(self, element: Any, name: str) -> Optional[str]:
        ...

    async def sleep(self, ms: float) -> None:
        await asyncio.sleep(ms / 1000)

    @abstractmethod
    async def quit(self) -> None:
        """End the automation session."""


_current_driver: ContextVar[Optional[Driver]] = ContextVar("mts_driver", default=None)


def current_driver() -> Driver:
    """Get the driver of the running script.

    Capability modules call this to reach the automation session.

    Raises:
        DriverError: If no script is running
    """
    driver = _current_driver.get()
    if driver is None:
        raise DriverError("No automation session is active")
    return driver


def set_current_driver(driver: Optional[Driver]):
    """Bind the driver for the current context; returns a reset token."""
    return _current_driver.set(driver)


def reset_current_driver(token) -> None:
    _current_driver.reset(token)


class PlaywrightDriver(Driver):
    """Driver over a Playwright page.

    Accessibility ids match the ``aria-label`` attribute. Swipe is a
    mouse drag relative to the element's bounding box.
    """

    def __init__(self, page: "Page", close_context: bool = True):
        self.page = page
        self.close_context = close_context

    def _locator(self, strategy: LocatorStrategy, locator: str) -> "Locator":
        if strategy == LocatorStrategy.XPATH:
            return self.page.locator(f"xpath={locator}").first
        escaped = locator.replace("\\", "\\\\").replace('"', '\\"')
        return self.page.locator(f'[aria-label="{escaped}"]').first

    async def find_element(self, strategy: LocatorStrategy, locator: str) -> "Locator":
        element = self._locator(strategy, locator)
        if await element.count() == 0:
            raise ElementNotFoundError(
                f"Element '{locator}' ({strategy.value}) not found"
            )
        return element

    async def click(self, element: "Locator") -> None:
        await self._call("click", element.click())

    async def tap(self, element: "Locator", x: float, y: float) -> None:
        await self._call("tap", element.tap(position={"x": float(x), "y": float(y)}))

    async def swipe(
        self,
        element: "Locator",
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        duration: float,
    ) -> None:
        box = await element.bounding_box()
        if box is None:
            raise DriverError("Cannot swipe an element that is not visible")

        origin_x, origin_y = box["x"], box["y"]
        steps = max(1, int(float(duration) // 16))
        mouse = self.page.mouse
        await mouse.move(origin_x + float(start_x), origin_y + float(start_y))
        await mouse.down()
        await mouse.move(origin_x + float(end_x), origin_y + float(end_y), steps=steps)
        await mouse.up()

    async def type(self, element: "Locator", text: str) -> None:
        await self._call("type", element.press_sequentially(str(text)))

    async def keys(self, element: "Locator", text: str) -> None:
        await self._call("focus", element.focus())
        await self._call("keys", self.page.keyboard.type(str(text)))

    async def set_value(self, element: "Locator", text: str) -> None:
        await self._call("setValue", element.fill(str(text)))

    async def get_attribute(self, element: "Locator", name: str) -> Optional[str]:
        return await self._call("getAttribute", element.get_attribute(name))

    async def sleep(self, ms: float) -> None:
        await self.page.wait_for_timeout(float(ms))

    async def quit(self) -> None:
        logger.info("Ending automation session")
        if self.close_context:
            await self.page.context.close()
        else:
            await self.page.close()

    async def _call(self, action: str, awaitable):
        from playwright.async_api import Error as PlaywrightError

        try:
            return await awaitable
        except PlaywrightError as e:
            raise DriverError(f"{action} failed: {e}") from e
