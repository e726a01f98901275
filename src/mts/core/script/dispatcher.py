"""Command dispatch: built-ins and capability commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from mts.core.errors import (
    MissingArgumentError,
    ParseError,
    ScriptError,
    UnknownCapabilityError,
)
from mts.core.script.actions import ElementActionEngine
from mts.core.script.assertions import AssertionEngine
from mts.core.script.resolver import is_numeric

if TYPE_CHECKING:
    from mts.core.driver import Driver
    from mts.core.script.capabilities import CapabilityRegistry
    from mts.core.script.parser import Command
    from mts.core.script.resolver import ArgumentResolver

logger = logging.getLogger(__name__)

# Runs a nested script file at the given depth.
NestedRunner = Callable[[Path, int], Awaitable[Any]]


class CommandDispatcher:
    """Route each parsed command to its handler.

    Built-ins (``sleep``, ``log``, ``assert``, ``runScript``, ``element``,
    ``waitForElement``) are matched on the core command. Anything else is
    looked up in the capability module named by the command's namespace,
    called after a fixed pre-delay.
    """

    def __init__(
        self,
        driver: "Driver",
        resolver: "ArgumentResolver",
        registry: "CapabilityRegistry",
        run_nested: NestedRunner,
        output: Optional[Callable[[str], None]] = None,
        command_delay_ms: int = 1000,
        poll_interval_ms: int = 1000,
        wait_timeout_ms: int = 9000,
        label_attribute: str = "label",
        max_script_depth: int = 16,
    ):
        self.driver = driver
        self.resolver = resolver
        self.registry = registry
        self.run_nested = run_nested
        self.output = output or logger.info
        self.command_delay_ms = command_delay_ms
        self.max_script_depth = max_script_depth

        self.elements = ElementActionEngine(
            resolver,
            driver,
            poll_interval_ms=poll_interval_ms,
            wait_timeout_ms=wait_timeout_ms,
        )
        self.assertions = AssertionEngine(
            resolver, driver, label_attribute=label_attribute
        )

        self._handlers = {
            "sleep": self.sleep,
            "log": self.log,
            "assert": self.assertions.execute,
            "element": self.element,
            "waitForElement": self.wait_for_element,
        }

    async def dispatch(self, command: "Command", depth: int = 0) -> Any:
        """Execute one command to completion.

        Args:
            command: Parsed command
            depth: Nesting depth of the script the command belongs to
        """
        logger.debug(f"Core Command: {command.core_command}")
        if command.core_command == "runScript":
            return await self.run_script(command, depth)

        handler = self._handlers.get(command.core_command)
        if handler is None:
            return await self.call_capability(command)
        return await handler(command)

    async def sleep(self, command: "Command") -> None:
        if not command.args:
            raise MissingArgumentError(
                "A duration in ms must be supplied for sleep command",
                line_number=command.line_number,
                source=command.source,
            )

        value = str(self.resolver.resolve_arg(command.args[0]))
        if not is_numeric(value):
            raise ParseError(
                f"Invalid sleep duration '{command.args[0]}'",
                line_number=command.line_number,
                source=command.source,
            )
        await self.driver.sleep(float(value))

    async def log(self, command: "Command") -> None:
        for line in command.args:
            self.output(str(line))

    async def element(self, command: "Command") -> Any:
        return await self.elements.execute(command, wait=False)

    async def wait_for_element(self, command: "Command") -> Any:
        return await self.elements.execute(command, wait=True)

    async def run_script(self, command: "Command", depth: int = 0) -> Any:
        """Execute another script file on the same session."""
        if not command.args:
            raise MissingArgumentError(
                "A script path must be supplied for runScript command",
                line_number=command.line_number,
                source=command.source,
            )
        if depth + 1 > self.max_script_depth:
            raise ScriptError(
                f"runScript nested deeper than {self.max_script_depth} levels",
                line_number=command.line_number,
                source=command.source,
            )

        path = self.script_path(str(command.args[0]), command.source)
        if not path.is_file():
            raise ScriptError(
                f"Script not found: {path}",
                line_number=command.line_number,
                source=command.source,
            )
        return await self.run_nested(path, depth + 1)

    @staticmethod
    def script_path(name: str, parent: Optional[Path] = None) -> Path:
        """Resolve a runScript path: working directory first, then the including script's folder."""
        path = Path(name).expanduser()
        if path.is_absolute() or path.exists() or parent is None:
            return path
        sibling = parent.parent / path
        return sibling if sibling.exists() else path

    async def call_capability(self, command: "Command") -> Any:
        """Call ``core_command`` on the command's capability module."""
        if not command.namespace:
            raise UnknownCapabilityError(
                f"Unknown command '{command.core_command}'",
                line_number=command.line_number,
                source=command.source,
            )

        logger.debug(f"Lookup library: {command.library}")
        capability = self.registry.load(command.namespace)
        capability.get(command.core_command)

        args = self.resolver.resolve_command_args(command.args)
        logger.debug(f"Execute {command.core_command} with args: {args}")

        await self.driver.sleep(self.command_delay_ms)
        return await capability.invoke(command.core_command, args)
