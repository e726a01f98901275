"""Script runner - executes commands strictly in order."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional

from mts.config.schema import ExecutionConfig
from mts.core.driver import reset_current_driver, set_current_driver
from mts.core.errors import AssertionFailure, ScriptError
from mts.core.script.capabilities import CapabilityRegistry
from mts.core.script.dispatcher import CommandDispatcher
from mts.core.script.models import CommandResult, CommandStatus
from mts.core.script.parser import Command, Script, ScriptParser
from mts.core.script.resolver import ArgumentResolver
from mts.core.script.session import ScriptSession

if TYPE_CHECKING:
    from mts.config.schema import MtsConfig

logger = logging.getLogger(__name__)


class ScriptRunner:
    """Executes a script's commands against one session.

    Each command is awaited to completion before the next one starts;
    ``runScript`` runs the nested file inline on the same session. The
    first failure ends the run: the error is recorded, the automation
    session is ended and the exception propagates.
    """

    def __init__(
        self,
        session: ScriptSession,
        resolver: ArgumentResolver,
        registry: CapabilityRegistry,
        execution: Optional[ExecutionConfig] = None,
        output: Optional[Callable[[str], None]] = None,
        on_command_start: Optional[Callable[[Command, int], None]] = None,
        on_command_complete: Optional[Callable[[Command, CommandResult], None]] = None,
    ):
        execution = execution or ExecutionConfig()

        self.session = session
        self.resolver = resolver
        self.registry = registry
        self.parser = ScriptParser()
        self.dispatcher = CommandDispatcher(
            driver=session.driver,
            resolver=resolver,
            registry=registry,
            run_nested=self.run_nested,
            output=output,
            command_delay_ms=execution.command_delay_ms,
            poll_interval_ms=execution.poll_interval_ms,
            wait_timeout_ms=execution.wait_timeout_ms,
            label_attribute=execution.label_attribute,
            max_script_depth=execution.max_script_depth,
        )

        # Callbacks
        self.on_command_start = on_command_start
        self.on_command_complete = on_command_complete

    async def run(self, script: Script) -> ScriptSession:
        """Run a parsed script to completion and end the session.

        Raises:
            ScriptError: Parse, resolution, argument or driver failures
            AssertionError: A failed ``assert`` command
        """
        logger.info(f"Running script: {script.name}")

        token = set_current_driver(self.session.driver)
        self.session.start()
        try:
            self.registry.prepare(script)
            await self.execute_script(script)
            self.session.finish()
        except Exception as e:
            message = self.failure_message(e)
            logger.error(message)
            self.session.finish(e, message=message)
            raise
        finally:
            reset_current_driver(token)
            try:
                self.session.save_results()
            except OSError as e:
                logger.warning(f"Failed to save results: {e}")
            finally:
                await self.session.teardown()

        return self.session

    def failure_message(self, error: BaseException) -> str:
        """Error text of the innermost failed command, with its line."""
        for result in self.session.result.commands:
            if result.status == CommandStatus.FAILED and result.error:
                return result.error
        return str(error)

    async def execute_script(self, script: Script, depth: int = 0) -> None:
        """Execute every command of a script in file order."""
        for command in script:
            await self.run_command(command, depth)

    async def run_nested(self, path: Path, depth: int) -> Script:
        """Parse and execute a script included by ``runScript``."""
        logger.info(f"Running script: {path}")
        script = self.parser.parse(path)
        self.registry.prepare(script)
        await self.execute_script(script, depth)
        return script

    async def run_command(self, command: Command, depth: int = 0) -> Any:
        """Run a single command and record its result."""
        if self.on_command_start:
            self.on_command_start(command, depth)

        result = CommandResult(
            line_number=command.line_number,
            command_text=command.command_text,
            status=CommandStatus.RUNNING,
            source=command.source,
            depth=depth,
            started_at=datetime.now(),
        )

        try:
            value = await self.dispatcher.dispatch(command, depth)
            result.status = CommandStatus.PASSED
            return value

        except (ScriptError, AssertionFailure) as e:
            if e.line_number is None:
                e.line_number = command.line_number
                e.source = command.source
            result.status = CommandStatus.FAILED
            result.error = str(e)
            raise

        except Exception as e:
            result.status = CommandStatus.FAILED
            result.error = f"line {command.line_number}: {e}"
            raise

        finally:
            result.completed_at = datetime.now()
            result.duration_ms = int(
                (result.completed_at - result.started_at).total_seconds() * 1000
            )
            self.session.record_command_result(result)

            if self.on_command_complete:
                self.on_command_complete(command, result)


async def run_script(
    script_path: Path,
    config: Optional["MtsConfig"] = None,
    output: Optional[Callable[[str], None]] = None,
    on_command_start: Optional[Callable[[Command, int], None]] = None,
    on_command_complete: Optional[Callable[[Command, CommandResult], None]] = None,
) -> ScriptSession:
    """Run a script file in a Playwright browser.

    Args:
        script_path: Path to the script
        config: Configuration (loaded from files and environment if None)
        output: Receives ``log`` command lines
        on_command_start: Progress callback before each command
        on_command_complete: Progress callback after each command

    Returns:
        ScriptSession with results
    """
    from mts.config.loader import load_config, load_lookup
    from mts.core.browser import BrowserManager
    from mts.core.driver import PlaywrightDriver

    if config is None:
        config = load_config()
    paths = config.paths

    # Parse first so syntax errors surface before a browser starts
    script = ScriptParser().parse(script_path)

    values = load_lookup(_optional_path(paths.globals_file), paths.globals_attribute)
    locators = load_lookup(_optional_path(paths.elements_file), paths.elements_attribute)
    resolver = ArgumentResolver(values, locators)
    registry = CapabilityRegistry(
        _optional_path(paths.libraries_dir),
        cache_key=config.capabilities.cache_key,
    )

    output_dir = None
    if config.output.directory:
        output_dir = ScriptSession.create_output_dir(
            Path(config.output.directory), script_path
        )

    async with BrowserManager(config.browser) as browser_manager:
        page = await browser_manager.new_page()
        if config.app.base_url:
            logger.info(f"Navigating to {config.app.base_url}")
            await page.goto(config.app.base_url)

        session = ScriptSession(
            script_path=script_path,
            driver=PlaywrightDriver(page),
            output_dir=output_dir,
        )
        runner = ScriptRunner(
            session=session,
            resolver=resolver,
            registry=registry,
            execution=config.execution,
            output=output,
            on_command_start=on_command_start,
            on_command_complete=on_command_complete,
        )

        await runner.run(script)
        return session


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value).expanduser() if value else None
