"""Script session management."""

from __future__ import annotations

import json
import logging
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from mts.core.script.models import CommandResult, CommandStatus, ScriptResult

if TYPE_CHECKING:
    from mts.core.driver import Driver

logger = logging.getLogger(__name__)


class ScriptSession:
    """Manages one script run against one automation session.

    Handles:
    - Driver lifetime (ended exactly once on teardown)
    - Command result recording, nested scripts included
    - Results file output
    """

    def __init__(
        self,
        script_path: Path,
        driver: "Driver",
        output_dir: Optional[Path] = None,
    ):
        self.script_path = script_path
        self.driver = driver
        self.output_dir = output_dir

        self.session_id = str(uuid.uuid4())[:8]
        self.result = ScriptResult(
            script=str(script_path),
            status=CommandStatus.PENDING,
            output_dir=output_dir,
        )
        self._closed = False

        if self.output_dir:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def start(self) -> None:
        logger.info(f"Starting session {self.session_id}: {self.script_path}")
        self.result.status = CommandStatus.RUNNING
        self.result.started_at = datetime.now()

    def record_command_result(self, result: CommandResult) -> None:
        """Record a command result.

        Args:
            result: Command result to record
        """
        self.result.commands.append(result)

    def finish(
        self,
        error: Optional[BaseException] = None,
        message: Optional[str] = None,
    ) -> None:
        """Finish the run and set the final status.

        Args:
            error: Exception that ended the run, if any
            message: Error text to record in place of ``str(error)``
        """
        self.result.completed_at = datetime.now()
        if error is not None:
            self.result.status = CommandStatus.FAILED
            self.result.error = message or str(error)
        else:
            self.result.status = CommandStatus.PASSED

    async def teardown(self) -> None:
        """End the automation session."""
        if self._closed:
            return
        self._closed = True
        logger.info(f"Tearing down session {self.session_id}")
        try:
            await self.driver.quit()
        except Exception as e:
            logger.warning(f"Failed to end automation session: {e}")

    def save_results(self) -> Optional[Path]:
        """Save results to JSON file.

        Returns:
            Path to results file, or None without an output directory
        """
        if not self.output_dir:
            return None

        results_path = self.output_dir / "results.json"

        with open(results_path, "w", encoding="utf-8") as f:
            json.dump(self.result.to_dict(), f, ensure_ascii=False, indent=2)

        logger.info(f"Results saved to {results_path}")
        return results_path

    @classmethod
    def create_output_dir(cls, base_dir: Path, script_path: Path) -> Path:
        """Create (or empty) the output directory for a script.

        Args:
            base_dir: Base output directory
            script_path: Script being run; its stem names the directory

        Returns:
            Path to output directory
        """
        output_dir = base_dir / script_path.stem

        if output_dir.exists():
            shutil.rmtree(output_dir)

        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir
