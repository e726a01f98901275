"""Data models for script execution results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class CommandStatus(str, Enum):
    """Command execution status."""
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CommandResult:
    """Result of a single command execution."""
    line_number: int
    command_text: str
    status: CommandStatus
    source: Optional[Path] = None
    depth: int = 0
    duration_ms: int = 0
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "line": self.line_number,
            "command": self.command_text.strip(),
            "source": str(self.source) if self.source else None,
            "depth": self.depth,
            "status": self.status.value,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass
class ScriptResult:
    """Result of a script run, nested scripts included."""
    script: str
    status: CommandStatus
    commands: list[CommandResult] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    output_dir: Optional[Path] = None

    @property
    def total_commands(self) -> int:
        return len(self.commands)

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.commands if c.status == CommandStatus.PASSED)

    @property
    def failed_count(self) -> int:
        return sum(1 for c in self.commands if c.status == CommandStatus.FAILED)

    @property
    def duration_ms(self) -> int:
        if self.started_at and self.completed_at:
            return int((self.completed_at - self.started_at).total_seconds() * 1000)
        return sum(c.duration_ms for c in self.commands if c.depth == 0)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "script": self.script,
            "status": self.status.value,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "commands": [c.to_dict() for c in self.commands],
            "summary": {
                "total_commands": self.total_commands,
                "passed": self.passed_count,
                "failed": self.failed_count,
                "duration_ms": self.duration_ms,
            },
        }
