"""Script file reading and line filtering."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "//"


@dataclass(frozen=True)
class ScriptLine:
    """An executable line of a script."""
    number: int
    text: str


def is_executable(line: str) -> bool:
    """Check whether a line holds a command (not blank, not a comment)."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith(COMMENT_PREFIX)


def read_lines(contents: str) -> Iterator[ScriptLine]:
    """Iterate executable lines of script contents with 1-based numbers.

    Blank lines and lines whose stripped form starts with ``//`` are
    skipped but still counted.
    """
    for number, line in enumerate(contents.split("\n"), start=1):
        if line.endswith("\r"):
            line = line[:-1]
        if is_executable(line):
            logger.debug(f"Read line {number}: {line}")
            yield ScriptLine(number=number, text=line)


def read_script_file(path: Path) -> str:
    """Read a script file as UTF-8 text, dropping a byte order mark.

    Raises:
        FileNotFoundError: If the script does not exist
    """
    logger.debug(f"Opening script: {path}")
    contents = path.read_text(encoding="utf-8-sig")
    logger.debug(f"Contents:\n{contents}")
    return contents
