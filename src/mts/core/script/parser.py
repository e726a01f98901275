"""Command script parser."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from mts.core.errors import CapabilityLoadError, MalformedCommandError
from mts.core.script.reader import read_lines, read_script_file
from mts.core.script.tokenizer import Token, tokenize

if TYPE_CHECKING:
    from mts.core.script.capabilities import CapabilityRegistry

logger = logging.getLogger(__name__)

BUILTIN_COMMANDS = frozenset(
    {"sleep", "log", "assert", "runScript", "element", "waitForElement"}
)

# Positional arguments each element action needs after the element path.
ACTION_ARITY = {
    "tap": ("x", "y"),
    "swipe": ("startX", "startY", "endX", "endY", "duration"),
    "type": ("text",),
    "keys": ("text",),
    "setValue": ("text",),
}


@dataclass(frozen=True)
class Command:
    """Single parsed script command."""
    command_text: str
    main_command: str
    namespace: tuple[str, ...]
    core_command: str
    args: tuple[Token, ...]
    line_number: int
    source: Optional[Path] = None

    @property
    def is_builtin(self) -> bool:
        return self.core_command in BUILTIN_COMMANDS

    @property
    def library(self) -> Optional[str]:
        """Leaf namespace segment naming the capability module."""
        return self.namespace[-1] if self.namespace else None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "line": self.line_number,
            "text": self.command_text,
            "command": self.main_command,
            "namespace": list(self.namespace),
            "core_command": self.core_command,
            "args": [str(a) for a in self.args],
        }


@dataclass
class Script:
    """Parsed script: commands in file order."""
    commands: list[Command] = field(default_factory=list)
    source_path: Optional[Path] = None

    @property
    def name(self) -> str:
        return self.source_path.name if self.source_path else "<string>"

    @property
    def libraries(self) -> list[tuple[str, ...]]:
        """Distinct capability namespaces in first-use order."""
        seen: list[tuple[str, ...]] = []
        for command in self.commands:
            if command.namespace and command.namespace not in seen:
                seen.append(command.namespace)
        return seen

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self):
        return iter(self.commands)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "source": str(self.source_path) if self.source_path else None,
            "commands": [c.to_dict() for c in self.commands],
            "summary": {
                "total_commands": len(self.commands),
                "libraries": [".".join(ns) for ns in self.libraries],
            },
        }


def parse_command(
    tokens: list[Token],
    line_number: int,
    command_text: str = "",
    source: Optional[Path] = None,
) -> Command:
    """Build a Command from the tokens of one line.

    The first token is split on ``.``: leading segments form the
    namespace, the last is the core command. Remaining tokens are kept
    verbatim as arguments.

    Raises:
        MalformedCommandError: If there is no command token
    """
    if not tokens or not tokens[0]:
        raise MalformedCommandError(
            "Missing command name", line_number=line_number, source=source
        )

    main_command = str(tokens[0])
    *namespace, core_command = main_command.split(".")

    command = Command(
        command_text=command_text,
        main_command=main_command,
        namespace=tuple(namespace),
        core_command=core_command,
        args=tuple(tokens[1:]),
        line_number=line_number,
        source=source,
    )
    logger.debug(f"Command: {command.to_dict()}")
    return command


class ScriptParser:
    """Line-oriented command script parser."""

    def parse(self, path: Path) -> Script:
        """Parse script from file.

        Args:
            path: Path to script file

        Returns:
            Parsed Script object

        Raises:
            FileNotFoundError: If the file does not exist
            ParseError: If a line is malformed
        """
        contents = read_script_file(path)
        return self.parse_string(contents, source_path=path)

    def parse_string(self, contents: str, source_path: Optional[Path] = None) -> Script:
        """Parse script from a string."""
        commands = []
        for line in read_lines(contents):
            tokens = tokenize(line.text.strip())
            commands.append(
                parse_command(tokens, line.number, line.text, source=source_path)
            )
        return Script(commands=commands, source_path=source_path)

    def validate(
        self,
        script: Script,
        registry: Optional["CapabilityRegistry"] = None,
    ) -> tuple[bool, list[str], list[str]]:
        """Validate a parsed script without running it.

        Args:
            script: Parsed script
            registry: Capability registry used to check namespaced commands

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        errors = []
        warnings = []

        for command in script:
            where = f"line {command.line_number}"
            args = command.args

            if command.core_command == "sleep":
                if not args:
                    errors.append(f"{where}: sleep requires a duration in ms")
            elif command.core_command == "runScript":
                if not args:
                    errors.append(f"{where}: runScript requires a script path")
            elif command.core_command == "assert":
                if len(args) < 2:
                    errors.append(
                        f"{where}: assert requires a check name and an element path"
                    )
            elif command.core_command in ("element", "waitForElement"):
                if not args:
                    errors.append(f"{where}: {command.core_command} requires an element path")
                elif len(args) > 1 and not getattr(args[1], "quoted", False):
                    required = ACTION_ARITY.get(str(args[1]), ())
                    if len(args) - 2 < len(required):
                        errors.append(
                            f"{where}: {args[1]} requires {', '.join(required)}"
                        )
            elif not command.namespace:
                warnings.append(
                    f"{where}: unknown built-in '{command.core_command}'"
                )
            elif registry is not None:
                try:
                    capability = registry.load(command.namespace)
                except CapabilityLoadError as e:
                    errors.append(f"{where}: {e.message}")
                    continue
                if not capability.has(command.core_command):
                    errors.append(
                        f"{where}: {capability.name} has no command '{command.core_command}'"
                    )

        is_valid = len(errors) == 0
        return is_valid, errors, warnings
