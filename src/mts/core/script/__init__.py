"""Script execution module for MTS."""

from mts.core.script.tokenizer import Token, tokenize
from mts.core.script.reader import ScriptLine, read_lines
from mts.core.script.parser import Command, Script, ScriptParser, parse_command
from mts.core.script.models import CommandResult, CommandStatus, ScriptResult
from mts.core.script.resolver import ArgumentResolver
from mts.core.script.capabilities import Capability, CapabilityRegistry
from mts.core.script.actions import ElementActionEngine
from mts.core.script.assertions import ASSERTIONS, AssertionEngine
from mts.core.script.dispatcher import CommandDispatcher
from mts.core.script.session import ScriptSession
from mts.core.script.runner import ScriptRunner, run_script

__all__ = [
    # Parsing
    "Token",
    "tokenize",
    "ScriptLine",
    "read_lines",
    "Command",
    "Script",
    "ScriptParser",
    "parse_command",
    # Models
    "CommandResult",
    "CommandStatus",
    "ScriptResult",
    # Execution
    "ArgumentResolver",
    "Capability",
    "CapabilityRegistry",
    "ElementActionEngine",
    "ASSERTIONS",
    "AssertionEngine",
    "CommandDispatcher",
    "ScriptSession",
    "ScriptRunner",
    "run_script",
]
