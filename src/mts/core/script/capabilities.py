"""Capability modules: namespaced commands provided by library files."""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Literal, Optional

from mts.core.errors import CapabilityLoadError, UnknownCapabilityError
from mts.core.script.parser import Script

logger = logging.getLogger(__name__)

CacheKey = Literal["leaf", "path"]

MODULE_PREFIX = "mts_capabilities"


@dataclass
class Capability:
    """A loaded capability module.

    Commands come from the module's ``COMMANDS`` mapping when it defines
    one, otherwise from its public module-level callables.
    """
    name: str
    path: Path
    module: ModuleType

    @property
    def commands(self) -> dict[str, Callable[..., Any]]:
        explicit = getattr(self.module, "COMMANDS", None)
        if explicit is not None:
            return dict(explicit)
        return {
            name: obj
            for name, obj in vars(self.module).items()
            if not name.startswith("_")
            and callable(obj)
            and not inspect.isclass(obj)
            and getattr(obj, "__module__", None) == self.module.__name__
        }

    def has(self, command: str) -> bool:
        return command in self.commands

    def get(self, command: str) -> Callable[..., Any]:
        """Get the function implementing a command.

        Raises:
            UnknownCapabilityError: If the module does not provide it
        """
        func = self.commands.get(command)
        if func is None:
            raise UnknownCapabilityError(
                f"Library '{self.name}' ({self.path}) has no command '{command}'"
            )
        return func

    async def invoke(self, command: str, args: list[Any]) -> Any:
        """Invoke a command with a resolved argument list.

        ``args[0]`` is the receiver slot; ``None`` calls the function
        unbound with the remaining values.
        """
        func = self.get(command)
        receiver, *values = args
        if receiver is not None:
            values.insert(0, receiver)
        result = func(*values)
        if inspect.isawaitable(result):
            result = await result
        return result


class CapabilityRegistry:
    """Loads capability modules from a library directory and caches them.

    A command ``lib.sub.cmd`` maps to ``<root>/lib/sub.py`` (or
    ``<root>/lib/sub/__init__.py``). With the default ``leaf`` cache key
    two namespaces ending in the same segment share one module: the first
    one loaded wins.
    """

    def __init__(self, root: Optional[Path], cache_key: CacheKey = "leaf"):
        self.root = root
        self.cache_key = cache_key
        self._cache: dict[str, Capability] = {}

    def key_for(self, namespace: tuple[str, ...]) -> str:
        if self.cache_key == "path":
            return ".".join(namespace)
        return namespace[-1]

    def module_path(self, namespace: tuple[str, ...]) -> Path:
        """Locate the file for a namespace under the library root.

        Raises:
            CapabilityLoadError: If no root is configured or no file exists
        """
        if self.root is None:
            raise CapabilityLoadError(
                f"No library directory configured for '{'.'.join(namespace)}'",
                path=".".join(namespace),
            )

        base = self.root.joinpath(*namespace)
        for candidate in (base.with_suffix(".py"), base / "__init__.py"):
            if candidate.is_file():
                return candidate

        raise CapabilityLoadError(
            f"Library not found: {base} (looked for {base.name}.py and {base.name}/__init__.py)",
            path=".".join(namespace),
        )

    def load(self, namespace: tuple[str, ...]) -> Capability:
        """Get the capability for a namespace, loading it on first use.

        Raises:
            CapabilityLoadError: If the module cannot be found or imported
        """
        if not namespace:
            raise CapabilityLoadError("Built-in commands have no library")

        key = self.key_for(namespace)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        path = self.module_path(namespace)
        logger.debug(f"Adding lib: {key}: {path}")
        module = self._import(namespace, path)

        capability = Capability(name=key, path=path, module=module)
        self._cache[key] = capability
        return capability

    def prepare(self, script: Script) -> list[Capability]:
        """Load every capability a script references, before it runs.

        Raises:
            CapabilityLoadError: Tagged with the first line naming the library
        """
        loaded: list[Capability] = []
        for command in script:
            if not command.namespace:
                continue
            try:
                capability = self.load(command.namespace)
            except CapabilityLoadError as e:
                e.line_number = command.line_number
                e.source = command.source
                raise
            if capability not in loaded:
                loaded.append(capability)
        return loaded

    def scan(self) -> list[tuple[str, Path]]:
        """List loadable library files under the root as (namespace, path)."""
        if self.root is None or not self.root.is_dir():
            return []

        found = []
        for path in sorted(self.root.rglob("*.py")):
            relative = path.relative_to(self.root)
            if path.name == "__init__.py":
                parts = relative.parent.parts
            else:
                parts = relative.with_suffix("").parts
            if parts and not any(p.startswith((".", "_")) for p in parts):
                found.append((".".join(parts), path))
        return found

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def _import(self, namespace: tuple[str, ...], path: Path) -> ModuleType:
        module_name = ".".join((MODULE_PREFIX, *namespace))
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise CapabilityLoadError(
                f"Cannot load library {path}", path=".".join(namespace)
            )

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise CapabilityLoadError(
                f"Failed to load library {path}: {e}", path=".".join(namespace)
            ) from e
        return module
