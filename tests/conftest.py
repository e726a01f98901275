"""Pytest configuration and fixtures."""

from dataclasses import dataclass
from pathlib import Path

import pytest

from mts.config.schema import ExecutionConfig
from mts.core.driver import Driver
from mts.core.errors import ElementNotFoundError
from mts.core.script.capabilities import CapabilityRegistry
from mts.core.script.resolver import ArgumentResolver
from mts.core.script.runner import ScriptRunner
from mts.core.script.session import ScriptSession


@dataclass(frozen=True)
class FakeElement:
    strategy: str
    locator: str


class FakeDriver(Driver):
    """In-memory driver on a virtual clock.

    ``elements`` maps locator -> time (ms) it appears; ``labels`` maps
    locator -> ``label`` attribute (other attributes read as None). Every
    call is recorded in ``calls`` as ``(clock, name, *args)``.
    """

    def __init__(self, elements=None, labels=None):
        self.clock = 0.0
        self.calls = []
        self.elements = dict(elements or {})
        self.labels = dict(labels or {})
        self.quit_called = False

    def _record(self, name, *args):
        self.calls.append((self.clock, name, *args))

    def names(self):
        return [c[1] for c in self.calls]

    async def find_element(self, strategy, locator):
        self._record("find", strategy.value, locator)
        appears_at = self.elements.get(locator)
        if appears_at is None or self.clock < appears_at:
            raise ElementNotFoundError(f"Element '{locator}' not found")
        return FakeElement(strategy.value, locator)

    async def click(self, element):
        self._record("click", element.locator)

    async def tap(self, element, x, y):
        self._record("tap", element.locator, x, y)

    async def swipe(self, element, start_x, start_y, end_x, end_y, duration):
        self._record("swipe", element.locator, start_x, start_y, end_x, end_y, duration)

    async def type(self, element, text):
        self._record("type", element.locator, text)

    async def keys(self, element, text):
        self._record("keys", element.locator, text)

    async def set_value(self, element, text):
        self._record("setValue", element.locator, text)

    async def get_attribute(self, element, name):
        self._record("getAttribute", element.locator, name)
        if name != "label":
            return None
        return self.labels.get(element.locator)

    async def sleep(self, ms):
        self._record("sleep", float(ms))
        self.clock += float(ms)

    async def quit(self):
        self._record("quit")
        self.quit_called = True


@pytest.fixture
def values():
    """Global data dictionary."""
    return {
        "user": {"name": "alice", "pin": "1234"},
        "a": {"b": {"c": "5"}},
        "timing": {"short": "250"},
    }


@pytest.fixture
def locators():
    """Global element dictionary."""
    return {
        "login": {
            "field": "username-field",
            "button": "//*[@name='login']",
        },
        "home": {"title": "home-title"},
        "slow": {"banner": "slow-banner"},
        "missing": {"thing": "never-there"},
    }


@pytest.fixture
def driver():
    return FakeDriver(
        elements={
            "username-field": 0,
            "//*[@name='login']": 0,
            "home-title": 0,
            "slow-banner": 500,
        },
        labels={"home-title": "5", "username-field": "alice"},
    )


@pytest.fixture
def resolver(values, locators):
    return ArgumentResolver(values, locators)


@pytest.fixture
def libraries(tmp_path):
    """Library directory with a ``shop.cart`` and a ``util`` capability."""
    root = tmp_path / "libs"
    (root / "shop").mkdir(parents=True)
    (root / "shop" / "cart.py").write_text(
        "calls = []\n"
        "\n"
        "def add(item, qty):\n"
        "    calls.append(('add', item, qty))\n"
        "\n"
        "async def clear():\n"
        "    calls.append(('clear',))\n"
        "    return 'cleared'\n"
    )
    (root / "util").mkdir()
    (root / "util" / "__init__.py").write_text(
        "from mts.core.driver import current_driver\n"
        "\n"
        "async def pause(ms):\n"
        "    await current_driver().sleep(float(ms))\n"
        "\n"
        "COMMANDS = {'pause': pause}\n"
    )
    return root


@pytest.fixture
def make_runner(tmp_path, driver, resolver, libraries):
    """Build a ScriptRunner over the fake driver; ``output`` collects log lines."""

    def _make(output=None, execution=None, cache_key="leaf"):
        session = ScriptSession(
            script_path=tmp_path / "main.mts",
            driver=driver,
        )
        return ScriptRunner(
            session=session,
            resolver=resolver,
            registry=CapabilityRegistry(libraries, cache_key=cache_key),
            execution=execution or ExecutionConfig(),
            output=output.append if output is not None else None,
        )

    return _make


@pytest.fixture
def write_script(tmp_path):
    """Write a script file under tmp_path and return its path."""

    def _write(name: str, contents: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
        return path

    return _write
