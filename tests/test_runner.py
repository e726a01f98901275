"""Tests for sequential script execution."""

import json

import pytest

from mts.config.schema import ExecutionConfig
from mts.core.driver import current_driver
from mts.core.errors import (
    CapabilityLoadError,
    DriverError,
    ElementNotFoundError,
    MissingArgumentError,
    ScriptError,
    UnknownCapabilityError,
)
from mts.core.script.capabilities import CapabilityRegistry
from mts.core.script.models import CommandStatus
from mts.core.script.parser import ScriptParser
from mts.core.script.runner import ScriptRunner
from mts.core.script.session import ScriptSession


def parse(contents: str):
    return ScriptParser().parse_string(contents)


@pytest.mark.asyncio
async def test_commands_run_in_order(make_runner, driver):
    output = []
    runner = make_runner(output=output)

    await runner.run(parse('sleep 100\nlog "x"\n'))

    assert output == ["x"]
    assert driver.calls == [(0.0, "sleep", 100.0), (100.0, "quit")]


@pytest.mark.asyncio
async def test_sleep_resolves_values(make_runner, driver):
    await make_runner().run(parse("sleep timing.short\n"))
    assert driver.calls[0] == (0.0, "sleep", 250.0)


@pytest.mark.asyncio
async def test_sleep_requires_number(make_runner):
    with pytest.raises(ScriptError) as exc_info:
        await make_runner().run(parse("sleep user.name\n"))
    assert exc_info.value.line_number == 1


@pytest.mark.asyncio
async def test_sleep_without_duration(make_runner):
    with pytest.raises(MissingArgumentError):
        await make_runner().run(parse("log a\nsleep\n"))


@pytest.mark.asyncio
async def test_log_writes_raw_arguments(make_runner, driver):
    output = []
    await make_runner(output=output).run(parse('log user.name "two words" 3\n'))

    assert output == ["user.name", "two words", "3"]
    assert driver.names() == ["quit"]


@pytest.mark.asyncio
async def test_capability_called_after_delay(make_runner, driver):
    runner = make_runner()

    await runner.run(parse("shop.cart.add user.name 3\n"))

    cart = runner.registry.load(("shop", "cart")).module
    assert cart.calls == [("add", "alice", "3")]
    assert driver.calls[0] == (0.0, "sleep", 1000.0)


@pytest.mark.asyncio
async def test_capability_delay_is_configurable(make_runner, driver):
    runner = make_runner(execution=ExecutionConfig(command_delay_ms=0))
    await runner.run(parse("shop.cart.clear\n"))

    assert driver.calls[0] == (0.0, "sleep", 0.0)


@pytest.mark.asyncio
async def test_capability_reaches_current_driver(make_runner, driver):
    await make_runner().run(parse("util.pause 250\nlog done\n"))

    assert [c[2] for c in driver.calls if c[1] == "sleep"] == [1000.0, 250.0]
    assert driver.clock == 1250.0


@pytest.mark.asyncio
async def test_current_driver_unset_after_run(make_runner):
    await make_runner().run(parse("log a\n"))

    with pytest.raises(DriverError):
        current_driver()


@pytest.mark.asyncio
async def test_unknown_command(make_runner, driver):
    with pytest.raises(UnknownCapabilityError) as exc_info:
        await make_runner().run(parse("log a\nbogus thing\n"))

    assert exc_info.value.line_number == 2
    assert driver.quit_called


@pytest.mark.asyncio
async def test_unknown_capability_command(make_runner, driver):
    with pytest.raises(UnknownCapabilityError):
        await make_runner().run(parse("shop.cart.remove apple\n"))

    assert "sleep" not in driver.names()


@pytest.mark.asyncio
async def test_missing_library_fails_before_any_command(make_runner):
    output = []

    with pytest.raises(CapabilityLoadError) as exc_info:
        await make_runner(output=output).run(parse("log first\nnope.cmd\n"))

    assert exc_info.value.line_number == 2
    assert output == []


@pytest.mark.asyncio
async def test_failure_stops_run(make_runner, driver):
    output = []
    runner = make_runner(output=output)

    with pytest.raises(ElementNotFoundError) as exc_info:
        await runner.run(parse("log one\nelement missing.thing click\nlog never\n"))

    assert exc_info.value.line_number == 2
    assert str(exc_info.value).startswith("line 2:")
    assert output == ["one"]
    assert driver.names().count("quit") == 1

    result = runner.session.result
    assert result.status == CommandStatus.FAILED
    assert [c.status for c in result.commands] == [CommandStatus.PASSED, CommandStatus.FAILED]
    assert result.commands[1].error.startswith("line 2:")


@pytest.mark.asyncio
async def test_assertion_failure_propagates(make_runner, driver):
    with pytest.raises(AssertionError):
        await make_runner().run(parse('assert equal home.title "6"\n'))

    assert driver.quit_called


@pytest.mark.asyncio
async def test_nested_script(make_runner, write_script):
    write_script("child.mts", "log child\n")
    main = write_script("main.mts", "log before\nrunScript child.mts\nlog after\n")
    output = []
    runner = make_runner(output=output)

    await runner.run(ScriptParser().parse(main))

    assert output == ["before", "child", "after"]
    depths = [(c.command_text, c.depth) for c in runner.session.result.commands]
    assert depths == [
        ("log before", 0),
        ("log child", 1),
        ("runScript child.mts", 0),
        ("log after", 0),
    ]


@pytest.mark.asyncio
async def test_nested_script_error_keeps_its_line(make_runner, write_script):
    child = write_script("child.mts", "// child\nbogus\n")
    main = write_script("main.mts", "runScript child.mts\n")

    with pytest.raises(UnknownCapabilityError) as exc_info:
        await make_runner().run(ScriptParser().parse(main))

    assert exc_info.value.line_number == 2
    assert exc_info.value.source == child


@pytest.mark.asyncio
async def test_nested_script_missing(make_runner, write_script):
    main = write_script("main.mts", "log a\nrunScript nowhere.mts\n")

    with pytest.raises(ScriptError) as exc_info:
        await make_runner().run(ScriptParser().parse(main))

    assert exc_info.value.line_number == 2
    assert "Script not found" in str(exc_info.value)


@pytest.mark.asyncio
async def test_recursion_limit(make_runner, write_script):
    main = write_script("loop.mts", "runScript loop.mts\n")
    runner = make_runner(execution=ExecutionConfig(max_script_depth=3))

    with pytest.raises(ScriptError) as exc_info:
        await runner.run(ScriptParser().parse(main))

    assert "deeper than 3" in str(exc_info.value)


@pytest.mark.asyncio
async def test_results_file(tmp_path, driver, resolver, libraries):
    output_dir = ScriptSession.create_output_dir(tmp_path / "out", tmp_path / "flow.mts")
    session = ScriptSession(tmp_path / "flow.mts", driver, output_dir=output_dir)
    runner = ScriptRunner(session, resolver, CapabilityRegistry(libraries))

    await runner.run(parse("sleep 5\nlog ok\n"))

    data = json.loads((output_dir / "results.json").read_text(encoding="utf-8"))
    assert data["status"] == "passed"
    assert data["summary"]["total_commands"] == 2
    assert [c["line"] for c in data["commands"]] == [1, 2]


@pytest.mark.asyncio
async def test_callbacks(tmp_path, driver, resolver, libraries):
    events = []
    session = ScriptSession(tmp_path / "flow.mts", driver)
    runner = ScriptRunner(
        session,
        resolver,
        CapabilityRegistry(libraries),
        on_command_start=lambda c, d: events.append(("start", c.line_number, d)),
        on_command_complete=lambda c, r: events.append(("done", c.line_number, r.status)),
    )

    await runner.run(parse("log a\nlog b\n"))

    assert events == [
        ("start", 1, 0),
        ("done", 1, CommandStatus.PASSED),
        ("start", 2, 0),
        ("done", 2, CommandStatus.PASSED),
    ]


@pytest.mark.asyncio
async def test_assertion_failure_carries_line(make_runner):
    runner = make_runner()

    with pytest.raises(AssertionError) as exc_info:
        await runner.run(parse('log a\nassert equal home.title "6"\n'))

    assert exc_info.value.line_number == 2
    assert str(exc_info.value).startswith("line 2:")
    assert runner.session.result.error.startswith("line 2:")


@pytest.mark.asyncio
async def test_capability_exception_recorded_with_line(make_runner, libraries, driver):
    (libraries / "boom.py").write_text("def fail():\n    raise ValueError('bad input')\n")
    runner = make_runner()

    with pytest.raises(ValueError):
        await runner.run(parse("log a\nlog b\nboom.fail\n"))

    assert runner.session.result.error == "line 3: bad input"
    assert driver.quit_called


@pytest.mark.asyncio
async def test_session_ends_when_results_cannot_be_saved(make_runner, driver, monkeypatch):
    def broken_save(self):
        raise OSError("disk full")

    monkeypatch.setattr(ScriptSession, "save_results", broken_save)

    await make_runner().run(parse("log a\n"))
    assert driver.names().count("quit") == 1


@pytest.mark.asyncio
async def test_script_error_wins_over_results_error(make_runner, driver, monkeypatch):
    def broken_save(self):
        raise OSError("disk full")

    monkeypatch.setattr(ScriptSession, "save_results", broken_save)

    with pytest.raises(ElementNotFoundError):
        await make_runner().run(parse("element missing.thing click\n"))

    assert driver.quit_called
