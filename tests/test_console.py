"""Tests for the operator console."""
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from warden.datatypes.player_datatypes import SYSTEM
from warden.ui import console


def make_runtime(**overrides):
    runtime = SimpleNamespace(
        commands=SimpleNamespace(execute_as=AsyncMock(return_value=True)),
        scheduler=SimpleNamespace(flush=AsyncMock(return_value=True), is_running=True),
        bans=SimpleNamespace(get_all=MagicMock(return_value=[])),
    )
    for key, value in overrides.items():
        setattr(runtime, key, value)
    return runtime


def test_console_print_without_style():
    with patch("warden.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message")
        mock_print.assert_called_once_with("Test message")


def test_console_print_with_style():
    with patch("warden.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message", "ansigreen")
        assert mock_print.call_count == 1


def test_console_control_shutdown():
    control = console.ConsoleControl(make_runtime())
    assert not control.is_shutdown_requested()
    control.request_shutdown()
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_handle_console_command_empty():
    runtime = make_runtime()
    control = console.ConsoleControl(runtime)
    await console.handle_console_command("", control)
    await console.handle_console_command("   ", control)
    runtime.commands.execute_as.assert_not_awaited()


@pytest.mark.asyncio
async def test_handle_console_command_unknown():
    control = console.ConsoleControl(make_runtime())
    with patch("warden.ui.console.console_print") as mock_print:
        await console.handle_console_command("frobnicate", control)
    assert "Unknown command 'frobnicate'" in mock_print.call_args[0][0]


@pytest.mark.asyncio
async def test_handle_console_command_quit_alias():
    control = console.ConsoleControl(make_runtime())
    with patch("warden.ui.console.console_print"):
        await console.handle_console_command("QUIT", control)
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_run_dispatches_as_system_actor():
    runtime = make_runtime()
    control = console.ConsoleControl(runtime)
    await console.handle_console_command("run ban Alice 1d griefing spawn", control)
    runtime.commands.execute_as.assert_awaited_once_with(SYSTEM, "ban", ["Alice", "1d", "griefing", "spawn"])


@pytest.mark.asyncio
async def test_run_reports_failed_command():
    runtime = make_runtime(commands=SimpleNamespace(execute_as=AsyncMock(return_value=False)))
    control = console.ConsoleControl(runtime)
    with patch("warden.ui.console.console_print") as mock_print:
        await console.handle_console_command("cmd nothing", control)
    assert "did not complete" in mock_print.call_args[0][0]


@pytest.mark.asyncio
async def test_run_without_arguments_prints_usage():
    runtime = make_runtime()
    control = console.ConsoleControl(runtime)
    with patch("warden.ui.console.console_print") as mock_print:
        await console.handle_console_command("run", control)
    assert mock_print.call_args[0][0].startswith("Usage:")
    runtime.commands.execute_as.assert_not_awaited()


@pytest.mark.asyncio
async def test_flush_reports_failure():
    runtime = make_runtime(scheduler=SimpleNamespace(flush=AsyncMock(return_value=False)))
    control = console.ConsoleControl(runtime)
    with patch("warden.ui.console.console_print") as mock_print:
        await console.handle_console_command("save", control)
    runtime.scheduler.flush.assert_awaited_once()
    assert "could not be persisted" in mock_print.call_args[0][0]


@pytest.mark.asyncio
async def test_handler_errors_are_reported_not_raised():
    runtime = make_runtime(bans=SimpleNamespace(get_all=MagicMock(side_effect=RuntimeError("boom"))))
    control = console.ConsoleControl(runtime)
    with patch("warden.ui.console.console_print") as mock_print:
        await console.handle_console_command("bans", control)
    assert "boom" in mock_print.call_args[0][0]
