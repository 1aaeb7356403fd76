"""Smoke tests for the Textual dashboard driven through run_test."""

import asyncio
import logging
import threading
import time

import pytest

from ec2manager.core.state import ConfirmReboot, FilterInput, ListMode, Processing, SelectingType
from ec2manager.core.tasks import spawn_thread
from ec2manager.tui import InstanceManagerTUI
from ec2manager.tui.app import InstanceTable, TypeTable


@pytest.fixture
def tui(manager, spawner, tmp_path):
    """Dashboard over the fake providers with workers held by the spawner."""
    app = InstanceManagerTUI(manager, log_path=tmp_path / "ec2manager.log")
    manager.tasks.spawn = spawner
    return app


def run_scenario(app, scenario) -> None:
    async def _run() -> None:
        async with app.run_test() as pilot:
            await scenario(pilot)

    asyncio.run(_run())


def test_app_keeps_orchestrator_spawner(manager, spawner, tmp_path) -> None:
    InstanceManagerTUI(manager, log_path=tmp_path / "ec2manager.log")

    assert manager.tasks.spawn is spawner


def test_renders_instance_list(tui, manager) -> None:
    async def scenario(pilot) -> None:
        table = pilot.app.query_one(InstanceTable)

        assert table.row_count == 3
        assert pilot.app.query_one("#type-picker").display is False
        assert pilot.app.query_one("#dialog").display is False

    run_scenario(tui, scenario)


def test_filter_narrows_rows(tui, manager) -> None:
    async def scenario(pilot) -> None:
        await pilot.press("f")
        assert isinstance(manager.state, FilterInput)

        await pilot.press("w", "e", "b")
        await pilot.press("enter")

        assert isinstance(manager.state, ListMode)
        assert manager.filter == "web"
        assert pilot.app.query_one(InstanceTable).row_count == 1

    run_scenario(tui, scenario)


def test_stop_shows_processing_dialog(tui, manager, spawner) -> None:
    async def scenario(pilot) -> None:
        await pilot.press("down")
        assert manager.selected_instance().instance_id == "i-0001"

        await pilot.press("s")

        assert manager.state == Processing("Stopping i-0001...")
        assert spawner.launched == ["stop"]
        assert pilot.app.query_one("#dialog").display is True

        await pilot.press("escape")

        assert isinstance(manager.state, ListMode)
        assert pilot.app.query_one("#dialog").display is False

    run_scenario(tui, scenario)


def test_reboot_confirmation_can_be_cancelled(tui, manager, spawner) -> None:
    async def scenario(pilot) -> None:
        await pilot.press("r")
        assert manager.state == ConfirmReboot("i-0002")
        assert pilot.app.query_one("#dialog").display is True

        await pilot.press("n")

        assert isinstance(manager.state, ListMode)
        assert spawner.launched == []

    run_scenario(tui, scenario)


def test_type_picker_lists_candidates(tui, manager, spawner) -> None:
    """Test the picker opens with types matching the instance architecture."""

    async def scenario(pilot) -> None:
        await pilot.press("c")

        state = manager.state
        assert isinstance(state, SelectingType)
        assert state.default_mode_active is True
        assert set(state.options) == {"t4g.micro", "t4g.small"}
        assert pilot.app.query_one("#type-picker").display is True
        assert pilot.app.query_one(TypeTable).row_count == 2
        assert spawner.launched == ["on-demand-prices", "spot-prices"]

        await pilot.press("escape")

        assert isinstance(manager.state, ListMode)
        assert pilot.app.query_one("#type-picker").display is False

    run_scenario(tui, scenario)


def test_q_quits(tui, manager) -> None:
    async def scenario(pilot) -> None:
        await pilot.press("q")

    run_scenario(tui, scenario)

    assert manager.should_quit is True


def test_ctrl_c_quits_from_filter_input(tui, manager) -> None:
    async def scenario(pilot) -> None:
        await pilot.press("f")
        await pilot.press("ctrl+c")

    run_scenario(tui, scenario)

    assert manager.should_quit is True


def test_logging_restored_after_exit(tui, tmp_path) -> None:
    root_logger = logging.getLogger()
    handlers_before = root_logger.handlers[:]
    level_before = root_logger.level

    async def scenario(pilot) -> None:
        assert root_logger.handlers != handlers_before
        logging.getLogger("ec2manager.test").info("inside dashboard")

    run_scenario(tui, scenario)

    assert root_logger.handlers == handlers_before
    assert root_logger.level == level_before
    assert "inside dashboard" in (tmp_path / "ec2manager.log").read_text()


def test_quit_does_not_wait_for_running_worker(manager, fake_compute, tmp_path) -> None:
    """Test quitting returns while a stop request is still in flight."""
    started = threading.Event()
    release = threading.Event()

    def slow_stop(instance_id: str, force: bool = False) -> None:
        started.set()
        release.wait(10)

    fake_compute.stop_instance = slow_stop
    manager.tasks.spawn = spawn_thread
    app = InstanceManagerTUI(manager, log_path=tmp_path / "ec2manager.log")

    async def scenario(pilot) -> None:
        await pilot.press("s")
        assert started.wait(2)
        await pilot.press("escape", "q")

    begin = time.monotonic()

    try:
        run_scenario(app, scenario)
        elapsed = time.monotonic() - begin
    finally:
        release.set()

    assert manager.should_quit is True
    assert elapsed < 5
