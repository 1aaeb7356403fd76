"""Textual TUI application for ec2manager."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import DataTable, Static

from ec2manager.constants import TUI_UPDATE_INTERVAL, UPTIME_REDRAW_INTERVAL_SECONDS
from ec2manager.core.state import ApplicationState, Processing, SelectingType
from ec2manager.logging import TaskFormatter, TuiLogHandler, TuiLogMessage, create_file_handler
from ec2manager.tui.render import (
    INSTANCE_COLUMNS,
    TYPE_COLUMNS,
    instance_row,
    overlay_content,
    picker_input,
    refreshed_text,
    status_text,
    type_rows,
)
from ec2manager.tui.styling import TUI_CSS

if TYPE_CHECKING:
    from ec2manager.core.machine import InstanceManager

logger = logging.getLogger(__name__)

SPECIAL_KEYS = frozenset(
    (
        "up",
        "down",
        "pageup",
        "pagedown",
        "home",
        "end",
        "enter",
        "escape",
        "backspace",
        "ctrl+c",
    )
)


def translate_key(event: events.Key) -> str:
    """Map a Textual key event onto the key names the state machine understands.

    Parameters
    ----------
    event : events.Key
        Key event

    Returns
    -------
    str
        A named key from SPECIAL_KEYS, a single printable character, or the
        raw Textual key name for anything else
    """
    if event.key in SPECIAL_KEYS:
        return event.key

    character = event.character

    if character and len(character) == 1 and character.isprintable():
        return character

    return event.key


def as_text(cells: Iterable[Any]) -> list[Any]:
    """Wrap plain strings in Text so cell contents are never parsed as markup."""
    return [Text(cell) if isinstance(cell, str) else cell for cell in cells]


class InstanceTable(DataTable, can_focus=False):
    """Instance list; keys go to the app rather than the table."""


class TypeTable(DataTable, can_focus=False):
    """Type picker suggestions; keys go to the app rather than the table."""


class InstanceManagerTUI(App):
    """Textual front end over an InstanceManager.

    The app owns no state of its own. Every tick it advances the manager and
    redraws from it; every key press is forwarded to it. Background tasks run
    on the orchestrator's daemon threads, so exiting never waits for them.

    Parameters
    ----------
    manager : InstanceManager
        State machine to drive and render
    log_path : Path | None
        File receiving log records while the TUI owns the terminal
    verbose : bool
        Log at DEBUG instead of INFO

    Attributes
    ----------
    manager : InstanceManager
        State machine to drive and render
    original_handlers : list[logging.Handler]
        Original logging handlers to restore on exit
    """

    CSS = TUI_CSS
    TITLE = "EC2 Instance Manager"

    BINDINGS = [
        Binding("ctrl+c", "interrupt", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        manager: InstanceManager,
        log_path: Path | None = None,
        verbose: bool = False,
    ) -> None:
        super().__init__()
        self.manager = manager
        self.log_path = log_path
        self.verbose = verbose
        self.original_handlers: list[logging.Handler] = []
        self.original_level = logging.NOTSET
        self.file_handler: logging.Handler | None = None

    def compose(self) -> ComposeResult:
        """Compose TUI layout.

        Yields
        ------
        Container
            Instance list panel
        Horizontal
            Status bar with key hints and the refresh stamp
        Vertical
            Type picker overlay
        Vertical
            Confirmation and processing dialog overlay
        """
        with Container(id="instance-panel"):
            yield InstanceTable(id="instances", cursor_type="row")
        with Horizontal(id="status-bar"):
            yield Static(id="status")
            yield Static(id="refreshed")
        with Vertical(id="type-picker"):
            yield Static(id="type-input")
            yield TypeTable(id="types", cursor_type="row")
        with Vertical(id="dialog"):
            yield Static(id="dialog-title")
            yield Static(id="dialog-body")

    def on_mount(self) -> None:
        """Handle mount event - setup logging, tables and timers."""
        self._redirect_logging()

        self.query_one("#instance-panel").border_title = "EC2 Instances"
        self.query_one("#type-input").border_title = "Select Instance Type"
        self.query_one(TypeTable).border_title = "Suggestions"
        self.query_one(InstanceTable).add_columns(*INSTANCE_COLUMNS)
        self.query_one(TypeTable).add_columns(*TYPE_COLUMNS)

        self.set_interval(TUI_UPDATE_INTERVAL, self.check_for_updates)
        self.set_interval(UPTIME_REDRAW_INTERVAL_SECONDS, self.refresh_view, name="uptime-timer")
        self.refresh_view()

    def _redirect_logging(self) -> None:
        root_logger = logging.getLogger()
        self.original_handlers = root_logger.handlers[:]
        self.original_level = root_logger.level
        level = logging.DEBUG if self.verbose else logging.INFO
        handlers: list[logging.Handler] = []
        file_error: OSError | None = None

        if self.log_path is not None:
            try:
                self.file_handler = create_file_handler(self.log_path, level)
                handlers.append(self.file_handler)
            except OSError as e:
                file_error = e

        tui_handler = TuiLogHandler(self)
        tui_handler.setFormatter(TaskFormatter("%(message)s"))
        handlers.append(tui_handler)

        root_logger.handlers = handlers
        root_logger.setLevel(level)

        for boto_module in ["botocore", "boto3", "urllib3"]:
            logging.getLogger(boto_module).setLevel(logging.WARNING)

        if file_error is not None:
            logger.warning("Cannot write log file %s: %s", self.log_path, file_error)

    def on_unmount(self) -> None:
        """Handle unmount event - restore logging."""
        root_logger = logging.getLogger()
        root_logger.handlers = self.original_handlers
        root_logger.setLevel(self.original_level)

        if self.file_handler is not None:
            self.file_handler.close()
            self.file_handler = None

    async def on_tui_log_message(self, message: TuiLogMessage) -> None:
        """Show log records emitted from worker threads as notifications."""
        self.notify(message.text, severity=message.severity)

    def check_for_updates(self) -> None:
        """Advance the refresh timer and handle at most one pending event."""
        if self.manager.run_iteration():
            self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        """Forward a key press to the state machine.

        Parameters
        ----------
        event : events.Key
            Key event
        """
        self.manager.handle_key(translate_key(event))
        event.stop()
        self._after_input()

    def action_interrupt(self) -> None:
        """Handle Ctrl+C regardless of the current mode."""
        self.manager.handle_key("ctrl+c")
        self._after_input()

    def _after_input(self) -> None:
        if self.manager.should_quit:
            self.exit()
            return

        self.refresh_view()

    def refresh_view(self) -> None:
        """Redraw every widget from the manager's current state."""
        manager = self.manager
        state = manager.state

        self._render_instances()
        self.query_one("#status", Static).update(Text(status_text(state, manager.filter)))
        self.query_one("#refreshed", Static).update(Text(refreshed_text(manager.last_refreshed)))
        self._render_type_picker(state)
        self._render_dialog(state)

    def _render_instances(self) -> None:
        table = self.query_one(InstanceTable)
        table.clear()

        for instance in self.manager.visible:
            table.add_row(*as_text(instance_row(instance)), key=instance.instance_id)

        if self.manager.selected is not None:
            table.move_cursor(row=self.manager.selected)

    def _render_type_picker(self, state: ApplicationState) -> None:
        picker = self.query_one("#type-picker")
        picker.display = isinstance(state, SelectingType)

        if not isinstance(state, SelectingType):
            return

        self.query_one("#type-input", Static).update(picker_input(state))

        table = self.query_one(TypeTable)
        table.clear()

        for row in type_rows(state, self.manager.cache.type_map, self.manager.cache.prices):
            table.add_row(*as_text(row))

        table.show_cursor = state.selected_index is not None

        if state.selected_index is not None:
            table.move_cursor(row=state.selected_index)

    def _render_dialog(self, state: ApplicationState) -> None:
        dialog = self.query_one("#dialog")
        content = overlay_content(state)
        dialog.display = content is not None
        dialog.set_class(isinstance(state, Processing) and state.is_error, "error")

        if content is None:
            return

        title, body = content
        self.query_one("#dialog-title", Static).update(Text(title))
        self.query_one("#dialog-body", Static).update(Text(body))
