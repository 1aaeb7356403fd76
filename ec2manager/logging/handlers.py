"""Logging handlers for TUI integration."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from textual.message import Message

from ec2manager.logging.formatters import TaskFormatter

if TYPE_CHECKING:
    from textual.app import App

logger = logging.getLogger(__name__)

FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def severity_for(levelno: int) -> str:
    """Map a logging level onto a Textual notification severity."""
    if levelno >= logging.ERROR:
        return "error"

    if levelno >= logging.WARNING:
        return "warning"

    return "information"


class TuiLogMessage(Message):
    """Message delivering a log line to the TUI as a notification."""

    def __init__(self, text: str, severity: str = "warning") -> None:
        self.text = text
        self.severity = severity
        super().__init__()


class TuiLogHandler(logging.Handler):
    """Logging handler that surfaces records as Textual notifications.

    Parameters
    ----------
    app : App
        Textual app instance
    level : int
        Minimum level forwarded to the app

    Attributes
    ----------
    app : App
        Textual app instance
    """

    def __init__(self, app: App, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self.app = app

    def emit(self, record: logging.LogRecord) -> None:
        """Emit log record to the TUI.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to emit
        """
        msg = self.format(record)
        severity = severity_for(record.levelno)

        try:
            if not hasattr(self.app, "_running") or not self.app._running:
                return

            if self.app._thread_id == threading.get_ident():
                self.app.notify(msg, severity=severity)
                return

            self.app.post_message(TuiLogMessage(msg, severity))
        except (RuntimeError, AttributeError) as e:
            logger.debug("Error emitting log message to TUI: %s", e)


def create_file_handler(path: Path, level: int = logging.INFO) -> logging.Handler:
    """Build the file handler the dashboard logs to while the TUI owns the terminal.

    Parameters
    ----------
    path : Path
        Log file path
    level : int
        Minimum level written to the file

    Returns
    -------
    logging.Handler
        File handler formatted with task prefixes
    """
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(TaskFormatter(FILE_LOG_FORMAT))
    return handler
