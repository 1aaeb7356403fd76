"""Logging helpers for the dashboard."""

from ec2manager.logging.formatters import TaskFormatter
from ec2manager.logging.handlers import TuiLogHandler, TuiLogMessage, create_file_handler

__all__ = ["TaskFormatter", "TuiLogHandler", "TuiLogMessage", "create_file_handler"]
