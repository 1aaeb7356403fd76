"""Logging formatters for background task records."""

import logging


class TaskFormatter(logging.Formatter):
    """Logging formatter that prepends the worker name from the task extra."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with task prefix if present.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log message with optional ``[task]`` prefix
        """
        msg = super().format(record)
        task = getattr(record, "task", None)

        if task:
            return f"[{task}] {msg}"

        return msg
