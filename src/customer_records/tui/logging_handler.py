"""Logging handler that writes into the TUI log window."""

import logging

from textual.widgets import RichLog
from rich.errors import MarkupError
from rich.text import Text


class TuiLogHandler(logging.Handler):
    """A logging handler that sends records to a Textual RichLog widget."""

    def __init__(self, rich_log: RichLog):
        """
        Initialize the TUI log handler.

        Args:
            rich_log: The RichLog widget to write to
        """
        super().__init__()
        self.rich_log = rich_log

    def emit(self, record: logging.LogRecord) -> None:
        """
        Emit a log record to the RichLog widget.

        Messages may contain Rich markup; warnings and errors are
        coloured by level.

        Args:
            record: The log record to emit
        """
        msg = record.getMessage()

        try:
            rich_text = Text.from_markup(msg)
        except MarkupError:
            # Not valid markup, e.g. brackets in a file name
            rich_text = Text(msg)

        if record.levelno >= logging.ERROR:
            rich_text.stylize("bold red")
        elif record.levelno >= logging.WARNING:
            rich_text.stylize("yellow")

        self.rich_log.write(rich_text)
