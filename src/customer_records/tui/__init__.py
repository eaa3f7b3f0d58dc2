"""TUI (Terminal User Interface) for the interactive invoice import."""

from .app import InvoiceImportApp
from .logging_handler import TuiLogHandler

__all__ = ["InvoiceImportApp", "TuiLogHandler"]
