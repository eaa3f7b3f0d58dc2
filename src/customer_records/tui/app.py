"""Main TUI application for interactive invoice import."""

import logging
import os

from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import Header, Footer, RichLog, SelectionList, ProgressBar, Static
from textual.binding import Binding
from textual import work
from rich.markup import escape
from rich.text import Text

from ..importer import InvoiceImporter
from ..models import ImportCandidate
from ..utils import get_pdf_files, get_file_basename
from .logging_handler import TuiLogHandler


STATUS_STYLES = {
    "Neu": "bold green",
    "Duplikat": "bold yellow",
    "Fehler": "bold red",
}


class InvoiceImportApp(App):
    """A Textual app for previewing and importing customers from invoices."""

    CSS = """
    #main-container {
        layout: horizontal;
        height: 1fr;
    }
    SelectionList {
        width: 40%;
        border-right: solid $accent;
    }
    #right-panel {
        width: 60%;
        layout: vertical;
    }
    RichLog {
        height: 1fr;
    }
    #progress-container {
        height: 3;
        margin: 1 0;
    }
    #status-bar {
        height: 1;
        background: $surface;
        color: $text;
        text-align: center;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("p", "parse_selected", "Parse Selected"),
        Binding("i", "import_parsed", "Import"),
        Binding("space", "toggle_selection", "Toggle Selection", show=False),
        Binding("r", "refresh_files", "Refresh Files"),
    ]

    def __init__(self, folder_path: str, importer: InvoiceImporter):
        """
        Initialize the TUI application.

        Args:
            folder_path: Path to folder containing invoice PDF files
            importer: Importer used to parse invoices and save customers
        """
        super().__init__()
        self.folder_path = folder_path
        self.importer = importer
        self.files_to_process: list[str] = []
        self.candidates: list[ImportCandidate] = []
        self.is_processing = False

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        with Container(id="main-container"):
            yield SelectionList[str](id="file_list")
            with Vertical(id="right-panel"):
                with Container(id="progress-container"):
                    yield ProgressBar(id="progress_bar", show_eta=False)
                yield RichLog(id="log_window", wrap=True, highlight=True)
                yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Called when the app is mounted."""
        self.refresh_file_list()
        self._setup_logging()
        self._log_initial_message()
        self._update_status_bar()

    def _setup_logging(self) -> None:
        """Set up logging to use the TUI handler."""
        log_window = self.query_one(RichLog)
        tui_handler = TuiLogHandler(log_window)

        # Remove all other handlers to only log to the TUI
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.addHandler(tui_handler)
        root_logger.setLevel(logging.INFO)

    def _log_initial_message(self) -> None:
        """Log the initial welcome message."""
        self._write(
            "App initialized. Press 'space' to select files, 'p' to parse, "
            "'i' to import, 'r' to refresh, 'q' to quit."
        )

    def _write(self, markup: str) -> None:
        self.query_one(RichLog).write(Text.from_markup(markup))

    def _update_status_bar(self) -> None:
        found = sum(1 for c in self.candidates if not c.error)
        selected = sum(1 for c in self.candidates if c.selected and not c.error)
        plural = "n" if found != 1 else ""
        self.query_one("#status-bar", Static).update(
            f"{found} Kunde{plural} gefunden | {selected} ausgewählt"
        )

    def refresh_file_list(self) -> None:
        """Refresh the file list from the folder."""
        selection_list = self.query_one(SelectionList)
        selection_list.clear_options()

        if not os.path.isdir(self.folder_path):
            self._write(f"[bold red]Error: Folder not found at '{escape(self.folder_path)}'[/bold red]")
            return

        self.files_to_process = get_pdf_files(self.folder_path)

        if not self.files_to_process:
            self._write(f"[bold yellow]No PDF files found in '{escape(self.folder_path)}'.[/bold yellow]")
            return

        for file_path in self.files_to_process:
            selection_list.add_option((get_file_basename(file_path), file_path))

        self._write(f"[bold]Found {len(self.files_to_process)} PDF files.[/bold]")

    def action_refresh_files(self) -> None:
        """Refresh the file list."""
        if self.is_processing:
            self._write("[bold red]Cannot refresh while processing.[/bold red]")
            return

        self.refresh_file_list()
        self._write("[bold blue]File list refreshed.[/bold blue]")

    def action_toggle_selection(self) -> None:
        """Toggle the selection of the currently highlighted file."""
        if self.is_processing:
            self._write("[bold red]Cannot change selection while processing.[/bold red]")
            return

        selection_list = self.query_one(SelectionList)
        if selection_list.highlighted is not None:
            selection_list.toggle(selection_list.get_option_at_index(selection_list.highlighted))

    def action_parse_selected(self) -> None:
        """Start parsing the selected invoice files."""
        if self.is_processing:
            self._write("[bold red]Processing already in progress.[/bold red]")
            return

        selected_items = list(self.query_one(SelectionList).selected)
        if not selected_items:
            self._write("[bold red]No files selected. Press 'space' to select files.[/bold red]")
            return

        self.is_processing = True
        self.candidates = []
        self.query_one(ProgressBar).update(total=len(selected_items), progress=0)
        self._write(f"[bold]Parsing {len(selected_items)} invoices...[/bold]")
        self.run_parsing(selected_items)

    def action_import_parsed(self) -> None:
        """Import the customers of the parsed, pre-selected invoices."""
        if self.is_processing:
            self._write("[bold red]Processing already in progress.[/bold red]")
            return

        if not any(c.selected and not c.error for c in self.candidates):
            self._write("[bold red]Nothing to import. Press 'p' to parse selected files first.[/bold red]")
            return

        self.is_processing = True
        self.run_import()

    @work(exclusive=True, group="processing")
    async def run_parsing(self, files: list[str]) -> None:
        """The background worker for parsing invoice files."""
        try:
            existing_names = self.importer.store.existing_names()
            progress_bar = self.query_one(ProgressBar)

            for i, file_path in enumerate(files):
                logging.info(f"Parsing file {i + 1}/{len(files)}: {escape(get_file_basename(file_path))}")
                result = await self.importer.parse_invoice(file_path)
                candidate = self.importer.to_candidate(result, existing_names)
                self.candidates.append(candidate)
                self._log_candidate(candidate)
                progress_bar.update(progress=i + 1)

            logging.info("\n--- [bold green]All selected files parsed.[/bold green] Press 'i' to import. ---")
        finally:
            self.is_processing = False
            self._update_status_bar()

    @work(exclusive=True, group="processing")
    async def run_import(self) -> None:
        """The background worker for saving the parsed customers."""
        try:
            report = await self.importer.import_candidates(self.candidates)
            style = "bold yellow" if report.skipped_duplicates else "bold green"
            self._write(f"[{style}]{escape(report.message)}[/{style}]")
            self.candidates = []
        finally:
            self.is_processing = False
            self._update_status_bar()

    def _log_candidate(self, candidate: ImportCandidate) -> None:
        style = STATUS_STYLES[candidate.status]
        line = f"[{style}]{candidate.status}[/{style}] {escape(candidate.file_name)}"
        if candidate.error:
            line += f": {escape(candidate.error)}"
        else:
            line += f" - {escape(candidate.name or '-')}, {escape(candidate.location or '-')}"
        self._write(line)

