"""Command line interface for customer records and invoice import."""

import argparse
import asyncio
import json
import logging
import mimetypes
import os
import sys
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from .config import DEFAULT_SETTINGS_FILE, Settings, apply_overrides, load_settings
from .importer import InvoiceImporter, new_customer_id
from .models import Customer, ImportCandidate, Job
from .pdf_text import PdfTextConverter
from .store import CustomerStore, StoreError
from .utils import (
    detect_file_type,
    format_date_german,
    format_price_german,
    get_file_basename,
    get_job_years,
    get_pdf_files,
    parse_date_to_timestamp,
    parse_iso_datetime,
    truncate_filename,
    utc_timestamp,
)


# Sort key for records without a readable creation time
OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class CLIInterface:
    """Command line interface for the customer records manager."""

    def __init__(self):
        """Initialize the CLI interface."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create and configure the argument parser."""
        parser = argparse.ArgumentParser(
            prog="customer-records",
            description="Manage local customer records and import customers from invoice PDFs."
        )

        # Configuration
        parser.add_argument(
            "--config",
            type=str,
            default=DEFAULT_SETTINGS_FILE,
            help=f"Path to the YAML settings file. Defaults to '{DEFAULT_SETTINGS_FILE}'."
        )
        parser.add_argument(
            "--data-dir",
            type=str,
            default=None,
            help="Directory holding customers.json and attached files."
        )
        parser.add_argument(
            "--log-file",
            type=str,
            default=None,
            help="Path to the log file."
        )
        parser.add_argument(
            "--timeout",
            type=float,
            default=None,
            dest="conversion_timeout",
            help="Seconds to wait for the text conversion of one PDF."
        )
        parser.add_argument(
            "--max-text-bytes",
            type=int,
            default=None,
            help="Maximum size of the text extracted from one PDF."
        )

        subparsers = parser.add_subparsers(dest="command", required=True)

        parse_parser = subparsers.add_parser("parse", help="Preview the data extracted from invoices.")
        self._add_input_arguments(parse_parser)
        parse_parser.add_argument(
            "--json",
            action="store_true",
            help="Print the extraction results as JSON."
        )

        import_parser = subparsers.add_parser("import", help="Create customers from invoices.")
        self._add_input_arguments(import_parser)
        import_parser.add_argument(
            "--tui",
            action="store_true",
            help="Enable Textual TUI for interactive folder import."
        )

        list_parser = subparsers.add_parser("list", help="List stored customers.")
        list_parser.add_argument(
            "--search",
            type=str,
            default="",
            help="Only show customers whose name contains this text."
        )
        list_parser.add_argument(
            "--sort",
            choices=["newest", "oldest", "name"],
            default="newest",
            help="Sort order. Defaults to newest first."
        )
        list_parser.add_argument(
            "--year",
            type=int,
            default=None,
            help="Only show customers with a job in this year."
        )

        subparsers.add_parser("years", help="List the years in which jobs took place.")

        add_parser = subparsers.add_parser("add", help="Create a customer.")
        add_parser.add_argument("name", type=str, help="Customer name.")
        add_parser.add_argument("--location", type=str, default="", help="Street and town.")
        add_parser.add_argument("--phone", type=str, default="", help="Phone number.")
        add_parser.add_argument("--email", type=str, default="", help="E-mail address.")
        add_parser.add_argument(
            "--allow-duplicate",
            action="store_true",
            help="Create the customer even if one with the same name exists."
        )

        job_parser = subparsers.add_parser("add-job", help="Add a job to a customer.")
        job_parser.add_argument("id", type=str, help="Customer ID.")
        job_parser.add_argument(
            "--date",
            type=str,
            default=None,
            help="Job date (YYYY-MM-DD). Defaults to today."
        )
        job_parser.add_argument("--description", type=str, default="", help="Job description.")
        job_parser.add_argument("--price", type=float, default=None, help="Job price.")
        job_parser.add_argument(
            "--file",
            type=str,
            nargs="+",
            default=[],
            help="Path(s) to files to attach to the job."
        )

        show_parser = subparsers.add_parser("show", help="Show one customer with jobs and files.")
        show_parser.add_argument("id", type=str, help="Customer ID.")

        delete_parser = subparsers.add_parser("delete", help="Delete a customer.")
        delete_parser.add_argument("id", type=str, help="Customer ID.")

        return parser

    @staticmethod
    def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
        # File input group (mutually exclusive)
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument(
            "--file",
            type=str,
            nargs="+",
            help="Path(s) to invoice PDF files."
        )
        group.add_argument(
            "--folder",
            type=str,
            help="The path to a folder containing invoice PDF files."
        )

    async def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Run the CLI application."""
        args = self.parser.parse_args(argv)

        settings = apply_overrides(load_settings(args.config), {
            "data_dir": args.data_dir,
            "log_file": args.log_file,
            "conversion_timeout": args.conversion_timeout,
            "max_text_bytes": args.max_text_bytes,
        })
        store = CustomerStore(settings.data_dir)

        # Handle TUI mode
        if args.command == "import" and args.tui:
            return await self._run_tui_mode(args, settings, store)

        self._setup_logging(settings.log_file)

        if args.command == "parse":
            return await self._parse(args, settings, store)
        if args.command == "import":
            return await self._import(args, settings, store)
        if args.command == "list":
            return self._list(args, store)
        if args.command == "years":
            return self._years(store)
        if args.command == "add":
            return self._add(args, store)
        if args.command == "add-job":
            return self._add_job(args, store)
        if args.command == "show":
            return self._show(args, store)
        return self._delete(args, store)

    async def _run_tui_mode(self, args: argparse.Namespace, settings: Settings, store: CustomerStore) -> int:
        """Run in TUI mode."""
        from .tui import InvoiceImportApp

        if not args.folder:
            print("Error: --tui mode is only available with --folder.")
            return 2

        if not os.path.isdir(args.folder):
            print(f"Error: Folder not found at '{args.folder}'")
            return 1

        app = InvoiceImportApp(
            folder_path=args.folder,
            importer=self._create_importer(settings, store),
        )
        await app.run_async()
        return 0

    async def _parse(self, args: argparse.Namespace, settings: Settings, store: CustomerStore) -> int:
        files = self._input_files(args)
        if files is None:
            return 1

        importer = self._create_importer(settings, store)
        results = [await importer.parse_invoice(path) for path in files]

        if args.json:
            print(json.dumps([r.model_dump() for r in results], indent=2, ensure_ascii=False))
        else:
            existing = store.existing_names()
            for candidate in [importer.to_candidate(r, existing) for r in results]:
                self._print_candidate(candidate)

        return 0 if all(r.success for r in results) else 1

    async def _import(self, args: argparse.Namespace, settings: Settings, store: CustomerStore) -> int:
        files = self._input_files(args)
        if files is None:
            return 1

        importer = self._create_importer(settings, store)
        candidates = await importer.parse_invoices(files)

        for candidate in candidates:
            self._print_candidate(candidate)

        report = await importer.import_candidates(candidates)
        print(report.message)
        return 0 if report.failed == 0 else 1

    def _list(self, args: argparse.Namespace, store: CustomerStore) -> int:
        customers = store.load_customers()

        if args.search:
            term = args.search.lower()
            customers = [c for c in customers if term in c.name.lower()]

        if args.year is not None:
            customers = [c for c in customers if args.year in get_job_years(c.jobs)]

        if args.sort == "name":
            customers.sort(key=lambda c: c.name.lower())
        else:
            customers.sort(key=self._created_at, reverse=args.sort == "newest")

        if not customers:
            print("Keine Kunden gefunden.")
            return 0

        for customer in customers:
            latest = self._latest_job_summary(customer)
            print(f"{customer.id}  {customer.name or '(Ohne Name)'}"
                  f"  {customer.location or '-'}  Aufträge: {len(customer.jobs)}{latest}")
        return 0

    def _years(self, store: CustomerStore) -> int:
        years: set[int] = set()
        for customer in store.load_customers():
            years |= get_job_years(customer.jobs)

        if not years:
            print("Keine Aufträge gefunden.")
            return 0

        for year in sorted(years, reverse=True):
            print(year)
        return 0

    def _add(self, args: argparse.Namespace, store: CustomerStore) -> int:
        duplicate = store.find_duplicate(args.name)
        if duplicate is not None and not args.allow_duplicate:
            print(f"Kunde '{duplicate.name}' existiert bereits ({duplicate.id}).")
            logging.error("Customer not created, use --allow-duplicate to create it anyway.")
            return 1

        customer = Customer(
            id=new_customer_id(),
            name=args.name,
            location=args.location,
            phone=args.phone,
            email=args.email,
            created_at=utc_timestamp(),
            photos=[],
            jobs=[],
        )
        try:
            store.save_customer(customer)
        except StoreError as e:
            logging.error(f"Error saving customer: {e}")
            return 1

        print(customer.id)
        return 0

    def _add_job(self, args: argparse.Namespace, store: CustomerStore) -> int:
        customer = store.get_customer(args.id)
        if customer is None:
            print(f"Kunde {args.id} nicht gefunden.")
            return 1

        files = []
        failed = 0
        for path in args.file:
            name = get_file_basename(path)
            try:
                with open(path, 'rb') as f:
                    data = f.read()
                files.append(store.save_file(name, data, mimetypes.guess_type(name)[0] or ""))
            except (OSError, StoreError) as e:
                logging.error(f"Error attaching {name}: {e}")
                failed += 1

        job = Job(
            date=args.date or date.today().isoformat(),
            description=args.description,
            price=args.price,
            files=files,
        )
        try:
            store.save_customer(Customer(id=customer.id, jobs=[*customer.jobs, job]))
        except StoreError as e:
            logging.error(f"Error saving job: {e}")
            return 1

        logging.info(f"Job added to '{customer.name}' with {len(files)} file(s).")
        return 0 if failed == 0 else 1

    def _show(self, args: argparse.Namespace, store: CustomerStore) -> int:
        customer = store.get_customer(args.id)
        if customer is None:
            print(f"Kunde {args.id} nicht gefunden.")
            return 1

        print(customer.name or "(Ohne Name)")
        print(f"  Ort:      {customer.location or '-'}")
        print(f"  Telefon:  {customer.phone or '-'}")
        print(f"  E-Mail:   {customer.email or '-'}")
        print(f"  Angelegt: {format_date_german(customer.created_at) or '-'}")

        jobs = sorted(customer.jobs, key=lambda j: parse_date_to_timestamp(j.date), reverse=True)
        for job in jobs:
            price = format_price_german(job.price)
            print(f"\n  {format_date_german(job.date) or '-'}  {price}")
            for line in job.description.splitlines():
                print(f"    {line}")
            for attached in job.all_files():
                print(f"    [{self._file_label(attached.name, attached.type)}] "
                      f"{truncate_filename(attached.name, 40)}  {attached.url}")
        return 0

    def _delete(self, args: argparse.Namespace, store: CustomerStore) -> int:
        try:
            deleted = store.delete_customer(args.id)
        except StoreError as e:
            logging.error(f"Error deleting customer: {e}")
            return 1

        if not deleted:
            logging.error("Error deleting customer: no data file")
            return 1
        logging.info(f"Customer {args.id} deleted.")
        return 0

    @staticmethod
    def _create_importer(settings: Settings, store: CustomerStore) -> InvoiceImporter:
        converter = PdfTextConverter(
            timeout=settings.conversion_timeout,
            max_bytes=settings.max_text_bytes,
        )
        return InvoiceImporter(store, converter)

    @staticmethod
    def _input_files(args: argparse.Namespace) -> Optional[list[str]]:
        if args.file:
            return list(args.file)

        if not os.path.isdir(args.folder):
            logging.error(f"Error: Folder not found at '{args.folder}'")
            return None

        files = get_pdf_files(args.folder)
        if not files:
            logging.info(f"No PDF files found in '{args.folder}'.")
        return files

    @staticmethod
    def _print_candidate(candidate: ImportCandidate) -> None:
        print(f"[{candidate.status}] {candidate.file_name}")
        if candidate.error:
            print(f"    {candidate.error}")
            return

        print(f"    Name:    {candidate.name or '-'}")
        print(f"    Ort:     {candidate.location or '-'}")
        print(f"    Telefon: {candidate.phone or '-'}")
        print(f"    E-Mail:  {candidate.email or '-'}")
        if candidate.job is not None:
            job = candidate.job
            print(f"    Rechnung: {job.invoice_number or '-'}  "
                  f"{format_date_german(job.date) or '-'}  {format_price_german(job.price) or '-'}")

    @staticmethod
    def _latest_job_summary(customer: Customer) -> str:
        if not customer.jobs:
            return ""
        latest = max(customer.jobs, key=lambda j: parse_date_to_timestamp(j.date))
        return f"  Letzter Auftrag: {format_date_german(latest.date) or '-'} {format_price_german(latest.price)}".rstrip()

    @staticmethod
    def _created_at(customer: Customer) -> datetime:
        return parse_iso_datetime(customer.created_at) or OLDEST

    @staticmethod
    def _file_label(name: str, mime_type: str) -> str:
        kind = detect_file_type(name, mime_type)
        if kind["is_image"]:
            return "Bild"
        if kind["is_pdf"]:
            return "PDF"
        if kind["is_word"]:
            return "Word"
        return "Datei"

    def _setup_logging(self, log_file: str) -> None:
        """Set up logging for CLI mode."""
        # Remove existing handlers
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)

        # Configure logging to write to a file and the console
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(message)s',
            filename=log_file,
            filemode='a',  # Append to the log file on each run
            encoding='utf-8'
        )

        # Add console handler
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(console_handler)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI application."""
    cli = CLIInterface()
    return await cli.run(argv)


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
