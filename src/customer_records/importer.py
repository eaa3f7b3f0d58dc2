"""Invoice import: PDF conversion, extraction, duplicate check and persistence."""

import logging
import time
import uuid
from datetime import date
from typing import Optional

from .extractor import FALLBACK_DESCRIPTION, extract_customer, extract_job
from .models import (
    AttachedFile,
    Customer,
    ExtractionFailure,
    ExtractionResult,
    ExtractionSuccess,
    ImportCandidate,
    ImportReport,
    Job,
)
from .pdf_text import PdfTextConverter
from .store import CustomerStore, StoreError, normalize_name
from .utils import get_file_basename, utc_timestamp


def new_customer_id() -> str:
    """Millisecond timestamp followed by a random suffix."""
    return f"{int(time.time() * 1000)}{uuid.uuid4().hex[:9]}"


class InvoiceImporter:
    """Imports customers and jobs from supplier invoice PDFs."""

    def __init__(self, store: CustomerStore, converter: Optional[PdfTextConverter] = None):
        """
        Initialize the importer.

        Args:
            store: Customer store used for duplicate checks and persistence
            converter: PDF to text converter, a default one if omitted
        """
        self.store = store
        self.converter = converter or PdfTextConverter()

    async def parse_invoice(self, file_path: str) -> ExtractionResult:
        """
        Convert one invoice PDF to text and extract customer and job data.

        Args:
            file_path: Path to the PDF file

        Returns:
            Extraction success, or failure if the text conversion failed
        """
        filename = get_file_basename(file_path)
        conversion = await self.converter.convert(file_path)

        if not conversion.success:
            return ExtractionFailure(error=conversion.error, file_name=filename, file_path=file_path)

        return ExtractionSuccess(
            customer=extract_customer(conversion.text),
            job=extract_job(conversion.text),
            raw_text=conversion.text,
            file_name=filename,
            file_path=file_path,
        )

    async def parse_invoices(self, file_paths: list[str]) -> list[ImportCandidate]:
        """
        Parse several invoices, one file at a time, into preview rows.

        A failing file yields a row with an error; the remaining files
        are still processed. Rows that are neither failed nor duplicates
        are pre-selected.

        Args:
            file_paths: Paths to the PDF files

        Returns:
            One import candidate per file, in input order
        """
        existing_names = self.store.existing_names()
        candidates = []

        for i, file_path in enumerate(file_paths):
            logging.info(f"Parsing invoice {i + 1}/{len(file_paths)}: {get_file_basename(file_path)}")
            result = await self.parse_invoice(file_path)
            candidates.append(self.to_candidate(result, existing_names))

        return candidates

    async def import_candidates(self, candidates: list[ImportCandidate]) -> ImportReport:
        """
        Create customers for the selected preview rows.

        Duplicates are checked again against the store right before each
        customer is saved.

        Args:
            candidates: Preview rows from parse_invoices

        Returns:
            Report of imported and skipped customers
        """
        report = ImportReport()
        to_import = [c for c in candidates if c.selected and not c.error and c.name]

        for candidate in to_import:
            if normalize_name(candidate.name) in self.store.existing_names():
                logging.info(f"Skipping duplicate customer '{candidate.name}'")
                report.skipped_duplicates += 1
                continue

            try:
                customer = self._build_customer(candidate)
                self.store.save_customer(customer)
            except StoreError as e:
                logging.error(f"Error saving customer '{candidate.name}': {e}")
                report.failed += 1
                continue

            logging.info(f"✅ Imported customer '{customer.name}' from {candidate.file_name}")
            report.imported.append(customer)

        logging.info(report.message)
        return report

    def to_candidate(self, result: ExtractionResult, existing_names: set[str]) -> ImportCandidate:
        """Turn an extraction result into a preview row."""
        if isinstance(result, ExtractionFailure):
            return ImportCandidate(
                file_name=result.file_name,
                file_path=result.file_path,
                error=result.error,
            )

        is_duplicate = normalize_name(result.customer.name) in existing_names
        return ImportCandidate(
            **result.customer.model_dump(),
            job=result.job,
            file_name=result.file_name,
            file_path=result.file_path,
            is_duplicate=is_duplicate,
            selected=not is_duplicate,
        )

    def _build_customer(self, candidate: ImportCandidate) -> Customer:
        pdf_file: Optional[AttachedFile] = None
        if candidate.file_path and candidate.file_name:
            try:
                pdf_file = self.store.copy_file_to_storage(candidate.file_path, candidate.file_name)
            except StoreError as e:
                logging.warning(f"Invoice file not attached to '{candidate.name}': {e}")

        jobs = []
        if candidate.job is not None:
            jobs.append(Job(
                date=candidate.job.date or date.today().isoformat(),
                description=candidate.job.description or FALLBACK_DESCRIPTION,
                price=candidate.job.price,
                files=[pdf_file] if pdf_file else [],
            ))

        return Customer(
            id=new_customer_id(),
            name=candidate.name,
            location=candidate.location,
            phone=candidate.phone,
            email=candidate.email,
            created_at=utc_timestamp(),
            photos=[],
            jobs=jobs,
        )
