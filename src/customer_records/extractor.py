"""
Invoice text extraction.

Turns the linear text dump of a supplier invoice into a customer candidate
and a job candidate. The heuristics are tied to one known document layout:

1. SENDER: company, address, phone, e-mail, bank details
2. BODY: salutation, line items, Zwischensumme, MwSt, Gesamtbetrag
3. RECIPIENT (the customer): company, street, postal code and city,
   Ansprechpartner
4. FOOTER: sender repeated, "Rechnung Nr", ...

Line order is the only structural signal; there are no coordinates or font
metadata. Every function here is total: a missing pattern leaves the field
at its default.
"""

import re
from typing import Optional

from .models import CustomerCandidate, JobCandidate


FALLBACK_DESCRIPTION = "Importierte Rechnung"

MAX_ADDRESS_LINES = 4


def split_lines(text: str) -> list[str]:
    """Split text into trimmed, non-empty lines, keeping their order."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class InvoiceTextExtractor:
    """
    Line-pattern extractor for one invoice layout.

    The marker and pattern tables are class attributes; another layout
    would be a subclass overriding them.
    """

    # Recipient block starts after the first line with a primary marker,
    # or failing that after the first line with a fallback marker
    START_MARKERS = ("Gesamtbetrag",)
    START_FALLBACK_MARKERS = ("MwSt",)

    # Footer / sender repeated
    END_MARKERS = ("KD Garten", "Inh.:", "Rechnung Nr")

    # Stray totals bleeding into the recipient block
    AMOUNT_LINE_PATTERNS = [
        re.compile(r"^\d+[.,]?\d*\s*€"),
        re.compile(r"^€"),
    ]

    # Longest alternative first so "Telefon:" is stripped as a whole
    PHONE_PATTERN = re.compile(r"^(Telefon|Tel|Mobil)[:.]?\s*", re.IGNORECASE)
    EMAIL_PATTERN = re.compile(r"^(E-?Mail)[:.]?\s*", re.IGNORECASE)
    CONTACT_PATTERN = re.compile(r"^Ansprechpartner[:.]?\s*", re.IGNORECASE)

    INVOICE_NUMBER_PATTERN = re.compile(r"Rechnung\s*Nr\.?:?\s*(\S+)", re.IGNORECASE)
    DATE_PATTERN = re.compile(r"Datum:?\s*(\d{1,2}\.\d{1,2}\.\d{4})", re.IGNORECASE)
    TOTAL_PATTERN = re.compile(r"Gesamtbetrag\s*([\d.,]+)\s*€", re.IGNORECASE)

    LINE_ITEMS_END_MARKERS = ("Zwischensumme", "MwSt", "Gesamtbetrag")

    # Numbering, quantities and prices inside the line-item table
    LINE_ITEM_NOISE_PATTERNS = [
        re.compile(r"^\d+\.$"),
        re.compile(r"^Ca\.\s+\d+"),
        re.compile(r"^\d+[.,]\d+\s*€"),
        re.compile(r"^[\d.,]+\s*€$"),
    ]

    MIN_LINE_ITEM_LENGTH = 3

    def extract_customer(self, text: str) -> CustomerCandidate:
        """
        Extract the recipient of the invoice.

        Args:
            text: Linear text of the invoice

        Returns:
            Customer candidate; all fields empty when no recipient block
            could be located
        """
        lines = split_lines(text)
        start = self._find_recipient_start(lines)
        end = self._find_recipient_end(lines, start)

        phone = ""
        email = ""
        contact_person = ""
        address_lines: list[str] = []

        for line in lines[start + 1:end]:
            if any(p.match(line) for p in self.AMOUNT_LINE_PATTERNS):
                continue

            if self.PHONE_PATTERN.match(line):
                phone = self.PHONE_PATTERN.sub("", line, count=1).strip()
                continue

            if self.EMAIL_PATTERN.match(line):
                email = self.EMAIL_PATTERN.sub("", line, count=1).strip()
                continue

            if self.CONTACT_PATTERN.match(line):
                contact_person = self.CONTACT_PATTERN.sub("", line, count=1).strip()
                continue

            # The postal code line is kept like any other address line;
            # an Ansprechpartner may still follow it
            if len(address_lines) < MAX_ADDRESS_LINES:
                address_lines.append(line)

        name = address_lines[0] if address_lines else ""
        location = ", ".join(address_lines[1:])

        if contact_person:
            name = f"{name} ({contact_person})"

        return CustomerCandidate(name=name, location=location, phone=phone, email=email)

    def extract_job(self, text: str) -> JobCandidate:
        """
        Extract invoice number, date, total and line items.

        The first occurrence of number, date and total wins.

        Args:
            text: Linear text of the invoice

        Returns:
            Job candidate with a non-empty description
        """
        invoice_number: Optional[str] = None
        invoice_date: Optional[str] = None
        price: Optional[float] = None
        price_found = False
        line_items: list[str] = []
        in_line_items = False

        for line in split_lines(text):
            if invoice_number is None:
                match = self.INVOICE_NUMBER_PATTERN.search(line)
                if match:
                    invoice_number = match.group(1)

            if invoice_date is None:
                match = self.DATE_PATTERN.search(line)
                if match:
                    invoice_date = self._to_iso_date(match.group(1))

            if not price_found:
                match = self.TOTAL_PATTERN.search(line)
                if match:
                    price_found = True
                    price = self._parse_amount(match.group(1))

            if self._is_line_items_header(line):
                in_line_items = True
                continue

            if in_line_items and any(m in line for m in self.LINE_ITEMS_END_MARKERS):
                in_line_items = False
                continue

            if in_line_items and self._is_line_item(line):
                line_items.append(line)

        if line_items:
            description = "\n".join(line_items)
        elif invoice_number:
            description = f"Rechnung {invoice_number}"
        else:
            description = FALLBACK_DESCRIPTION

        return JobCandidate(
            invoice_number=invoice_number or "",
            date=invoice_date or "",
            price=price,
            description=description,
        )

    def _find_recipient_start(self, lines: list[str]) -> int:
        """Index of the start anchor, or the last index when there is none."""
        for markers in (self.START_MARKERS, self.START_FALLBACK_MARKERS):
            for i, line in enumerate(lines):
                if any(marker in line for marker in markers):
                    return i
        # Nothing follows the last line, so no recipient lines are collected
        return len(lines) - 1

    def _find_recipient_end(self, lines: list[str], start: int) -> int:
        for i in range(start + 1, len(lines)):
            if any(marker in lines[i] for marker in self.END_MARKERS):
                return i
        return len(lines)

    @staticmethod
    def _is_line_items_header(line: str) -> bool:
        return "Pos Bezeichnung" in line or ("Pos." in line and "Bezeichnung" in line)

    def _is_line_item(self, line: str) -> bool:
        if any(p.match(line) for p in self.LINE_ITEM_NOISE_PATTERNS):
            return False
        return len(line) >= self.MIN_LINE_ITEM_LENGTH

    @staticmethod
    def _to_iso_date(german_date: str) -> str:
        """DD.MM.YYYY -> YYYY-MM-DD, zero-padded."""
        day, month, year = german_date.split(".")
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    @staticmethod
    def _parse_amount(amount: str) -> Optional[float]:
        """Parse a German amount like "1.234,50"; None if malformed."""
        normalized = amount.replace(".", "").replace(",", ".", 1)
        try:
            return float(normalized)
        except ValueError:
            return None


_default_extractor = InvoiceTextExtractor()


def extract_customer(text: str) -> CustomerCandidate:
    """Extract the customer candidate using the default layout."""
    return _default_extractor.extract_customer(text)


def extract_job(text: str) -> JobCandidate:
    """Extract the job candidate using the default layout."""
    return _default_extractor.extract_job(text)
