"""Utility functions for customer records and invoice import."""

import os
import re
from datetime import date, datetime, timezone
from typing import Dict, Optional, Union


def storage_safe_name(name: str) -> str:
    """
    Reduce a file name to lowercase ASCII letters, digits and dots.

    Every other character becomes an underscore, so "Rechnung 01.PDF"
    is stored as "rechnung_01.pdf".
    """
    return re.sub(r"[^a-z0-9.]", "_", name, flags=re.IGNORECASE).lower()


def ensure_directory_exists(path: str) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to create
    """
    os.makedirs(path, exist_ok=True)


def get_pdf_files(folder_path: str) -> list[str]:
    """
    Get all PDF files from a folder.

    Args:
        folder_path: Path to the folder to scan

    Returns:
        List of paths to PDF files, sorted by name
    """
    if not os.path.isdir(folder_path):
        return []

    return [
        os.path.join(folder_path, filename)
        for filename in sorted(os.listdir(folder_path))
        if filename.lower().endswith(".pdf")
    ]


def get_file_basename(file_path: str) -> str:
    """Get the basename of a file path, accepting both separator styles."""
    return re.split(r"[\\/]", file_path)[-1]


def utc_timestamp() -> str:
    """Current time as stored in records, e.g. "2026-01-09T10:00:00.000Z"."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_datetime(value: str) -> Optional[datetime]:
    """
    Parse an ISO timestamp, accepting a trailing "Z" for UTC.

    Naive values are taken as local time. The result is always
    timezone-aware, so old and new timestamps compare correctly.

    Returns:
        Aware datetime, or None for missing/invalid input
    """
    if not value:
        return None

    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    return parsed.astimezone()


def format_date_german(value: Union[str, date, None]) -> str:
    """
    Format a date as German short date (dd.mm.yy).

    Args:
        value: ISO date or timestamp string, date or datetime

    Returns:
        Formatted date, or an empty string for missing/invalid input
    """
    if not value:
        return ""

    if isinstance(value, str):
        value = parse_iso_datetime(value)
        if value is None:
            return ""

    return value.strftime("%d.%m.%y")


def format_price_german(price: Union[float, str, None]) -> str:
    """
    Format a price in German currency notation, e.g. "1.234,50 €".

    Args:
        price: Numeric price or numeric string

    Returns:
        Formatted price, or an empty string for missing/zero/invalid input
    """
    if not price:
        return ""

    try:
        amount = float(price)
    except (TypeError, ValueError):
        return ""

    # 1,234.50 -> 1.234,50
    formatted = f"{amount:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{formatted} €"


def parse_date_to_timestamp(date_str: str) -> int:
    """
    Parse an ISO (YYYY-MM-DD) or German (DD.MM.YYYY / DD.MM.YY) date.

    Args:
        date_str: Date string

    Returns:
        Milliseconds since the epoch (local time), 0 when unparseable
    """
    if not date_str:
        return 0

    try:
        if "-" in date_str:
            parts = date_str.split("-")
            if len(parts) == 3:
                year, month, day = (int(p) for p in parts)
                return int(datetime(year, month, day).timestamp() * 1000)

        if "." in date_str:
            parts = date_str.split(".")
            if len(parts) == 3:
                day, month, year = (int(p) for p in parts)
                if year < 100:
                    year += 2000
                return int(datetime(year, month, day).timestamp() * 1000)
    except ValueError:
        return 0

    return 0


def get_year_from_date(date_str: str) -> Optional[int]:
    """
    Year of an ISO (YYYY-MM-DD) or German (DD.MM.YYYY / DD.MM.YY) date.

    Two-digit years are taken as 20xx. Returns None when no year is found.
    """
    if not date_str:
        return None

    try:
        if "-" in date_str:
            return int(date_str.split("-")[0])

        if "." in date_str:
            parts = date_str.split(".")
            if len(parts) == 3:
                year = int(parts[2])
                return year + 2000 if year < 100 else year
    except ValueError:
        return None

    return None


def get_job_years(jobs) -> set[int]:
    """Years in which the given jobs took place."""
    return {year for year in (get_year_from_date(job.date) for job in jobs) if year}


def truncate_filename(filename: str, max_length: int = 20) -> str:
    """Shorten a file name for display while keeping its extension."""
    if not filename or len(filename) <= max_length:
        return filename

    stem, _, ext = filename.rpartition(".")
    truncate_length = max_length - len(ext) - 4  # "..." and "."

    if not stem or truncate_length < 1:
        return f"...{filename[-max_length:]}"

    return f"{stem[:truncate_length]}...{ext}"


def detect_file_type(filename: str, mime_type: str = "") -> Dict[str, bool]:
    """
    Classify an attached file by name or MIME type.

    Returns:
        Dictionary with the flags is_image, is_pdf and is_word
    """
    name = filename.lower()
    mime_type = mime_type.lower()

    return {
        "is_image": mime_type.startswith("image/")
        or bool(re.search(r"\.(jpg|jpeg|png|gif|webp)$", name)),
        "is_pdf": "pdf" in mime_type or name.endswith(".pdf"),
        "is_word": "word" in mime_type or bool(re.search(r"\.(doc|docx)$", name)),
    }
