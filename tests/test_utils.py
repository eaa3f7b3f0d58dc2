"""Unit tests for the utils module."""

from datetime import date, datetime, timedelta, timezone

import pytest

from customer_records.utils import (
    detect_file_type,
    format_date_german,
    format_price_german,
    get_file_basename,
    get_job_years,
    get_pdf_files,
    get_year_from_date,
    parse_date_to_timestamp,
    parse_iso_datetime,
    storage_safe_name,
    truncate_filename,
    utc_timestamp,
)
from customer_records.models import Job


class TestStorageSafeName:

    def test_replaces_everything_but_letters_digits_and_dots(self):
        assert storage_safe_name("Rechnung 01 (Kopie).PDF") == "rechnung_01__kopie_.pdf"

    def test_umlauts_are_replaced(self):
        assert storage_safe_name("Müller.pdf") == "m_ller.pdf"


class TestFileHelpers:

    def test_get_pdf_files_sorted_and_filtered(self, tmp_path):
        for name in ["b.pdf", "a.PDF", "notes.txt"]:
            (tmp_path / name).write_bytes(b"")

        files = get_pdf_files(str(tmp_path))

        assert [get_file_basename(f) for f in files] == ["a.PDF", "b.pdf"]

    def test_get_pdf_files_missing_folder(self, tmp_path):
        assert get_pdf_files(str(tmp_path / "missing")) == []

    @pytest.mark.parametrize("path", ["/tmp/x/rechnung.pdf", r"C:\Rechnungen\rechnung.pdf"])
    def test_get_file_basename(self, path):
        assert get_file_basename(path) == "rechnung.pdf"


class TestGermanFormatting:

    def test_format_date_from_iso_string(self):
        assert format_date_german("2026-01-09") == "09.01.26"

    def test_format_date_from_timestamp_string(self):
        assert format_date_german("2026-01-09T10:15:00") == "09.01.26"

    def test_format_date_from_utc_timestamp(self):
        assert format_date_german("2026-01-09T12:00:00.000Z") == "09.01.26"

    def test_format_date_from_date(self):
        assert format_date_german(date(2025, 12, 24)) == "24.12.25"

    @pytest.mark.parametrize("value", ["", None, "kein Datum"])
    def test_format_date_invalid(self, value):
        assert format_date_german(value) == ""

    @pytest.mark.parametrize("price,expected", [
        (1234.5, "1.234,50 €"),
        (45, "45,00 €"),
        ("19.99", "19,99 €"),
        (1234567.891, "1.234.567,89 €"),
    ])
    def test_format_price(self, price, expected):
        assert format_price_german(price) == expected

    @pytest.mark.parametrize("price", [None, 0, "", "abc"])
    def test_format_price_empty(self, price):
        assert format_price_german(price) == ""


class TestParseDateToTimestamp:

    def test_iso_and_german_dates_agree(self):
        expected = int(datetime(2026, 1, 9).timestamp() * 1000)

        assert parse_date_to_timestamp("2026-01-09") == expected
        assert parse_date_to_timestamp("09.01.2026") == expected
        assert parse_date_to_timestamp("09.01.26") == expected

    @pytest.mark.parametrize("value", ["", "gestern", "2026-13-40", "1.2"])
    def test_invalid_dates(self, value):
        assert parse_date_to_timestamp(value) == 0


class TestTimestamps:

    def test_utc_timestamp_format(self):
        value = utc_timestamp()

        assert value.endswith("Z")
        assert len(value) == len("2026-01-09T10:00:00.000Z")
        parsed = parse_iso_datetime(value)
        assert abs(parsed - datetime.now(timezone.utc)) < timedelta(minutes=1)

    def test_parse_utc_suffix(self):
        parsed = parse_iso_datetime("2026-01-09T10:00:00.000Z")

        assert parsed == datetime(2026, 1, 9, 10, tzinfo=timezone.utc)

    def test_offsets_compare_by_instant(self):
        utc = parse_iso_datetime("2026-01-09T10:00:00.000Z")
        cet = parse_iso_datetime("2026-01-09T10:30:00+01:00")

        assert cet < utc

    def test_naive_value_is_local_time(self):
        parsed = parse_iso_datetime("2026-01-09T10:00:00")

        assert parsed.tzinfo is not None
        assert parsed.replace(tzinfo=None) == datetime(2026, 1, 9, 10)

    @pytest.mark.parametrize("value", ["", "gestern", "2026-13-01T00:00:00Z"])
    def test_invalid(self, value):
        assert parse_iso_datetime(value) is None


class TestYears:

    @pytest.mark.parametrize("value,expected", [
        ("2026-01-09", 2026),
        ("09.01.2026", 2026),
        ("09.01.26", 2026),
        ("", None),
        ("Januar", None),
        ("09.01", None),
        ("xx.01.2026", 2026),
        ("09.01.abcd", None),
    ])
    def test_get_year_from_date(self, value, expected):
        assert get_year_from_date(value) == expected

    def test_get_job_years(self):
        jobs = [Job(date="2026-01-09"), Job(date="01.06.25"), Job(date="2026-03-02"), Job(date="")]

        assert get_job_years(jobs) == {2025, 2026}


class TestTruncateFilename:

    def test_short_name_unchanged(self):
        assert truncate_filename("rechnung.pdf") == "rechnung.pdf"

    def test_long_name_keeps_extension(self):
        assert truncate_filename("sehr_langer_dateiname_2026.pdf") == "sehr_langer_d...pdf"

    def test_tiny_limit(self):
        assert truncate_filename("abcdefgh.extension", max_length=5) == "...nsion"


class TestDetectFileType:

    def test_by_extension(self):
        assert detect_file_type("foto.JPG")["is_image"]
        assert detect_file_type("rechnung.pdf")["is_pdf"]
        assert detect_file_type("angebot.docx")["is_word"]

    def test_by_mime_type(self):
        kind = detect_file_type("upload", "application/pdf")

        assert kind == {"is_image": False, "is_pdf": True, "is_word": False}
