"""
Pytest configuration and shared fixtures.
"""

import logging

import pytest
from pypdf import PdfWriter

from customer_records.models import ConversionResult
from customer_records.store import CustomerStore


class FakeConverter:
    """Converter returning prepared results by file path."""

    def __init__(self, results: dict[str, ConversionResult]):
        self.results = results
        self.calls: list[str] = []

    async def convert(self, file_path: str) -> ConversionResult:
        self.calls.append(file_path)
        return self.results[file_path]


@pytest.fixture
def store(tmp_path):
    """Customer store in a temporary data directory"""
    return CustomerStore(str(tmp_path / "data"))


@pytest.fixture
def blank_pdf(tmp_path):
    """One-page PDF without any text"""
    path = tmp_path / "blank.pdf"
    writer = PdfWriter()
    writer.add_blank_page(width=595, height=842)
    with open(path, "wb") as f:
        writer.write(f)
    return str(path)


@pytest.fixture
def fake_converter():
    """Factory for converters with prepared results"""
    return FakeConverter


@pytest.fixture
def restore_logging():
    """The CLI and the TUI reconfigure the root logger"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
