"""
Tests for the interactive import preview, driven through Textual's pilot.
"""

import asyncio

import pytest
from textual.widgets import SelectionList

from customer_records.importer import InvoiceImporter
from customer_records.models import ConversionResult, Customer
from customer_records.tui import InvoiceImportApp


pytestmark = pytest.mark.usefixtures("restore_logging")

INVOICE_TEXT = """Gesamtbetrag 53,55 €
Musterfirma GmbH
Musterstr. 1
12345 Musterstadt
KD Garten
"""

DUPLICATE_TEXT = """Gesamtbetrag 10,00 €
Zimmerei Holz
Waldweg 1
KD Garten
"""


@pytest.fixture
def invoice_folder(tmp_path):
    folder = tmp_path / "rechnungen"
    folder.mkdir()
    for name in ["a_neu.pdf", "b_duplikat.pdf", "c_kaputt.pdf"]:
        (folder / name).write_bytes(b"%PDF-1.4")
    return folder


@pytest.fixture
def importer(store, fake_converter, invoice_folder):
    store.save_customer(Customer(id="z1", name="Zimmerei Holz"))
    converter = fake_converter({
        str(invoice_folder / "a_neu.pdf"): ConversionResult(success=True, text=INVOICE_TEXT),
        str(invoice_folder / "b_duplikat.pdf"): ConversionResult(success=True, text=DUPLICATE_TEXT),
        str(invoice_folder / "c_kaputt.pdf"): ConversionResult(success=False, error="Text conversion timed out"),
    })
    return InvoiceImporter(store, converter)


async def press_and_wait(app, pilot, key):
    await pilot.press(key)
    await app.workers.wait_for_complete()
    await pilot.pause()


class TestInvoiceImportApp:

    def test_lists_pdf_files(self, invoice_folder, importer):
        async def scenario():
            app = InvoiceImportApp(str(invoice_folder), importer)
            async with app.run_test():
                return app.files_to_process, app.query_one(SelectionList).option_count

        files, option_count = asyncio.run(scenario())

        assert [f.rsplit("/", 1)[-1] for f in files] == ["a_neu.pdf", "b_duplikat.pdf", "c_kaputt.pdf"]
        assert option_count == 3

    def test_parse_then_import(self, invoice_folder, importer, store):
        async def scenario():
            app = InvoiceImportApp(str(invoice_folder), importer)
            async with app.run_test() as pilot:
                app.query_one(SelectionList).select_all()
                await press_and_wait(app, pilot, "p")
                statuses = [c.status for c in app.candidates]
                selected = [c.selected for c in app.candidates]

                await press_and_wait(app, pilot, "i")
                return statuses, selected, app.candidates

        statuses, selected, remaining = asyncio.run(scenario())

        assert statuses == ["Neu", "Duplikat", "Fehler"]
        assert selected == [True, False, False]
        assert remaining == []
        assert sorted(c.name for c in store.load_customers()) == ["Musterfirma GmbH", "Zimmerei Holz"]

    def test_import_needs_parsed_invoices(self, invoice_folder, importer, store):
        async def scenario():
            app = InvoiceImportApp(str(invoice_folder), importer)
            async with app.run_test() as pilot:
                await press_and_wait(app, pilot, "i")
                await press_and_wait(app, pilot, "p")
                return app.candidates, importer.converter.calls

        candidates, calls = asyncio.run(scenario())

        assert candidates == []
        assert calls == []
        assert [c.name for c in store.load_customers()] == ["Zimmerei Holz"]

    def test_missing_folder(self, tmp_path, importer):
        async def scenario():
            app = InvoiceImportApp(str(tmp_path / "nowhere"), importer)
            async with app.run_test():
                return app.files_to_process

        assert asyncio.run(scenario()) == []
