"""Data models for customer records and invoice extraction."""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CustomerCandidate(BaseModel):
    """Customer data found in the recipient block of an invoice."""

    name: str = Field(
        "",
        description="Recipient name, optionally followed by the contact person in parentheses."
    )
    location: str = Field(
        "",
        description="Remaining address lines joined with ', '."
    )
    phone: str = Field("", description="Recipient phone number.")
    email: str = Field("", description="Recipient e-mail address.")


class JobCandidate(BaseModel):
    """Invoice metadata used to pre-fill a job entry."""

    invoice_number: str = Field("", description="Invoice number as printed on the document.")
    date: str = Field("", description="Invoice date in YYYY-MM-DD format, empty if not found.")
    price: Optional[float] = Field(None, description="Total amount, None if missing or unparseable.")
    description: str = Field(
        "Importierte Rechnung",
        description="Line items joined with newlines, or a synthesized fallback."
    )


class ConversionResult(BaseModel):
    """Outcome of converting one PDF file to text."""

    success: bool
    text: str = ""
    error: str = ""


class ExtractionSuccess(BaseModel):
    """Extraction of one invoice file that could be converted to text."""

    success: Literal[True] = True
    customer: CustomerCandidate
    job: JobCandidate
    raw_text: str
    file_name: str
    file_path: str


class ExtractionFailure(BaseModel):
    """Extraction of one invoice file whose conversion to text failed."""

    success: Literal[False] = False
    error: str
    file_name: str
    file_path: str


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]


class ImportCandidate(BaseModel):
    """One row of the import preview."""

    name: str = ""
    location: str = ""
    phone: str = ""
    email: str = ""
    job: Optional[JobCandidate] = None
    file_name: str
    file_path: str
    error: Optional[str] = None
    is_duplicate: bool = False
    selected: bool = False

    @property
    def status(self) -> str:
        """Preview status label."""
        if self.error:
            return "Fehler"
        if self.is_duplicate:
            return "Duplikat"
        return "Neu"


class AttachedFile(BaseModel):
    """A file stored alongside a customer or job."""

    name: str
    url: str
    type: str = ""


class Job(BaseModel):
    """A job/order entry of a customer."""

    model_config = ConfigDict(populate_by_name=True)

    date: str = ""
    description: str = ""
    price: Optional[float] = None
    files: list[AttachedFile] = Field(default_factory=list)
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")
    pdf_label: Optional[str] = Field(None, alias="pdfLabel")

    def all_files(self) -> list[AttachedFile]:
        """Attached files, including a legacy single pdfUrl entry."""
        files = list(self.files)
        if self.pdf_url and not any(f.url == self.pdf_url for f in files):
            files.append(AttachedFile(
                name=self.pdf_label or "PDF Dokument",
                url=self.pdf_url,
                type="application/pdf",
            ))
        return files


class Customer(BaseModel):
    """A persisted customer record."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str = ""
    location: str = ""
    phone: str = ""
    email: str = ""
    created_at: str = Field("", alias="createdAt")
    photos: list[AttachedFile] = Field(default_factory=list)
    jobs: list[Job] = Field(default_factory=list)


class ImportReport(BaseModel):
    """Summary of an import run."""

    imported: list[Customer] = Field(default_factory=list)
    skipped_duplicates: int = 0
    failed: int = 0

    @property
    def message(self) -> str:
        """German summary as shown after an import."""
        count = len(self.imported)
        plural = "n" if count != 1 else ""
        if self.skipped_duplicates > 0:
            skip_plural = "e" if self.skipped_duplicates != 1 else ""
            return (
                f"{count} Kunde{plural} importiert, "
                f"{self.skipped_duplicates} Duplikat{skip_plural} übersprungen."
            )
        return f"{count} Kunde{plural} erfolgreich importiert!"
