"""Customer Records - local customer manager with invoice PDF import."""

__version__ = "0.1.0"
__author__ = "Customer Records Team"

from .models import CustomerCandidate, JobCandidate, Customer, Job
from .extractor import extract_customer, extract_job, InvoiceTextExtractor
from .store import CustomerStore

__all__ = [
    "CustomerCandidate",
    "JobCandidate",
    "Customer",
    "Job",
    "extract_customer",
    "extract_job",
    "InvoiceTextExtractor",
    "CustomerStore",
]
