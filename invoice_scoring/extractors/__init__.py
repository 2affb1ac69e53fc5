from .date_extractor import DateExtractor, DATE_PATTERNS, INVOICE_DATE_CONTEXT, DUE_DATE_CONTEXT
from .tax_id import TaxIdExtractor

__all__ = [
    "DateExtractor",
    "DATE_PATTERNS",
    "INVOICE_DATE_CONTEXT",
    "DUE_DATE_CONTEXT",
    "TaxIdExtractor",
]
