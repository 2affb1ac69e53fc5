"""
Invoice Scoring Pipeline.

Turns raw OCR invoice extractions into normalized, validated and
confidence-scored invoice records.

Example:
    >>> from invoice_scoring import ExtractionPipeline, ExtractionResult
    >>> scored = ExtractionPipeline().process(ExtractionResult(invoice_number="INV# 42"))
    >>> scored.invoice_number
    '42'
"""

__version__ = "1.0.0"

from .model import ExtractionResult, LineItem
from .pipeline import ExtractionPipeline, ReviewRouter

__all__ = [
    'ExtractionPipeline',
    'ExtractionResult',
    'LineItem',
    'ReviewRouter',
    '__version__',
]
