"""
Data Model Module for the Invoice Scoring Pipeline.

This module provides the records that flow through the pipeline:
    - ExtractionResult: one invoice document's fields and scores
    - LineItem: a single invoice line
    - Currency precision helpers

Author: ML Engineering Team
"""

from .extraction_result import ExtractionResult, LineItem, SCORED_FIELDS, MONEY_FIELDS
from .currency import parse_currency, currency_decimals

__all__ = [
    'ExtractionResult',
    'LineItem',
    'SCORED_FIELDS',
    'MONEY_FIELDS',
    'parse_currency',
    'currency_decimals',
]
