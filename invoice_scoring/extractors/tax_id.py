"""
Tax ID Extraction Module.

Finds a vendor tax/VAT registration number in raw OCR text. The pipeline
accepts any callable with the same signature, so this heuristic can be
swapped for a country-specific one.

Author: ML Engineering Team
"""

import re
from re import Pattern
from typing import List

from invoice_scoring.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Identifiers must contain at least one digit so labels like "Reg" are skipped
_IDENTIFIER = r'([A-Z0-9-]*\d[A-Z0-9-]*)'

TAX_ID_PATTERNS: List[Pattern] = [
    re.compile(
        r'\b(?:Tax\s+ID|VAT|GST|EIN|TIN)\s*(?:#|Number|No\.?)?\s*[:.]?\s*' + _IDENTIFIER,
        re.IGNORECASE
    ),
    re.compile(
        r'\b(?:Tax|VAT|GST|EIN|TIN)\s*(?:Registration|Reg\.?)\s*(?:#|Number|No\.?)?\s*[:.]?\s*'
        + _IDENTIFIER,
        re.IGNORECASE
    ),
]


class TaxIdExtractor:
    """
    Regex-based vendor tax ID extractor.

    Example:
        >>> TaxIdExtractor()("VAT No: DE123456789")
        'DE123456789'
    """

    def __init__(self, patterns: List[Pattern] = None) -> None:
        self.patterns = patterns or TAX_ID_PATTERNS

    def __call__(self, text: str) -> str:
        return self.extract(text)

    def extract(self, text: str) -> str:
        """
        Extract the first tax ID found in text.

        Args:
            text: Raw OCR text.

        Returns:
            Upper-cased tax ID, or an empty string when none is found.
        """
        if not text:
            return ""

        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                tax_id = match.group(1).strip().upper()
                logger.debug(f"Found vendor tax ID '{tax_id}' with pattern: {pattern.pattern}")
                return tax_id
        return ""
