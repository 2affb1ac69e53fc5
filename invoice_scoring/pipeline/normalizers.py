"""
Data Normalizers Module.

This module provides the normalization used by the pipeline's first
stage:
    - Invoice numbers and company names
    - Line item descriptions
    - OCR year misreads on dates
    - Currency/amount values

Author: ML Engineering Team
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from invoice_scoring.utils.helpers import collapse_whitespace, round_decimal, to_decimal
from invoice_scoring.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class TextNormalizer:
    """
    Canonicalizes free-text fields.

    Example:
        >>> normalizer = TextNormalizer()
        >>> normalizer.normalize_invoice_number("INV# 00123-A")
        '00123-A'
        >>> normalizer.normalize_company_name("Acme   Widgets, Inc.")
        'Acme Widgets'
    """

    # Leading labels OCR picks up with the number; a token must not run
    # into another letter, so "NOV-12" keeps its "NO"
    INVOICE_PREFIX = re.compile(
        r'^(?:(?:INVOICE|INV|NUM|NO|#)(?![A-Z])\s*[:.\-]?\s*)+',
        re.IGNORECASE
    )
    INVOICE_NUMBER_NOISE = re.compile(r'[^\w-]')

    LEGAL_SUFFIX = re.compile(
        r',?\s+(?:LLC|LTD|INC|CORP|CO|COMPANY|CORPORATION)\.?$',
        re.IGNORECASE
    )

    DESCRIPTION_SUFFIX = re.compile(r'\s*\b(?:per unit|each)\.?$', re.IGNORECASE)

    def normalize_invoice_number(self, invoice_number: Optional[Any]) -> Optional[str]:
        """
        Strip label prefixes and every character that is not a word
        character or a hyphen.

        Args:
            invoice_number: Raw invoice number.

        Returns:
            Cleaned invoice number, or None if nothing remains.
        """
        if not invoice_number:
            return None

        cleaned = self.INVOICE_PREFIX.sub('', str(invoice_number).strip())
        cleaned = self.INVOICE_NUMBER_NOISE.sub('', cleaned)
        return cleaned or None

    def normalize_company_name(self, name: Optional[Any]) -> Optional[str]:
        """
        Remove trailing legal-entity suffixes and extra whitespace.

        Args:
            name: Raw vendor or customer name.

        Returns:
            Cleaned name, or None if nothing remains.
        """
        if not name:
            return None

        name = collapse_whitespace(str(name))
        stripped = self.LEGAL_SUFFIX.sub('', name)
        while stripped != name:
            name = stripped
            stripped = self.LEGAL_SUFFIX.sub('', name)

        return name.strip() or None

    def clean_description(self, description: Optional[str]) -> str:
        """
        Clean a line item description.

        Drops a trailing "per unit" or "each" and collapses whitespace.

        Args:
            description: Raw description.

        Returns:
            Cleaned description (empty string for empty input).
        """
        if not description:
            return ""

        description = self.DESCRIPTION_SUFFIX.sub('', description.strip())
        return collapse_whitespace(description)


class DateNormalizer:
    """
    Corrects dates the OCR engine placed in the future.

    A date later than today is taken to be a misread year and is moved
    back exactly one year; it is never rejected.

    Example:
        >>> DateNormalizer().normalize(date(2031, 5, 1), today=date(2030, 1, 1))
        datetime.date(2030, 5, 1)
    """

    def normalize(self, value: Optional[date], today: date) -> Optional[date]:
        """
        Shift a future date back one year.

        Args:
            value: Date to check, may be None.
            today: Current UTC date.

        Returns:
            The date, moved back a year if it was after today.
        """
        if value is None:
            return None

        if value > today:
            corrected = value - relativedelta(years=1)
            logger.debug(f"Date {value} is in the future, assuming year misread: {corrected}")
            return corrected
        return value


class AmountNormalizer:
    """
    Normalizes currency/amount values to Decimal.

    Accepts numbers as well as OCR strings with currency symbols,
    thousand separators and European decimal commas.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("$1,234.567")
        Decimal('1234.57')
        >>> normalizer.normalize("€ 1.234,56")
        Decimal('1234.56')
    """

    # Currency symbols and codes to remove
    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '₿', '฿', '₫', '₴', '₦']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD', 'CNY', 'RUB',
                      'AED', 'QAR', 'SAR', 'KWD', 'BHD', 'OMR']

    def __init__(self, places: int = 2) -> None:
        self.places = places

    def normalize(self, amount: Any, places: Optional[int] = None) -> Optional[Decimal]:
        """
        Parse an amount and round it to a fixed number of decimal places.

        Args:
            amount: Decimal, int, float or string amount.
            places: Decimal places to keep; defaults to the configured
                places.

        Returns:
            Rounded Decimal, or None if the value cannot be parsed or is
            too large to hold at that precision.
        """
        value = self.parse(amount)
        try:
            return round_decimal(value, self.places if places is None else places)
        except InvalidOperation:
            logger.debug(f"Amount out of range: {amount}")
            return None

    def parse(self, amount: Any) -> Optional[Decimal]:
        """
        Parse an amount without rounding.

        Args:
            amount: Decimal, int, float or string amount.

        Returns:
            Decimal value or None.
        """
        if amount is None:
            return None
        if not isinstance(amount, str):
            return to_decimal(amount)

        cleaned = self._clean_amount_string(amount)
        if not cleaned:
            return None

        cleaned = self._handle_european_format(cleaned)
        cleaned = cleaned.replace(',', '')

        value = to_decimal(cleaned)
        if value is None:
            logger.debug(f"Could not parse amount: {amount}")
        return value

    def _clean_amount_string(self, amount_str: str) -> str:
        """
        Strip currency symbols, codes and anything that is not part of a
        number.
        """
        amount_str = ' '.join(amount_str.split())

        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        for code in self.CURRENCY_CODES:
            amount_str = re.sub(rf'\b{code}\b', '', amount_str, flags=re.IGNORECASE)

        # Keep only digits, comma, dot, and minus
        amount_str = re.sub(r'[^\d,.\-]', '', amount_str)

        return amount_str.strip()

    def _handle_european_format(self, amount_str: str) -> str:
        """
        Convert European format (comma decimal) to US format (dot decimal).

        A single comma after the last dot, followed by at most two digits,
        is taken as the decimal separator.
        """
        if amount_str.count(',') == 1:
            comma_pos = amount_str.rfind(',')
            dot_pos = amount_str.rfind('.')

            if comma_pos > dot_pos:
                after_comma = amount_str[comma_pos + 1:]
                if len(after_comma) <= 2 and after_comma.isdigit():
                    amount_str = amount_str.replace('.', '')
                    amount_str = amount_str.replace(',', '.')

        return amount_str
