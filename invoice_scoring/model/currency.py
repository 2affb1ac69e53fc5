"""
Currency Precision Module.

Maps currency symbols to ISO-4217 codes and codes to their canonical
number of decimal places.

Author: ML Engineering Team
"""

import re
from typing import Dict, Optional

from invoice_scoring.config import get_config
from invoice_scoring.utils.exceptions import UnsupportedCurrencyError

# Symbols printed on invoices, as reported by the OCR service
CURRENCY_SYMBOLS: Dict[str, str] = {
    '$': 'USD',
    '€': 'EUR',
    '£': 'GBP',
    '¥': 'JPY',
    'د.إ': 'AED',
    'ر.ق': 'QAR',
    'د.ك': 'KWD',
    'د.ب': 'BHD',
    'ر.ع': 'OMR',
}

CURRENCY_DECIMALS: Dict[str, int] = {
    'JPY': 0,
    'BHD': 3,
    'KWD': 3,
    'OMR': 3,
}

DEFAULT_DECIMALS = 2

_ISO_CODE = re.compile(r'^[A-Z]{3}$')


def parse_currency(value: Optional[str]) -> Optional[str]:
    """
    Resolve a currency symbol or code to its ISO-4217 code.

    Args:
        value: Raw currency value ("$", "usd", " QAR ").

    Returns:
        Upper-case ISO code, or None when no currency was given.

    Raises:
        UnsupportedCurrencyError: If the value is neither a known symbol
            nor a three-letter code.

    Example:
        >>> parse_currency("€")
        'EUR'
        >>> parse_currency("qar")
        'QAR'
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    if text in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[text]

    code = text.upper()
    if not _ISO_CODE.match(code):
        raise UnsupportedCurrencyError(text)
    return code


def currency_decimals(currency: Optional[str]) -> int:
    """
    Get the canonical number of decimal places for a currency.

    Args:
        currency: Currency symbol or code, may be None.

    Returns:
        0 for JPY, 3 for BHD/KWD/OMR, the configured default otherwise.
    """
    default = get_config("currency.default_decimals", DEFAULT_DECIMALS)
    code = parse_currency(currency)
    if code is None:
        return default

    table = get_config("currency.decimals", CURRENCY_DECIMALS) or CURRENCY_DECIMALS
    return int(table.get(code, default))
