"""
Utility Module for the Invoice Scoring Pipeline.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exceptions
    - Decimal and text helpers
"""

from .logger import setup_logger, get_logger
from .helpers import (
    ensure_directory,
    utc_now,
    to_decimal,
    round_decimal,
    decimal_places,
    clamp01,
    collapse_whitespace,
)

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'utc_now',
    'to_decimal',
    'round_decimal',
    'decimal_places',
    'clamp01',
    'collapse_whitespace',
]
