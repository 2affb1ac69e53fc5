"""
Date Extraction Module.

This module finds a calendar date in free OCR text. It is used by the
pipeline to fill invoice and due dates the OCR model did not return.

Resolution order (first success wins):
    1. Contextual search: only text within a window around a hint such
       as "due date|payment due" is searched.
    2. Ordered pattern scan over the whole text. Unambiguous formats
       come before day/month-ambiguous ones, so list order is the
       tie-break policy.
    3. Natural language: "today", "3 days ago", "end of month", ...

Every candidate goes through a plausibility filter on its year; an
implausible date counts as no match.

Author: ML Engineering Team
"""

import re
from datetime import date, datetime, timedelta
from re import Match, Pattern
from typing import Callable, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from invoice_scoring.config import get_config
from invoice_scoring.utils.helpers import utc_now
from invoice_scoring.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

_EN_MONTHS = {
    '%B': ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    '%b': ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep",
           "Oct", "Nov", "Dec"],
}

# Month names per fallback locale, tried after the C locale fails
LOCALE_MONTHS: Dict[str, Dict[str, List[str]]] = {
    'en_US': _EN_MONTHS,
    'en_GB': _EN_MONTHS,
    'fr_FR': {
        '%B': ["janvier", "février", "mars", "avril", "mai", "juin", "juillet",
               "août", "septembre", "octobre", "novembre", "décembre"],
        '%b': ["janv", "févr", "mars", "avr", "mai", "juin", "juil", "août",
               "sept", "oct", "nov", "déc"],
    },
    'de_DE': {
        '%B': ["Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
               "August", "September", "Oktober", "November", "Dezember"],
        '%b': ["Jan", "Feb", "Mär", "Apr", "Mai", "Jun", "Jul", "Aug", "Sep",
               "Okt", "Nov", "Dez"],
    },
    'es_ES': {
        '%B': ["enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
               "agosto", "septiembre", "octubre", "noviembre", "diciembre"],
        '%b': ["ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep",
               "oct", "nov", "dic"],
    },
}


def _month_alternation(directive: str) -> str:
    names = []
    for months in LOCALE_MONTHS.values():
        for name in months[directive]:
            if name not in names:
                names.append(name)
    return "|".join(re.escape(name) for name in names)


# Month names of every fallback locale are recognised; parsing decides
# which locale they belong to
_MONTHS = _month_alternation('%B')
_MONTHS_ABBR = _month_alternation('%b')

# Ordered (regex, strptime format) pairs. Order is significant.
# Commas are removed from a candidate before parsing, so the month-name
# formats accept "March 15, 2024" and "March 15 2024" alike.
DATE_PATTERNS: List[Tuple[Pattern, str]] = [
    (re.compile(r'\b\d{4}-\d{2}-\d{2}\b', re.IGNORECASE), '%Y-%m-%d'),
    (re.compile(r'\b\d{2}/\d{2}/\d{4}\b', re.IGNORECASE), '%d/%m/%Y'),
    (re.compile(r'\b\d{2}-\d{2}-\d{4}\b', re.IGNORECASE), '%d-%m-%Y'),
    (re.compile(r'\b\d{2}\.\d{2}\.\d{4}\b', re.IGNORECASE), '%d.%m.%Y'),
    (re.compile(rf'\b\d{{1,2}}\s+(?:{_MONTHS})\s+\d{{4}}\b', re.IGNORECASE), '%d %B %Y'),
    (re.compile(rf'\b(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}\b', re.IGNORECASE), '%B %d %Y'),
    (re.compile(rf'\b(?:{_MONTHS_ABBR})\s+\d{{1,2}},?\s+\d{{4}}\b', re.IGNORECASE), '%b %d %Y'),
    (re.compile(r'\b\d{2}/\d{2}/\d{2}\b', re.IGNORECASE), '%d/%m/%y'),
    (re.compile(r'\b\d{2}-\d{2}-\d{2}\b', re.IGNORECASE), '%d-%m-%y'),
    (re.compile(r'\b\d{8}\b', re.IGNORECASE), '%Y%m%d'),
    (re.compile(r'\b\d{1,2}/\d{1,2}/\d{4}\b', re.IGNORECASE), '%m/%d/%Y'),
    (re.compile(r'\b\d{4}/\d{1,2}/\d{1,2}\b', re.IGNORECASE), '%Y/%m/%d'),
]

DEFAULT_LOCALES = ['en_US', 'en_GB', 'fr_FR', 'de_DE', 'es_ES']

INVOICE_DATE_CONTEXT = "invoice date|date|issued|created"
DUE_DATE_CONTEXT = "due date|payment due|pay by|expires|valid until"


def _relative_day(match: Match, today: date) -> date:
    offsets = {'today': 0, 'yesterday': -1, 'tomorrow': 1}
    return today + timedelta(days=offsets[match.group(0).lower()])


def _days_ago(match: Match, today: date) -> date:
    return today - timedelta(days=int(match.group(1)))


def _relative_month(match: Match, today: date) -> date:
    step = -1 if match.group(0).lower().startswith('last') else 1
    return today + relativedelta(months=step)


def _month_boundary(match: Match, today: date) -> date:
    if match.group(0).lower().startswith('end'):
        return today + relativedelta(day=31)
    return today.replace(day=1)


NATURAL_LANGUAGE_PATTERNS: List[Tuple[Pattern, Callable[[Match, date], date]]] = [
    (re.compile(r'\b(?:today|yesterday|tomorrow)\b', re.IGNORECASE), _relative_day),
    (re.compile(r'\b(\d+)\s+days?\s+ago\b', re.IGNORECASE), _days_ago),
    (re.compile(r'\b(?:last|next)\s+month\b', re.IGNORECASE), _relative_month),
    (re.compile(r'\b(?:end|beginning)\s+of\s+month\b', re.IGNORECASE), _month_boundary),
]


class DateExtractor:
    """
    Extracts a best-guess date from free text.

    Stateless apart from its settings; one instance can serve any number
    of documents, including from several threads.

    Attributes:
        clock: Callable returning the current aware UTC datetime
        fallback_locales: Locales tried after the C locale
        context_window: Characters searched on each side of a hint
        years_back: Oldest plausible year, relative to the current year
        years_ahead: Latest plausible year, relative to the current year

    Example:
        >>> extractor = DateExtractor()
        >>> extractor.extract("Invoice Date: 2024-03-15", INVOICE_DATE_CONTEXT)
        datetime.date(2024, 3, 15)
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        fallback_locales: Optional[List[str]] = None,
        context_window: Optional[int] = None,
        years_back: Optional[int] = None,
        years_ahead: Optional[int] = None
    ) -> None:
        self.clock = clock or utc_now
        self.fallback_locales = fallback_locales or get_config(
            "date_extraction.fallback_locales", DEFAULT_LOCALES
        )
        self.context_window = context_window if context_window is not None else get_config(
            "date_extraction.context_window", 50
        )
        self.years_back = years_back if years_back is not None else get_config(
            "date_extraction.plausibility.years_back", 10
        )
        self.years_ahead = years_ahead if years_ahead is not None else get_config(
            "date_extraction.plausibility.years_ahead", 1
        )

        logger.debug(
            f"DateExtractor initialized (window: {self.context_window}, "
            f"locales: {self.fallback_locales})"
        )

    def extract(self, text: Optional[str], context_hint: str = "") -> Optional[date]:
        """
        Extract a date from text.

        Args:
            text: Free OCR text.
            context_hint: Regex alternation of labels to search near,
                e.g. "due date|payment due". Empty to skip tier 1.

        Returns:
            The first plausible date found, or None.
        """
        if not text:
            return None

        today = self.clock().date()
        logger.debug(f"Extracting date with context: '{context_hint}'")

        if context_hint:
            found = self._extract_near_context(text, context_hint, today)
            if found:
                logger.info(f"Found date {found} near context '{context_hint}'")
                return found

        found = self._scan_patterns(text, today)
        if found:
            logger.info(f"Found date {found} by pattern scan")
            return found

        found = self._extract_natural_language(text, today)
        if found:
            logger.info(f"Found date {found} from natural language")
            return found

        logger.warning("No valid date found in text")
        return None

    def extract_invoice_date(self, text: Optional[str]) -> Optional[date]:
        """Extract the issue date, searching near invoice-date labels first."""
        hint = get_config("date_extraction.context_hints.invoice_date", INVOICE_DATE_CONTEXT)
        return self.extract(text, hint)

    def extract_due_date(self, text: Optional[str]) -> Optional[date]:
        """Extract the due date, searching near due-date labels first."""
        hint = get_config("date_extraction.context_hints.due_date", DUE_DATE_CONTEXT)
        return self.extract(text, hint)

    def is_plausible(self, value: date, today: Optional[date] = None) -> bool:
        """
        Check that a date's year is within the plausible window.

        Args:
            value: Candidate date.
            today: Reference date; defaults to the clock's current date.

        Returns:
            True if the year is at most years_back before and years_ahead
            after the current year.
        """
        current_year = (today or self.clock().date()).year
        return current_year - self.years_back <= value.year <= current_year + self.years_ahead

    def _extract_near_context(self, text: str, context_hint: str, today: date) -> Optional[date]:
        """Search windows of text around each occurrence of the hint."""
        window = self.context_window
        context_pattern = re.compile(
            rf'(?:(?:{context_hint})[^\n]{{0,{window}}})|(?:[^\n]{{0,{window}}}(?:{context_hint}))',
            re.IGNORECASE
        )

        for context_match in context_pattern.finditer(text):
            found = self._scan_patterns(context_match.group(0), today)
            if found:
                return found
        return None

    def _scan_patterns(self, text: str, today: date) -> Optional[date]:
        """Return the first plausible date in pattern-list order."""
        for pattern, fmt in DATE_PATTERNS:
            for match in pattern.finditer(text):
                parsed = self._parse(match.group(0), fmt, today)
                if parsed:
                    logger.debug(f"Parsed '{match.group(0)}' with format '{fmt}'")
                    return parsed
        return None

    def _parse(self, candidate: str, fmt: str, today: date) -> Optional[date]:
        """
        Parse a candidate string with the C locale, then the fallback locales.

        The first locale that parses decides: an implausible result is
        rejected without trying further locales.
        """
        candidate = candidate.replace(',', '')

        parsed = self._parse_invariant(candidate, fmt)
        if parsed is None:
            for locale_name in self.fallback_locales:
                parsed = self._parse_localized(candidate, fmt, locale_name)
                if parsed is not None:
                    break

        if parsed is None:
            return None

        if not self.is_plausible(parsed, today):
            logger.debug(f"Rejected implausible date {parsed} from '{candidate}'")
            return None
        return parsed

    @staticmethod
    def _parse_invariant(candidate: str, fmt: str) -> Optional[date]:
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            return None

    @staticmethod
    def _parse_localized(candidate: str, fmt: str, locale_name: str) -> Optional[date]:
        """Swap a localized month name for its number and parse numerically."""
        months = LOCALE_MONTHS.get(locale_name)
        if months is None:
            return None

        for directive in ('%B', '%b'):
            if directive not in fmt:
                continue
            numeric_fmt = fmt.replace(directive, '%m')
            for number, name in enumerate(months[directive], start=1):
                name_pattern = re.compile(rf'\b{re.escape(name)}\b', re.IGNORECASE)
                if not name_pattern.search(candidate):
                    continue
                numeric = name_pattern.sub(str(number), candidate, count=1)
                try:
                    return datetime.strptime(numeric, numeric_fmt).date()
                except ValueError:
                    return None
        return None

    def _extract_natural_language(self, text: str, today: date) -> Optional[date]:
        """Resolve relative expressions against today's UTC date."""
        for pattern, resolve in NATURAL_LANGUAGE_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            try:
                resolved = resolve(match, today)
            except (OverflowError, ValueError):
                logger.debug(f"Could not resolve '{match.group(0)}'")
                continue
            if self.is_plausible(resolved, today):
                return resolved
            logger.debug(f"Rejected implausible date {resolved} from '{match.group(0)}'")
        return None
