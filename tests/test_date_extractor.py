"""
Unit tests for the date_extractor module.

Covers the three resolution tiers, pattern priority, localized month
names and the plausibility window.
"""

from datetime import date, datetime, timezone

import pytest

from invoice_scoring.extractors import (
    DATE_PATTERNS,
    DUE_DATE_CONTEXT,
    INVOICE_DATE_CONTEXT,
    DateExtractor,
)


@pytest.fixture
def extractor(clock):
    return DateExtractor(clock=clock)


class TestContextualSearch:
    """Tests for the context window tier"""

    def test_invoice_date_label(self, extractor):
        """Text with a single labelled ISO date"""
        text = "ACME Corp\nInvoice Date: 2024-03-15\nThank you"
        assert extractor.extract(text, INVOICE_DATE_CONTEXT) == date(2024, 3, 15)

    def test_due_date_found_near_its_label(self, extractor):
        text = (
            "Invoice Date: 2026-09-01\n"
            "Reference 2026-01-01\n"
            "Payment due: 2026-10-01"
        )
        assert extractor.extract(text, DUE_DATE_CONTEXT) == date(2026, 10, 1)

    def test_later_window_searched_when_first_has_no_date(self, extractor):
        text = "Due date: see terms\nPayment due 15/11/2026"
        assert extractor.extract(text, DUE_DATE_CONTEXT) == date(2026, 11, 15)

    def test_label_after_date(self, extractor):
        text = "2026-09-30 is the date issued\n2026-01-01"
        assert extractor.extract(text, "issued") == date(2026, 9, 30)

    def test_helpers_use_configured_hints(self, extractor):
        text = "Invoice Date: 2026-09-01\nDue Date: 2026-10-01"
        assert extractor.extract_invoice_date(text) == date(2026, 9, 1)
        assert extractor.extract_due_date(text) == date(2026, 10, 1)


class TestPatternScan:
    """Tests for the ordered pattern list"""

    def test_pattern_order_is_fixed(self):
        formats = [fmt for _, fmt in DATE_PATTERNS]
        assert formats == [
            '%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%d.%m.%Y',
            '%d %B %Y', '%B %d %Y', '%b %d %Y',
            '%d/%m/%y', '%d-%m-%y', '%Y%m%d', '%m/%d/%Y', '%Y/%m/%d',
        ]

    def test_earlier_pattern_wins_over_earlier_text(self, extractor):
        """An ISO date later in the text beats a day-first date before it"""
        text = "Printed 01/02/2026, issued 2026-05-04"
        assert extractor.extract(text) == date(2026, 5, 4)

    def test_day_first_preferred_for_ambiguous_slash_dates(self, extractor):
        assert extractor.extract("on 03/04/2026") == date(2026, 4, 3)

    def test_month_first_fallback_when_day_first_fails(self, extractor):
        assert extractor.extract("on 12/25/2026") == date(2026, 12, 25)

    @pytest.mark.parametrize("text, expected", [
        ("15.03.2026", date(2026, 3, 15)),
        ("15 March 2026", date(2026, 3, 15)),
        ("March 15, 2026", date(2026, 3, 15)),
        ("March 15 2026", date(2026, 3, 15)),
        ("Mar 15, 2026", date(2026, 3, 15)),
        ("15/03/26", date(2026, 3, 15)),
        ("20260315", date(2026, 3, 15)),
        ("2026/3/5", date(2026, 3, 5)),
    ])
    def test_supported_formats(self, extractor, text, expected):
        assert extractor.extract(text) == expected

    @pytest.mark.parametrize("text, expected", [
        ("15 mars 2026", date(2026, 3, 15)),
        ("3 Dezember 2025", date(2025, 12, 3)),
        ("1 enero 2026", date(2026, 1, 1)),
    ])
    def test_localized_month_names(self, extractor, text, expected):
        assert extractor.extract(text) == expected

    def test_invalid_calendar_date_is_skipped(self, extractor):
        assert extractor.extract("31/02/2026 or 2026/2/3") == date(2026, 2, 3)


class TestNaturalLanguage:
    """Tests for relative expressions, resolved against the fixed clock"""

    @pytest.mark.parametrize("text, expected", [
        ("due today", date(2026, 10, 19)),
        ("sent yesterday", date(2026, 10, 18)),
        ("payable tomorrow", date(2026, 10, 20)),
        ("issued 5 days ago", date(2026, 10, 14)),
        ("1 day ago", date(2026, 10, 18)),
        ("last month", date(2026, 9, 19)),
        ("next month", date(2026, 11, 19)),
        ("end of month", date(2026, 10, 31)),
        ("beginning of month", date(2026, 10, 1)),
    ])
    def test_relative_expressions(self, extractor, text, expected):
        assert extractor.extract(text) == expected

    def test_end_of_month_clamps(self):
        extractor = DateExtractor(clock=lambda: datetime(2027, 2, 10, tzinfo=timezone.utc))
        assert extractor.extract("end of month") == date(2027, 2, 28)

    def test_huge_day_count_is_no_match(self, extractor):
        assert extractor.extract("999999999 days ago") is None


class TestPlausibility:
    """Tests for the plausible-year window"""

    def test_too_old_rejected(self, extractor):
        assert extractor.extract("Invoice Date: 2015-06-01", INVOICE_DATE_CONTEXT) is None

    def test_too_far_ahead_rejected(self, extractor):
        assert extractor.extract("2028-01-01") is None

    def test_window_edges_accepted(self, extractor):
        assert extractor.extract("2016-01-01") == date(2016, 1, 1)
        assert extractor.extract("2027-12-31") == date(2027, 12, 31)

    def test_implausible_match_falls_through_to_next(self, extractor):
        assert extractor.extract("1999-01-01 then 2026-01-01") == date(2026, 1, 1)

    def test_never_returns_implausible_year(self, extractor, today):
        texts = ["1990-01-01", "2090-05-05", "01/01/1970", "19000101", "3650 days ago"]
        for text in texts:
            found = extractor.extract(text)
            assert found is None or today.year - 10 <= found.year <= today.year + 1


class TestEmptyInput:
    """Tests for empty or dateless text"""

    @pytest.mark.parametrize("text", [None, "", "no dates in here"])
    def test_returns_none(self, extractor, text):
        assert extractor.extract(text, INVOICE_DATE_CONTEXT) is None
