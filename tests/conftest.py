"""
Shared pytest fixtures for the invoice scoring tests.

Every test gets a fixed UTC clock and a fresh configuration singleton.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from invoice_scoring.config import ConfigurationManager
from invoice_scoring.model import ExtractionResult, LineItem

FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_config():
    """Drop any configuration loaded by a previous test"""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def clock():
    """Clock frozen at 2026-10-19 12:00 UTC"""
    return lambda: FIXED_NOW


@pytest.fixture
def today():
    return FIXED_NOW.date()


@pytest.fixture
def clean_result():
    """A fully normalized, valid and scored extraction result"""
    return ExtractionResult(
        invoice_number="00123-A",
        invoice_date=date(2026, 9, 1),
        due_date=date(2026, 10, 1),
        subtotal=Decimal("100.00"),
        tax_amount=Decimal("10.00"),
        total_amount=Decimal("110.00"),
        currency="USD",
        vendor_name="Acme Widgets",
        vendor_tax_id="DE123456789",
        customer_name="Globex",
        customer_number="C-77",
        field_confidence_scores={
            'invoice_number': 0.95,
            'invoice_date': 0.9,
            'due_date': 0.85,
            'total_amount': 0.98,
            'subtotal': 0.9,
            'tax_amount': 0.9,
            'vendor_name': 0.92,
            'vendor_tax_id': 0.8,
            'customer_name': 0.7,
            'customer_number': 0.6,
        },
        line_items=[
            LineItem(
                description="Consulting Service",
                quantity=Decimal("1"),
                unit_price=Decimal("110.00"),
                amount=Decimal("110.00"),
                confidence=0.9,
            ),
        ],
    )
