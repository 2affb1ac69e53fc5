"""
Tests for the four-stage ExtractionPipeline.

Uses a fixed clock (2026-10-19 UTC) so date handling is deterministic.
"""

from datetime import date
from decimal import Decimal

import pytest

from invoice_scoring.model import ExtractionResult, LineItem
from invoice_scoring.pipeline import ExtractionPipeline
from invoice_scoring.pipeline.confidence import FIELD_WEIGHTS
from invoice_scoring.utils.exceptions import PostProcessingError, UnsupportedCurrencyError


@pytest.fixture
def pipeline(clock):
    return ExtractionPipeline(clock=clock)


class TestScenarios:
    """End-to-end behaviour on representative OCR output"""

    def test_invoice_date_extracted_from_raw_text(self, pipeline):
        raw = ExtractionResult(raw_text="ACME Corp\nInvoice Date: 2024-03-15\nTotal 10.00")
        result = pipeline.process(raw)
        assert result.invoice_date == date(2024, 3, 15)

    def test_missing_quantity_derived_and_scored(self, pipeline):
        raw = ExtractionResult(line_items=[
            LineItem(
                description="Consulting Service",
                quantity=0,
                unit_price=Decimal("100.00"),
                amount=Decimal("500.00"),
            ),
        ])
        result = pipeline.process(raw)
        item = result.line_items[0]
        assert item.quantity == Decimal("5")
        assert item.confidence == pytest.approx(1.0)

    def test_total_mismatch_reported(self, pipeline):
        raw = ExtractionResult(
            subtotal=Decimal("100.00"),
            tax_amount=Decimal("10.00"),
            total_amount=Decimal("115.00"),
        )
        result = pipeline.process(raw)
        assert "Total amount does not match subtotal + tax" in result.error_message
        assert result.processed is False
        assert result.total_amount == Decimal("115.00")

    def test_invoice_number_prefix_removed(self, pipeline):
        result = pipeline.process(ExtractionResult(invoice_number="INV# 00123-A"))
        assert result.invoice_number == "00123-A"

    def test_default_precision_currency(self, pipeline):
        result = pipeline.process(ExtractionResult(currency="QAR", invoice_value=12.3456))
        assert result.invoice_value == Decimal("12.35")
        assert str(result.invoice_value) == "12.35"


class TestNormalizeStage:
    """Tests for the normalization stage as seen through process()"""

    def test_names_cleaned(self, pipeline):
        raw = ExtractionResult(vendor_name="Acme   Widgets, Inc.", customer_name="Globex LLC")
        result = pipeline.process(raw)
        assert result.vendor_name == "Acme Widgets"
        assert result.customer_name == "Globex"

    def test_future_date_shifted_back_without_error(self, pipeline):
        raw = ExtractionResult(invoice_date=date(2027, 1, 5))
        result = pipeline.process(raw)
        assert result.invoice_date == date(2026, 1, 5)
        assert "Invoice date cannot be in the future" not in (result.error_message or "")

    def test_string_amounts_parsed(self, pipeline):
        raw = ExtractionResult(total_amount="$1,234.50", currency="$")
        result = pipeline.process(raw)
        assert result.total_amount == Decimal("1234.50")
        assert result.currency == "USD"

    def test_unparseable_amount_becomes_none_with_warning(self, pipeline):
        result = pipeline.process(ExtractionResult(subtotal="N/A"))
        assert result.subtotal is None
        assert any("subtotal" in warning for warning in result.warnings)

    def test_oversized_amount_becomes_none_with_warning(self, pipeline):
        raw = ExtractionResult(total_amount="123456789012345678901234567890")
        result = pipeline.process(raw)
        assert result.total_amount is None
        assert any("total_amount" in warning for warning in result.warnings)

    def test_line_item_currency_strings_parsed(self, pipeline):
        raw = ExtractionResult.from_dict({
            "lineItems": [{
                "description": "Consulting Service",
                "quantity": 2,
                "unitPrice": "$1,000.00",
                "amount": "$2,000.00",
            }],
        })
        result = pipeline.process(raw)
        item = result.line_items[0]
        assert item.quantity == Decimal("2")
        assert item.unit_price == Decimal("1000.00")
        assert item.amount == Decimal("2000.00")
        assert not any("line_items" in warning for warning in result.warnings)

    def test_unparseable_line_item_value_warns(self, pipeline):
        raw = ExtractionResult(line_items=[LineItem("Widget", 2, "$5.00", "N/A")])
        result = pipeline.process(raw)
        assert result.line_items[0].unit_price == Decimal("5.00")
        assert isinstance(result.line_items[0].amount, Decimal)
        assert any("line_items[0].amount" in warning for warning in result.warnings)

    def test_numeric_text_fields_accepted(self, pipeline):
        raw = ExtractionResult.from_dict({"invoiceNumber": 12345, "vendorName": 3})
        result = pipeline.process(raw)
        assert result.invoice_number == "12345"
        assert result.vendor_name == "3"

    def test_numeric_invoice_number_on_direct_construction(self, pipeline):
        result = pipeline.process(ExtractionResult(invoice_number=98765))
        assert result.invoice_number == "98765"


class TestValidateStage:
    """Tests for validation findings"""

    def test_empty_result_still_runs_all_stages(self, pipeline):
        result = pipeline.process(ExtractionResult())
        assert result.processed is False
        assert result.error_message.split("; ") == [
            "Invoice number is required",
            "Invoice date is required",
            "Invoice amount is required",
            "Vendor name is required",
        ]
        assert set(result.field_confidence_scores) == set(FIELD_WEIGHTS)
        assert result.overall_confidence == 0.0


class TestEnhanceStage:
    """Tests for gap filling"""

    def test_total_derived_from_subtotal_and_tax(self, pipeline):
        raw = ExtractionResult(subtotal=Decimal("100.00"), tax_amount=Decimal("15.00"))
        result = pipeline.process(raw)
        assert result.total_amount == Decimal("115.00")

    def test_present_values_not_overwritten(self, pipeline):
        raw = ExtractionResult(
            invoice_date=date(2026, 9, 1),
            vendor_tax_id="GB999",
            raw_text="Invoice Date: 2026-01-01\nVAT No: DE123456789",
        )
        result = pipeline.process(raw)
        assert result.invoice_date == date(2026, 9, 1)
        assert result.vendor_tax_id == "GB999"

    def test_tax_id_and_due_date_from_raw_text(self, pipeline):
        raw = ExtractionResult(raw_text="VAT No: DE123456789\nPayment due: 2026-11-30")
        result = pipeline.process(raw)
        assert result.vendor_tax_id == "DE123456789"
        assert result.due_date == date(2026, 11, 30)

    def test_custom_tax_id_extractor(self, clock):
        pipeline = ExtractionPipeline(clock=clock, tax_id_extractor=lambda text: "TAX-1")
        assert pipeline.process(ExtractionResult()).vendor_tax_id == "TAX-1"

    def test_line_item_mismatch_is_only_a_warning(self, pipeline, clean_result):
        clean_result.line_items[0].amount = Decimal("50.00")
        result = pipeline.process(clean_result)
        assert result.processed is True
        assert result.error_message is None
        assert any("does not match invoice total" in warning for warning in result.warnings)

    def test_negative_line_values_clamped(self, pipeline):
        raw = ExtractionResult(line_items=[LineItem("Credit", -2, Decimal("-3.00"), Decimal("-6.00"))])
        item = pipeline.process(raw).line_items[0]
        assert (item.quantity, item.unit_price, item.amount) == (0, 0, 0)


class TestFinalizeStage:
    """Tests for currency rounding and confidence"""

    @pytest.mark.parametrize("currency, raw_value, expected", [
        ("JPY", "1,234.56", "1235"),
        ("BHD", 12.3456, "12.346"),
        ("BHD", "10.005", "10.005"),
        ("KWD", Decimal("1.0005"), "1.000"),
        ("OMR", Decimal("7"), "7.000"),
        ("USD", Decimal("2.345"), "2.34"),
        (None, Decimal("2.355"), "2.36"),
    ])
    def test_rounding_law(self, pipeline, currency, raw_value, expected):
        raw = ExtractionResult(currency=currency, total_amount=raw_value)
        result = pipeline.process(raw)
        assert str(result.total_amount) == expected

    def test_every_money_field_rounded(self, pipeline):
        raw = ExtractionResult(
            currency="JPY",
            subtotal=Decimal("1000.4"),
            tax_amount=Decimal("100.6"),
            total_amount=Decimal("1101"),
            invoice_value=Decimal("1101.2"),
        )
        result = pipeline.process(raw)
        for value in result.money_fields.values():
            assert value.as_tuple().exponent == 0

    def test_derived_total_too_large_to_round_warns(self, pipeline):
        raw = ExtractionResult(subtotal="9" * 26, tax_amount="9" * 26)
        result = pipeline.process(raw)
        assert result.total_amount is None
        assert any("Could not round total_amount" in warning for warning in result.warnings)

    def test_malformed_currency_is_fatal(self, pipeline):
        with pytest.raises(UnsupportedCurrencyError):
            pipeline.process(ExtractionResult(currency="Dollars"))

    def test_existing_scores_kept_and_missing_backfilled(self, pipeline):
        raw = ExtractionResult(field_confidence_scores={'vendor_name': 0.8})
        result = pipeline.process(raw)
        assert result.field_confidence_scores['vendor_name'] == 0.8
        assert result.field_confidence_scores['customer_number'] == 0.0

    def test_overall_is_weighted_mean(self, pipeline, clean_result):
        result = pipeline.process(clean_result)
        scores = clean_result.field_confidence_scores
        expected = (
            sum(scores[name] * weight for name, weight in FIELD_WEIGHTS.items())
            / sum(FIELD_WEIGHTS.values())
        )
        assert result.overall_confidence == pytest.approx(expected)
        assert 0.0 <= result.overall_confidence <= 1.0


class TestContract:
    """Tests for the process() call contract"""

    def test_none_rejected(self, pipeline):
        with pytest.raises(PostProcessingError):
            pipeline.process(None)

    def test_input_not_modified(self, pipeline):
        raw = ExtractionResult(
            invoice_number="INV# 00123-A",
            line_items=[LineItem("Widget each", 2, Decimal("5.00"), 0)],
        )
        result = pipeline.process(raw)
        assert result is not raw
        assert raw.invoice_number == "INV# 00123-A"
        assert raw.line_items[0].amount == 0
        assert raw.line_items[0].confidence is None
        assert raw.field_confidence_scores == {}

    def test_idempotent_on_clean_input(self, pipeline, clean_result):
        first = pipeline.process(clean_result)
        second = pipeline.process(first)

        assert first.fields == clean_result.fields
        assert first.money_fields == clean_result.money_fields
        assert second.fields == first.fields
        assert second.overall_confidence == first.overall_confidence
        assert second.processed is True
        assert second.error_message is None

    def test_processing_time_recorded(self, pipeline, clean_result):
        assert pipeline.process(clean_result).processing_time >= 0.0
