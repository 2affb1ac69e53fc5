"""
Extraction Pipeline Module.

This module provides the ExtractionPipeline class that turns a raw OCR
extraction result into a normalized, validated and confidence-scored
invoice record.

Stages (always run, in this order):
    1. Normalize: canonicalize invoice number, names, dates and amounts
    2. Validate: business-logic checks, reported in error_message
    3. Enhance: fill gaps from raw text and derive line item values
    4. Finalize: currency rounding and confidence scoring

Author: ML Engineering Team
"""

import time
from copy import deepcopy
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Optional

from invoice_scoring.extractors.date_extractor import DateExtractor
from invoice_scoring.extractors.tax_id import TaxIdExtractor
from invoice_scoring.model.currency import currency_decimals, parse_currency
from invoice_scoring.model.extraction_result import LINE_ITEM_NUMBERS, MONEY_FIELDS, ExtractionResult
from invoice_scoring.utils.exceptions import PostProcessingError
from invoice_scoring.utils.helpers import utc_now
from invoice_scoring.utils.logger import get_logger
from .confidence import ConfidenceScorer, FieldConfidenceStrategy
from .line_items import LineItemReconciler
from .normalizers import AmountNormalizer, DateNormalizer, TextNormalizer
from .validators import FieldValidator

# Initialize module logger
logger = get_logger(__name__)


class ExtractionPipeline:
    """
    Scores one invoice extraction result at a time.

    The pipeline holds no per-invoice state; one instance can serve any
    number of results, including from several threads.

    Attributes:
        date_extractor: Fills missing dates from raw text
        tax_id_extractor: Callable returning a vendor tax ID found in raw text
        reconciler: LineItemReconciler instance
        scorer: ConfidenceScorer instance
        clock: Callable returning the current aware UTC datetime

    Example:
        >>> pipeline = ExtractionPipeline()
        >>> scored = pipeline.process(raw_result)
        >>> print(scored.overall_confidence)
        >>> print(scored.error_message)
    """

    def __init__(
        self,
        field_weights: Optional[Dict[str, float]] = None,
        date_extractor: Optional[DateExtractor] = None,
        tax_id_extractor: Optional[Callable[[str], str]] = None,
        field_confidence_strategy: Optional[FieldConfidenceStrategy] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        """
        Initialize the pipeline with all sub-components.

        Args:
            field_weights: Override for the field weight table.
            date_extractor: Extractor used to fill missing dates.
            tax_id_extractor: Callable used to fill a missing vendor tax ID.
            field_confidence_strategy: Callable giving the confidence of a
                field the OCR service did not score.
            clock: Callable returning "now" as an aware UTC datetime.
        """
        self.clock = clock or utc_now

        # Normalizers and validators
        self.text_normalizer = TextNormalizer()
        self.date_normalizer = DateNormalizer()
        self.amount_normalizer = AmountNormalizer()
        self.field_validator = FieldValidator()

        # Enhancement
        self.date_extractor = date_extractor or DateExtractor(clock=self.clock)
        self.tax_id_extractor = tax_id_extractor or TaxIdExtractor()
        self.reconciler = LineItemReconciler()

        # Scoring
        self.scorer = ConfidenceScorer(field_weights, field_confidence_strategy)

        logger.info("ExtractionPipeline initialized")

    def process(self, raw: ExtractionResult) -> ExtractionResult:
        """
        Run all four stages over an extraction result.

        The input is not modified; a scored copy is returned.

        Args:
            raw: ExtractionResult from the OCR service.

        Returns:
            Normalized, validated, enhanced and scored ExtractionResult.

        Raises:
            PostProcessingError: If raw is None or the currency is malformed.
        """
        if raw is None:
            raise PostProcessingError("Extraction result must not be None")

        logger.info(f"Processing extraction result: {raw.source_file or raw.invoice_number}")
        start_time = time.perf_counter()

        result = deepcopy(raw)
        try:
            result = self._normalize(result)
            logger.debug(f"Line items after normalization: {len(result.line_items)}")

            result = self._validate(result)
            logger.debug(f"Line items after validation: {len(result.line_items)}")

            result = self._enhance(result)
            logger.debug(f"Line items after enhancement: {len(result.line_items)}")

            result = self._finalize(result)
        except Exception:
            logger.exception(f"Pipeline failed for: {raw.source_file or raw.invoice_number}")
            raise

        result.processing_time = time.perf_counter() - start_time
        logger.info(
            f"Pipeline complete: confidence {result.overall_confidence:.2f}, "
            f"{len(result.line_items)} line items, processed={result.processed}"
        )
        return result

    def _today(self) -> date:
        return self.clock().date()

    def _normalize(self, result: ExtractionResult) -> ExtractionResult:
        """
        Canonicalize text fields, shift future dates back a year and
        parse amounts.
        """
        logger.debug("Stage 1/4: normalize")
        today = self._today()

        original = result.invoice_number
        result.invoice_number = self.text_normalizer.normalize_invoice_number(original)
        if result.invoice_number != original:
            logger.debug(f"Normalized invoice_number: '{original}' -> '{result.invoice_number}'")

        result.vendor_name = self.text_normalizer.normalize_company_name(result.vendor_name)
        result.customer_name = self.text_normalizer.normalize_company_name(result.customer_name)

        result.invoice_date = self.date_normalizer.normalize(result.invoice_date, today)
        result.due_date = self.date_normalizer.normalize(result.due_date, today)

        # Currencies with three decimals keep them until Finalize, so
        # 10.005 BHD finalizes to 10.005 rather than 10.000
        places = max(self.amount_normalizer.places, currency_decimals(result.currency))
        for field_name in MONEY_FIELDS:
            original = getattr(result, field_name)
            if original is None:
                continue

            value = self.amount_normalizer.normalize(original, places)
            if value is None:
                result.add_warning(f"Could not normalize {field_name}: '{original}'")
            setattr(result, field_name, value)

        for index, item in enumerate(result.line_items):
            for name in LINE_ITEM_NUMBERS:
                original = getattr(item, name)
                if not isinstance(original, str):
                    continue

                value = self.amount_normalizer.parse(original)
                if value is None:
                    result.add_warning(
                        f"Could not normalize line_items[{index}].{name}: '{original}'"
                    )
                    value = Decimal(0)
                setattr(item, name, value)

        return result

    def _validate(self, result: ExtractionResult) -> ExtractionResult:
        """Record business-rule violations without touching any value."""
        logger.debug("Stage 2/4: validate")

        validation = self.field_validator.validate(result, self._today())
        if not validation.is_valid:
            result.error_message = validation.message
            result.processed = False
            for error in validation.errors:
                logger.warning(f"Validation error: {error}")

        return result

    def _enhance(self, result: ExtractionResult) -> ExtractionResult:
        """
        Fill missing values from raw text and derived amounts.

        Present values are never overwritten.
        """
        logger.debug("Stage 3/4: enhance")

        if result.invoice_date is None:
            result.invoice_date = self.date_extractor.extract_invoice_date(result.raw_text)

        if result.due_date is None:
            result.due_date = self.date_extractor.extract_due_date(result.raw_text)

        if (
            result.total_amount is None
            and result.subtotal is not None
            and result.tax_amount is not None
        ):
            result.total_amount = result.subtotal + result.tax_amount
            logger.debug(f"Derived total_amount from subtotal + tax: {result.total_amount}")

        if not result.vendor_tax_id:
            tax_id = self.tax_id_extractor(result.raw_text)
            if tax_id:
                result.vendor_tax_id = tax_id

        for item in result.line_items:
            self.reconciler.enhance(item)

        if result.line_items and result.total_amount is not None:
            reconciliation = self.reconciler.reconcile(result.line_items, result.total_amount)
            if not reconciliation.is_consistent:
                message = (
                    f"Line items total {reconciliation.line_total} does not match "
                    f"invoice total {reconciliation.invoice_total}"
                )
                logger.warning(message)
                result.add_warning(message)

        return result

    def _finalize(self, result: ExtractionResult) -> ExtractionResult:
        """Round amounts to the currency's precision and compute confidence."""
        logger.debug("Stage 4/4: finalize")

        result.currency = parse_currency(result.currency)
        places = currency_decimals(result.currency)
        for field_name in MONEY_FIELDS:
            original = getattr(result, field_name)
            if original is None:
                continue

            value = self.amount_normalizer.normalize(original, places)
            if value is None:
                result.add_warning(f"Could not round {field_name}: '{original}'")
            setattr(result, field_name, value)

        self.scorer.backfill(result)
        result.overall_confidence = self.scorer.overall(result.field_confidence_scores)

        return result
