"""
Data Validators Module.

This module provides the business-logic checks run by the pipeline's
validation stage:
    - Required fields presence
    - Date consistency
    - Subtotal + tax against total

Validators never modify the result; they only report findings.

Author: ML Engineering Team
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from invoice_scoring.config import get_config
from invoice_scoring.model.extraction_result import ExtractionResult
from invoice_scoring.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Error messages, consumed verbatim by the invoice creation service
INVOICE_NUMBER_REQUIRED = "Invoice number is required"
INVOICE_DATE_REQUIRED = "Invoice date is required"
INVOICE_AMOUNT_REQUIRED = "Invoice amount is required"
VENDOR_NAME_REQUIRED = "Vendor name is required"
INVOICE_DATE_IN_FUTURE = "Invoice date cannot be in the future"
DUE_BEFORE_INVOICE = "Due date cannot be before invoice date"
TOTAL_MISMATCH = "Total amount does not match subtotal + tax"


class ValidationResult:
    """
    Contains the result of validation checks.

    Attributes:
        is_valid: Overall validation result
        errors: List of error messages, in rule order
    """

    def __init__(self):
        self.is_valid = True
        self.errors: List[str] = []

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    @property
    def message(self) -> Optional[str]:
        """Errors joined with "; ", or None when valid."""
        return "; ".join(self.errors) if self.errors else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
        }


class FieldValidator:
    """
    Business-logic validation for an extraction result.

    Every rule is evaluated; there is no early exit.

    Example:
        >>> validator = FieldValidator()
        >>> validation = validator.validate(result, today=date(2026, 1, 1))
        >>> print(validation.errors)
    """

    def __init__(self, total_tolerance: Optional[Decimal] = None) -> None:
        """
        Initialize the field validator.

        Args:
            total_tolerance: Allowed absolute difference between
                subtotal + tax and total, in currency units.
        """
        if total_tolerance is None:
            total_tolerance = Decimal(str(get_config("pipeline.tolerances.total_match", "0.01")))
        self.total_tolerance = total_tolerance

        logger.debug(f"FieldValidator initialized (total tolerance: {self.total_tolerance})")

    def validate(self, result: ExtractionResult, today: date) -> ValidationResult:
        """
        Validate all rules against a result.

        Args:
            result: ExtractionResult to validate (not modified).
            today: Current UTC date for the future-date check.

        Returns:
            ValidationResult with every failed rule.
        """
        validation = ValidationResult()

        self._check_required(result, validation)
        self._check_dates(result, validation, today)
        self._check_totals(result, validation)

        return validation

    def _check_required(self, result: ExtractionResult, validation: ValidationResult) -> None:
        if not result.invoice_number:
            validation.add_error(INVOICE_NUMBER_REQUIRED)

        if result.invoice_date is None:
            validation.add_error(INVOICE_DATE_REQUIRED)

        if result.invoice_value is None and result.total_amount is None:
            validation.add_error(INVOICE_AMOUNT_REQUIRED)

        if not result.vendor_name:
            validation.add_error(VENDOR_NAME_REQUIRED)

    def _check_dates(
        self,
        result: ExtractionResult,
        validation: ValidationResult,
        today: date
    ) -> None:
        if result.invoice_date is not None and result.invoice_date > today:
            validation.add_error(INVOICE_DATE_IN_FUTURE)

        if (
            result.due_date is not None
            and result.invoice_date is not None
            and result.due_date < result.invoice_date
        ):
            validation.add_error(DUE_BEFORE_INVOICE)

    def _check_totals(self, result: ExtractionResult, validation: ValidationResult) -> None:
        if result.subtotal is None or result.tax_amount is None or result.total_amount is None:
            return

        calculated = result.subtotal + result.tax_amount
        if abs(calculated - result.total_amount) > self.total_tolerance:
            logger.debug(
                f"Subtotal {result.subtotal} + tax {result.tax_amount} = {calculated}, "
                f"total is {result.total_amount}"
            )
            validation.add_error(TOTAL_MISMATCH)
