"""
Line Item Reconciliation Module.

This module fills in line item values that can be derived from the
others, scores each line's plausibility and checks the line sum against
the invoice total.

Line confidence is a weighted blend of sub-scores, each in [0, 1]:

    ==============  ======  =====================================
    Sub-score       Weight  Applies when
    ==============  ======  =====================================
    description     0.3     description is not empty
    quantity        0.2     quantity > 0
    unit price      0.2     unit price > 0
    amount          0.3     amount > 0
    consistency     0.1     quantity, unit price and amount > 0
    ==============  ======  =====================================

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from invoice_scoring.config import get_config
from invoice_scoring.model.extraction_result import LineItem
from invoice_scoring.pipeline.normalizers import TextNormalizer
from invoice_scoring.utils.helpers import clamp01, decimal_places
from invoice_scoring.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Words that show up in genuine service/product descriptions
DESCRIPTION_VOCABULARY = [
    'Fee', 'Service', 'Product', 'Item', 'Transaction', 'Basic', 'Additional',
    'Change', 'User', 'Account', 'Guide', 'Pos', 'View',
]

# Descriptions that are most likely OCR fragments
SUSPICIOUS_DESCRIPTIONS = [
    re.compile(r'^\d+$'),
    re.compile(r'^[A-Z]{1,3}$'),
    re.compile(r'^[a-z]{1,3}$'),
]

DESCRIPTION_WEIGHT = 0.3
QUANTITY_WEIGHT = 0.2
PRICE_WEIGHT = 0.2
AMOUNT_WEIGHT = 0.3
CONSISTENCY_WEIGHT = 0.1


@dataclass
class ReconciliationResult:
    """
    Outcome of comparing the line item sum with the invoice total.

    Attributes:
        line_total: Sum of all line amounts
        invoice_total: Total amount stated on the invoice
        difference: Absolute difference between the two
        tolerance: Largest difference still accepted
        is_consistent: True when difference <= tolerance
    """
    line_total: Decimal
    invoice_total: Decimal
    difference: Decimal
    tolerance: Decimal
    is_consistent: bool


class LineItemReconciler:
    """
    Derives, cleans and scores invoice line items.

    Example:
        >>> reconciler = LineItemReconciler()
        >>> item = LineItem("Consulting Service", 0, Decimal("100.00"), Decimal("500.00"))
        >>> reconciler.enhance(item)
        >>> item.quantity, item.confidence
        (Decimal('5'), 1.0)
    """

    def __init__(self, relative_tolerance: Optional[Decimal] = None) -> None:
        """
        Initialize the reconciler.

        Args:
            relative_tolerance: Accepted gap between line sum and invoice
                total, as a fraction of the total.
        """
        if relative_tolerance is None:
            relative_tolerance = Decimal(
                str(get_config("pipeline.tolerances.line_items_relative", "0.01"))
            )
        self.relative_tolerance = relative_tolerance
        self.text_normalizer = TextNormalizer()

    def enhance(self, item: LineItem) -> LineItem:
        """
        Fill derivable values, clamp negatives, clean the description and
        score the item if it has no confidence yet.

        The item is modified in place and returned.

        Args:
            item: Line item to enhance.

        Returns:
            The same line item.
        """
        if item.amount == 0 and item.quantity > 0 and item.unit_price > 0:
            item.amount = item.quantity * item.unit_price
            logger.debug(f"Derived line amount {item.amount} for '{item.description}'")

        if item.unit_price == 0 and item.quantity > 0 and item.amount > 0:
            item.unit_price = item.amount / item.quantity
            logger.debug(f"Derived unit price {item.unit_price} for '{item.description}'")

        if item.quantity == 0 and item.unit_price > 0 and item.amount > 0:
            item.quantity = item.amount / item.unit_price
            logger.debug(f"Derived quantity {item.quantity} for '{item.description}'")

        item.quantity = max(item.quantity, Decimal(0))
        item.unit_price = max(item.unit_price, Decimal(0))
        item.amount = max(item.amount, Decimal(0))

        item.description = self.clean_description(item.description)

        if item.confidence is None:
            item.confidence = self.calculate_confidence(item)

        return item

    def clean_description(self, description: Optional[str]) -> str:
        """Strip a trailing "per unit"/"each" and collapse whitespace."""
        return self.text_normalizer.clean_description(description)

    def calculate_confidence(self, item: LineItem) -> float:
        """
        Score how plausible a line item looks.

        Args:
            item: Line item to score (not modified).

        Returns:
            Weighted confidence in [0, 1], 0.0 when no sub-score applies.
        """
        numerator = 0.0
        total_weight = 0.0

        if item.description:
            numerator += self.description_confidence(item.description) * DESCRIPTION_WEIGHT
            total_weight += DESCRIPTION_WEIGHT

        if item.quantity > 0:
            numerator += self.quantity_confidence(item.quantity) * QUANTITY_WEIGHT
            total_weight += QUANTITY_WEIGHT

        if item.unit_price > 0:
            numerator += self.price_confidence(item.unit_price) * PRICE_WEIGHT
            total_weight += PRICE_WEIGHT

        if item.amount > 0:
            numerator += self.amount_confidence(item.amount) * AMOUNT_WEIGHT
            total_weight += AMOUNT_WEIGHT

        if item.quantity > 0 and item.unit_price > 0 and item.amount > 0:
            expected = item.quantity * item.unit_price
            tolerance = item.amount * Decimal("0.01")
            if abs(expected - item.amount) <= tolerance:
                numerator += CONSISTENCY_WEIGHT
            else:
                numerator -= CONSISTENCY_WEIGHT
            total_weight += CONSISTENCY_WEIGHT

        if total_weight == 0:
            return 0.0
        return clamp01(numerator / total_weight)

    def description_confidence(self, description: str) -> float:
        score = 0.5

        lowered = description.lower()
        if any(word.lower() in lowered for word in DESCRIPTION_VOCABULARY):
            score += 0.3

        if 5 <= len(description) <= 100:
            score += 0.2

        if any(pattern.match(description) for pattern in SUSPICIOUS_DESCRIPTIONS):
            score -= 0.4

        return clamp01(score)

    def quantity_confidence(self, quantity: Decimal) -> float:
        score = 0.5

        if Decimal("0.01") <= quantity <= 1000:
            score += 0.3
        if quantity > 10000:
            score -= 0.4
        if quantity == quantity.to_integral_value():
            score += 0.2

        return clamp01(score)

    def price_confidence(self, unit_price: Decimal) -> float:
        score = 0.5

        if Decimal("0.01") <= unit_price <= 10000:
            score += 0.3
        if unit_price > 100000:
            score -= 0.4
        if decimal_places(unit_price) == 2:
            score += 0.2

        return clamp01(score)

    def amount_confidence(self, amount: Decimal) -> float:
        score = 0.5

        if Decimal("0.01") <= amount <= 100000:
            score += 0.3
        if amount > 1000000:
            score -= 0.4
        if decimal_places(amount) == 2:
            score += 0.2

        return clamp01(score)

    def reconcile(self, items: List[LineItem], total: Decimal) -> ReconciliationResult:
        """
        Compare the sum of line amounts with the invoice total.

        Args:
            items: Line items of the invoice.
            total: Stated invoice total.

        Returns:
            ReconciliationResult describing the comparison.
        """
        line_total = sum((item.amount for item in items), Decimal(0))
        difference = abs(line_total - total)
        tolerance = abs(total) * self.relative_tolerance

        return ReconciliationResult(
            line_total=line_total,
            invoice_total=total,
            difference=difference,
            tolerance=tolerance,
            is_consistent=difference <= tolerance,
        )
