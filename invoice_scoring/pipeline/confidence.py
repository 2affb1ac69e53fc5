"""
Confidence Scoring Module.

This module backfills per-field confidences the OCR service did not
supply and combines them into the invoice's overall confidence:

    overall = sum(confidence[f] * weight[f]) / sum(weight[f])

taken over the weight-table fields present in the score map.

Author: ML Engineering Team
"""

from typing import Callable, Dict, Optional

from invoice_scoring.config import get_config
from invoice_scoring.model.extraction_result import ExtractionResult
from invoice_scoring.utils.helpers import clamp01
from invoice_scoring.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Importance of each field in the overall confidence
FIELD_WEIGHTS: Dict[str, float] = {
    'invoice_number': 1.0,
    'invoice_date': 0.9,
    'due_date': 0.8,
    'total_amount': 1.0,
    'subtotal': 0.9,
    'tax_amount': 0.9,
    'vendor_name': 1.0,
    'vendor_tax_id': 0.9,
    'customer_name': 0.8,
    'customer_number': 0.7,
}

FieldConfidenceStrategy = Callable[[ExtractionResult, str], float]


def default_field_confidence(result: ExtractionResult, field_name: str) -> float:
    """Confidence for a field the OCR service did not score."""
    return 0.0


class ConfidenceScorer:
    """
    Computes field and overall confidence for an extraction result.

    Attributes:
        field_weights: Field name to weight mapping
        strategy: Callable returning a confidence for an unscored field

    Example:
        >>> scorer = ConfidenceScorer()
        >>> scorer.overall({'invoice_number': 1.0, 'vendor_name': 0.5})
        0.75
    """

    def __init__(
        self,
        field_weights: Optional[Dict[str, float]] = None,
        strategy: Optional[FieldConfidenceStrategy] = None
    ) -> None:
        if field_weights is None:
            field_weights = get_config("pipeline.field_weights", FIELD_WEIGHTS) or FIELD_WEIGHTS
        self.field_weights = {name: float(weight) for name, weight in field_weights.items()}
        self.strategy = strategy or default_field_confidence

    def backfill(self, result: ExtractionResult) -> ExtractionResult:
        """
        Add a confidence for every weighted field that has none.

        Existing entries are never replaced.

        Args:
            result: ExtractionResult whose score map is completed in place.

        Returns:
            The same result.
        """
        scores = result.field_confidence_scores
        for field_name in self.field_weights:
            if field_name not in scores:
                scores[field_name] = clamp01(float(self.strategy(result, field_name)))
                logger.debug(f"Backfilled confidence for {field_name}: {scores[field_name]:.2f}")
        return result

    def overall(self, scores: Dict[str, float]) -> float:
        """
        Weighted mean of the scores of weighted fields.

        Args:
            scores: Field name to confidence mapping.

        Returns:
            Overall confidence in [0, 1], 0.0 when no weighted field is
            scored.
        """
        weighted_sum = 0.0
        total_weight = 0.0

        for field_name, weight in self.field_weights.items():
            if field_name in scores:
                weighted_sum += scores[field_name] * weight
                total_weight += weight

        if total_weight == 0:
            return 0.0
        return clamp01(weighted_sum / total_weight)
