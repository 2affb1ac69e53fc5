"""
Manual Review Routing Module.

Decides whether a scored invoice can be created automatically or must go
to a human. The pipeline itself never routes; this is offered to the
service that consumes its results.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import List, Optional

from invoice_scoring.config import get_config
from invoice_scoring.model.extraction_result import ExtractionResult

CRITICAL_FIELDS = ['invoice_number', 'total_amount', 'vendor_name']


@dataclass
class ReviewDecision:
    needs_review: bool
    reasons: List[str] = field(default_factory=list)


class ReviewRouter:
    """
    Routes low-confidence or invalid results to manual review.

    Example:
        >>> decision = ReviewRouter(threshold=0.75).route(result)
        >>> decision.needs_review, decision.reasons
        (True, ['below_threshold_0.75'])
    """

    def __init__(
        self,
        threshold: Optional[float] = None,
        critical_fields: Optional[List[str]] = None
    ) -> None:
        if threshold is None:
            threshold = get_config("review.threshold", 0.75)
        if critical_fields is None:
            critical_fields = get_config("review.critical_fields", CRITICAL_FIELDS)
        self.threshold = float(threshold)
        self.critical_fields = list(critical_fields)

    def route(self, result: ExtractionResult) -> ReviewDecision:
        reasons: List[str] = []

        if result.overall_confidence < self.threshold:
            reasons.append(f"below_threshold_{self.threshold:.2f}")

        if not result.processed:
            reasons.append("validation_failed")

        for field_name in self.critical_fields:
            if getattr(result, field_name, None) in (None, ""):
                reasons.append(f"critical_field_missing:{field_name}")

        return ReviewDecision(needs_review=len(reasons) > 0, reasons=reasons)
