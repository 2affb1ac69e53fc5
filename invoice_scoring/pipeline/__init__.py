"""
Scoring Pipeline Module.

This module provides the four-stage extraction pipeline and its parts:
    - Normalization of text, dates and amounts
    - Business-rule validation
    - Line item derivation, scoring and reconciliation
    - Field and overall confidence
    - Manual review routing

Author: ML Engineering Team
"""

from .processor import ExtractionPipeline
from .normalizers import TextNormalizer, DateNormalizer, AmountNormalizer
from .validators import FieldValidator, ValidationResult
from .line_items import LineItemReconciler, ReconciliationResult
from .confidence import ConfidenceScorer, FIELD_WEIGHTS, default_field_confidence
from .review import ReviewRouter, ReviewDecision

__all__ = [
    'ExtractionPipeline',
    'TextNormalizer',
    'DateNormalizer',
    'AmountNormalizer',
    'FieldValidator',
    'ValidationResult',
    'LineItemReconciler',
    'ReconciliationResult',
    'ConfidenceScorer',
    'FIELD_WEIGHTS',
    'default_field_confidence',
    'ReviewRouter',
    'ReviewDecision',
]
