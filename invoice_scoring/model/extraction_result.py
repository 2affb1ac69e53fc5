"""
Extraction Result Data Classes.

This module defines the working record that flows through the scoring
pipeline: the OCR service creates it with partially populated fields and
line items, the pipeline normalizes and scores it, and the invoice
creation service consumes it.

Author: ML Engineering Team
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Any, List, Optional

from dateutil import parser as date_parser

from invoice_scoring.utils.helpers import to_decimal

# Scalar fields that carry a confidence score, in weight-table order
SCORED_FIELDS = [
    'invoice_number',
    'invoice_date',
    'due_date',
    'total_amount',
    'subtotal',
    'tax_amount',
    'vendor_name',
    'vendor_tax_id',
    'customer_name',
    'customer_number',
]

MONEY_FIELDS = ['invoice_value', 'subtotal', 'tax_amount', 'total_amount']

LINE_ITEM_NUMBERS = ['quantity', 'unit_price', 'amount']

# camelCase keys used by the upstream OCR service
_CAMEL_CASE_KEYS = {
    'invoiceNumber': 'invoice_number',
    'invoiceDate': 'invoice_date',
    'dueDate': 'due_date',
    'subTotal': 'subtotal',
    'taxAmount': 'tax_amount',
    'totalAmount': 'total_amount',
    'invoiceValue': 'invoice_value',
    'vendorName': 'vendor_name',
    'vendorTaxId': 'vendor_tax_id',
    'customerName': 'customer_name',
    'customerNumber': 'customer_number',
    'rawText': 'raw_text',
    'errorMessage': 'error_message',
    'isProcessed': 'processed',
    'fieldConfidenceScores': 'field_confidence_scores',
    'lineItems': 'line_items',
    'confidenceScore': 'overall_confidence',
    'unitPrice': 'unit_price',
    'itemNumber': 'item_number',
}


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_CAMEL_CASE_KEYS.get(k, k): v for k, v in data.items()}


def _score_key(name: str) -> str:
    # The OCR service reports scores under PascalCase names ("SubTotal")
    camel = name[:1].lower() + name[1:]
    return _CAMEL_CASE_KEYS.get(camel, name)


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.isoparse(str(value)).date()


def _to_text(value: Any) -> Optional[str]:
    # JSON numbers such as "invoiceNumber": 12345 arrive as int
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _money_str(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class LineItem:
    """
    A single invoice line.

    Numeric values are held as Decimal; int, float and plain numeric
    strings are coerced on construction. OCR text such as "$2,000.00"
    is kept as given until the pipeline's Normalize stage parses it.
    The stored scale matters: ``Decimal("100.00")`` counts as a
    two-decimal price, ``Decimal("100")`` does not.

    Attributes:
        description: Free-text description of the line
        quantity: Number of units
        unit_price: Price per unit
        amount: Line total
        confidence: Plausibility score (0-1), None until scored
        item_number: Optional SKU or item code
        unit: Optional unit of measure
    """
    description: str = ""
    quantity: Decimal = Decimal(0)
    unit_price: Decimal = Decimal(0)
    amount: Decimal = Decimal(0)
    confidence: Optional[float] = None
    item_number: Optional[str] = None
    unit: Optional[str] = None

    def __post_init__(self):
        self.description = self.description or ""
        for name in LINE_ITEM_NUMBERS:
            raw = getattr(self, name)
            value = to_decimal(raw)
            if value is None and isinstance(raw, str) and raw.strip():
                continue
            setattr(self, name, value if value is not None else Decimal(0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'quantity': str(self.quantity),
            'unit_price': str(self.unit_price),
            'amount': str(self.amount),
            'confidence': self.confidence,
            'item_number': self.item_number,
            'unit': self.unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        data = _snake_keys(data)
        return cls(
            description=_to_text(data.get('description')) or "",
            quantity=data.get('quantity', 0),
            unit_price=data.get('unit_price', 0),
            amount=data.get('amount', 0),
            confidence=data.get('confidence'),
            item_number=_to_text(data.get('item_number')),
            unit=data.get('unit'),
        )


@dataclass
class ExtractionResult:
    """
    Represents one invoice document's extracted fields and scores.

    Attributes:
        invoice_number: Invoice identifier
        invoice_date: Date the invoice was issued
        due_date: Payment due date
        subtotal: Amount before tax
        tax_amount: Tax amount
        total_amount: Total amount due
        invoice_value: Alternate total reported by some OCR models
        currency: ISO code or symbol
        vendor_name: Name of the seller
        vendor_tax_id: Seller's tax/VAT registration number
        customer_name: Name of the buyer
        customer_number: Buyer's account number at the vendor
        raw_text: Full OCR text of the document
        error_message: Validation errors joined with "; "
        processed: False once validation found a problem
        field_confidence_scores: Confidence for each field (0-1)
        line_items: Invoice lines
        overall_confidence: Weighted confidence, written by the pipeline
        source_file: Source filename
        warnings: Non-fatal findings (e.g. line items not adding up)
        processing_time: Seconds spent in the pipeline

    Example:
        >>> result = ExtractionResult(
        ...     invoice_number="INV-2026-001",
        ...     vendor_name="ABC Corp",
        ...     total_amount=Decimal("1500.00")
        ... )
        >>> print(result.to_json())
    """
    # Invoice details
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None

    # Financial information
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    invoice_value: Optional[Decimal] = None
    currency: Optional[str] = None

    # Parties
    vendor_name: Optional[str] = None
    vendor_tax_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_number: Optional[str] = None

    # Raw OCR data
    raw_text: str = ""

    # Status
    error_message: Optional[str] = None
    processed: bool = True

    # Scoring
    field_confidence_scores: Dict[str, float] = field(default_factory=dict)
    line_items: List[LineItem] = field(default_factory=list)
    overall_confidence: float = 0.0

    # Metadata
    source_file: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def fields(self) -> Dict[str, Any]:
        """
        Get all scored scalar fields as a dictionary.

        Returns:
            Dictionary of field names to values.
        """
        return {name: getattr(self, name) for name in SCORED_FIELDS}

    @property
    def money_fields(self) -> Dict[str, Optional[Decimal]]:
        """Monetary fields subject to currency rounding."""
        return {name: getattr(self, name) for name in MONEY_FIELDS}

    @property
    def missing_fields(self) -> List[str]:
        """
        Get list of scored fields that have no value.

        Returns:
            List of missing field names.
        """
        return [k for k, v in self.fields.items() if v is None or v == ""]

    @property
    def extracted_fields(self) -> Dict[str, Any]:
        """Get only the scored fields that have values."""
        return {k: v for k, v in self.fields.items() if v is not None and v != ""}

    def get_confidence(self, field_name: str) -> float:
        """
        Get confidence score for a specific field.

        Args:
            field_name: Name of the field.

        Returns:
            Confidence score (0-1) or 0 if not available.
        """
        return self.field_confidence_scores.get(field_name, 0.0)

    def set_field(self, field_name: str, value: Any, confidence: Optional[float] = None) -> None:
        """
        Set a field value with optional confidence.

        An existing confidence entry is never replaced.

        Args:
            field_name: Name of the field.
            value: Extracted value.
            confidence: Confidence score (0-1).
        """
        if hasattr(self, field_name):
            setattr(self, field_name, value)
            if confidence is not None:
                self.field_confidence_scores.setdefault(field_name, confidence)

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Dates are ISO strings and amounts are decimal strings so the
        canonical precision survives JSON encoding.

        Returns:
            Dictionary representation of the extraction result.
        """
        return {
            'invoice_number': self.invoice_number,
            'invoice_date': self.invoice_date.isoformat() if self.invoice_date else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'subtotal': _money_str(self.subtotal),
            'tax_amount': _money_str(self.tax_amount),
            'total_amount': _money_str(self.total_amount),
            'invoice_value': _money_str(self.invoice_value),
            'currency': self.currency,
            'vendor_name': self.vendor_name,
            'vendor_tax_id': self.vendor_tax_id,
            'customer_name': self.customer_name,
            'customer_number': self.customer_number,
            'error_message': self.error_message,
            'processed': self.processed,
            'field_confidence_scores': dict(self.field_confidence_scores),
            'line_items': [item.to_dict() for item in self.line_items],
            'overall_confidence': self.overall_confidence,
            'source_file': self.source_file,
            'warnings': list(self.warnings),
            'processing_time': self.processing_time,
        }

    def to_json(self, indent: int = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractionResult':
        """
        Create ExtractionResult from dictionary.

        Accepts both snake_case keys and the camelCase keys emitted by
        the OCR service. Amounts may be numbers or strings; dates must be
        ISO formatted. Text fields given as JSON numbers become strings.

        Args:
            data: Dictionary with extraction data.

        Returns:
            ExtractionResult instance.
        """
        data = _snake_keys(data)
        return cls(
            invoice_number=_to_text(data.get('invoice_number')),
            invoice_date=_to_date(data.get('invoice_date')),
            due_date=_to_date(data.get('due_date')),
            subtotal=data.get('subtotal'),
            tax_amount=data.get('tax_amount'),
            total_amount=data.get('total_amount'),
            invoice_value=data.get('invoice_value'),
            currency=_to_text(data.get('currency')),
            vendor_name=_to_text(data.get('vendor_name')),
            vendor_tax_id=_to_text(data.get('vendor_tax_id')),
            customer_name=_to_text(data.get('customer_name')),
            customer_number=_to_text(data.get('customer_number')),
            raw_text=data.get('raw_text') or "",
            error_message=data.get('error_message'),
            processed=data.get('processed', True),
            field_confidence_scores={
                _score_key(k): v
                for k, v in (data.get('field_confidence_scores') or {}).items()
            },
            line_items=[LineItem.from_dict(item) for item in data.get('line_items') or []],
            overall_confidence=data.get('overall_confidence', 0.0),
            source_file=data.get('source_file'),
            warnings=list(data.get('warnings') or []),
        )

    def __repr__(self) -> str:
        return (
            f"ExtractionResult("
            f"invoice={self.invoice_number}, "
            f"vendor={self.vendor_name}, "
            f"total={self.total_amount}, "
            f"confidence={self.overall_confidence:.2f})"
        )
