"""
SSOT (Single Source of Truth) schemas for the reconciliation core.

These canonical schemas are the ONLY models used across all modules.
No duplicated "near-same" models allowed.
"""

from .checks import (
    ArithmeticCheck,
    CheckKind,
    CheckStatus,
    GateResult,
    GateSummary,
    OcrComparison,
    ReconciliationCheck,
    ReviewItem,
    ReviewStatus,
)
from .document_path import (
    MISSING,
    DocumentPath,
    DocumentPathError,
    IndexSegment,
    KeySegment,
    as_records,
    first_nonzero,
    flatten_numeric,
    has_value,
    numeric_value,
    resolve,
    to_decimal,
)
from .documents import (
    DocumentValue,
    ExtractionInput,
    FormType,
    KeyValuePair,
    normalize_document_type,
)

__all__ = [
    # Inputs
    "DocumentValue",
    "ExtractionInput",
    "FormType",
    "KeyValuePair",
    "normalize_document_type",
    # Checks and gate output
    "ArithmeticCheck",
    "CheckKind",
    "CheckStatus",
    "GateResult",
    "GateSummary",
    "OcrComparison",
    "ReconciliationCheck",
    "ReviewItem",
    "ReviewStatus",
    # Document path accessor
    "MISSING",
    "DocumentPath",
    "DocumentPathError",
    "IndexSegment",
    "KeySegment",
    "as_records",
    "first_nonzero",
    "flatten_numeric",
    "has_value",
    "numeric_value",
    "resolve",
    "to_decimal",
]
