"""
Verification module.

Provides:
- Arithmetic self-consistency checks per document type
- Cross-document reconciliation rules
- OCR-vs-structured comparisons
- The review gate that turns all of them into a proceed/block decision
"""

from .arithmetic import ArithmeticChecker, run_arithmetic_checks
from .cross_document import (
    DEFAULT_RULES,
    CheckBuilder,
    CrossDocumentEngine,
    ReconciliationRule,
    classify,
    run_cross_document_checks,
)
from .ocr_comparison import OcrComparator, compare_ocr_to_structured
from .review_gate import GateTolerances, ReviewGate, Tolerance, evaluate_gate

__all__ = [
    "ArithmeticChecker",
    "CheckBuilder",
    "CrossDocumentEngine",
    "DEFAULT_RULES",
    "GateTolerances",
    "OcrComparator",
    "ReconciliationRule",
    "ReviewGate",
    "Tolerance",
    "classify",
    "compare_ocr_to_structured",
    "evaluate_gate",
    "run_arithmetic_checks",
    "run_cross_document_checks",
]
