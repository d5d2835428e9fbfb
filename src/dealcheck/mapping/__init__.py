"""
Field mapping module.

Provides:
- Line tables per tax form (line identifier → canonical field path)
- Ordered OCR label normalization
- FieldMapper lookups (forward, reverse, expected fields)
- Currency parsing and formatting
"""

from .currency import (
    CURRENCY_PRECISION,
    format_dollars,
    parse_amount,
    percent_difference,
    quantize_cents,
)
from .field_mapper import (
    DEFAULT_MAPPER,
    FieldMapper,
    expected_fields,
    field_path,
    reverse_lookup,
)
from .irs_tables import DEFAULT_TABLES
from .line_labels import DEFAULT_MATCHERS, LabelMatcher, normalize_line_identifier

__all__ = [
    "CURRENCY_PRECISION",
    "DEFAULT_MAPPER",
    "DEFAULT_MATCHERS",
    "DEFAULT_TABLES",
    "FieldMapper",
    "LabelMatcher",
    "expected_fields",
    "field_path",
    "format_dollars",
    "normalize_line_identifier",
    "parse_amount",
    "percent_difference",
    "quantize_cents",
    "reverse_lookup",
]
