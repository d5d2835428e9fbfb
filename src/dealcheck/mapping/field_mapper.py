"""
Form-type aware lookups over the line tables.

FieldMapper takes its tables by injection so a test (or a new form
revision) can swap them without touching module state. The module-level
functions delegate to a default mapper over DEFAULT_TABLES.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from ..schemas.documents import FormType
from .irs_tables import DEFAULT_TABLES, LineTable
from .line_labels import DEFAULT_MATCHERS, LabelMatcher, normalize_line_identifier

logger = logging.getLogger(__name__)


class FieldMapper:
    """
    Resolves (form type, line identifier) ↔ canonical field path.

    Unknown form types and unknown lines are not errors: every lookup
    degrades to None (or an empty set) so the caller can route the field to
    a fallback extraction path.
    """

    def __init__(
        self,
        tables: Optional[Mapping[FormType, LineTable]] = None,
        matchers: Sequence[LabelMatcher] = DEFAULT_MATCHERS,
    ) -> None:
        self.tables = tables if tables is not None else DEFAULT_TABLES
        self.matchers = tuple(matchers)

    def table_for(self, form_type: FormType | str | None) -> Optional[LineTable]:
        """Line table for a form type, None if the form is unknown."""
        resolved = FormType.coerce(form_type)
        if resolved is None:
            logger.debug("Unknown form type %r", form_type)
            return None
        return self.tables.get(resolved)

    def normalize(self, raw_label: str) -> Optional[str]:
        """Line identifier for an OCR label, using this mapper's matchers."""
        return normalize_line_identifier(raw_label, self.matchers)

    def field_path(self, form_type: FormType | str | None, line_id: str) -> Optional[str]:
        """Canonical path for a line; case and whitespace insensitive."""
        table = self.table_for(form_type)
        if table is None or not isinstance(line_id, str):
            return None
        return table.get(line_id.strip().lower())

    def reverse_lookup(self, form_type: FormType | str | None, canonical_path: str) -> Optional[str]:
        """
        First line identifier (in table order) that maps to canonical_path.

        Used for display ("Line 11: AGI") and for matching OCR labels back to
        structured fields.
        """
        table = self.table_for(form_type)
        if table is None:
            return None
        for line_id, path in table.items():
            if path == canonical_path:
                return line_id
        return None

    def expected_fields(self, form_type: FormType | str | None) -> frozenset[str]:
        """All distinct canonical paths declared for a form type."""
        table = self.table_for(form_type)
        if table is None:
            return frozenset()
        return frozenset(table.values())


DEFAULT_MAPPER = FieldMapper()


def field_path(form_type: FormType | str | None, line_id: str) -> Optional[str]:
    """Canonical path for (form type, line identifier) in the default tables."""
    return DEFAULT_MAPPER.field_path(form_type, line_id)


def reverse_lookup(form_type: FormType | str | None, canonical_path: str) -> Optional[str]:
    """Line identifier for a canonical path in the default tables."""
    return DEFAULT_MAPPER.reverse_lookup(form_type, canonical_path)


def expected_fields(form_type: FormType | str | None) -> frozenset[str]:
    """Canonical paths a form type should produce, per the default tables."""
    return DEFAULT_MAPPER.expected_fields(form_type)
