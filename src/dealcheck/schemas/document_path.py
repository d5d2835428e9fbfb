"""
Typed dotted-path access into structured document data.

Paths look like ``income.wages_line1`` or ``scheduleC[0].grossReceipts``.
They are parsed once into typed segments; evaluation never raises on data,
it returns the MISSING sentinel instead. Coercion to a number is a separate,
explicit step (numeric_value) so "absent" and "zero" stay distinguishable
for callers that care.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any, Iterator, Union

from .documents import DocumentValue

ZERO = Decimal("0")

_KEY_PATTERN = re.compile(r"[A-Za-z_$][\w$&-]*|\d+[A-Za-z_]\w*|\d+")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


class DocumentPathError(ValueError):
    """Raised when a path expression itself is malformed."""

    pass


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


@dataclass(frozen=True)
class KeySegment:
    """Object member access."""

    key: str


@dataclass(frozen=True)
class IndexSegment:
    """Array element access."""

    index: int


Segment = Union[KeySegment, IndexSegment]


@dataclass(frozen=True)
class DocumentPath:
    """A parsed path expression."""

    expression: str
    segments: tuple[Segment, ...]

    @classmethod
    def parse(cls, expression: str) -> "DocumentPath":
        return _parse_cached(expression)

    def resolve(self, document: DocumentValue) -> Any:
        current: Any = document
        for segment in self.segments:
            if isinstance(segment, KeySegment):
                if not isinstance(current, dict) or segment.key not in current:
                    return MISSING
                current = current[segment.key]
            else:
                if not isinstance(current, list) or segment.index >= len(current):
                    return MISSING
                current = current[segment.index]
            if current is None:
                return MISSING
        return current

    def __str__(self) -> str:
        return self.expression


@lru_cache(maxsize=1024)
def _parse_cached(expression: str) -> DocumentPath:
    if not expression or not expression.strip():
        raise DocumentPathError("Empty document path")

    segments: list[Segment] = []
    for part in expression.strip().split("."):
        match = _KEY_PATTERN.match(part)
        if not match:
            raise DocumentPathError(f"Invalid path segment {part!r} in {expression!r}")
        segments.append(KeySegment(match.group(0)))

        rest = part[match.end():]
        while rest:
            index_match = _INDEX_PATTERN.match(rest)
            if not index_match:
                raise DocumentPathError(f"Invalid path segment {part!r} in {expression!r}")
            segments.append(IndexSegment(int(index_match.group(1))))
            rest = rest[index_match.end():]

    return DocumentPath(expression=expression.strip(), segments=tuple(segments))


def resolve(document: DocumentValue, path: str | DocumentPath) -> Any:
    """Return the value at path, or MISSING."""
    if not isinstance(path, DocumentPath):
        path = DocumentPath.parse(path)
    return path.resolve(document)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a document value to a Decimal, 0 when it is not a number.

    Numbers: int, finite float, finite Decimal, and strings holding a plain
    number ("1234.50"). Booleans, None, containers, formatted or free text
    and MISSING all coerce to 0.
    """
    if value is MISSING or value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else ZERO
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            number = Decimal(text)
        except InvalidOperation:
            return ZERO
        return number if number.is_finite() else ZERO
    return ZERO


def numeric_value(document: DocumentValue, path: str | DocumentPath) -> Decimal:
    """Value at path as a Decimal; missing or non-numeric → 0."""
    return to_decimal(resolve(document, path))


def first_nonzero(document: DocumentValue, *paths: str) -> Decimal:
    """First non-zero value among alternative schema paths, else 0."""
    for path in paths:
        value = numeric_value(document, path)
        if value != 0:
            return value
    return ZERO


def has_value(document: DocumentValue, path: str | DocumentPath) -> bool:
    """True when the path resolves to something other than None."""
    return resolve(document, path) is not MISSING


def as_records(value: Any) -> list[Any]:
    """A list value as-is, a single object wrapped in a list, else []."""
    if value is MISSING or value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal)):
        return not isinstance(value, Decimal) or value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return False


def flatten_numeric(document: DocumentValue, prefix: str = "") -> Iterator[tuple[str, Decimal]]:
    """
    Yield every numeric leaf as (dotted path, value), in document order.

    Example:
        {"income": {"wages": 50000, "items": [1, {"x": 2}]}}
        → ("income.wages", 50000), ("income.items[0]", 1), ("income.items[1].x", 2)
    """
    if isinstance(document, dict):
        for key, value in document.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            yield from _flatten_value(value, path)
    elif isinstance(document, list):
        for index, value in enumerate(document):
            yield from _flatten_value(value, f"{prefix}[{index}]")


def _flatten_value(value: Any, path: str) -> Iterator[tuple[str, Decimal]]:
    if _is_number(value):
        yield path, to_decimal(value)
    elif isinstance(value, (dict, list)):
        yield from flatten_numeric(value, path)
