"""
OCR label → line identifier normalization.

Labels arrive as the OCR service printed them: "Line 7", "1a Gross receipts
or sales", "7. Capital gain or (loss)", "K-4a", "Schedule L - Total assets,
beginning of year". An ordered tuple of matchers turns them into line
identifiers ("7", "1a", "k_4a", "schedule_l_total_assets_boy").

Order is part of the contract, first match wins:
1. explicit "Line N" prefix
2. leading line token followed by punctuation or whitespace
3. bare line token making up the whole label
4. Schedule K token, emitted as k_<n>
5. balance-sheet heading (concept keyword + beginning/end keyword)

No match gives None: the label stays unmapped and a fallback path (e.g.
AI-assisted extraction) handles that field.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelMatcher:
    """One normalization rule: a pattern plus what to emit on a match."""

    name: str
    pattern: re.Pattern
    extract: Callable[[re.Match], Optional[str]]

    def match(self, label: str) -> Optional[str]:
        found = self.pattern.search(label)
        if not found:
            return None
        return self.extract(found)


def _line_token(found: re.Match) -> str:
    return found.group(1).lower()


def _schedule_k_token(found: re.Match) -> str:
    return f"k_{found.group(1).lower()}"


# (concept keywords, all required) → identifier stem.
# Liabilities-and-equity is tested before plain liabilities.
BALANCE_SHEET_CONCEPTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("total assets",), "schedule_l_total_assets"),
    (("total liab", "equity"), "schedule_l_total_liab_equity"),
    (("total liab",), "schedule_l_total_liabilities"),
    (("retained",), "schedule_l_retained_earnings"),
    (("partner", "capital"), "schedule_l_partners_capital"),
)

# Whole words only: "dividends" and "pending" are not period markers
BEGINNING_PATTERN = re.compile(r"\bbegin(?:ning)?\b")
ENDING_PATTERN = re.compile(r"\bend(?:ing)?\b")


def _balance_sheet_heading(found: re.Match) -> Optional[str]:
    content = found.group(1).lower()

    if BEGINNING_PATTERN.search(content):
        suffix = "boy"
    elif ENDING_PATTERN.search(content):
        suffix = "eoy"
    else:
        return None

    for keywords, stem in BALANCE_SHEET_CONCEPTS:
        if all(keyword in content for keyword in keywords):
            return f"{stem}_{suffix}"
    return None


LINE_PREFIX = LabelMatcher(
    name="line_prefix",
    pattern=re.compile(r"^line\s+(\d+[a-z]?)\b", re.IGNORECASE),
    extract=_line_token,
)

LEADING_TOKEN = LabelMatcher(
    name="leading_token",
    pattern=re.compile(r"^(\d+[a-z]?)[\s.)\-:]", re.IGNORECASE),
    extract=_line_token,
)

BARE_TOKEN = LabelMatcher(
    name="bare_token",
    pattern=re.compile(r"^(\d+[a-z]?)$", re.IGNORECASE),
    extract=_line_token,
)

SCHEDULE_K_TOKEN = LabelMatcher(
    name="schedule_k_token",
    pattern=re.compile(r"^k[\s\-_]?(\d+[a-z]?)\b", re.IGNORECASE),
    extract=_schedule_k_token,
)

BALANCE_SHEET_HEADING = LabelMatcher(
    name="balance_sheet_heading",
    pattern=re.compile(r"^(?:schedule\s*l\s*[-:]?\s*)?(.+)$", re.IGNORECASE),
    extract=_balance_sheet_heading,
)

DEFAULT_MATCHERS: tuple[LabelMatcher, ...] = (
    LINE_PREFIX,
    LEADING_TOKEN,
    BARE_TOKEN,
    SCHEDULE_K_TOKEN,
    BALANCE_SHEET_HEADING,
)


def normalize_line_identifier(
    raw_label: str,
    matchers: Sequence[LabelMatcher] = DEFAULT_MATCHERS,
) -> Optional[str]:
    """Normalize an OCR label into a line identifier, or None."""
    if not isinstance(raw_label, str):
        return None

    cleaned = raw_label.strip()
    if not cleaned:
        return None

    for matcher in matchers:
        line_id = matcher.match(cleaned)
        if line_id:
            return line_id

    logger.debug("No line identifier in label %r", cleaned)
    return None
