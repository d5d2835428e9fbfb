"""Tests for OCR key-value projection onto canonical fields."""

from decimal import Decimal

import pytest

from dealcheck.extractors.ocr_projection import OcrProjector, project
from dealcheck.mapping.field_mapper import FieldMapper
from dealcheck.schemas.documents import FormType, KeyValuePair


def pair(label, value, confidence=0.9, page=1):
    return KeyValuePair(label=label, value=value, confidence=confidence, page=page)


class TestProjection:
    """Tests for mapped/unmapped splitting."""

    def test_maps_known_lines(self, sample_1040_pairs):
        result = project(FormType.FORM_1040, sample_1040_pairs)

        assert set(result.mapped) == {
            "income.wages_line1",
            "income.totalIncome_line9",
            "income.agi_line11",
        }
        assert [p.label for p in result.unmapped] == ["Your first name"]
        assert result.superseded == []

    def test_mapped_field_details(self, sample_1040_pairs):
        result = project("1040", sample_1040_pairs)
        wages = result.mapped["income.wages_line1"]

        assert wages.value == "$85,000"
        assert wages.amount == Decimal("85000")
        assert wages.line_id == "1"
        assert wages.label == "Line 1"
        assert wages.confidence == pytest.approx(0.98)
        assert wages.page == 1

    def test_no_pair_lost_without_collisions(self, sample_1040_pairs):
        result = project("1040", sample_1040_pairs)
        assert len(result.mapped) + len(result.unmapped) == len(sample_1040_pairs)

    def test_unknown_form_type_leaves_everything_unmapped(self, sample_1040_pairs):
        result = project("W2", sample_1040_pairs)

        assert result.form_type is None
        assert result.mapped == {}
        assert result.unmapped == sample_1040_pairs

    def test_line_known_on_other_form_only(self):
        """Line 31 exists on Schedule C but not on a K-1."""
        result = project("K1", [pair("Line 31", "100")])
        assert result.mapped == {}
        assert len(result.unmapped) == 1

    def test_non_heading_totals_stay_unmapped(self):
        """Labels without a beginning/end period are not Schedule L headings."""
        pairs = [
            pair("Total liabilities incl. dividends payable", "40,000", page=3),
            pair("Total assets pending transfer", "12,000", page=3),
        ]

        result = project("1120", pairs)

        assert result.mapped == {}
        assert result.unmapped == pairs

    def test_non_numeric_value_is_still_mapped(self):
        result = project("1040", [pair("Line 1", "see statement")])
        assert result.mapped["income.wages_line1"].amount is None

    def test_empty_input(self):
        result = project("1040", [])
        assert result.total_pairs == 0


class TestDuplicateResolution:
    """Tests for several readings of the same canonical field."""

    def test_higher_confidence_wins(self):
        low = pair("Line 1", "84,000", confidence=0.70)
        high = pair("1a Wages", "85,000", confidence=0.95)

        result = project("1040", [low, high])

        assert result.mapped["income.wages_line1"].value == "85,000"
        assert [entry.pair for entry in result.superseded] == [low]
        assert result.superseded[0].field_path == "income.wages_line1"
        assert result.superseded[0].line_id == "1"

    def test_lower_confidence_later_is_superseded(self):
        high = pair("Line 1", "85,000", confidence=0.95)
        low = pair("1a", "84,000", confidence=0.70)

        result = project("1040", [high, low])

        assert result.mapped["income.wages_line1"].value == "85,000"
        assert [entry.pair for entry in result.superseded] == [low]

    def test_equal_confidence_keeps_first(self):
        first = pair("Line 1", "85,000", confidence=0.9)
        second = pair("1a", "58,000", confidence=0.9)

        result = project("1040", [first, second])

        assert result.mapped["income.wages_line1"].value == "85,000"
        assert [entry.pair for entry in result.superseded] == [second]

    def test_every_pair_accounted_for(self):
        pairs = [
            pair("Line 1", "1", confidence=0.5),
            pair("1a", "2", confidence=0.9),
            pair("1", "3", confidence=0.7),
            pair("Line 9", "90"),
            pair("Signature", "x"),
        ]

        result = project("1040", pairs)

        assert result.total_pairs == len(pairs)
        assert len(result.mapped) <= 2
        assert result.mapped["income.wages_line1"].value == "2"
        assert len(result.superseded) == 2

    def test_injected_table_with_conflicting_lines(self):
        """Two line numbers declared for one field collide like duplicates."""
        mapper = FieldMapper(tables={FormType.FORM_1040: {"7": "gain.total", "7a": "gain.total"}})
        projector = OcrProjector(mapper)

        result = projector.project("1040", [pair("7", "10", 0.6), pair("7a", "11", 0.8)])

        assert result.mapped["gain.total"].line_id == "7a"
        assert result.superseded[0].line_id == "7"


class TestStructuredView:
    """Tests for the nested structured output."""

    def test_to_structured(self, sample_1040_pairs):
        structured = project("1040", sample_1040_pairs).to_structured()

        assert structured == {
            "income": {
                "wages_line1": Decimal("85000"),
                "totalIncome_line9": Decimal("90000.00"),
                "agi_line11": Decimal("85000"),
            }
        }

    def test_to_dict(self, sample_1040_pairs):
        data = project("1040", sample_1040_pairs).to_dict()

        assert data["form_type"] == "1040"
        assert data["mapped"]["income.wages_line1"]["amount"] == "85000"
        assert data["unmapped"][0]["label"] == "Your first name"
