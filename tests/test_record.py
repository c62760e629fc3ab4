"""Tests for the ExtractionRecord model."""

from order_extractor.config import RECORD_FIELDS
from order_extractor.models.record import (
    GENERIC_FORMAT_ID,
    ExtractionMethod,
    ExtractionRecord,
    canonical_field,
    record_to_json_dict,
)


class TestExtractionRecord:
    """Test suite for ExtractionRecord."""

    def test_defaults(self):
        """Test that a new record is fully populated with defaults."""
        record = ExtractionRecord()

        assert record.order_number == ""
        assert record.customer_name == ""
        assert record.unit_weight == 0.0
        assert record.quantity == 0
        assert record.detected_format == GENERIC_FORMAT_ID
        assert record.confidence == 0
        assert record.extraction_method == ExtractionMethod.DETERMINISTIC
        assert record.is_empty()

    def test_to_dict_uses_wire_names(self):
        """Test that serialization carries every record field in camelCase."""
        data = ExtractionRecord(order_number="PO-1").to_dict()

        for name in RECORD_FIELDS:
            assert name in data
        assert data["orderNumber"] == "PO-1"
        assert data["detectedFormat"] == GENERIC_FORMAT_ID
        assert data["extractionMethod"] == "DETERMINISTIC"

    def test_from_mapping_coerces_values(self):
        """Test loose mappings are coerced without raising."""
        record = ExtractionRecord.from_mapping({
            "orderNumber": "  PO-9 ",
            "customer": "A株式会社",
            "unitWeight": "12.5kg",
            "quantity": "１,２００",
            "material": None,
            "unknownKey": "ignored",
        })

        assert record.order_number == "PO-9"
        assert record.customer_name == "A株式会社"
        assert record.unit_weight == 12.5
        assert record.quantity == 1200
        assert record.material == ""

    def test_from_mapping_bad_numbers_default_to_zero(self):
        """Test unparseable numbers fall back to 0."""
        record = ExtractionRecord.from_mapping({"unitWeight": "heavy", "quantity": None})

        assert record.unit_weight == 0.0
        assert record.quantity == 0

    def test_from_mapping_clamps_confidence(self):
        """Test confidence is kept in the 0-100 range."""
        assert ExtractionRecord.from_mapping({"confidence": 250}).confidence == 100
        assert ExtractionRecord.from_mapping({"confidence": -5}).confidence == 0
        assert ExtractionRecord.from_mapping({}).confidence == 0

    def test_from_mapping_ignores_non_mappings(self):
        for data in (None, [1, 2], "junk", 5):
            assert ExtractionRecord.from_mapping(data) == ExtractionRecord()

    def test_from_mapping_overrides(self):
        """Test explicit method and format override the mapping."""
        record = ExtractionRecord.from_mapping(
            {"extractionMethod": "simulated", "detectedFormat": "company_b"},
            extraction_method=ExtractionMethod.AI,
            detected_format="company_a",
        )

        assert record.extraction_method == ExtractionMethod.AI
        assert record.detected_format == "company_a"

    def test_json_round_trip(self):
        """Test the persisted form rebuilds an equal record."""
        record = ExtractionRecord(
            order_number="PO-1",
            quantity=3,
            unit_weight=1.5,
            confidence=70,
            extraction_method=ExtractionMethod.SIMULATED,
            detected_format="company_a",
        )

        assert ExtractionRecord.from_mapping(record_to_json_dict(record)) == record

    def test_corrected_returns_new_record(self):
        """Test corrected leaves the original untouched."""
        record = ExtractionRecord(order_number="PO-1")
        fixed = record.corrected(order_number="PO-2")

        assert record.order_number == "PO-1"
        assert fixed.order_number == "PO-2"
        assert not fixed.is_empty()


class TestExtractionMethod:
    """Test suite for ExtractionMethod."""

    def test_from_string(self):
        assert ExtractionMethod.from_string("ai_failed") == ExtractionMethod.AI_FAILED
        assert ExtractionMethod.from_string("nope") is None
        assert ExtractionMethod.from_string(None) is None

    def test_display_name(self):
        assert ExtractionMethod.AI_FAILED.display_name == "Ai Failed"


def test_canonical_field():
    """Test wire names, aliases and attribute names resolve."""
    assert canonical_field("productCode") == "product_code"
    assert canonical_field("product_code") == "product_code"
    assert canonical_field("customer") == "customer_name"
    assert canonical_field("color") is None
