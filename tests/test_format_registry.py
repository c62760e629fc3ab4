"""Tests for format definitions and the FormatRegistry."""

import pytest

from order_extractor.exceptions import FormatNotFoundError, PatternError, ValidationError
from order_extractor.models.format import GENERIC_FORMAT, FieldPattern, FormatDefinition
from order_extractor.models.record import GENERIC_FORMAT_ID
from order_extractor.processing.format_registry import FormatRegistry


def make_format(format_id="acme", priority=5, indicators=("ACME注文書",), patterns=None):
    return FormatDefinition.from_dict({
        "id": format_id,
        "name": format_id.title(),
        "priority": priority,
        "indicators": list(indicators),
        "patterns": patterns or {},
    })


class TestFormatDefinition:
    """Test suite for FormatDefinition parsing."""

    def test_from_dict_accepts_strings_and_mappings(self):
        """Test indicators and patterns may be plain strings or mappings."""
        fmt = make_format(patterns={
            "orderNumber": [
                r"注文No[:：\s]*(\S+)",
                {"pattern": r"order\s*no[:：\s]*(\S+)", "flags": ["IGNORECASE"]},
            ],
            "customer": [r"(ACME商事)"],
        })

        assert fmt.indicators[0].pattern == "ACME注文書"
        assert len(fmt.patterns_for("order_number")) == 2
        assert fmt.patterns_for("order_number")[1].flags == ("IGNORECASE",)
        assert fmt.patterns_for("customer_name")[0].field == "customer_name"

    def test_invalid_regex_raises(self):
        with pytest.raises(PatternError):
            make_format(indicators=["(unclosed"])

    def test_missing_capture_group_raises(self):
        with pytest.raises(PatternError):
            FieldPattern(field="orderNumber", pattern=r"注文No", group=1)

    def test_group_zero_uses_whole_match(self):
        pattern = FieldPattern(field="material", pattern=r"SUS\d{3}", group=0)
        assert pattern.extract("材質 SUS304 指定") == "SUS304"

    def test_unknown_field_raises(self):
        with pytest.raises(ValidationError):
            FieldPattern(field="colour", pattern=r"(\w+)")

    def test_negative_priority_raises(self):
        with pytest.raises(ValidationError):
            FormatDefinition(id="bad", name="Bad", priority=-1)

    def test_to_dict_round_trip(self):
        fmt = make_format(patterns={"orderNumber": [r"注文No[:：\s]*(\S+)"]})
        assert FormatDefinition.from_dict(fmt.to_dict()) == fmt


class TestFormatRegistry:
    """Test suite for FormatRegistry."""

    def test_new_registry_has_generic(self):
        registry = FormatRegistry()

        assert len(registry) == 1
        assert GENERIC_FORMAT_ID in registry
        assert registry.generic == GENERIC_FORMAT
        assert registry.generic.priority == 0
        assert registry.generic.field_patterns == {}

    def test_builtin_formats_in_registration_order(self, registry):
        ids = [fmt.id for fmt in registry.all()]
        assert ids == [
            GENERIC_FORMAT_ID,
            "company_a",
            "company_b",
            "construction_machinery",
            "automotive",
        ]

    def test_get_unknown_raises(self, registry):
        with pytest.raises(FormatNotFoundError):
            registry.get("company_z")

    def test_find_is_case_insensitive(self, registry):
        assert registry.find("COMPANY_A").id == "company_a"
        assert registry.find("company_z") is None

    def test_register_new_format(self, registry):
        registry.register(make_format())

        assert "acme" in registry
        assert registry.all()[-1].id == "acme"

    def test_replacing_keeps_position(self, registry):
        registry.register(make_format("company_a", priority=3))

        ids = [fmt.id for fmt in registry.all()]
        assert ids.index("company_a") == 1
        assert registry.get("company_a").priority == 3

    def test_generic_cannot_be_replaced(self, registry):
        with pytest.raises(ValidationError):
            registry.register(FormatDefinition(id=GENERIC_FORMAT_ID, name="Other", priority=5))

    def test_add_patterns_appends_after_existing(self, registry):
        existing = registry.get("company_a").patterns_for("order_number")
        new_pattern = FieldPattern(field="orderNumber", pattern=r"注文No[:：\s]*(\S+)")

        added = registry.add_patterns("company_a", "orderNumber", [new_pattern])

        patterns = registry.get("company_a").patterns_for("order_number")
        assert added == 1
        assert patterns[:len(existing)] == existing
        assert patterns[-1] == new_pattern

    def test_add_patterns_skips_duplicates(self, registry):
        pattern = FieldPattern(field="productName", pattern=r"品名[:：\s]*(\S+)")

        assert registry.add_patterns("company_b", "productName", [pattern, pattern]) == 1
        assert registry.add_patterns("company_b", "productName", [pattern]) == 0
        assert len(registry.get("company_b").patterns_for("product_name")) == 1

    def test_add_patterns_unknown_field_raises(self, registry):
        with pytest.raises(ValidationError):
            registry.add_patterns("company_a", "colour", [])

    def test_add_patterns_unknown_format_raises(self, registry):
        pattern = FieldPattern(field="material", pattern=r"材質[:：\s]*(\S+)")
        with pytest.raises(FormatNotFoundError):
            registry.add_patterns("company_z", "material", [pattern])

    def test_merge_custom_patterns(self, registry):
        added = registry.merge_custom_patterns({
            "company_a": {"patterns": {
                "productName": [{"pattern": r"品名[:：\s]*(\S+)", "flags": ["IGNORECASE"]}],
                "notes": ["(unclosed"],
            }},
            "company_z": {"patterns": {"productName": [r"品名[:：\s]*(\S+)"]}},
        })

        assert added == 1
        assert len(registry.get("company_a").patterns_for("product_name")) == 1
        assert registry.get("company_a").patterns_for("notes") == ()

    @pytest.mark.parametrize("custom_formats", [
        {"company_a": "junk"},
        {"company_a": None},
        {"company_a": {"patterns": ["x"]}},
        {"company_a": {"patterns": {"productName": "品名(\\S+)"}}},
        {"company_a": {"patterns": {"productName": [{"pattern": r"品名(\S+)", "group": "x"}]}}},
    ])
    def test_merge_custom_patterns_skips_malformed_entries(self, registry, custom_formats):
        before = registry.get("company_a")

        assert registry.merge_custom_patterns(custom_formats) == 0
        assert registry.get("company_a") == before
