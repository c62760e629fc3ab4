"""Tests for the GenerativeExtractionAdapter."""

import threading

import pytest
from pydantic import ValidationError

from order_extractor.exceptions import GenerationError
from order_extractor.models.record import ExtractionMethod, ExtractionRecord
from order_extractor.processing.generative_adapter import (
    CONTINUES_MARKER,
    GeneratedOrder,
    GenerationStatus,
    GenerativeExtractionAdapter,
    find_json_object,
)


class TestSimulatedExtraction:
    """Test suite for the fallback used without a generation capability."""

    def test_unconfigured_capability_is_simulated(self, simulated_adapter):
        record = simulated_adapter.extract("取引先への連絡事項のみ")

        assert record.extraction_method == ExtractionMethod.SIMULATED
        assert record.confidence >= 50
        assert record.notes

    def test_simulated_confidence_grows_with_fields(self, simulated_adapter):
        record = simulated_adapter.extract("注文番号: ORD-001\n品番: ABC-1")

        assert record.order_number == "ORD-001"
        assert record.product_code == "ABC-1"
        assert record.confidence == 70

    def test_generate_reports_unavailable(self, simulated_adapter):
        outcome = simulated_adapter.generate("受注番号：R-55", {"detected_format": "company_b"})

        assert outcome.status == GenerationStatus.UNAVAILABLE
        assert outcome.record.order_number == "R-55"
        assert outcome.record.detected_format == "company_b"
        assert not simulated_adapter.is_available


class TestGeneratedResponses:
    """Test suite for responses from a generation capability."""

    def test_json_response_becomes_ai_record(self, learning_store, make_generator):
        generator = make_generator(
            'Here you go: {"orderNumber": "PO-1", "customerName": "B工業", '
            '"quantity": "1,200", "unitWeight": 3.5, "orderDate": "2024年3月5日", '
            '"confidence": 85, "notes": "from header"}'
        )
        adapter = GenerativeExtractionAdapter(learning_store, generator=generator)

        outcome = adapter.generate("document text", {"detected_format": "company_b"})

        record = outcome.record
        assert outcome.status == GenerationStatus.SUCCESS
        assert record.extraction_method == ExtractionMethod.AI
        assert record.order_number == "PO-1"
        assert record.customer_name == "B工業"
        assert record.quantity == 1200
        assert record.unit_weight == 3.5
        assert record.order_date == "2024-03-05"
        assert record.confidence == 85
        assert record.detected_format == "company_b"
        assert len(generator.prompts) == 1

    def test_non_json_response_is_parse_failure(self, learning_store, make_generator):
        adapter = GenerativeExtractionAdapter(
            learning_store, generator=make_generator("Sorry, I cannot read this document.")
        )

        outcome = adapter.generate("document text")

        assert outcome.status == GenerationStatus.PARSE_FAILURE
        assert outcome.record.extraction_method == ExtractionMethod.AI_FAILED
        assert outcome.record.confidence == 0
        assert "parse" in outcome.record.notes.lower()

    def test_response_keys_resolve_aliases(self, learning_store, make_generator):
        adapter = GenerativeExtractionAdapter(
            learning_store,
            generator=make_generator('{"customer": "C製作所", "product_code": "P-1", "unitWeight": "１２.５kg"}'),
        )

        record = adapter.generate("document text").record

        assert record.customer_name == "C製作所"
        assert record.product_code == "P-1"
        assert record.unit_weight == 12.5

    def test_nested_value_is_parse_failure(self, learning_store, make_generator):
        adapter = GenerativeExtractionAdapter(
            learning_store,
            generator=make_generator('{"orderNumber": {"value": "PO-1"}, "productCode": "P-1"}'),
        )

        outcome = adapter.generate("document text")

        assert outcome.status == GenerationStatus.PARSE_FAILURE
        assert outcome.record.extraction_method == ExtractionMethod.AI_FAILED
        assert "orderNumber" in outcome.detail

    def test_close_releases_hung_generation(self, learning_store):
        release = threading.Event()

        class HungGenerator:
            def generate(self, prompt):
                release.wait(5)
                return "{}"

        try:
            with GenerativeExtractionAdapter(learning_store, generator=HungGenerator(),
                                             timeout=0.05) as adapter:
                adapter.generate("品番: ABC-1")
            outcome = adapter.generate("品番: ABC-1")
        finally:
            release.set()

        assert outcome.status == GenerationStatus.UNAVAILABLE
        assert outcome.detail == "adapter is closed"

    def test_close_without_timeout_is_noop(self, learning_store, make_generator):
        adapter = GenerativeExtractionAdapter(learning_store, generator=make_generator("{}"), timeout=None)

        adapter.close()

        assert adapter.generate("text").status == GenerationStatus.SUCCESS

    def test_generator_error_falls_back_to_simulation(self, learning_store, make_generator):
        adapter = GenerativeExtractionAdapter(
            learning_store, generator=make_generator(error=GenerationError("rate limited"))
        )

        outcome = adapter.generate("注文番号: ORD-9")

        assert outcome.status == GenerationStatus.UNAVAILABLE
        assert outcome.record.extraction_method == ExtractionMethod.SIMULATED
        assert outcome.record.order_number == "ORD-9"
        assert "rate limited" in outcome.record.notes

    def test_slow_generator_times_out(self, learning_store):
        release = threading.Event()

        class SlowGenerator:
            def generate(self, prompt):
                release.wait(5)
                return "{}"

        adapter = GenerativeExtractionAdapter(learning_store, generator=SlowGenerator(), timeout=0.05)
        try:
            outcome = adapter.generate("品番: ABC-1")
        finally:
            release.set()

        assert outcome.status == GenerationStatus.UNAVAILABLE
        assert outcome.record.extraction_method == ExtractionMethod.SIMULATED
        assert "timed out" in outcome.detail

    def test_extract_never_raises(self, learning_store, make_generator):
        adapter = GenerativeExtractionAdapter(
            learning_store, generator=make_generator(error=RuntimeError("boom"))
        )

        assert isinstance(adapter.extract("text"), ExtractionRecord)


class TestBuildPrompt:
    """Test suite for prompt construction."""

    def test_long_text_is_truncated(self, simulated_adapter):
        prompt = simulated_adapter.build_prompt("x" * 2500)

        assert "x" * 2000 + " " + CONTINUES_MARKER in prompt
        assert "x" * 2001 not in prompt

    def test_short_text_has_no_marker(self, simulated_adapter):
        prompt = simulated_adapter.build_prompt("注文番号: PO-1")

        assert "注文番号: PO-1" in prompt
        assert CONTINUES_MARKER not in prompt
        assert "(none yet)" in prompt

    def test_includes_five_most_recent_examples(self, learning_store, simulated_adapter):
        for i in range(6):
            learning_store.add_entry(f"注文番号: ORD-{i}", ExtractionRecord(order_number=f"ORD-{i}"))

        prompt = simulated_adapter.build_prompt("document")

        assert "Example 5:" in prompt
        assert "Example 6:" not in prompt
        assert "ORD-0" not in prompt
        assert '"orderNumber": "ORD-5"' in prompt

    def test_lists_fields_and_context(self, simulated_adapter):
        prompt = simulated_adapter.build_prompt(
            "document", {"detected_format": "company_a", "missing_fields": "", "partner_hint": None}
        )

        assert "- detected_format: company_a" in prompt
        assert "missing_fields" not in prompt
        for key in ("orderNumber", "customerName", "unitWeight", "deliveryDate", "confidence"):
            assert f'"{key}"' in prompt


@pytest.mark.parametrize("text,expected", [
    ('{"a": 1}', {"a": 1}),
    ('prefix {"a": {"b": 2}} suffix', {"a": {"b": 2}}),
    ('{broken} then {"a": 1}', {"a": 1}),
    ("[1, 2]", None),
    ("no json here", None),
    ("", None),
])
def test_find_json_object(text, expected):
    assert find_json_object(text) == expected


class TestGeneratedOrder:
    """Test suite for validating model responses against the order schema."""

    def test_unreadable_numbers_become_zero(self):
        order = GeneratedOrder.model_validate({"unitWeight": "heavy", "quantity": None, "confidence": "n/a"})

        assert (order.unitWeight, order.quantity, order.confidence) == (0.0, 0, 0)

    def test_confidence_is_clamped(self):
        assert GeneratedOrder.model_validate({"confidence": 250}).confidence == 100
        assert GeneratedOrder.model_validate({"confidence": -5}).confidence == 0

    def test_first_spelling_wins(self):
        order = GeneratedOrder.model_validate({"customerName": "B工業", "customer": "other"})

        assert order.customerName == "B工業"

    def test_list_value_is_rejected(self):
        with pytest.raises(ValidationError):
            GeneratedOrder.model_validate({"material": ["SUS304", "FC250"]})

    def test_to_record_normalizes_dates(self):
        record = GeneratedOrder.model_validate(
            {"orderNumber": " PO-1 ", "deliveryDate": "2024年3月5日", "quantity": 3.7}
        ).to_record("company_a")

        assert record.order_number == "PO-1"
        assert record.delivery_date == "2024-03-05"
        assert record.quantity == 3
        assert record.extraction_method == ExtractionMethod.AI
        assert record.detected_format == "company_a"
