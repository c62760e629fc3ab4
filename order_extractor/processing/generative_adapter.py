"""Generative extraction with learning-example prompts and heuristic fallback.

The adapter makes exactly one call to the generation capability per document.
Its outcome is one of three explicit states:

- SUCCESS: the response held a JSON object that validated into an AI record
- PARSE_FAILURE: a response arrived but held no JSON object, or one that does
  not fit the GeneratedOrder schema (AI_FAILED record)
- UNAVAILABLE: no capability configured, the call raised or timed out; a
  SIMULATED record from simple label heuristics is returned instead

No state raises to the caller.
"""

import json
import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..config import (
    MODEL_CONFIG,
    PROMPT_EXAMPLE_COUNT,
    PROMPT_MAX_CHARS,
    SIMULATED_BASE_CONFIDENCE,
    SIMULATED_FIELD_BONUS,
)
from ..models.record import (
    GENERIC_FORMAT_ID,
    WIRE_NAMES,
    ExtractionMethod,
    ExtractionRecord,
    canonical_field,
)
from ..services.generation_service import GenerationService
from ..utils.text_normalizer import normalize_date, parse_float, parse_int
from .learning_store import LearningStore

logger = logging.getLogger(__name__)

SIMULATED_ORDER_PATTERN = re.compile(
    r"(?:注文番号|受注番号|発注番号)[:：\s]*([A-Z0-9\-]+)", re.IGNORECASE
)
SIMULATED_PRODUCT_PATTERN = re.compile(
    r"(?:品番|型番)[:：\s]*([A-Z0-9\-]+)", re.IGNORECASE
)

CONTINUES_MARKER = "...(continues)"


class GeneratedOrder(BaseModel):
    """Schema for the JSON object the model is asked to return.

    Responses are validated against it. Alternate key spellings resolve to the
    wire names, and numbers that cannot be read become 0.
    """

    orderNumber: str = Field(
        default="", description="order / receipt / purchase order number (注文番号, 受注番号, 発注番号)"
    )
    customerName: str = Field(default="", description="customer or company name")
    productCode: str = Field(
        default="", description="product code, part number or model number (品番, 製品番号, 型番)"
    )
    productName: str = Field(default="", description="product name (品名, 製品名)")
    material: str = Field(default="", description="material grade (e.g. S14, SUS304, FCD400)")
    unitWeight: float = Field(default=0.0, description="unit weight in kg, number only")
    quantity: int = Field(default=0, description="quantity, number only")
    orderDate: str = Field(default="", description="order date as YYYY-MM-DD")
    deliveryDate: str = Field(default="", description="delivery date as YYYY-MM-DD")
    confidence: int = Field(default=0, description="confidence in this extraction, 0-100")
    notes: str = Field(
        default="", description="special remarks and the reasoning behind the extraction"
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_field_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        resolved: dict[str, Any] = {}
        for key, value in data.items():
            name = canonical_field(key)
            # First spelling wins
            resolved.setdefault(WIRE_NAMES[name] if name else key, value)
        return resolved

    @field_validator(
        "orderNumber", "customerName", "productCode", "productName", "material",
        "orderDate", "deliveryDate", "notes",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            raise ValueError("expected a single value")
        return str(value).strip()

    @field_validator("unitWeight", mode="before")
    @classmethod
    def coerce_weight(cls, value: Any) -> float:
        number = parse_float(value)
        return number if math.isfinite(number) else 0.0

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, value: Any) -> int:
        return parse_int(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, value: Any) -> int:
        return max(0, min(100, parse_int(value)))

    def to_record(self, detected_format: str = GENERIC_FORMAT_ID) -> ExtractionRecord:
        """Convert the validated response into an AI record."""
        return ExtractionRecord(
            order_number=self.orderNumber,
            customer_name=self.customerName,
            product_code=self.productCode,
            product_name=self.productName,
            material=self.material,
            unit_weight=self.unitWeight,
            quantity=self.quantity,
            order_date=normalize_date(self.orderDate),
            delivery_date=normalize_date(self.deliveryDate),
            notes=self.notes,
            detected_format=detected_format,
            confidence=self.confidence,
            extraction_method=ExtractionMethod.AI,
        )


OUTPUT_SHAPE = json.dumps(
    {name: info.description for name, info in GeneratedOrder.model_fields.items()},
    ensure_ascii=False,
    indent=2,
)

EXTRACTION_RULES = """1. Handle the many ways Japanese business documents write the same label
2. Digits may be separated by spaces and may mix full-width and half-width forms
3. Use the casting industry's standard material designations
4. Leave any field you are not confident about as an empty string
5. Record the basis for your extraction in "notes\""""


class GenerationStatus(str, Enum):
    """Outcome of a single generative extraction attempt."""

    SUCCESS = "success"
    PARSE_FAILURE = "parse_failure"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class GenerationOutcome:
    """Explicit result of the generative path."""

    status: GenerationStatus
    record: ExtractionRecord
    detail: str = ""


def find_json_object(text: str) -> dict[str, Any] | None:
    """Return the first well-formed JSON object embedded in text."""
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


class GenerativeExtractionAdapter:
    """Builds prompts, calls the generation capability and normalizes output."""

    def __init__(
        self,
        learning_store: LearningStore,
        generator: GenerationService | None = None,
        example_count: int = PROMPT_EXAMPLE_COUNT,
        max_prompt_chars: int = PROMPT_MAX_CHARS,
        timeout: float | None = float(MODEL_CONFIG["timeout"]),
    ) -> None:
        """Initialize the adapter.

        Args:
            learning_store: Source of recent corrections used as prompt examples
            generator: Generation capability, None to always simulate
            example_count: Number of recent learning examples in each prompt
            max_prompt_chars: Characters of document text included in prompts
            timeout: Seconds to wait for the generator, None to wait indefinitely

        """
        self.learning_store = learning_store
        self.generator = generator
        self.example_count = example_count
        self.max_prompt_chars = max_prompt_chars
        self.timeout = timeout
        self._executor = (
            ThreadPoolExecutor(max_workers=4, thread_name_prefix="generation")
            if timeout is not None else None
        )

    @property
    def is_available(self) -> bool:
        return self.generator is not None

    def build_prompt(self, text: str, context: dict[str, Any] | None = None) -> str:
        """Build the extraction prompt for one document.

        Args:
            text: Plain text of the order document
            context: Optional hints such as a known partner or detected format

        Returns:
            The complete prompt string

        """
        prompt = """You are an expert in the casting industry who processes purchase orders.
Extract the order information from the document below as accurately as possible.
"""

        examples = self.learning_store.format_examples(self.example_count)
        prompt += "\n[Past corrected examples]\n"
        if examples:
            for i, example in enumerate(examples, 1):
                prompt += f"""
Example {i}:
Input text: "{example['input_snippet']}{'...' if example['truncated'] else ''}"
Extraction result: {json.dumps(example['correct_data'], ensure_ascii=False, indent=2)}
"""
        else:
            prompt += "(none yet)\n"

        if context:
            hints = {k: v for k, v in context.items() if v not in (None, "", [], {})}
            if hints:
                prompt += "\n[Context]\n"
                for key, value in hints.items():
                    prompt += f"- {key}: {value}\n"

        excerpt = text[:self.max_prompt_chars]
        if len(text) > self.max_prompt_chars:
            excerpt += f" {CONTINUES_MARKER}"

        prompt += f"""
[Document to extract]
---
{excerpt}
---

[Fields]
Return the following information as JSON:
{OUTPUT_SHAPE}

[Extraction rules]
{EXTRACTION_RULES}

Reply with JSON only:
"""
        return prompt

    def parse_response(self, response: str,
                       detected_format: str = GENERIC_FORMAT_ID) -> GenerationOutcome:
        """Parse a model response into a record.

        Args:
            response: Raw response text
            detected_format: Format id to stamp on the record

        Returns:
            SUCCESS outcome with an AI record, or PARSE_FAILURE with AI_FAILED

        """
        parsed = find_json_object(response or "")
        if parsed is None:
            logger.warning("AI response contained no JSON object")
            return self._parse_failure("no JSON object found", detected_format)

        try:
            order = GeneratedOrder.model_validate(parsed)
        except ValidationError as e:
            fields = ", ".join(str(error["loc"][0]) for error in e.errors() if error["loc"])
            logger.warning(f"AI response did not match the order schema: {fields}")
            return self._parse_failure(f"invalid fields {fields}", detected_format)

        return GenerationOutcome(status=GenerationStatus.SUCCESS, record=order.to_record(detected_format))

    def _parse_failure(self, reason: str, detected_format: str) -> GenerationOutcome:
        return GenerationOutcome(
            status=GenerationStatus.PARSE_FAILURE,
            record=ExtractionRecord(
                detected_format=detected_format,
                confidence=0,
                notes=f"Failed to parse AI response: {reason}",
                extraction_method=ExtractionMethod.AI_FAILED,
            ),
            detail=reason,
        )

    def simulate_extraction(self, text: str, detected_format: str = GENERIC_FORMAT_ID,
                            reason: str = "") -> ExtractionRecord:
        """Heuristic extraction used when no generation capability is usable.

        Confidence starts at 50 and gains 10 per field found.
        """
        values: dict[str, str] = {}
        confidence = SIMULATED_BASE_CONFIDENCE

        order_match = SIMULATED_ORDER_PATTERN.search(text)
        if order_match:
            values["order_number"] = order_match.group(1)
            confidence += SIMULATED_FIELD_BONUS

        product_match = SIMULATED_PRODUCT_PATTERN.search(text)
        if product_match:
            values["product_code"] = product_match.group(1)
            confidence += SIMULATED_FIELD_BONUS

        notes = "AI extraction unavailable, used basic pattern matching"
        if reason:
            notes += f" ({reason})"

        return ExtractionRecord(
            **values,
            notes=notes,
            detected_format=detected_format,
            confidence=confidence,
            extraction_method=ExtractionMethod.SIMULATED,
        )

    def generate(self, text: str, context: dict[str, Any] | None = None) -> GenerationOutcome:
        """Run one generative extraction and report which branch was taken."""
        context = context or {}
        detected_format = str(context.get("detected_format") or GENERIC_FORMAT_ID)

        if self.generator is None:
            logger.info("AI extraction simulated (no generation capability)")
            return GenerationOutcome(
                status=GenerationStatus.UNAVAILABLE,
                record=self.simulate_extraction(text, detected_format),
                detail="no generation capability configured",
            )

        try:
            prompt = self.build_prompt(text, context)
            logger.info("Sending AI extraction prompt")
            response = self._call_generator(prompt)
        except Exception as e:
            logger.error(f"AI extraction error: {e!s}")
            return GenerationOutcome(
                status=GenerationStatus.UNAVAILABLE,
                record=self.simulate_extraction(text, detected_format, reason=str(e) or type(e).__name__),
                detail=str(e) or type(e).__name__,
            )

        outcome = self.parse_response(response, detected_format)
        logger.info(f"AI extraction {outcome.status.value}: confidence {outcome.record.confidence}")
        return outcome

    def extract(self, text: str, context: dict[str, Any] | None = None) -> ExtractionRecord:
        """Extract a record with the generative path; never raises."""
        return self.generate(text, context).record

    def close(self) -> None:
        """Release the generation worker threads without waiting for hung calls."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "GenerativeExtractionAdapter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _call_generator(self, prompt: str) -> str:
        if self.timeout is None:
            return self.generator.generate(prompt)
        if self._executor is None:
            raise RuntimeError("adapter is closed")

        future = self._executor.submit(self.generator.generate, prompt)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            future.cancel()
            raise TimeoutError(f"generation timed out after {self.timeout:.0f}s") from None
