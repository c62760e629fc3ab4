"""Extraction record data model shared by every extraction path."""

from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any

from ..utils.text_normalizer import parse_float, parse_int

GENERIC_FORMAT_ID = "generic"

# snake_case attribute -> camelCase wire name
WIRE_NAMES: dict[str, str] = {
    "order_number": "orderNumber",
    "customer_name": "customerName",
    "product_code": "productCode",
    "product_name": "productName",
    "material": "material",
    "unit_weight": "unitWeight",
    "quantity": "quantity",
    "order_date": "orderDate",
    "delivery_date": "deliveryDate",
    "notes": "notes",
}

# Alternate keys seen in partner format definitions and model responses
FIELD_ALIASES: dict[str, str] = {
    "customer": "customer_name",
    "customerName": "customer_name",
    **{wire: attr for attr, wire in WIRE_NAMES.items()},
}

STRING_FIELDS = (
    "order_number",
    "customer_name",
    "product_code",
    "product_name",
    "material",
    "order_date",
    "delivery_date",
    "notes",
)
NUMERIC_FIELDS = ("unit_weight", "quantity")


def canonical_field(name: str) -> str | None:
    """Resolve a wire name, alias or attribute name to the record attribute."""
    if name in WIRE_NAMES:
        return name
    return FIELD_ALIASES.get(name)


class ExtractionMethod(str, Enum):
    """Provenance tag recording which strategy produced a record."""

    DETERMINISTIC = "DETERMINISTIC"
    AI = "AI"
    AI_FAILED = "AI_FAILED"
    SIMULATED = "SIMULATED"

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.replace("_", " ").title()

    @classmethod
    def from_string(cls, value: str | None) -> "ExtractionMethod | None":
        """Create ExtractionMethod from string value."""
        if not value:
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class ExtractionRecord:
    """Fixed-shape set of order fields extracted from one document.

    Strings default to "" and numbers to 0 so downstream order creation never
    sees a missing attribute. Records are immutable; use ``corrected`` to
    derive an edited copy.
    """

    order_number: str = ""
    customer_name: str = ""
    product_code: str = ""
    product_name: str = ""
    material: str = ""
    unit_weight: float = 0.0
    quantity: int = 0
    order_date: str = ""
    delivery_date: str = ""
    notes: str = ""

    # Metadata
    detected_format: str = GENERIC_FORMAT_ID
    confidence: int = 0  # 0-100, meaningful on generative/simulated records
    extraction_method: ExtractionMethod = ExtractionMethod.DETERMINISTIC

    def corrected(self, **changes: Any) -> "ExtractionRecord":
        """Return a new record with the given attribute changes applied."""
        return replace(self, **changes)

    def field_values(self) -> dict[str, Any]:
        """Get the order fields (no metadata) keyed by attribute name."""
        return {name: getattr(self, name) for name in WIRE_NAMES}

    def to_dict(self) -> dict[str, Any]:
        """Convert record to the camelCase mapping used on the wire."""
        data = {WIRE_NAMES[name]: value for name, value in self.field_values().items()}
        data["detectedFormat"] = self.detected_format
        data["confidence"] = self.confidence
        data["extractionMethod"] = self.extraction_method.value
        return data

    def to_field_dict(self) -> dict[str, Any]:
        """Convert only the order fields to camelCase (used in prompts)."""
        return {WIRE_NAMES[name]: value for name, value in self.field_values().items()}

    @classmethod
    def from_mapping(
        cls,
        data: dict[str, Any] | None,
        extraction_method: ExtractionMethod | None = None,
        detected_format: str | None = None,
    ) -> "ExtractionRecord":
        """Build a record from a loosely typed mapping without raising.

        Accepts camelCase, snake_case and the ``customer`` alias. Numbers are
        coerced with a 0 default, strings default to "". Anything other than a
        mapping yields a default record.

        Args:
            data: Mapping from a model response, persisted entry or caller
            extraction_method: Overrides any method found in the mapping
            detected_format: Overrides any format found in the mapping

        Returns:
            A fully populated ExtractionRecord

        """
        if not isinstance(data, dict):
            data = {}
        values: dict[str, Any] = {}

        for key, raw in data.items():
            name = canonical_field(key)
            if name is None or name in values:
                continue
            if name in NUMERIC_FIELDS:
                values[name] = parse_int(raw) if name == "quantity" else parse_float(raw)
            else:
                values[name] = "" if raw is None else str(raw).strip()

        method = extraction_method or ExtractionMethod.from_string(
            data.get("extractionMethod") or data.get("extraction_method")
        )
        if method is not None:
            values["extraction_method"] = method

        fmt = detected_format or data.get("detectedFormat") or data.get("detected_format")
        if fmt:
            values["detected_format"] = str(fmt)

        if "confidence" in data:
            values["confidence"] = max(0, min(100, parse_int(data.get("confidence"))))

        return cls(**values)

    def is_empty(self) -> bool:
        """Check whether every order field still holds its default."""
        default = ExtractionRecord()
        return all(
            getattr(self, f.name) == getattr(default, f.name)
            for f in fields(self)
            if f.name in WIRE_NAMES
        )


def record_to_json_dict(record: ExtractionRecord) -> dict[str, Any]:
    """Serialize a record for persistence (snake_case, enum as value)."""
    data = asdict(record)
    data["extraction_method"] = record.extraction_method.value
    return data
