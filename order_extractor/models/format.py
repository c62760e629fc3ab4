"""Partner format definitions expressed as data.

Indicators and field patterns are stored as regex sources plus flag names so
that formats can be authored, persisted and merged without deploying code.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from ..exceptions import PatternError, ValidationError
from .record import GENERIC_FORMAT_ID, canonical_field

_FLAG_NAMES: dict[str, re.RegexFlag] = {
    "IGNORECASE": re.IGNORECASE,
    "I": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "M": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "S": re.DOTALL,
}


@lru_cache(maxsize=1024)
def compile_pattern(source: str, flags: tuple[str, ...] = ()) -> re.Pattern:
    """Compile a regex source with named flags.

    Raises:
        PatternError: If the source is not a valid regex or a flag is unknown

    """
    value = 0
    for name in flags:
        try:
            value |= _FLAG_NAMES[name.upper()]
        except KeyError:
            raise PatternError(f"Unknown regex flag: {name}") from None
    try:
        return re.compile(source, value)
    except re.error as e:
        raise PatternError(f"Invalid pattern {source!r}: {e}") from e


def _normalize_flags(flags: Any) -> tuple[str, ...]:
    if not flags:
        return ()
    if isinstance(flags, str):
        # "im" style shorthand
        return tuple(ch.upper() for ch in flags)
    return tuple(str(f).upper() for f in flags)


@dataclass(frozen=True)
class Indicator:
    """Text-matching rule used only to identify a format."""

    pattern: str
    flags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        compile_pattern(self.pattern, self.flags)

    @property
    def compiled(self) -> re.Pattern:
        return compile_pattern(self.pattern, self.flags)

    def search(self, text: str) -> re.Match | None:
        return self.compiled.search(text)

    def to_dict(self) -> dict[str, Any]:
        return {"pattern": self.pattern, "flags": list(self.flags)}

    @classmethod
    def from_value(cls, value: "str | dict[str, Any] | Indicator") -> "Indicator":
        if isinstance(value, Indicator):
            return value
        if isinstance(value, str):
            return cls(pattern=value)
        return cls(pattern=value["pattern"], flags=_normalize_flags(value.get("flags")))


@dataclass(frozen=True)
class FieldPattern:
    """Extraction rule for one record field.

    ``group`` selects the capture group holding the value; 0 means the whole
    match.
    """

    field: str
    pattern: str
    flags: tuple[str, ...] = ()
    group: int = 1

    def __post_init__(self) -> None:
        name = canonical_field(self.field)
        if name is None:
            raise ValidationError(f"Unknown record field: {self.field}")
        object.__setattr__(self, "field", name)

        compiled = compile_pattern(self.pattern, self.flags)
        if self.group < 0 or self.group > compiled.groups:
            raise PatternError(
                f"Pattern {self.pattern!r} has no capture group {self.group}"
            )

    @property
    def compiled(self) -> re.Pattern:
        return compile_pattern(self.pattern, self.flags)

    def extract(self, text: str) -> str | None:
        """Return the stripped captured value, or None when absent or empty."""
        match = self.compiled.search(text)
        if not match:
            return None
        value = match.group(self.group)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def key(self) -> tuple[str, tuple[str, ...], int]:
        """Identity used to skip duplicate patterns when merging."""
        return (self.pattern, self.flags, self.group)

    def to_dict(self) -> dict[str, Any]:
        return {"pattern": self.pattern, "flags": list(self.flags), "group": self.group}

    @classmethod
    def from_value(
        cls, field_name: str, value: "str | dict[str, Any] | FieldPattern"
    ) -> "FieldPattern":
        if isinstance(value, FieldPattern):
            return value
        if isinstance(value, str):
            return cls(field=field_name, pattern=value)
        return cls(
            field=field_name,
            pattern=value["pattern"],
            flags=_normalize_flags(value.get("flags")),
            group=int(value.get("group", 1)),
        )


@dataclass(frozen=True)
class FormatDefinition:
    """Named partner layout with identification indicators and field patterns."""

    id: str
    name: str
    priority: int = 0
    indicators: tuple[Indicator, ...] = ()
    field_patterns: dict[str, tuple[FieldPattern, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Format id must not be empty")
        if self.priority < 0:
            raise ValidationError(f"Format {self.id} has negative priority")

    @property
    def is_generic(self) -> bool:
        return self.id == GENERIC_FORMAT_ID

    def patterns_for(self, field_name: str) -> tuple[FieldPattern, ...]:
        return self.field_patterns.get(field_name, ())

    def with_patterns(
        self, field_name: str, patterns: list[FieldPattern]
    ) -> "FormatDefinition":
        """Return a copy with patterns appended after the existing ones."""
        merged = dict(self.field_patterns)
        merged[field_name] = tuple(self.patterns_for(field_name)) + tuple(patterns)
        return FormatDefinition(
            id=self.id,
            name=self.name,
            priority=self.priority,
            indicators=self.indicators,
            field_patterns=merged,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert format to a serializable mapping."""
        return {
            "id": self.id,
            "name": self.name,
            "priority": self.priority,
            "indicators": [i.to_dict() for i in self.indicators],
            "patterns": {
                name: [p.to_dict() for p in patterns]
                for name, patterns in self.field_patterns.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FormatDefinition":
        """Build a format from authored data.

        Indicators and patterns may be plain regex strings or mappings with
        ``pattern``, ``flags`` and (for patterns) ``group`` keys.

        Raises:
            ValidationError: If required keys are missing or a field is unknown
            PatternError: If any regex does not compile

        """
        try:
            format_id = data["id"]
            name = data.get("name", format_id)
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Invalid format definition: {e}") from e

        field_patterns: dict[str, tuple[FieldPattern, ...]] = {}
        raw_patterns = data.get("patterns") or data.get("field_patterns") or {}
        for field_name, values in raw_patterns.items():
            patterns = tuple(FieldPattern.from_value(field_name, v) for v in values)
            if not patterns:
                continue
            key = patterns[0].field
            field_patterns[key] = field_patterns.get(key, ()) + patterns

        return cls(
            id=format_id,
            name=name,
            priority=int(data.get("priority", 0)),
            indicators=tuple(Indicator.from_value(i) for i in data.get("indicators", [])),
            field_patterns=field_patterns,
        )


GENERIC_FORMAT = FormatDefinition(id=GENERIC_FORMAT_ID, name="Generic format", priority=0)
