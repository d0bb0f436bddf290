"""
Validation Service - Structural Validation of Record Data

✅ Declared-Rule Validation:
Record types declare their rules with ``Field(...)`` constraints. This module
runs those rules through pydantic and reports failures as a flat list of
field-level violations.

- ``validate_record`` checks a complete record: every declared rule applies,
  missing required fields included.
- ``validate_fields`` checks only the supplied fields, each against its own
  declared rule. Used when there is no stored record to merge with.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Annotated, List, Mapping, Type

from pydantic import TypeAdapter, ValidationError


@dataclass(frozen=True)
class Violation:
    """One failed rule"""
    field: str
    rule: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationFailed(Exception):
    """
    Raised when record data breaks the record type's declared rules.

    Attributes:
        violations: The list of field-level violations
    """

    def __init__(self, record_type: type, violations: List[Violation]):
        self.record_type = record_type
        self.violations = list(violations)
        details = "; ".join(str(v) for v in self.violations)
        super().__init__(f"{record_type.__name__} validation failed: {details}")

    def fields(self) -> List[str]:
        """Names of the fields with violations"""
        return [v.field for v in self.violations]


def _violations(error: ValidationError, prefix: str = "") -> List[Violation]:
    violations = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        if prefix:
            location = f"{prefix}.{location}" if location else prefix
        violations.append(Violation(location or "__root__", item["type"], item["msg"]))
    return violations


@lru_cache(maxsize=None)
def _field_adapter(record_type: type, field_name: str) -> TypeAdapter:
    info = record_type.model_fields[field_name]
    if info.metadata:
        return TypeAdapter(Annotated[(info.annotation, *info.metadata)])
    return TypeAdapter(info.annotation)


def validate_record(record_type: Type, data: Mapping[str, Any]) -> List[Violation]:
    """Validate a complete record; returns the violations, empty when valid"""
    try:
        record_type.model_validate(dict(data))
    except ValidationError as e:
        return _violations(e)
    return []


def validate_fields(record_type: Type, data: Mapping[str, Any]) -> List[Violation]:
    """Validate only the supplied fields; unknown fields are ignored"""
    violations: List[Violation] = []
    for field_name, value in data.items():
        if field_name not in record_type.model_fields:
            continue
        try:
            _field_adapter(record_type, field_name).validate_python(value)
        except ValidationError as e:
            violations.extend(_violations(e, prefix=field_name))
    return violations


__all__ = [
    "Violation", "ValidationFailed", "validate_record", "validate_fields"
]
