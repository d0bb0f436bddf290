"""
Entities - Record Types and Their Services
"""

from .record import Record
from .services import (
    RecordService, ConflictError, ValidationFailed, Violation,
    validate_record, validate_fields
)

__all__ = [
    "Record", "RecordService", "ConflictError", "ValidationFailed", "Violation",
    "validate_record", "validate_fields"
]
