"""
Record services: lifecycle hooks and validation on top of a repository.
"""

from .validation_service import Violation, ValidationFailed, validate_record, validate_fields
from .record_service import RecordService, ConflictError

__all__ = [
    "Violation", "ValidationFailed", "validate_record", "validate_fields",
    "RecordService", "ConflictError"
]
