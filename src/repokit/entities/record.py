"""
Record - Base Model for Stored Records

Every record type derives from ``Record``. Plain subclasses are used with the
in-memory and remote backends; ``table=True`` subclasses are mapped tables for
the relational backend. Field constraints declared with ``Field(...)`` are the
type's validation rules.

Usage:
    class Product(Record, table=True):
        name: str = Field(min_length=1)
        price: float = Field(ge=0)
"""

from typing import Any, Dict, Optional

from sqlmodel import SQLModel, Field


class Record(SQLModel):
    """Base class for all record types"""

    # Opaque identifier, assigned by the repository when absent
    id: Optional[str] = Field(default=None, primary_key=True)

    def to_dict(self) -> Dict[str, Any]:
        """Field values as a plain dictionary"""
        return self.model_dump()


__all__ = ["Record"]
