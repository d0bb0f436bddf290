"""
Storage backends that keep records in process.
"""

from .memory import MemoryRepository

__all__ = ["MemoryRepository"]
