"""
Exception hierarchy for the Mushaf library.

Every component raises one of these; raw ``sqlite3`` errors never reach callers.
"""

from typing import Any, Optional


class MushafError(Exception):
    """Base exception for Mushaf errors."""
    pass


class ValidationError(MushafError, ValueError):
    """Malformed or out-of-range input. The caller must correct it."""
    pass


class NotFoundError(MushafError):
    """A referenced entity does not exist or vanished mid-operation."""

    def __init__(self, message: str = "Not found.", entity: Optional[str] = None, entity_id: Any = None):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(MushafError):
    """A uniqueness or positional collision with another entity."""

    def __init__(self, message: str = "Conflict detected.", entity: Optional[str] = None, entity_id: Any = None):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id

    def __str__(self):
        base = super().__str__()
        details = []
        if self.entity:
            details.append(f"Entity: {self.entity}")
        if self.entity_id is not None:
            details.append(f"ID: {self.entity_id}")
        return f"{base} ({', '.join(details)})" if details else base


class ForeignKeyError(MushafError):
    """A write referenced a nonexistent ayah, reciter or source."""

    def __init__(self, message: str = "Foreign key violation.", reference: Optional[str] = None,
                 reference_id: Any = None):
        super().__init__(message)
        self.reference = reference
        self.reference_id = reference_id


class StorageError(MushafError):
    """Underlying storage failure. The whole operation may be retried by the caller."""
    pass


class SchemaError(StorageError):
    """Schema version mismatch or migration failure."""
    pass
