"""
Domain Exceptions.

Custom exceptions for domain-level errors.
Recoverable conditions (group rule violations, missing catalog references)
are returned inside result objects; these exceptions are reserved for input
that must never reach the engines.
"""

from typing import Optional, Any, Dict


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "DOMAIN_ERROR"
        self.details = details or {}


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            message=f"{entity_type} with id '{entity_id}' not found",
            code="ENTITY_NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": str(entity_id)}
        )


class ValidationException(DomainException):
    """Raised when validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field": field, "value": str(value) if value is not None else None}
        )


class NumericException(ValidationException):
    """Raised when a quantity or price is negative or otherwise not usable."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message, field, value)
        self.code = "NUMERIC_ERROR"


class DataIntegrityException(DomainException):
    """Raised when a referenced assembly or material is missing from the catalog."""

    def __init__(self, entity_type: str, entity_id: Any, context: Optional[str] = None):
        super().__init__(
            message=f"{entity_type} '{entity_id}' is missing from the catalog snapshot",
            code="DATA_INTEGRITY_ERROR",
            details={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "context": context,
            }
        )


class MalformedSnapshotException(DomainException):
    """Raised when a catalog snapshot payload cannot be turned into records."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message=message,
            code="MALFORMED_SNAPSHOT",
            details={"path": path}
        )
