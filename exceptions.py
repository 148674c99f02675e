"""Exception hierarchy for the library catalog."""

from typing import Optional


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class StoreError(CatalogError):
    """The entity store failed. Never retried, never swallowed."""

    def __init__(self, operation: str, kind: str, message: str = ""):
        super().__init__(message or f"Store operation '{operation}' failed",
                         {"operation": operation, "kind": kind})
        self.operation = operation
        self.kind = kind


class NotFoundError(CatalogError):
    """The targeted entity id does not exist."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found", {"id": entity_id})
        self.kind = kind
        self.entity_id = entity_id
