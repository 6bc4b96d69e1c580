"""Error taxonomy for policy mutations."""

from __future__ import annotations

from typing import Optional


class PolicyEngineError(Exception):
    """Base class for errors surfaced to callers of the engine."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(PolicyEngineError):
    """Malformed input (empty name, negative day counts, missing scope reference)."""

    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class AuthorizationError(PolicyEngineError):
    """Actor lacks the capability for the requested action."""

    code = "authorization_error"

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        role: Optional[str] = None,
    ):
        super().__init__(message)
        self.resource = resource
        self.action = action
        self.role = role


class NotFoundError(PolicyEngineError):
    """Referenced record does not exist or belongs to another organization."""

    code = "not_found"

    def __init__(self, message: str, entity_type: Optional[str] = None):
        super().__init__(message)
        self.entity_type = entity_type


class ConflictError(PolicyEngineError):
    """An active assignment already exists for the target scope."""

    code = "conflict"
