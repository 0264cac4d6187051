"""
Error taxonomy shared by the engine and the HTTP layer.

  ValidationError  – user input breaks a field or row rule; raised before any write.
  BackendError     – the record store rejected a read or write.
  DerivationError  – upstream data for an auto-derived value is unusable.
                     Callers default the value to zero instead of failing.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

# Substrings that identify an expired/invalid session in backend messages
AUTH_EXPIRY_SIGNATURES = ("invalid refresh token", "jwt expired", "session expired")


class GstPrepError(Exception):
    """Base class for all application errors."""


@dataclass
class Violation:
    field: str
    message: str
    row: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class ValidationError(GstPrepError):
    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        super().__init__("; ".join(v.message for v in self.violations) or "Invalid input")

    @classmethod
    def single(cls, field: str, message: str, row: Optional[str] = None) -> "ValidationError":
        return cls([Violation(field=field, message=message, row=row)])

    def fields(self) -> set[str]:
        return {v.field for v in self.violations}


class BackendError(GstPrepError):
    def __init__(self, message: str, auth_expired: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        if auth_expired is None:
            lowered = message.lower()
            auth_expired = any(sig in lowered for sig in AUTH_EXPIRY_SIGNATURES)
        self.auth_expired = auth_expired


class RecordNotFound(BackendError):
    def __init__(self, message: str):
        super().__init__(message, auth_expired=False)


class DerivationError(GstPrepError):
    pass
