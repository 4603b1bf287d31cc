"""Provisioning error taxonomy.

Request-level errors (``ProvisioningError`` subclasses) carry an HTTP status
and reach the caller. Entry-level errors (``EntryError`` subclasses) never
leave their row: the orchestrator turns them into failure messages.
"""
from __future__ import annotations
from typing import Optional


class ProvisioningError(Exception):
    """Request-level error with HTTP status."""

    status = 500

    def __init__(self, detail: str, status: Optional[int] = None):
        self.detail = detail
        if status is not None:
            self.status = status
        super().__init__(detail)

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.detail}


class ValidationError(ProvisioningError):
    """Malformed request: rejected before any store is touched."""

    status = 400


class DeprovisionError(ProvisioningError):
    """Profile deletion failed during teardown."""

    def __init__(self, store: str, detail: str):
        self.store = store
        super().__init__(detail)

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.detail, "store": self.store}


class EntryError(Exception):
    """Failure isolated to one batch row."""

    def __init__(self, row: int, email: Optional[str], detail: str):
        self.row = row
        self.email = email
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.email:
            return f"(row {self.row}: {self.email}) - {self.detail}"
        return f"row {self.row}: {self.detail}"


class MissingFieldsError(EntryError):
    def __init__(self, row: int, email: Optional[str], fields: list[str]):
        self.fields = fields
        super().__init__(row, email, f"required fields ({', '.join(fields)}) are missing or empty")


class DuplicateIdentityError(EntryError):
    def __init__(self, row: int, email: str):
        super().__init__(row, email, "email is already registered")


class StoreWriteError(EntryError):
    def __init__(self, row: int, email: str, store: str, reason: str):
        self.store = store
        super().__init__(row, email, f"failed to create {store}: {reason}")


class UnknownOutcomeError(EntryError):
    """Identity creation timed out; nothing is deleted automatically."""


class CompensationFailure(EntryError):
    def __init__(self, row: int, email: str, step: str, reason: str):
        self.step = step
        super().__init__(
            row,
            email,
            f"rollback of {step} failed: {reason}; manual cleanup required (possible orphaned identity)",
        )
