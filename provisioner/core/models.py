"""Batch entries, per-row outcomes and the aggregate batch report."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class Role(str, Enum):
    """Permission classes that can be granted by a provisioning batch."""

    ADMINISTRATOR = "administrator"
    TEACHER = "teacher"
    PARENT = "parent"

    @property
    def storage_value(self) -> str:
        """Value written to the ``user_roles.role`` column."""
        if self is Role.ADMINISTRATOR:
            return "admin"
        return self.value

    @classmethod
    def parse(cls, raw: Any) -> Optional["Role"]:
        """Return the role for a wire tag (``admin`` accepted), or None."""
        if not isinstance(raw, str):
            return None
        tag = raw.strip().lower()
        if tag in ROLE_ALIASES:
            return ROLE_ALIASES[tag]
        try:
            return cls(tag)
        except ValueError:
            return None


ROLE_ALIASES = {"admin": Role.ADMINISTRATOR}

# Canonical field name -> accepted wire keys, in lookup order
ENTRY_FIELDS = {
    "email": ("email",),
    "secret": ("secret", "password"),
    "full_name": ("full_name",),
    "handle": ("handle", "username"),
}


def entry_value(raw: Any, field_name: str, strip: bool = True) -> str:
    """Return the string for a canonical field, or '' when absent.

    Whitespace-only values count as absent. With ``strip=False`` a present
    value is returned exactly as submitted.
    """
    if not isinstance(raw, dict):
        return ""
    for key in ENTRY_FIELDS[field_name]:
        value = raw.get(key)
        if value is None:
            continue
        text = str(value)
        if text.strip():
            return text.strip() if strip else text
    return ""


@dataclass(frozen=True)
class BatchEntry:
    """One user descriptor of a batch. Consumed once, never persisted."""

    email: str
    secret: str = field(repr=False)
    full_name: str
    handle: str
    temp_student_name: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "BatchEntry":
        student = raw.get("temp_student_name")
        return cls(
            email=entry_value(raw, "email"),
            secret=entry_value(raw, "secret", strip=False),
            full_name=entry_value(raw, "full_name"),
            handle=entry_value(raw, "handle"),
            temp_student_name=str(student) if student else None,
        )


@dataclass
class Success:
    row: int
    email: str
    identifier: str
    temp_student_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"email": self.email, "identifier": self.identifier}
        if self.temp_student_name:
            data["temp_student_name"] = self.temp_student_name
        return data


@dataclass
class Failure:
    row: int
    email: Optional[str]
    messages: list[str] = field(default_factory=list)


Outcome = Union[Success, Failure]


@dataclass
class BatchReport:
    """Aggregate result of one provisioning invocation.

    ``outcomes`` holds exactly one entry per input row, in input order.
    ``failures`` flattens every failure message (a row may contribute more
    than one when its rollback also failed).
    """

    entry_count: int
    outcomes: list[Outcome] = field(default_factory=list)

    def add(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    @property
    def successes(self) -> list[Success]:
        return [o for o in self.outcomes if isinstance(o, Success)]

    @property
    def failures(self) -> list[str]:
        return [m for o in self.outcomes if isinstance(o, Failure) for m in o.messages]

    @property
    def failed_rows(self) -> list[int]:
        return [o.row for o in self.outcomes if isinstance(o, Failure)]

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def overall_success(self) -> bool:
        return self.entry_count > 0 and not self.failed_rows

    def to_dict(self) -> dict:
        """Wire shape returned to callers."""
        outcomes = []
        for outcome in self.outcomes:
            if isinstance(outcome, Success):
                outcomes.append({"row": outcome.row, "status": "created", **outcome.to_dict()})
            else:
                outcomes.append({
                    "row": outcome.row,
                    "status": "failed",
                    "email": outcome.email,
                    "messages": list(outcome.messages),
                })
        return {
            "overallSuccess": self.overall_success,
            "successCount": self.success_count,
            "failures": self.failures,
            "successes": [s.to_dict() for s in self.successes],
            "outcomes": outcomes,
        }
