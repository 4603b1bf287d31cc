"""
Provisioning Service Layer: bulk signup and teardown

Creates and removes the multi-store footprint of a principal:

    identity (auth store) ──> profile ──> role assignment ──> teacher record
                                                               (teachers only)

There is no transaction spanning these stores. Each successful write pushes
its undo action onto a per-row CompensationStack; when a later write fails
the stack is unwound newest-first, so a failed row leaves neither an
identity nor partial rows behind (or reports a rollback failure for it).

Rows are processed sequentially and independently: a failure in one row is
recorded in the BatchReport and the loop moves on.

Architecture:
    HTTP API (/api/v1/provisioning/*) ──┐
                                        ├──> provisioning_service.py ──> core.platform ──> Supabase
    CLI (scripts/provision.py) ─────────┘
"""

from __future__ import annotations
import logging
from functools import partial
from typing import Any, Optional, Sequence

from provisioner.config import AppConfig
from provisioner.core import audit
from provisioner.core.compensation import CompensationStack
from provisioner.core.errors import (
    CompensationFailure,
    DeprovisionError,
    DuplicateIdentityError,
    EntryError,
    MissingFieldsError,
    StoreWriteError,
    UnknownOutcomeError,
)
from provisioner.core.models import BatchEntry, BatchReport, Failure, Outcome, Role, Success, entry_value
from provisioner.core.platform import (
    IdentityAlreadyExistsError,
    IdentityNotFoundError,
    IdentityService,
    PlatformAPIError,
    PlatformClient,
    PlatformError,
    PlatformResponseError,
    PlatformTimeoutError,
    RecordService,
)
from provisioner.core.validators import missing_fields, validate_batch

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR = "provisioning-api"


def _reason(exc: PlatformError) -> str:
    """Human-readable cause without the endpoint prefix."""
    if isinstance(exc, PlatformAPIError):
        return exc.message
    return str(exc)


class ProvisioningService:
    """Bulk provisioning and deprovisioning across identity and record stores."""

    def __init__(self, identities: IdentityService, records: RecordService, *, operator: str = DEFAULT_OPERATOR):
        self.identities = identities
        self.records = records
        self.operator = operator

    # ─────────────────────────────────────────────────────────────────────
    # Provisioning
    # ─────────────────────────────────────────────────────────────────────

    def provision_payload(self, payload: Any) -> BatchReport:
        """Validate a decoded request body and provision it.

        Raises:
            ValidationError: If the batch shape or role is invalid
        """
        entries, role = validate_batch(payload)
        return self.provision(entries, role)

    def provision(self, entries: Sequence[Any], role: Role) -> BatchReport:
        """Provision every entry of a batch, in order.

        Args:
            entries: Raw entry objects (dicts) as submitted
            role: Role granted to every entry of the batch

        Returns:
            BatchReport with one outcome per entry
        """
        report = BatchReport(entry_count=len(entries))
        for index, raw in enumerate(entries):
            report.add(self._provision_row(index + 1, raw, role))

        logger.info(
            f"[provision] role={role.value} entries={report.entry_count} "
            f"created={report.success_count} failed={len(report.failed_rows)}"
        )
        return report

    def _provision_row(self, row: int, raw: Any, role: Role) -> Outcome:
        missing = missing_fields(raw)
        if missing:
            email = entry_value(raw, "email") or None
            error = MissingFieldsError(row, email, missing)
            logger.warning(f"[provision] {error.message}")
            self._audit_entry(row, email or "", role, success=False, error=error.message)
            return Failure(row, email, [error.message])

        entry = BatchEntry.from_dict(raw)
        stack = CompensationStack()
        try:
            identifier = self._create_identity(row, entry)
            stack.push(
                f"identity {identifier}",
                partial(self.identities.delete_identity, identifier),
                tolerate=(IdentityNotFoundError,),
            )

            self._write(row, entry, "profile", partial(
                self.records.insert_profile,
                identifier,
                full_name=entry.full_name,
                username=entry.handle,
                email=entry.email,
            ))
            stack.push(f"profile {identifier}", partial(self.records.delete_profile, identifier))

            self._write(row, entry, f"role assignment '{role.value}'", partial(
                self.records.insert_role_assignment, identifier, role.storage_value,
            ))
            stack.push(f"role assignment {identifier}", partial(self.records.delete_role_assignments, identifier))

            if role is Role.TEACHER:
                self._write(row, entry, "teacher record", partial(self.records.insert_teacher, identifier))
        except EntryError as error:
            logger.warning(f"[provision] {error.message}")
            messages = [error.message]
            if len(stack):
                messages.extend(self._rollback(row, entry, stack))
            self._audit_entry(row, entry.email, role, success=False, error=error.message)
            return Failure(row, entry.email, messages)

        self._audit_entry(row, entry.email, role, success=True, identifier=identifier)
        return Success(row, entry.email, identifier, entry.temp_student_name)

    def _create_identity(self, row: int, entry: BatchEntry) -> str:
        try:
            return self.identities.create_identity(
                entry.email,
                entry.secret,
                full_name=entry.full_name,
                username=entry.handle,
            )
        except IdentityAlreadyExistsError as exc:
            raise DuplicateIdentityError(row, entry.email) from exc
        except PlatformTimeoutError as exc:
            raise UnknownOutcomeError(row, entry.email, self._reconcile(entry, "timed out")) from exc
        except PlatformResponseError as exc:
            raise UnknownOutcomeError(
                row, entry.email, self._reconcile(entry, f"returned an unreadable response ({exc.message})")
            ) from exc
        except PlatformError as exc:
            raise StoreWriteError(row, entry.email, "identity", _reason(exc)) from exc

    def _reconcile(self, entry: BatchEntry, cause: str) -> str:
        """Describe an identity creation of unknown outcome after re-querying by email.

        Nothing is deleted here: the identity may be genuine.
        """
        try:
            existing = self.identities.find_identity_by_email(entry.email)
        except PlatformError as exc:
            return (
                f"identity creation {cause} and the outcome could not be verified ({_reason(exc)}); "
                "check the identity store before retrying"
            )
        if existing:
            return (
                f"identity creation {cause} but an identity exists (id={existing.get('id')}); "
                "it was left in place for manual review"
            )
        return f"identity creation {cause} and no identity was created; the row can be retried"

    @staticmethod
    def _write(row: int, entry: BatchEntry, store: str, action) -> None:
        try:
            action()
        except PlatformError as exc:
            raise StoreWriteError(row, entry.email, store, _reason(exc)) from exc

    def _rollback(self, row: int, entry: BatchEntry, stack: CompensationStack) -> list[str]:
        steps = len(stack)
        failures = stack.unwind()
        messages = [
            CompensationFailure(row, entry.email, step, _reason(exc)).message
            for step, exc in failures
        ]
        audit.safe_log_event(
            "provision_rollback",
            entry.email,
            operator=self.operator,
            details={"row": row, "steps": steps, "failed_steps": [step for step, _ in failures]},
            success=not failures,
        )
        return messages

    def _audit_entry(self, row: int, email: str, role: Role, *, success: bool,
                     identifier: Optional[str] = None, error: Optional[str] = None) -> None:
        details: dict[str, Any] = {"row": row, "role": role.value}
        if identifier:
            details["identifier"] = identifier
        if error:
            details["error"] = error
        audit.safe_log_event("provision_entry", email, operator=self.operator, details=details, success=success)

    # ─────────────────────────────────────────────────────────────────────
    # Deprovisioning
    # ─────────────────────────────────────────────────────────────────────

    def deprovision(self, identifier: str) -> None:
        """Remove identity, teacher record, role assignments and profile.

        Every step treats "already absent" as done. Only the profile
        deletion is fatal: the profile is what makes the principal visible
        to the application.

        Raises:
            DeprovisionError: If the profile row could not be deleted
        """
        warnings: list[str] = []

        try:
            self.identities.delete_identity(identifier)
        except IdentityNotFoundError:
            logger.info(f"[deprovision] Identity {identifier} already absent")
        except PlatformError as exc:
            logger.warning(f"[deprovision] Failed to delete identity {identifier}: {exc}")
            warnings.append(f"identity: {_reason(exc)}")

        for store, delete in (
            ("teacher record", self.records.delete_teacher),
            ("role assignment", self.records.delete_role_assignments),
        ):
            try:
                removed = delete(identifier)
                logger.info(f"[deprovision] Removed {removed} {store} row(s) for {identifier}")
            except PlatformError as exc:
                logger.warning(f"[deprovision] Failed to delete {store} for {identifier}: {exc}")
                warnings.append(f"{store}: {_reason(exc)}")

        try:
            self.records.delete_profile(identifier)
        except PlatformError as exc:
            detail = f"Failed to delete profile: {_reason(exc)}"
            logger.error(f"[deprovision] {detail} (identifier={identifier})")
            audit.safe_log_event(
                "deprovision",
                identifier,
                operator=self.operator,
                details={"store": "profile", "error": detail, "warnings": warnings},
                success=False,
            )
            raise DeprovisionError("profile", detail) from exc

        audit.safe_log_event(
            "deprovision",
            identifier,
            operator=self.operator,
            details={"warnings": warnings},
            success=True,
        )


def build_service(cfg: AppConfig, *, operator: str = DEFAULT_OPERATOR) -> ProvisioningService:
    """Wire a ProvisioningService against the configured platform.

    Raises:
        PlatformConfigurationError: If URL or service-role key is missing
    """
    client = PlatformClient(cfg.platform_url, cfg.service_role_key, timeout=cfg.request_timeout)
    return ProvisioningService(IdentityService(client), RecordService(client), operator=operator)
