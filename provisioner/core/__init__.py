"""Core Business Logic Module

Provisioning logic independent of the HTTP framework.

Module Structure:
    - platform/               : Identity and record store clients (Supabase admin APIs)
    - provisioning_service.py : Bulk provisioning / deprovisioning orchestration
    - compensation.py         : Undo stack used to roll back partial writes
    - models.py               : Roles, batch entries, outcomes, BatchReport
    - validators.py           : Whole-batch and per-entry validation
    - errors.py               : Request-level and entry-level error taxonomy
    - audit.py                : Signed JSONL audit trail

Usage Pattern:
    Modules are NOT auto-imported; import explicitly when needed:
        from provisioner.core.provisioning_service import ProvisioningService, build_service
        from provisioner.core.models import Role, BatchReport
        from provisioner.core.errors import ValidationError, DeprovisionError
"""
