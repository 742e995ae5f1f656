"""
Audit component - Audit logging and querying.
"""

from .component import AuditRecorder, run, run_log, run_query
from .models import (
    AUDIT_ACTIONS,
    ENTITY_TYPES,
    AuditAction,
    AuditEntry,
    AuditListOutput,
    AuditValidationError,
    EntityType,
    LogAuditInput,
    LogOutput,
    QueryAuditInput,
)
from .ports import AuditRepoPort, TimePort

__all__ = [
    "run",
    "run_log",
    "run_query",
    "AuditRecorder",
    "AUDIT_ACTIONS",
    "ENTITY_TYPES",
    "AuditAction",
    "EntityType",
    "AuditEntry",
    "AuditListOutput",
    "AuditValidationError",
    "LogAuditInput",
    "LogOutput",
    "QueryAuditInput",
    "AuditRepoPort",
    "TimePort",
]
