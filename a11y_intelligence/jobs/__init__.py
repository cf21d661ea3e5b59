"""
A11y Intelligence Jobs

Audit execution around the consensus core:
- scanners: ScannerCollaborator interface and URL validation
- audit_processor: one audit end to end
- job_registry: in-flight audits of this process
- audit_scheduler: APScheduler-driven database queue
"""

from .scanners import ScannerCollaborator, InvalidAuditURL, validate_audit_url
from .audit_processor import AuditProcessor, AuditOutcome
from .job_registry import JobRegistry, JobHandle
from .audit_scheduler import AuditScheduler

__all__ = [
    'ScannerCollaborator',
    'InvalidAuditURL',
    'validate_audit_url',
    'AuditProcessor',
    'AuditOutcome',
    'JobRegistry',
    'JobHandle',
    'AuditScheduler',
]
