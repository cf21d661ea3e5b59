"""
Database module for a11y-intelligence.

This module handles:
- Database connection management
- SQLAlchemy models
- Audit persistence operations
"""

from db.models import Base, AccessibilityAudit, AuditViolation, AuditStatus
from db.database_manager import DatabaseManager, get_db_manager
from db.audit_store import AuditStore

__version__ = "0.1.0"

__all__ = [
    "Base",
    "AccessibilityAudit",
    "AuditViolation",
    "AuditStatus",
    "DatabaseManager",
    "get_db_manager",
    "AuditStore",
]
