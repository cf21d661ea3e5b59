"""
Database models for a11y-intelligence using SQLAlchemy 2.0 style.

Models:
- AccessibilityAudit: One audit request for a URL and its consensus results
- AuditViolation: Immutable snapshot of one reconciled violation of an audit
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


# Use JSON with PostgreSQL variant for cross-database compatibility (SQLite tests + PostgreSQL production)
JSONType = JSON().with_variant(JSONB, "postgresql")


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class AuditStatus(Enum):
    """Lifecycle of an audit record."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AccessibilityAudit(Base):
    """
    Accessibility audit model.

    Attributes:
        id: Primary key
        url: Audited page URL
        status: pending, processing, completed, failed
        page_title: Title of the audited page
        overall_score: Accessibility score (0-100)
        overall_confidence: Consensus confidence (0-100)
        total_violations: Number of reconciled violations
        consensus_count: Violations detected by more than one tool
        unique_count: Violations detected by a single tool
        impact_counts: JSON {critical, serious, moderate, minor}
        tools_used: JSON list of tool names
        primary_summary: JSON axe-core totals
        secondary_summary: JSON Pa11y totals
        audit_summary: JSON breakdowns (WCAG, categories, compliance, risk)
        ai_summary: Executive summary text
        recommendations: JSON list of priority recommendations
        error_message: Failure reason for failed audits
    """

    __tablename__ = "accessibility_audits"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Request
    url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AuditStatus.PENDING.value, index=True,
        comment="pending, processing, completed, failed"
    )
    page_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Results
    overall_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_confidence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_violations: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    consensus_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    unique_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    impact_counts: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    tools_used: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    primary_summary: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    secondary_summary: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    audit_summary: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Enrichment
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recommendations: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)

    # Failure
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False, index=True
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=True
    )

    violations: Mapped[List["AuditViolation"]] = relationship(
        back_populates="audit", cascade="all, delete-orphan", order_by="AuditViolation.id"
    )

    __table_args__ = (
        Index('ix_accessibility_audits_status_updated', 'status', 'updated_at'),
    )

    def __repr__(self) -> str:
        """String representation of AccessibilityAudit."""
        return f"<AccessibilityAudit(id={self.id}, url='{self.url}', status='{self.status}', score={self.overall_score})>"


class AuditViolation(Base):
    """
    Reconciled violation snapshot.

    Attributes:
        id: Primary key
        audit_id: Foreign key to accessibility_audits
        rule_id: Canonical rule id
        impact: critical, serious, moderate, minor
        detected_by: JSON list of tools
        confidence: Violation confidence (0-100)
        wcag_level: A, AA, AAA, Unknown
        wcag_criteria: JSON list of {criterion, level, guideline}
        target: JSON list of element locators (preview)
        element_count: Number of affected elements
        explanation / fix_suggestion / code_example: LLM guidance
    """

    __tablename__ = "audit_violations"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Key
    audit_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('accessibility_audits.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )

    # Violation
    rule_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    impact: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    help_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    detected_by: Mapped[list] = mapped_column(JSONType, nullable=False)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    wcag_level: Mapped[str] = mapped_column(String(10), nullable=False, default="Unknown")
    wcag_criteria: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    selector: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    element_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Enrichment
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fix_suggestion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    code_example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    audit: Mapped[AccessibilityAudit] = relationship(back_populates="violations")

    def __repr__(self) -> str:
        """String representation of AuditViolation."""
        return f"<AuditViolation(id={self.id}, audit_id={self.audit_id}, rule='{self.rule_id}', impact='{self.impact}')>"
