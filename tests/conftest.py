"""
Pytest configuration and shared fixtures for a11y-intelligence tests.

Provides raw scanner output factories, an in-memory audit database,
and fake LLM / scanner collaborators.
"""

import os
import tempfile

# Keep test log files out of the working tree
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "a11y-intelligence-test-logs"))

import pytest

from a11y_intelligence.config import ScoringConfig
from a11y_intelligence.jobs.scanners import ScannerCollaborator
from a11y_intelligence.services.consensus_engine import ConsensusEngine
from db.audit_store import AuditStore
from db.database_manager import DatabaseManager


# Test markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# Raw scanner output factories
def make_axe_violation(rule_id, impact="serious", selectors=("#main",), tags=("wcag2aa",), html="<div></div>", **extra):
    """Build an axe-core violation object with one node per selector."""
    violation = {
        "id": rule_id,
        "impact": impact,
        "description": f"{rule_id} description",
        "help": f"{rule_id} help",
        "helpUrl": f"https://dequeuniversity.com/rules/axe/4.10/{rule_id}",
        "tags": list(tags),
        "nodes": [{"target": [selector], "html": html} for selector in selectors],
    }
    violation.update(extra)
    return violation


def make_pa11y_issue(code, issue_type="error", selector="#main", context="<div></div>", message=None):
    """Build a Pa11y issue object."""
    return {
        "code": code,
        "type": issue_type,
        "typeCode": {"error": 1, "warning": 2, "notice": 3}.get(issue_type, 1),
        "message": message or f"Pa11y says {code}",
        "selector": selector,
        "context": context,
        "runner": "htmlcs",
    }


def make_axe_results(violations=(), passes=0, incomplete=0, inapplicable=0):
    """Build a full axe-core results object."""
    return {
        "violations": list(violations),
        "passes": [{"id": f"pass-{i}"} for i in range(passes)],
        "incomplete": [{"id": f"incomplete-{i}"} for i in range(incomplete)],
        "inapplicable": [{"id": f"inapplicable-{i}"} for i in range(inapplicable)],
    }


@pytest.fixture
def axe_violation():
    return make_axe_violation


@pytest.fixture
def pa11y_issue():
    return make_pa11y_issue


@pytest.fixture
def axe_results():
    return make_axe_results


@pytest.fixture
def scoring_config():
    """Default heuristic constants."""
    return ScoringConfig().validate()


@pytest.fixture
def engine(scoring_config):
    """Consensus engine with default configuration."""
    return ConsensusEngine(scoring_config)


# Database fixtures
@pytest.fixture(scope="function")
def db_manager():
    """In-memory SQLite audit database."""
    manager = DatabaseManager("sqlite:///:memory:")
    manager.create_tables()
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def audit_store(db_manager):
    return AuditStore(db_manager)


# Collaborator fakes
class FakeLLMClient:
    """Returns canned replies; raises the given exception when set."""

    def __init__(self, reply="", error=None, summary_reply=None):
        self.reply = reply
        self.error = error
        self.summary_reply = summary_reply
        self.prompts = []

    def complete(self, system_prompt, prompt, max_tokens=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.summary_reply is not None and "executive summary" in prompt:
            return self.summary_reply
        return self.reply

    def complete_json(self, system_prompt, prompt, max_tokens=None):
        from a11y_intelligence.enrichment.llm_client import extract_json
        return extract_json(self.complete(system_prompt, prompt, max_tokens))


class FakeScanner(ScannerCollaborator):
    """Serves fixed axe results and Pa11y issues."""

    def __init__(self, axe_results=None, pa11y_issues=None, secondary_error=None, primary_error=None, title="Test Page"):
        self.axe_results = axe_results if axe_results is not None else make_axe_results()
        self.pa11y_issues = pa11y_issues if pa11y_issues is not None else []
        self.secondary_error = secondary_error
        self.primary_error = primary_error
        self.title = title
        self.calls = []

    def run_primary(self, url):
        self.calls.append(("primary", url))
        if self.primary_error is not None:
            raise self.primary_error
        return self.axe_results

    def run_secondary(self, url):
        self.calls.append(("secondary", url))
        if self.secondary_error is not None:
            raise self.secondary_error
        return self.pa11y_issues

    def page_title(self, url):
        return self.title


@pytest.fixture
def fake_llm():
    return FakeLLMClient


@pytest.fixture
def fake_scanner():
    return FakeScanner
