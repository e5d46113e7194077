"""
Shared pytest fixtures for the shipyard test suite.

Autouse fixtures below isolate tests from the working directory:
  - Audit logger -> temp directory (no audit_logs/ left behind)
  - Settings     -> reloaded per test (env changes don't leak)
"""

import pytest


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test."""
    import shipyard.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = audit_mod.AuditLogger(log_dir=tmp_path / "audit_logs")

    yield audit_mod._audit_logger

    audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_settings():
    """Drop cached settings before and after each test."""
    from shipyard.core.config import reset_settings

    reset_settings()
    yield
    reset_settings()
