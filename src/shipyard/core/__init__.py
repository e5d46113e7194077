# Core Module - Shared Utilities
#
# - Audit logging of remote activity
# - Runtime settings

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    log_remote_event,
)
from .config import RemoteSettings, get_settings, reset_settings

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "log_remote_event",
    # Settings
    "RemoteSettings",
    "get_settings",
    "reset_settings",
]
