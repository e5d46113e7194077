# Connection Audit Log
#
# Append-only audit trail of remote activity: sessions opened (or
# refused), commands submitted and files moved. Events are written as
# structured JSON lines, one daily file per log directory, so they can be
# replayed for forensics with query_events().

import json
import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

_AUDIT_LOGGER_NAME = "shipyard.audit"


class EventType(str, Enum):
    """Types of remote events that can be logged."""
    # Session
    CONNECT = "connection.connect"
    CONNECT_FAILED = "connection.connect.failed"
    DISCONNECT = "connection.disconnect"

    # Execution
    COMMAND_RUN = "command.run"

    # Transfers
    FILE_DOWNLOADED = "transfer.download"
    FILE_UPLOADED = "transfer.upload"
    TRANSFER_FAILED = "transfer.failed"


class EventSeverity(str, Enum):
    """Severity levels for audit events."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditLogger:
    """
    Append-only audit logger for remote connection events.

    Features:
    - Structured JSON logging via structlog
    - Automatic timestamp and event ID
    - Operator context capture (local user, hostname)
    - Forensic query support
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir or "./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

        self._handler: Optional[logging.Handler] = None
        self._setup_file_handler()

        self.logger = structlog.get_logger(_AUDIT_LOGGER_NAME)

    def _log_file_for(self, day: datetime) -> Path:
        return self.log_dir / f"audit_{day.strftime('%Y-%m-%d')}.log"

    def _setup_file_handler(self):
        """Attach a daily file handler to the dedicated audit logger."""
        log_file = self._log_file_for(datetime.now())

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog renders JSON

        audit_logger = logging.getLogger(_AUDIT_LOGGER_NAME)
        # One audit file at a time; a new AuditLogger replaces the old handler
        for handler in list(audit_logger.handlers):
            audit_logger.removeHandler(handler)
            handler.close()
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        audit_logger.propagate = False
        self._handler = file_handler

    def close(self) -> None:
        """Detach and close the file handler."""
        if self._handler is not None:
            logging.getLogger(_AUDIT_LOGGER_NAME).removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        connection: Optional[str] = None,
    ) -> str:
        """
        Log a remote event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never credentials!)
            connection: Handle of the connection the event belongs to

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())
        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "connection": connection,
            "details": details or {},
            "operator": self._get_operator_context(),
        }

        self.logger.info("remote_event", **event_data)
        if self._handler is not None:
            self._handler.flush()

        return event_id

    def _get_operator_context(self) -> Dict[str, Any]:
        """Local operator context (OS user, hostname, platform)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }

    def query_events(
        self,
        event_types: Optional[List[EventType]] = None,
        severity: Optional[EventSeverity] = None,
        connection: Optional[str] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Query audit logs (forensic analysis).

        Reads every daily file in the log directory, oldest first, and
        returns the most recent *limit* matching events.

        Args:
            event_types: Filter by event types
            severity: Filter by severity level
            connection: Filter by connection handle
            limit: Maximum number of events to return
        """
        wanted_types = {t.value for t in event_types} if event_types else None
        matches: List[Dict[str, Any]] = []

        for log_file in sorted(self.log_dir.glob("audit_*.log")):
            with open(log_file, "r", encoding="utf-8") as fh:
                for raw in fh:
                    try:
                        record = json.loads(raw)
                    except json.JSONDecodeError:
                        continue
                    if record.get("event") != "remote_event":
                        continue
                    if wanted_types and record.get("event_type") not in wanted_types:
                        continue
                    if severity and record.get("severity") != severity.value:
                        continue
                    if connection and record.get("connection") != connection:
                        continue
                    matches.append(record)

        return matches[-limit:] if limit else matches


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        from .config import get_settings
        _audit_logger = AuditLogger(get_settings().audit_dir)
    return _audit_logger


def log_remote_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging remote events.

    Usage:
        log_remote_event(
            EventType.COMMAND_RUN,
            EventSeverity.INFO,
            "git pull && composer install",
            connection="production/web",
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
