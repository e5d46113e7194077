# Runtime Settings
#
# Tunables for the default SSH gateway and the audit log. Values come
# from the environment; a ``.env`` file in the working directory is
# loaded first (existing environment variables win).
#
#   SHIPYARD_CONNECT_TIMEOUT      seconds to wait for the SSH handshake (15)
#   SHIPYARD_KEEPALIVE_INTERVAL   seconds between keepalives, 0 = off (30)
#   SHIPYARD_KNOWN_HOSTS          known_hosts file; unset disables checking
#   SHIPYARD_KNOCK_DELAY          seconds between port knocks (0.5)
#   SHIPYARD_AUDIT_DIR            audit log directory (./audit_logs)

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "SHIPYARD_"


@dataclass(frozen=True)
class RemoteSettings:
    """Settings shared by every connection in the process."""

    connect_timeout: float = 15.0
    keepalive_interval: float = 30.0
    known_hosts: Optional[str] = None
    knock_delay: float = 0.5
    audit_dir: Path = Path("./audit_logs")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "RemoteSettings":
        """Build settings from *environ* (default: ``os.environ`` + ``.env``)."""
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path, override=False)
            environ = os.environ

        def _float(key: str, default: float) -> float:
            raw = environ.get(ENV_PREFIX + key, "")
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError:
                logger.warning(f"Ignoring invalid {ENV_PREFIX}{key}={raw!r}, using {default}")
                return default

        return cls(
            connect_timeout=_float("CONNECT_TIMEOUT", cls.connect_timeout),
            keepalive_interval=_float("KEEPALIVE_INTERVAL", cls.keepalive_interval),
            known_hosts=environ.get(ENV_PREFIX + "KNOWN_HOSTS") or None,
            knock_delay=_float("KNOCK_DELAY", cls.knock_delay),
            audit_dir=Path(environ.get(ENV_PREFIX + "AUDIT_DIR") or cls.audit_dir),
        )


# Global settings instance
_settings: Optional[RemoteSettings] = None


def get_settings() -> RemoteSettings:
    """Get process-wide settings (loaded once, singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = RemoteSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
