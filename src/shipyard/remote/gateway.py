# SSH Gateway
#
# The gateway is the transport behind a Connection: it opens the SSH
# session, runs one command at a time, hands its output back one line
# per call, reports the exit status and moves files over SFTP.
#
# Connection only depends on the Gateway protocol below; AsyncSSHGateway
# is the default implementation, built on asyncssh.
#
# Output contract:
#   run(cmd)       -> start the remote process (stderr merged into stdout)
#   next_line()    -> next line without its newline, None at end of output
#   status()       -> exit code once the output is drained, False if unknown
#   abort()        -> close a command whose output was not drained
#
# Remote output and remote files are bytes. They are decoded as UTF-8 with
# undecodable bytes replaced, so a stray latin-1 filename cannot break
# the stream.

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union

import asyncssh

from ..core.audit_log import EventSeverity, EventType, log_remote_event
from ..core.config import RemoteSettings, get_settings
from .errors import TransferError
from .filesystem import LocalFilesystem
from .identity import AuthMaterial
from .knock_client import KnockClient

logger = logging.getLogger(__name__)

RawStatus = Union[int, bool]

OUTPUT_ENCODING = "utf-8"


class Gateway(Protocol):
    """What a Connection needs from its transport."""

    async def connect(self, username: Optional[str]) -> bool: ...

    def connected(self) -> bool: ...

    async def run(self, command: str) -> None: ...

    async def next_line(self) -> Optional[str]: ...

    def abort(self) -> None: ...

    def status(self) -> RawStatus: ...

    async def get(self, remote: str, local: str) -> Any: ...

    async def get_string(self, remote: str) -> str: ...

    async def put(self, local: str, remote: str) -> Any: ...

    async def put_string(self, remote: str, contents: str) -> Any: ...


@dataclass(frozen=True)
class ExitStatus:
    """Typed view of a gateway exit status.

    ``code`` is the numeric exit code, or ``None`` when the transport
    could not determine one (the gateway reported a boolean).
    """
    code: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: Optional[RawStatus]) -> "ExitStatus":
        if raw is None or isinstance(raw, bool):
            return cls(None)
        return cls(int(raw))

    @property
    def known(self) -> bool:
        return self.code is not None

    @property
    def succeeded(self) -> bool:
        return self.code == 0


class AsyncSSHGateway:
    """Gateway backed by an asyncssh client connection.

    Args:
        host: Remote hostname or IP address.
        auth: Credentials for the session.
        filesystem: Local filesystem that resolves the local side of
            get()/put() transfers.
        port: SSH port (default 22).
        settings: Timeouts and host key policy (default: process settings).
    """

    def __init__(
        self,
        host: str,
        auth: AuthMaterial,
        filesystem: Optional[LocalFilesystem] = None,
        port: int = 22,
        settings: Optional[RemoteSettings] = None,
    ):
        self.host = host
        self.port = port
        self.auth = auth
        self.filesystem = filesystem or LocalFilesystem("/")
        self.settings = settings or get_settings()
        self._conn: Optional[Any] = None  # asyncssh.SSHClientConnection
        self._process: Optional[Any] = None  # asyncssh.SSHClientProcess
        self._exit_status: RawStatus = False

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def connected(self) -> bool:
        return self._conn is not None and not self._conn.is_closed()

    async def connect(self, username: Optional[str]) -> bool:
        """Open the SSH session. Returns False if it cannot be opened."""
        if self.connected():
            return True

        if self.auth.knock_sequence:
            knocker = KnockClient(self.host, self.auth.knock_sequence, self.settings.knock_delay)
            if not await knocker.knock_async():
                logger.warning(f"Port knock sequence failed for {self.host}")
                return False

        try:
            conn_kwargs = self._connect_options(username)
        except (OSError, asyncssh.Error, ValueError) as exc:
            logger.error(f"Unable to load SSH key for {self.host}: {exc}")
            return False

        try:
            self._conn = await asyncssh.connect(**conn_kwargs)
        except asyncssh.PermissionDenied as exc:
            logger.error(f"SSH authentication failed for {username or ''}@{self.host}:{self.port}: {exc}")
            return False
        except (OSError, asyncssh.Error) as exc:
            logger.error(f"SSH connection to {self.host}:{self.port} failed: {exc}")
            return False

        logger.info(f"SSH connected to {self.host}:{self.port}")
        return True

    def _connect_options(self, username: Optional[str]) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            # None disables host key checking; set SHIPYARD_KNOWN_HOSTS
            # to verify against a known_hosts file.
            "known_hosts": self.settings.known_hosts,
            "connect_timeout": self.settings.connect_timeout,
            "keepalive_interval": self.settings.keepalive_interval,
        }
        if username:
            options["username"] = username
        if self.auth.password:
            options["password"] = self.auth.password

        if self.auth.private_key:
            options["client_keys"] = [
                asyncssh.import_private_key(self.auth.private_key, self.auth.key_passphrase)
            ]
        elif self.auth.key_path:
            options["client_keys"] = [
                asyncssh.read_private_key(self.auth.key_path, self.auth.key_passphrase)
            ]
        elif not self.auth.agent:
            options["client_keys"] = None

        if not self.auth.agent:
            options["agent_path"] = None
        return options

    async def close(self) -> None:
        """Close the SSH session (no-op if not connected)."""
        if self._conn is None:
            return
        self.abort()
        self._conn.close()
        await self._conn.wait_closed()
        self._conn = None
        logger.info(f"SSH disconnected from {self.host}:{self.port}")
        log_remote_event(
            EventType.DISCONNECT,
            EventSeverity.INFO,
            f"Disconnected from {self.host}",
            details={"port": self.port},
            connection=f"{self.host}:{self.port}",
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, command: str) -> None:
        self.abort()
        self._exit_status = False
        # encoding=None hands back raw bytes; next_line() decodes them
        self._process = await self._conn.create_process(
            command, stderr=asyncssh.STDOUT, encoding=None
        )

    def abort(self) -> None:
        """Close the running command's channel without reading the rest of its output."""
        if self._process is None:
            return
        process, self._process = self._process, None
        process.close()
        logger.debug(f"Closed unfinished command channel on {self.host}")

    async def next_line(self) -> Optional[str]:
        if self._process is None:
            return None
        line = await self._process.stdout.readline()
        if line:
            return line.decode(OUTPUT_ENCODING, errors="replace").rstrip("\r\n")

        # End of output: collect the exit status and drop the process
        process, self._process = self._process, None
        completed = await process.wait(check=False)
        if completed.exit_status is not None:
            self._exit_status = completed.exit_status
        return None

    def status(self) -> RawStatus:
        return self._exit_status

    # ------------------------------------------------------------------
    # File transfer (SFTP)
    # ------------------------------------------------------------------

    async def get(self, remote: str, local: str) -> None:
        local_path = self.filesystem.resolve(local)
        try:
            async with self._conn.start_sftp_client() as sftp:
                await sftp.get(remote, str(local_path))
        except (asyncssh.Error, OSError) as exc:
            raise TransferError(f"Download of {remote} from {self.host} failed: {exc}") from exc

    async def get_string(self, remote: str) -> str:
        try:
            async with self._conn.start_sftp_client() as sftp:
                async with sftp.open(remote, "rb") as fh:
                    data = await fh.read()
        except (asyncssh.Error, OSError) as exc:
            raise TransferError(f"Reading {remote} on {self.host} failed: {exc}") from exc
        return data.decode(OUTPUT_ENCODING, errors="replace")

    async def put(self, local: str, remote: str) -> None:
        local_path = self.filesystem.resolve(local)
        try:
            async with self._conn.start_sftp_client() as sftp:
                await sftp.put(str(local_path), remote)
        except (asyncssh.Error, OSError) as exc:
            raise TransferError(f"Upload of {local} to {self.host} failed: {exc}") from exc

    async def put_string(self, remote: str, contents: str) -> None:
        try:
            async with self._conn.start_sftp_client() as sftp:
                async with sftp.open(remote, "wb") as fh:
                    await fh.write(contents.encode(OUTPUT_ENCODING))
        except (asyncssh.Error, OSError) as exc:
            raise TransferError(f"Writing {remote} on {self.host} failed: {exc}") from exc

    def __repr__(self) -> str:
        state = "connected" if self.connected() else "disconnected"
        return f"AsyncSSHGateway({self.host}:{self.port}, {state})"
