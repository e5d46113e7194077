# Remote Connection
#
# One logical handle to a remote host. The connection owns exactly one
# gateway, connects it lazily on first use, runs command sequences and
# streams their output line by line, and passes file transfers through
# the same session. Each connection carries a snapshot of its identity's
# roles so orchestrators can pick "all connections with role X".
#
# Connection lifecycle:
#   1. Construct from identity + auth (+ optional pre-built gateway)
#   2. First remote operation calls get_gateway() -> connect if needed
#   3. Later calls re-check the session and reconnect transparently
#   4. The owner discards the connection; the gateway owns teardown
#
# A connection runs one command at a time. Callers that need
# parallelism use one connection per task.

import asyncio
import inspect
import logging
from contextlib import aclosing
from typing import (
    Any, AsyncIterator, Awaitable, Callable, FrozenSet, List, Optional,
    Sequence, Union,
)

from ..core.audit_log import EventSeverity, EventType, log_remote_event
from .errors import ConnectionFailedError, NoFilesystemError, TransferError
from .filesystem import FileMetadata, LocalFilesystem
from .gateway import AsyncSSHGateway, ExitStatus, Gateway, RawStatus
from .identity import AuthMaterial, ConnectionIdentity
from .output import NullOutput, OutputSink
from .roles import HasRoles, RoleSet

logger = logging.getLogger(__name__)

Commands = Union[str, Sequence[str]]
LineCallback = Callable[[str, "Connection"], Optional[Awaitable[None]]]


def format_commands(commands: Commands) -> str:
    """Join a command sequence with ``&&`` so the shell stops at the first failure."""
    if isinstance(commands, str):
        return commands
    return " && ".join(commands)


class Connection:
    """A lazily connected handle to a remote host.

    Args:
        identity: Who and where to connect to.
        auth: Credentials used when the default gateway is built.
        gateway: Pre-built gateway (injection/testing). When omitted an
            AsyncSSHGateway bound to ``identity.host`` and rooted at the
            local filesystem root is created.
    """

    def __init__(
        self,
        identity: ConnectionIdentity,
        auth: Optional[AuthMaterial] = None,
        gateway: Optional[Gateway] = None,
    ):
        self._identity = identity
        if gateway is None:
            gateway = AsyncSSHGateway(
                identity.host,
                auth or AuthMaterial(),
                LocalFilesystem("/"),
                port=identity.port,
            )
        self._gateway: Gateway = gateway
        self._roles = RoleSet(identity.roles)
        self._output: Optional[OutputSink] = None
        self._filesystem: Optional[LocalFilesystem] = None
        self._connect_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Gateway
    # ------------------------------------------------------------------

    async def get_gateway(self) -> Gateway:
        """Return the gateway, connecting it first if needed.

        Raises:
            ConnectionFailedError: the gateway could not connect. Not retried.
        """
        async with self._connect_lock:
            if self._gateway.connected():
                return self._gateway

            try:
                connected = await self._gateway.connect(self.get_username())
            except Exception as exc:
                self._log_connect_failure(str(exc))
                raise ConnectionFailedError("Unable to connect to remote server.") from exc

            if not connected:
                self._log_connect_failure("gateway refused connection")
                raise ConnectionFailedError("Unable to connect to remote server.")

        logger.info(f"Connected to {self._identity}")
        log_remote_event(
            EventType.CONNECT,
            EventSeverity.INFO,
            f"Connected to {self._identity.host}",
            connection=self._identity.handle,
        )
        return self._gateway

    def _log_connect_failure(self, reason: str) -> None:
        logger.error(f"Unable to connect to {self._identity}: {reason}")
        log_remote_event(
            EventType.CONNECT_FAILED,
            EventSeverity.ERROR,
            f"Unable to connect to {self._identity.host}",
            details={"reason": reason},
            connection=self._identity.handle,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def iter_lines(self, commands: Commands) -> AsyncIterator[str]:
        """Run *commands* and yield their output one line at a time.

        The stream ends when the gateway reports end of output; it cannot
        be restarted. Closing the generator before that (an exception in
        the consumer, task cancellation) aborts the remote command.
        """
        gateway = await self.get_gateway()
        command = format_commands(commands)
        log_remote_event(
            EventType.COMMAND_RUN,
            EventSeverity.INFO,
            command,
            connection=self._identity.handle,
        )
        await gateway.run(command)

        drained = False
        try:
            while True:
                line = await gateway.next_line()
                if line is None:
                    drained = True
                    break
                yield line
        finally:
            if not drained:
                logger.warning(f"Output of '{command}' on {self._identity} not drained, aborting")
                gateway.abort()

    async def run(self, commands: Commands, on_line: Optional[LineCallback] = None) -> None:
        """Run a command or a sequence of commands on the remote host.

        Every output line is handed to ``on_line(line, connection)``; a
        coroutine callback is awaited. Without a callback the output is
        drained and discarded. A nonzero exit code does not raise, check
        status() afterwards.
        """
        async with aclosing(self.iter_lines(commands)) as lines:
            async for line in lines:
                if on_line is None:
                    continue
                result = on_line(line, self)
                if inspect.isawaitable(result):
                    await result

    def status(self) -> RawStatus:
        """Exit code of the last command, or False if the gateway can't tell."""
        return self._gateway.status()

    def exit_status(self) -> ExitStatus:
        return ExitStatus.from_raw(self._gateway.status())

    # ------------------------------------------------------------------
    # File transfer
    # ------------------------------------------------------------------

    async def get(self, remote: str, local: str) -> None:
        """Download a remote file to a local path."""
        gateway = await self.get_gateway()
        self._check_transfer(await gateway.get(remote, local), f"Download of {remote} failed")
        self._log_transfer(EventType.FILE_DOWNLOADED, remote, local)

    async def get_string(self, remote: str) -> str:
        """Return the contents of a remote file."""
        gateway = await self.get_gateway()
        contents = await gateway.get_string(remote)
        self._check_transfer(contents, f"Reading {remote} failed")
        return contents

    async def put(self, local: str, remote: str) -> None:
        """Upload a local file to the remote host."""
        gateway = await self.get_gateway()
        self._check_transfer(await gateway.put(local, remote), f"Upload of {local} failed")
        self._log_transfer(EventType.FILE_UPLOADED, remote, local)

    async def put_string(self, remote: str, contents: str) -> None:
        """Write *contents* to a remote file."""
        gateway = await self.get_gateway()
        self._check_transfer(await gateway.put_string(remote, contents), f"Writing {remote} failed")
        self._log_transfer(EventType.FILE_UPLOADED, remote, None)

    def _check_transfer(self, result: Any, message: str) -> None:
        # Gateways may signal failure by returning False instead of raising
        if result is False:
            logger.error(f"{message} on {self._identity}")
            log_remote_event(
                EventType.TRANSFER_FAILED,
                EventSeverity.ERROR,
                message,
                connection=self._identity.handle,
            )
            raise TransferError(f"{message} on {self._identity.host}")

    def _log_transfer(self, event_type: EventType, remote: str, local: Optional[str]) -> None:
        log_remote_event(
            event_type,
            EventSeverity.INFO,
            remote,
            details={"local": local} if local else {},
            connection=self._identity.handle,
        )

    # ------------------------------------------------------------------
    # Local filesystem passthrough
    # ------------------------------------------------------------------

    def get_filesystem(self) -> Optional[LocalFilesystem]:
        return self._filesystem

    def set_filesystem(self, filesystem: Optional[LocalFilesystem]) -> None:
        self._filesystem = filesystem

    def _require_filesystem(self) -> LocalFilesystem:
        if self._filesystem is None:
            raise NoFilesystemError(f"No local filesystem configured on {self.get_name()}")
        return self._filesystem

    def exists(self, path: str) -> bool:
        return self._require_filesystem().exists(path)

    def read(self, path: str) -> str:
        return self._require_filesystem().read(path)

    def write(self, path: str, contents: str) -> bool:
        return self._require_filesystem().write(path, contents)

    def delete(self, path: str) -> bool:
        return self._require_filesystem().delete(path)

    def create_dir(self, path: str) -> bool:
        return self._require_filesystem().create_dir(path)

    def get_metadata(self, path: str) -> FileMetadata:
        return self._require_filesystem().get_metadata(path)

    def list_contents(self, path: str = "", recursive: bool = False) -> List[FileMetadata]:
        return self._require_filesystem().list_contents(path, recursive)

    # ------------------------------------------------------------------
    # Output sink
    # ------------------------------------------------------------------

    def get_output(self) -> OutputSink:
        if self._output is None:
            self._output = NullOutput()
        return self._output

    def set_output(self, output: OutputSink) -> None:
        self._output = output

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    @property
    def roles(self) -> FrozenSet[str]:
        return self._roles.get_roles()

    def has_role(self, role: str) -> bool:
        return self._roles.has_role(role)

    def get_roles(self) -> FrozenSet[str]:
        return self._roles.get_roles()

    def is_compatible_with(self, other: HasRoles) -> bool:
        return self._roles.is_compatible_with(other)

    # ------------------------------------------------------------------
    # Identity accessors
    # ------------------------------------------------------------------

    def get_handle(self) -> ConnectionIdentity:
        return self._identity

    def get_name(self) -> str:
        return self._identity.name

    def get_username(self) -> Optional[str]:
        return self._identity.username

    @property
    def identity(self) -> ConnectionIdentity:
        return self._identity

    @property
    def name(self) -> str:
        return self._identity.name

    @property
    def host(self) -> str:
        return self._identity.host

    def __repr__(self) -> str:
        return f"Connection({self._identity.handle!r}, host={self._identity.host!r})"
