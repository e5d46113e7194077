# Remote Operations Module
#
# Connection handles, their identities and the SSH gateway behind them.

from .connection import Connection, format_commands
from .errors import (
    ConnectionFailedError,
    InvalidIdentityError,
    NoFilesystemError,
    RemoteError,
    TransferError,
)
from .filesystem import FileMetadata, LocalFilesystem
from .gateway import AsyncSSHGateway, ExitStatus, Gateway
from .identity import AuthMaterial, ConnectionIdentity
from .output import BufferedOutput, LoggerOutput, NullOutput, OutputSink
from .roles import RoleSet, with_role

__all__ = [
    "AsyncSSHGateway",
    "AuthMaterial",
    "BufferedOutput",
    "Connection",
    "ConnectionFailedError",
    "ConnectionIdentity",
    "ExitStatus",
    "FileMetadata",
    "Gateway",
    "InvalidIdentityError",
    "LocalFilesystem",
    "LoggerOutput",
    "NoFilesystemError",
    "NullOutput",
    "OutputSink",
    "RemoteError",
    "RoleSet",
    "TransferError",
    "format_commands",
    "with_role",
]
