"""
shipyard - remote connection layer for deployment tooling.

A Connection is a lazily connected handle to a remote host that runs
shell command sequences, streams their output, and moves files over
the same SSH session.
"""

__version__ = "0.1.0"
__author__ = "Shipyard Team"

from .remote import (
    AuthMaterial,
    Connection,
    ConnectionFailedError,
    ConnectionIdentity,
    InvalidIdentityError,
    RemoteError,
    TransferError,
)

__all__ = [
    "AuthMaterial",
    "Connection",
    "ConnectionFailedError",
    "ConnectionIdentity",
    "InvalidIdentityError",
    "RemoteError",
    "TransferError",
]
