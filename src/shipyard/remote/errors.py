# Remote Connection Errors
#
# Every failure raised by the connection layer derives from RemoteError
# so callers can catch the whole family in one place. Errors coming
# from collaborators (filesystem, gateway) during passthrough calls are
# NOT wrapped; they propagate unchanged.


class RemoteError(Exception):
    """Base exception for the remote connection layer."""


class InvalidIdentityError(RemoteError, ValueError):
    """Raised when a ConnectionIdentity is built without a usable host."""


class ConnectionFailedError(RemoteError):
    """Raised when the gateway cannot establish a live session."""


class TransferError(RemoteError):
    """Raised when a file upload or download fails."""


class NoFilesystemError(RemoteError):
    """Raised when a local filesystem call is made with none configured."""
