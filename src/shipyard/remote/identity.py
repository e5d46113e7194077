# Remote Connection Identity
#
# Immutable description of a remote target: where to connect, as whom,
# under which display name, and which roles the target plays. Built by
# an external resolver before any Connection exists.
#
# Identities compare and hash by ``name`` only so a registry can key
# connections by them.

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from .errors import InvalidIdentityError


@dataclass(frozen=True, eq=False)
class ConnectionIdentity:
    """A named remote target.

    Args:
        host: Hostname or IP address. Must not be empty.
        username: Login user. ``None`` or ``""`` lets the gateway choose.
        name: Identifier used for display and registry lookups.
        roles: Role tags this connection belongs to.
        port: SSH port (default 22).
        stage: Optional deployment stage (``staging``, ``production``...).
    """

    host: str
    username: Optional[str] = None
    name: str = ""
    roles: FrozenSet[str] = field(default_factory=frozenset)
    port: int = 22
    stage: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.host or not str(self.host).strip():
            raise InvalidIdentityError("Connection identity requires a host")
        if int(self.port) <= 0:
            raise InvalidIdentityError(f"Invalid port for {self.host}: {self.port}")
        # Snapshot whatever iterable the caller handed us
        object.__setattr__(self, "roles", frozenset(self.roles or ()))
        if not self.name:
            object.__setattr__(self, "name", self.host)

    @property
    def handle(self) -> str:
        """Display handle, ``name`` or ``name/stage``."""
        if self.stage:
            return f"{self.name}/{self.stage}"
        return self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConnectionIdentity):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        user = f"{self.username}@" if self.username else ""
        return f"{self.handle} ({user}{self.host}:{self.port})"


@dataclass
class AuthMaterial:
    """Credentials handed to the default gateway.

    Exactly which fields are used depends on what is set: an explicit
    key (file or text) wins over the agent, and a password is always
    offered when present.
    """

    password: Optional[str] = None
    key_path: Optional[str] = None
    private_key: Optional[str] = None
    key_passphrase: Optional[str] = None
    agent: bool = False
    knock_sequence: List[int] = field(default_factory=list)

    @property
    def uses_key(self) -> bool:
        return bool(self.key_path or self.private_key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthMaterial":
        """Build from a vault-style credential dict.

        Recognised keys: ``auth_type`` (``key``/``password``/``agent``),
        ``password``, ``private_key``, ``key`` (path), ``key_passphrase``,
        ``agent`` and ``knock_sequence``. Key material is only taken for
        ``auth_type == "key"``.
        """
        auth_type = data.get("auth_type", "password")
        material = cls(
            password=data.get("password") or None,
            key_passphrase=data.get("key_passphrase") or None,
            agent=bool(data.get("agent", False)) or auth_type == "agent",
            knock_sequence=[int(p) for p in data.get("knock_sequence", [])],
        )
        if auth_type == "key":
            material.private_key = data.get("private_key") or None
            material.key_path = data.get("key") or None
        return material

    def __repr__(self) -> str:
        # Never leak secrets into logs
        return (
            f"AuthMaterial(password={'***' if self.password else None}, "
            f"key_path={self.key_path!r}, private_key={'***' if self.private_key else None}, "
            f"agent={self.agent}, knock_sequence={self.knock_sequence})"
        )
