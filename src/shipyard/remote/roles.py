# Role Tagging
#
# Connections carry a set of role tags ("web", "db", "workers"...) so an
# orchestrator can address every connection playing a given role without
# knowing anything about the transport. The role set is a snapshot taken
# at construction and is read-only from here on.

from typing import FrozenSet, Iterable, Iterator, Protocol, TypeVar


class HasRoles(Protocol):
    def get_roles(self) -> FrozenSet[str]: ...


T = TypeVar("T", bound=HasRoles)


class RoleSet:
    """Read-only role membership, held by composition."""

    def __init__(self, roles: Iterable[str] = ()):
        self._roles: FrozenSet[str] = frozenset(roles)

    def has_role(self, role: str) -> bool:
        return role in self._roles

    def get_roles(self) -> FrozenSet[str]:
        return self._roles

    def is_compatible_with(self, other: HasRoles) -> bool:
        """Whether two role holders may work together.

        Anything without roles is compatible with everything; otherwise
        the two role sets must share at least one tag.
        """
        theirs = other.get_roles()
        if not theirs or not self._roles:
            return True
        return bool(self._roles & theirs)

    def __contains__(self, role: str) -> bool:
        return role in self._roles

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._roles))

    def __len__(self) -> int:
        return len(self._roles)

    def __repr__(self) -> str:
        return f"RoleSet({sorted(self._roles)!r})"


def with_role(holders: Iterable[T], role: str) -> Iterator[T]:
    """Yield the holders tagged with *role*."""
    return (h for h in holders if role in h.get_roles())
