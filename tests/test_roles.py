"""Tests for role tagging helpers."""

from shipyard.remote.connection import Connection
from shipyard.remote.identity import AuthMaterial, ConnectionIdentity
from shipyard.remote.roles import RoleSet, with_role


def _conn(name, roles):
    identity = ConnectionIdentity(host=f"{name}.internal", name=name, roles=roles)
    return Connection(identity, AuthMaterial(), gateway=object())


class TestRoleSet:

    def test_membership(self):
        roles = RoleSet(["web", "db"])
        assert roles.has_role("web")
        assert "db" in roles
        assert not roles.has_role("cache")
        assert len(roles) == 2
        assert list(roles) == ["db", "web"]

    def test_source_mutation_does_not_leak(self):
        source = {"web"}
        roles = RoleSet(source)
        source.add("db")
        assert roles.get_roles() == frozenset({"web"})

    def test_compatible_when_either_side_empty(self):
        assert RoleSet().is_compatible_with(RoleSet(["web"]))
        assert RoleSet(["web"]).is_compatible_with(RoleSet())

    def test_compatible_requires_intersection(self):
        assert RoleSet(["web", "db"]).is_compatible_with(RoleSet(["db"]))
        assert not RoleSet(["web"]).is_compatible_with(RoleSet(["db"]))


class TestWithRole:

    def test_filters_pool(self):
        pool = [_conn("a", ["web"]), _conn("b", ["db"]), _conn("c", ["web", "db"])]
        assert [c.get_name() for c in with_role(pool, "web")] == ["a", "c"]
        assert [c.get_name() for c in with_role(pool, "db")] == ["b", "c"]
        assert list(with_role(pool, "workers")) == []
