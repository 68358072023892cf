"""Tests for meshledger.network.registry."""

from __future__ import annotations

import pytest

from meshledger.core.exceptions import (
    CapacityError,
    ConfigException,
    ConflictError,
    NotFoundError,
    RegistryError,
    RoleError,
)
from meshledger.network import NodeKind, PeerRegistry, Role


class TestRegisterNode:
    def test_register_light_node(self, registry):
        node = registry.register_node("L1", "light", ["observer"], 10, 5)
        assert node.kind == NodeKind.LIGHT
        assert node.roles == {Role.OBSERVER}
        assert not node.is_full
        assert "L1" in registry

    def test_register_full_archive_node(self, registry):
        node = registry.register_node("F1", NodeKind.FULL, [Role.ARCHIVE, Role.VALIDATOR], 5000, 100)
        assert node.is_full
        assert registry.full_nodes() == [node]
        assert registry.light_nodes() == []

    def test_empty_roles_rejected(self, registry):
        with pytest.raises(RoleError):
            registry.register_node("L1", "light", [], 10, 5)
        assert "L1" not in registry

    def test_unknown_role_rejected(self, registry):
        with pytest.raises(RoleError):
            registry.register_node("L1", "light", ["oracle"], 10, 5)

    def test_unknown_kind_rejected(self, registry):
        with pytest.raises(RoleError) as exc_info:
            registry.register_node("X1", "heavy", ["observer"], 10, 5)
        assert exc_info.value.details["kind"] == "heavy"
        assert "X1" not in registry

    def test_archive_requires_full(self, registry):
        with pytest.raises(RoleError):
            registry.register_node("L1", "light", ["archive"], 10, 5)

    @pytest.mark.parametrize("storage, bandwidth", [(-1, 5), (10, -1)])
    def test_negative_capacity_rejected(self, registry, storage, bandwidth):
        with pytest.raises(CapacityError):
            registry.register_node("L1", "light", ["miner"], storage, bandwidth)

    @pytest.mark.parametrize("storage", [0, 999, 1000])
    def test_full_node_storage_must_exceed_threshold(self, registry, storage):
        with pytest.raises(CapacityError):
            registry.register_node("F1", "full", ["validator"], storage, 5)

    def test_full_node_just_above_threshold(self, registry):
        registry.register_node("F1", "full", ["validator"], 1001, 5)

    def test_threshold_override_applies_to_one_registration(self, registry):
        registry.register_node("F1", "full", ["validator"], 101, 5, storage_threshold=100)
        assert registry.storage_threshold == 1000
        with pytest.raises(CapacityError):
            registry.register_node("F2", "full", ["validator"], 101, 5)

    def test_registry_errors_share_base(self, registry):
        with pytest.raises(RegistryError):
            registry.register_node("L1", "light", [], 10, 5)

    def test_duplicate_id_rejected(self, registry):
        registry.register_node("L1", "light", ["observer"], 10, 5)
        with pytest.raises(ConflictError):
            registry.register_node("L1", "light", ["miner"], 10, 5)

    def test_threshold_defaults_from_config(self, clean_env, monkeypatch):
        monkeypatch.setenv("MESHLEDGER_FULL_NODE_STORAGE_THRESHOLD", "42")
        assert PeerRegistry().storage_threshold == 42


class TestLookups:
    def test_get_unknown(self, registry):
        with pytest.raises(NotFoundError):
            registry.get("nope")

    def test_unbound_registry_cannot_link(self, registry):
        registry.register_node("A", "light", ["observer"], 1, 1)
        registry.register_node("B", "light", ["observer"], 1, 1)
        with pytest.raises(ConfigException):
            registry.add_peer_link("A", "B")

    def test_unbound_registry_has_no_peers(self, registry):
        registry.register_node("A", "light", ["observer"], 1, 1)
        assert registry.peers_of("A") == frozenset()


class TestFaultModel:
    def test_all_registered_nodes_start_non_faulty(self, registry):
        registry.register_node("A", "light", ["observer"], 1, 1)
        registry.register_node("B", "light", ["observer"], 1, 1)
        assert registry.non_faulty() == {"A", "B"}

    def test_mark_faulty(self, registry):
        registry.register_node("A", "light", ["observer"], 1, 1)
        registry.register_node("B", "light", ["observer"], 1, 1)
        registry.mark_faulty("B")
        assert registry.non_faulty() == {"A"}
        assert not registry.is_non_faulty("B")
        assert not registry.is_non_faulty("unknown")

    def test_update_sync_set(self, registry):
        registry.register_node("A", "light", ["observer"], 1, 1)
        registry.update_sync_set("A", ["G"])
        assert registry.get("A").sync_set == {"G"}
