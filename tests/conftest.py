"""Global test fixtures for MeshLedger test suite."""

from __future__ import annotations

import os

import pytest

from meshledger.cli.config import reset_cli_config
from meshledger.cluster import Cluster
from meshledger.core.config import CoreSettings, clear_config_cache
from meshledger.ledger import LedgerStore
from meshledger.network import GossipNetwork, PeerRegistry

# Storage threshold used by every test registry; full nodes need more than this
TEST_STORAGE_THRESHOLD = 1000


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all MESHLEDGER_ environment variables."""
    for key in list(os.environ.keys()):
        if key.startswith("MESHLEDGER_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset config singletons between tests."""
    clear_config_cache()
    reset_cli_config()
    yield
    clear_config_cache()
    reset_cli_config()


@pytest.fixture
def settings(clean_env):
    """Settings with a small full-node threshold and a lossless link model."""
    return CoreSettings(
        MESHLEDGER_FULL_NODE_STORAGE_THRESHOLD=TEST_STORAGE_THRESHOLD,
        MESHLEDGER_SIM_DROP_RATE=0.0,
        MESHLEDGER_SIM_LATENCY=1,
    )


# ============================================================================
# Core Object Fixtures
# ============================================================================


@pytest.fixture
def ledger():
    """A ledger holding only the genesis block ``G``."""
    store = LedgerStore()
    store.seed_genesis("G")
    return store


@pytest.fixture
def registry():
    return PeerRegistry(storage_threshold=TEST_STORAGE_THRESHOLD)


@pytest.fixture
def network(registry, ledger):
    return GossipNetwork(registry, ledger)


@pytest.fixture
def cluster(settings):
    """A cluster with genesis ``G`` and no nodes."""
    c = Cluster.create(settings)
    c.ledger.seed_genesis("G")
    return c
