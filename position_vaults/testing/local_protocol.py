"""Pytest plugin: a fully wired protocol on a fresh ``LocalChain`` per test."""

from __future__ import annotations

import pytest

from position_vaults.core.chain import LocalChain
from position_vaults.core.engine.deployment import LocalProtocol, deploy_local_protocol
from position_vaults.vaults.position_manager.manager import PositionManager


@pytest.fixture
def local_protocol() -> LocalProtocol:
    return deploy_local_protocol("test")


@pytest.fixture
def chain(local_protocol: LocalProtocol) -> LocalChain:
    return local_protocol.chain


@pytest.fixture
def vault(local_protocol: LocalProtocol) -> PositionManager:
    return local_protocol.vault
