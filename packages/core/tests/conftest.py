"""Shared fixtures for core tests."""

from __future__ import annotations

import pytest
from tfbuilder.spec import GlobalConfig, Resource


@pytest.fixture
def global_config() -> GlobalConfig:
    return GlobalConfig(projectName="proj", environment="dev", region="East US")


@pytest.fixture
def storage_resource() -> Resource:
    return Resource(
        id="sa-1",
        type="storage_account",
        name="sa1",
        config={"accountTier": "Standard", "replicationType": "LRS"},
    )


@pytest.fixture
def vnet_resource() -> Resource:
    return Resource(id="vnet-1", type="virtual_network", name="vnet1", config={"addressSpace": ["10.1.0.0/16"]})


@pytest.fixture
def mixed_resources() -> list[Resource]:
    """A small design touching both resource groups and one remote-module type."""
    return [
        Resource(id="kv-1", type="key_vault", name="kv1", config={"skuName": "premium"}),
        Resource(id="sa-1", type="storage_account", name="sa1", config={"tags": {"Team": "data"}}),
        Resource(id="vnet-1", type="virtual_network", name="vnet1"),
        Resource(id="snet-1", type="subnet", name="snet1"),
    ]
