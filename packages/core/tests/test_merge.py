"""Tests for folding global settings into resource configs."""

import pytest
from tfbuilder.errors import DuplicateNameError
from tfbuilder.generator import render
from tfbuilder.merge import AD_ROLE_TYPES, apply_global_config, create_resource, update_resource
from tfbuilder.spec import GlobalConfig, Resource


@pytest.fixture
def settings() -> GlobalConfig:
    return GlobalConfig(
        projectName="proj",
        environment="dev",
        region="East US",
        tags={"Owner": "X"},
        adRoles=["Reader", "Contributor"],
    )


class TestApplyGlobalConfig:
    def test_core_fields(self, settings):
        [sa] = apply_global_config([Resource(type="storage_account", name="sa1")], settings)
        assert sa.config["location"] == "East US"
        assert sa.config["projectName"] == "proj"
        assert sa.config["environment"] == "dev"
        assert sa.config["resourceGroup"] == "rg-proj-eastus-dev-01"

    def test_network_types_point_at_network_group(self, settings):
        [vnet] = apply_global_config([Resource(type="virtual_network", name="vnet1")], settings)
        assert vnet.config["resourceGroup"] == "rg-vnet-eastus-dev-01"

    def test_global_tags_override_resource_tags(self, settings):
        resource = Resource(type="storage_account", name="sa1", config={"tags": {"Owner": "Y", "Team": "Z"}})
        [merged] = apply_global_config([resource], settings)
        assert merged.config["tags"] == {"Owner": "X", "Team": "Z"}

    def test_merged_tags_reach_resource_block(self, settings):
        resource = Resource(type="storage_account", name="sa1", config={"tags": {"Owner": "Y", "Team": "Z"}})
        code = render(apply_global_config([resource], settings), settings).code
        block = code.split('resource "azurerm_storage_account" "sa1" {', 1)[1].split("\n}", 1)[0]
        assert '"X"' in block
        assert '"Y"' not in block
        assert '"Z"' in block

    def test_ad_roles_only_for_capable_types(self, settings):
        kv, sn = apply_global_config(
            [Resource(type="key_vault", name="kv1"), Resource(type="subnet", name="sn1")], settings
        )
        assert kv.config["resourceSpecificRoles"] == ["Reader", "Contributor"]
        assert "resourceSpecificRoles" not in sn.config
        assert "key_vault" in AD_ROLE_TYPES

    def test_roles_are_independent_copies(self, settings):
        kv1, kv2 = apply_global_config(
            [Resource(type="key_vault", name="kv1"), Resource(type="key_vault", name="kv2")], settings
        )
        kv1.config["resourceSpecificRoles"].append("Owner")
        assert kv2.config["resourceSpecificRoles"] == ["Reader", "Contributor"]
        assert settings.ad_roles == ["Reader", "Contributor"]

    def test_inputs_untouched(self, settings):
        original = Resource(type="storage_account", name="sa1", config={"tags": {"Owner": "Y"}})
        snapshot = original.model_dump()
        apply_global_config([original], settings)
        assert original.model_dump() == snapshot

    def test_key_vault_name_copied(self, settings):
        [kv] = apply_global_config([Resource(type="key_vault", name="kv1", config={"name": "kvprojdev01"})], settings)
        assert kv.config["keyvault_name"] == "kvprojdev01"


class TestUpdateResource:
    def test_replaces_whole_object(self):
        a = Resource(id="a", type="key_vault", name="kv1", config={"skuName": "premium"})
        b = Resource(id="b", type="storage_account", name="sa1")
        updated = Resource(id="a", type="key_vault", name="kv-renamed")
        result = update_resource([a, b], updated)
        assert result[0] is updated
        assert result[0].config == {}
        assert result[1] is b

    def test_duplicate_name_rejected(self):
        a = Resource(id="a", type="key_vault", name="kv1")
        b = Resource(id="b", type="key_vault", name="kv2")
        with pytest.raises(DuplicateNameError):
            update_resource([a, b], Resource(id="b", type="key_vault", name="KV1"))

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            update_resource([], Resource(id="zzz", type="key_vault", name="kv"))


class TestCreateResource:
    def test_suggested_name_and_defaults(self, settings):
        resource = create_resource("virtual_network", [], settings)
        assert resource.name == "vnet-proj-dev-eastus-01"
        assert resource.config["location"] == "East US"
        assert resource.config["tags"] == {"Owner": "X"}
        assert "resourceSpecificRoles" not in resource.config

    def test_instance_counts_existing_of_type(self, settings):
        existing = [create_resource("virtual_network", [], settings)]
        second = create_resource("virtual_network", existing, settings)
        assert second.name == "vnet-proj-dev-eastus-02"

    def test_skips_taken_names(self, settings):
        existing = [Resource(type="subnet", name="vnet-proj-dev-eastus-01")]
        assert create_resource("virtual_network", existing, settings).name == "vnet-proj-dev-eastus-02"

    def test_ad_roles(self, settings):
        assert create_resource("openai", [], settings).config["resourceSpecificRoles"] == ["Reader", "Contributor"]
