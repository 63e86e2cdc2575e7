"""Tests for the per-type Terraform templates."""

import re

import pytest
from tfbuilder.errors import TemplateError
from tfbuilder.hcl import Expr, render
from tfbuilder.templates import (
    BUILTIN_ROLES,
    TEMPLATES,
    TemplateContext,
    flag,
    hcl_label,
    integer,
    mapping,
    mapping_list,
    provider_preamble,
    reference,
    resource_group_module,
    string_list,
)

RG = Expr("module.resource_group.name")


def _ctx(config=None, label="res1", name="res-name", references=None) -> TemplateContext:
    return TemplateContext(
        label=label,
        name=name,
        location="East US",
        resource_group=RG,
        config=config or {},
        references=references or {},
    )


def _render(resource_type, **kwargs) -> str:
    builder, _ = TEMPLATES[resource_type]
    return render(builder(_ctx(**kwargs)))


def has_attr(text: str, key: str, value: str) -> bool:
    """True if some line reads `key = value`, whatever the alignment padding."""
    return re.search(rf"^\s*{re.escape(key)}\s+= {re.escape(value)}$", text, re.MULTILINE) is not None


class TestHelpers:
    def test_hcl_label(self):
        assert hcl_label("my-kv.01") == "my_kv_01"
        assert hcl_label("1st") == "r_1st"
        assert hcl_label("_ok") == "_ok"

    def test_reference_detects_addresses(self):
        assert reference("azurerm_subnet.app.id") == Expr("azurerm_subnet.app.id")
        assert reference("module.resource_group.name") == Expr("module.resource_group.name")
        assert reference("/subscriptions/abc") == "/subscriptions/abc"
        assert reference(5) == 5

    def test_flag(self):
        assert flag(None, True) is True
        assert flag("false", True) is False
        assert flag("YES", False) is True
        with pytest.raises(TemplateError):
            flag("maybe", True)

    def test_integer(self):
        assert integer("4", 1) == 4
        assert integer("", 7) == 7
        with pytest.raises(TemplateError):
            integer("four", 1)

    def test_string_list(self):
        assert string_list("10.0.0.0/16, 10.1.0.0/16", []) == ["10.0.0.0/16", "10.1.0.0/16"]
        assert string_list(None, ["a"]) == ["a"]
        assert string_list([], ["a"]) == ["a"]

    def test_mapping(self):
        assert mapping(None, "osDisk") == {}
        assert mapping({"caching": "None"}, "osDisk") == {"caching": "None"}
        with pytest.raises(TemplateError, match="sshKey"):
            mapping("ssh-rsa AAAA", "sshKey")

    def test_mapping_list(self):
        assert mapping_list(None, "routes") == []
        with pytest.raises(TemplateError, match=r"routes\[1\]"):
            mapping_list([{"name": "a"}, "b"], "routes")
        with pytest.raises(TemplateError):
            mapping_list("allow-ssh", "securityRules")

    def test_resource_group_id_swaps_attribute(self):
        assert _ctx().resource_group_id == Expr("module.resource_group.id")


class TestPreamble:
    def test_pins_providers_and_declares_data_sources(self):
        text = render(provider_preamble())
        assert has_attr(text, "version", '"~> 3.80.0"')
        assert has_attr(text, "version", '"~> 2.47.0"')
        assert has_attr(text, "required_version", '">= 1.3.0"')
        assert 'provider "azurerm" {' in text
        assert "features {}" in text
        assert 'provider "azuread" {}' in text
        assert 'data "azurerm_client_config" "current" {}' in text
        assert 'data "azurerm_subscription" "current" {}' in text


class TestResourceGroupModule:
    def test_with_tags(self):
        text = render(resource_group_module("resource_group", "git::src", "rg-a", "East US", {"Project": "a"}))
        assert text.startswith('module "resource_group" {')
        assert has_attr(text, "source", '"git::src"')
        assert has_attr(text, "Project", '"a"')

    def test_without_tags(self):
        text = render(resource_group_module("vnet_resource_group", "git::src", "rg-vnet-a", "East US", None))
        assert "tags" not in text


class TestEveryTemplate:
    @pytest.mark.parametrize("resource_type", sorted(TEMPLATES))
    def test_renders_with_empty_config(self, resource_type):
        text = _render(resource_type)
        assert text.startswith("# ")
        assert text.count("{") == text.count("}")

    @pytest.mark.parametrize(
        "resource_type",
        sorted(t for t, (_, primary) in TEMPLATES.items() if primary != "azurerm_role_assignment"),
    )
    def test_tags_only_when_present(self, resource_type):
        assert "tags" not in _render(resource_type)
        if resource_type in ("subnet", "role_definition", "ad_group", "azuread_group", "ad_group_member"):
            return
        assert 'Owner = "X"' in _render(resource_type, config={"tags": {"Owner": "X"}})


class TestStorageAccount:
    def test_fields_and_roles(self):
        text = _render("storage_account", config={"accountTier": "Premium", "replicationType": "ZRS"}, label="sa1")
        assert 'resource "azurerm_storage_account" "sa1" {' in text
        assert has_attr(text, "account_tier", '"Premium"')
        assert has_attr(text, "account_replication_type", '"ZRS"')
        assert has_attr(text, "resource_group_name", "module.resource_group.name")
        assert 'resource "azurerm_role_assignment" "sa1_storage_owner"' in text
        assert BUILTIN_ROLES["storage_blob_data_owner"] in text
        assert has_attr(text, "scope", "azurerm_storage_account.sa1.id")


class TestKeyVault:
    def test_tenant_and_access_policy(self):
        text = _render("key_vault", config={"skuName": "premium"}, label="kv1")
        assert has_attr(text, "sku_name", '"premium"')
        assert has_attr(text, "tenant_id", "data.azurerm_client_config.current.tenant_id")
        assert "access_policy {" in text
        assert 'resource "azurerm_role_assignment" "kv1_keyvault_admin"' in text


class TestNetworkSecurityGroup:
    def test_rule_defaults(self):
        text = _render("network_security_group", config={"securityRules": [{"protocol": "Tcp"}, {"protocol": "*"}]})
        assert text.count("security_rule {") == 2
        assert has_attr(text, "name", '"rule-1"')
        assert has_attr(text, "priority", "110")
        assert has_attr(text, "direction", '"Inbound"')

    def test_missing_protocol(self):
        with pytest.raises(TemplateError):
            _render("network_security_group", config={"securityRules": [{"name": "bad"}]})


class TestRouteTable:
    def test_default_route(self):
        text = _render("route_table")
        assert has_attr(text, "address_prefix", '"0.0.0.0/0"')
        assert has_attr(text, "next_hop_type", '"Internet"')

    def test_next_hop_ip_only_when_given(self):
        routes = [{"name": "fw", "addressPrefix": "10.0.0.0/8", "nextHopType": "VirtualAppliance"}]
        assert "next_hop_in_ip_address" not in _render("route_table", config={"routes": routes})
        routes[0]["nextHopIpAddress"] = "10.0.0.4"
        assert '"10.0.0.4"' in _render("route_table", config={"routes": routes})


class TestVirtualMachine:
    def test_nic_and_vm(self):
        text = _render("virtual_machine", label="vm1")
        assert 'resource "azurerm_network_interface" "vm1"' in text
        assert 'resource "azurerm_linux_virtual_machine" "vm1"' in text
        assert has_attr(text, "network_interface_ids", "[azurerm_network_interface.vm1.id]")
        assert has_attr(text, "subnet_id", "azurerm_subnet.main.id")

    def test_network_contributor_scoped_to_nic(self):
        text = _render("virtual_machine", label="vm1")
        section = text.split('"vm1_network_contributor"', 1)[1]
        assert has_attr(section.split("}", 1)[0], "scope", "azurerm_network_interface.vm1.id")

    def test_sibling_subnet_reference(self):
        text = _render("virtual_machine", references={"azurerm_subnet": "azurerm_subnet.snet1"})
        assert "azurerm_subnet.snet1.id" in text


class TestSubnet:
    def test_explicit_reference_wins(self):
        text = _render(
            "subnet",
            config={"virtualNetworkName": "azurerm_virtual_network.hub.name"},
            references={"azurerm_virtual_network": "azurerm_virtual_network.other"},
        )
        assert has_attr(text, "virtual_network_name", "azurerm_virtual_network.hub.name")


class TestRoleAssignment:
    def test_defaults(self):
        text = _render("role_assignment")
        assert "tags" not in text
        assert has_attr(text, "scope", "module.resource_group.id")
        assert BUILTIN_ROLES["contributor"] in text
        assert has_attr(text, "principal_id", "data.azurerm_client_config.current.object_id")

    def test_subscription_scope_and_role_name(self):
        text = _render("role_assignment", config={"scope": "subscription", "roleDefinitionName": "Reader"})
        assert "data.azurerm_subscription.current.id" in text
        assert has_attr(text, "role_definition_name", '"Reader"')


class TestRoleDefinition:
    def test_permissions(self):
        text = _render("role_definition", config={"roleName": "Ops", "actions": ["Microsoft.Storage/*"]})
        assert has_attr(text, "name", '"Ops"')
        assert has_attr(text, "actions", '["Microsoft.Storage/*"]')
        assert has_attr(text, "assignable_scopes", "[data.azurerm_subscription.current.id]")


class TestWorkbook:
    def test_jsonencode(self):
        text = _render("workbook", config={"displayName": "Ops Board"})
        assert "data_json = jsonencode({" in text
        assert "# Ops Board" in text


class TestAdGroups:
    def test_group_member_defaults_to_current_client(self):
        text = _render("ad_group_member", references={"azuread_group": "azuread_group.admins"})
        assert has_attr(text, "group_object_id", "azuread_group.admins.object_id")
        assert has_attr(text, "member_object_id", "data.azurerm_client_config.current.object_id")

    def test_group_role_assignment_bare_label(self):
        text = _render("azurerm_role_assignment", config={"principalId": "platform-admins"})
        assert has_attr(text, "principal_id", "azuread_group.platform_admins.object_id")
        assert has_attr(text, "principal_type", '"Group"')

    def test_group_lists_accept_comma_separated_strings(self):
        text = _render("ad_group", config={"groupTypes": "Unified", "owners": "a-id, b-id"})
        assert has_attr(text, "types", '["Unified"]')
        assert has_attr(text, "owners", '["a-id", "b-id"]')
        assert "members" not in text

    def test_group_lists(self):
        text = _render("ad_group", config={"members": ["azuread_user.alice.object_id"]})
        assert has_attr(text, "members", "[azuread_user.alice.object_id]")

    def test_cosmos_alias(self):
        assert TEMPLATES["cosmosdb"] == TEMPLATES["cosmos_db"]
