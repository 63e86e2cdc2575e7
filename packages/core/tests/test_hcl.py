"""Tests for the HCL syntax tree renderer."""

import pytest
from tfbuilder.hcl import BLANK, Attr, Block, Comment, Expr, block, call, quote, render, render_value, resource


class TestRenderValue:
    def test_scalars(self):
        assert render_value(True) == "true"
        assert render_value(False) == "false"
        assert render_value(None) == "null"
        assert render_value(42) == "42"
        assert render_value("East US") == '"East US"'

    def test_expression_is_verbatim(self):
        assert render_value(Expr("module.resource_group.name")) == "module.resource_group.name"

    def test_call(self):
        assert render_value(call("jsonencode", {"a": 1})) == "jsonencode({\n  a = 1\n})"

    def test_scalar_list_inline(self):
        assert render_value(["10.0.0.0/16", Expr("var.cidr")]) == '["10.0.0.0/16", var.cidr]'

    def test_empty_map(self):
        assert render_value({}) == "{}"

    def test_map_keys_aligned(self):
        assert render_value({"Env": "Dev", "Project": "p"}) == '{\n  Env     = "Dev"\n  Project = "p"\n}'

    def test_non_identifier_key_is_quoted(self):
        assert '"team name" = "x"' in render_value({"team name": "x"})

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            render_value(object())


class TestQuote:
    def test_escapes(self):
        assert quote('say "hi"\n') == '"say \\"hi\\"\\n"'

    def test_interpolation_preserved(self):
        assert quote("${data.azurerm_client_config.current.subscription_id}") == (
            '"${data.azurerm_client_config.current.subscription_id}"'
        )


class TestRender:
    def test_resource_block(self):
        text = render(
            [
                Comment("Create Storage Account"),
                resource(
                    "azurerm_storage_account",
                    "sa1",
                    Attr("name", "sa1"),
                    Attr("account_tier", "Standard"),
                    BLANK,
                    Attr("tags", {"Owner": "X"}),
                ),
            ]
        )
        assert text == (
            "# Create Storage Account\n"
            'resource "azurerm_storage_account" "sa1" {\n'
            f'  {"name".ljust(12)} = "sa1"\n'
            '  account_tier = "Standard"\n'
            "\n"
            "  tags = {\n"
            '    Owner = "X"\n'
            "  }\n"
            "}"
        )

    def test_none_body_entries_are_dropped(self):
        text = render([resource("azurerm_user_assigned_identity", "id", Attr("name", "id"), BLANK, None)])
        assert "tags" not in text
        assert text.endswith('name = "id"\n}')

    def test_empty_block(self):
        assert render([Block("provider", ["azuread"])]) == 'provider "azuread" {}'

    def test_nested_block(self):
        text = render([block("terraform", Attr("required_version", ">= 1.3.0"))])
        assert text == 'terraform {\n  required_version = ">= 1.3.0"\n}'

    def test_consecutive_blanks_collapse(self):
        text = render([Comment("a"), BLANK, BLANK, Comment("b")])
        assert text == "# a\n\n# b"

    def test_block_address_and_ref(self):
        rg = Block("module", ["resource_group"])
        assert rg.ref("name") == Expr("module.resource_group.name")
        sa = resource("azurerm_storage_account", "sa1")
        assert sa.ref("id").text == "azurerm_storage_account.sa1.id"
        with pytest.raises(ValueError):
            Block("locals").address
