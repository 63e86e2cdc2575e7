"""Inline Terraform templates, one builder per resource type.

A builder takes a :class:`TemplateContext` and returns HCL nodes: the main
resource block(s), optionally followed by fixed role assignments that grant
the deploying principal built-in roles on what was just created.

Config keys are the camelCase names the designer forms use. Values that look
like Terraform references (``azurerm_subnet.app.id``) are emitted as
expressions; anything else is quoted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from tfbuilder.errors import TemplateError
from tfbuilder.hcl import BLANK, Attr, Block, Comment, Expr, Node, block, call, resource

CLIENT_CONFIG = Expr("data.azurerm_client_config.current")
SUBSCRIPTION = Expr("data.azurerm_subscription.current")
CURRENT_OBJECT_ID = CLIENT_CONFIG.attr("object_id")
CURRENT_TENANT_ID = CLIENT_CONFIG.attr("tenant_id")

AZURERM_VERSION = "~> 3.80.0"
AZUREAD_VERSION = "~> 2.47.0"
TERRAFORM_VERSION = ">= 1.3.0"

BUILTIN_ROLES: dict[str, str] = {
    "owner": "8e3af657-a8ff-443c-a75c-2fe8c4bcb635",
    "contributor": "b24988ac-6180-42a0-ab88-20f7382dd24c",
    "reader": "acdd72a7-3385-48ef-bd42-f606fba81ae7",
    "key_vault_administrator": "00482a5a-887f-4fb3-b363-3b7fe8e74483",
    "key_vault_secrets_officer": "b86a8fe4-44ce-4948-aee5-eccb2c155cd7",
    "storage_blob_data_owner": "b7e6dc6d-f1e8-4753-8033-0f276bb0955b",
    "storage_blob_data_contributor": "ba92f5b4-2d11-453d-a403-e96b0029c9fe",
    "storage_account_contributor": "17d1049b-9a84-46fb-8f53-869881c3d3ab",
    "virtual_machine_contributor": "9980e02c-c2be-4d73-94e8-173b1dc7cf3c",
    "network_contributor": "4d97b98b-1d4f-4787-a291-c67834d212e7",
    "sql_db_contributor": "9b7fa17d-e63e-47b0-bb0a-15c516ac86ec",
    "sql_server_contributor": "6d8ee4ec-f05a-4a1d-8b00-a9b17e38b437",
    "azure_ai_developer": "64702f94-c441-49e6-a78b-ef80e0188fee",
    "api_management_service_contributor": "312a565d-c81f-4fd8-895a-4e21e48d571c",
    "managed_identity_contributor": "e40ec5ca-96e0-45a2-b4ff-59039f2c2b59",
    "cognitive_services_openai_contributor": "25fbc0a9-bd7c-42a3-aa1a-3b75d497ee68",
}

_REFERENCE = re.compile(r"^(azurerm_|azuread_|module\.|data\.|var\.|local\.)[\w.\[\]\"*-]*$")


@dataclass
class TemplateContext:
    """Everything a builder needs to render one resource."""

    label: str
    name: str
    location: str
    resource_group: Expr
    config: dict[str, Any] = field(default_factory=dict)
    # terraform resource type -> address of the first inline block of that type in the design
    references: Mapping[str, str] = field(default_factory=dict)

    @property
    def tags(self) -> dict[str, str]:
        return dict(self.config.get("tags") or {})

    @property
    def resource_group_id(self) -> Expr:
        return Expr(self.resource_group.text.rsplit(".", 1)[0] + ".id")

    def get(self, key: str, default: Any = None) -> Any:
        """Config value, treating missing, None and empty string as absent."""
        value = self.config.get(key)
        if value is None or value == "":
            return default
        return value

    def ref(self, key: str, sibling_type: str, attribute: str, fallback: str) -> Expr | str:
        """Config value for a cross-resource reference, defaulting to a sibling in the same design."""
        value = self.get(key)
        if value is not None:
            return reference(value)
        if sibling_type in self.references:
            return Expr(f"{self.references[sibling_type]}.{attribute}")
        return Expr(fallback)


def reference(value: Any) -> Any:
    """Treat strings that look like Terraform addresses as expressions."""
    if isinstance(value, str) and _REFERENCE.match(value.strip()):
        return Expr(value.strip())
    return value


def hcl_label(name: str) -> str:
    """Turn a resource name into a valid HCL block label."""
    label = re.sub(r"[^A-Za-z0-9_]", "_", name.strip())
    if not label or not (label[0].isalpha() or label[0] == "_"):
        label = f"r_{label}"
    return label


def scope_value(ctx: TemplateContext, default: Any) -> Any:
    """``scope`` config: the keywords subscription and resource_group, or an address or ID."""
    scope = ctx.get("scope")
    if scope == "subscription":
        return SUBSCRIPTION.attr("id")
    if scope in ("resource_group", "resourceGroup"):
        return ctx.resource_group_id
    return reference(scope) if scope is not None else default


def role_definition_id(role_guid: str) -> str:
    return (
        "/subscriptions/${data.azurerm_client_config.current.subscription_id}"
        f"/providers/Microsoft.Authorization/roleDefinitions/{role_guid}"
    )


def flag(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    raise TemplateError(f"Expected a boolean, got {value!r}")


def integer(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise TemplateError(f"Expected an integer, got {value!r}") from e


def string_list(value: Any, default: list[str]) -> list[str]:
    if value is None or value == "" or value == []:
        return list(default)
    if isinstance(value, str):
        return [v.strip().strip('"') for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


def mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    """A nested config object; absent values become an empty mapping."""
    if value is None or value == "":
        return {}
    if not isinstance(value, Mapping):
        raise TemplateError(f"Expected an object for {field_name}, got {value!r}")
    return value


def mapping_list(value: Any, field_name: str) -> list[Mapping[str, Any]]:
    if value is None or value == "":
        return []
    if not isinstance(value, (list, tuple)):
        raise TemplateError(f"Expected a list for {field_name}, got {value!r}")
    return [mapping(item, f"{field_name}[{i}]") for i, item in enumerate(value)]


# --- Nested block helpers ---


def tags_attr(tags: Mapping[str, str] | None) -> Attr | None:
    """``tags = {...}``, or nothing at all when there are no tags."""
    if not tags:
        return None
    return Attr("tags", {str(k): str(v) for k, v in tags.items()})


def security_rule_blocks(rules: list[Mapping[str, Any]] | None) -> list[Node]:
    """One ``security_rule`` block per rule.

    Every field has a permissive default except ``protocol``, which must be
    set by the caller.
    """
    blocks: list[Node] = []
    for i, rule in enumerate(mapping_list(rules, "securityRules")):
        protocol = rule.get("protocol")
        if not protocol:
            raise TemplateError("Security rule is missing a protocol", {"rule": rule.get("name") or i})
        blocks.append(
            block(
                "security_rule",
                Attr("name", rule.get("name") or f"rule-{i + 1}"),
                Attr("priority", integer(rule.get("priority"), 100 + 10 * i)),
                Attr("direction", rule.get("direction") or "Inbound"),
                Attr("access", rule.get("access") or "Allow"),
                Attr("protocol", protocol),
                Attr("source_port_range", rule.get("sourcePortRange") or "*"),
                Attr("destination_port_range", rule.get("destinationPortRange") or "*"),
                Attr("source_address_prefix", rule.get("sourceAddressPrefix") or "*"),
                Attr("destination_address_prefix", rule.get("destinationAddressPrefix") or "*"),
            )
        )
    return blocks


def route_blocks(routes: list[Mapping[str, Any]] | None) -> list[Node]:
    """One ``route`` block per route; an empty list yields a default Internet route."""
    routes = mapping_list(routes, "routes")
    if not routes:
        return [
            block(
                "route",
                Attr("name", "default"),
                Attr("address_prefix", "0.0.0.0/0"),
                Attr("next_hop_type", "Internet"),
            )
        ]
    blocks: list[Node] = []
    for route in routes:
        body: list[Node] = [
            Attr("name", route.get("name")),
            Attr("address_prefix", route.get("addressPrefix")),
            Attr("next_hop_type", route.get("nextHopType")),
        ]
        if route.get("nextHopIpAddress"):
            body.append(Attr("next_hop_in_ip_address", route["nextHopIpAddress"]))
        blocks.append(block("route", *body))
    return blocks


def admin_ssh_key_block(ssh_key: Mapping[str, Any] | None) -> Block:
    ssh_key = mapping(ssh_key, "sshKey")
    return block(
        "admin_ssh_key",
        Attr("username", ssh_key.get("username") or "azureuser"),
        Attr("public_key", ssh_key.get("publicKey") or "ssh-rsa AAAAB3NzaC1yc2E... (your public key)"),
    )


def os_disk_block(os_disk: Mapping[str, Any] | None) -> Block:
    os_disk = mapping(os_disk, "osDisk")
    return block(
        "os_disk",
        Attr("caching", os_disk.get("caching") or "ReadWrite"),
        Attr("storage_account_type", os_disk.get("storageAccountType") or "Premium_LRS"),
    )


def source_image_block(image: Mapping[str, Any] | None) -> Block:
    image = mapping(image, "sourceImage")
    return block(
        "source_image_reference",
        Attr("publisher", image.get("publisher") or "Canonical"),
        Attr("offer", image.get("offer") or "0001-com-ubuntu-server-focal"),
        Attr("sku", image.get("sku") or "20_04-lts-gen2"),
        Attr("version", image.get("version") or "latest"),
    )


def redis_configuration_block(settings: Mapping[str, Any] | None) -> Block:
    settings = mapping(settings, "redisConfiguration") or {"maxmemory_policy": "allkeys-lru"}
    return block("redis_configuration", *(Attr(k, str(v)) for k, v in settings.items()))


_STACK_SETTING = re.compile(r'(\w+)\s*=\s*"?([^"\n]*)"?')


def application_stack_block(stack: Any) -> Block:
    if not stack:
        stack = {"node_version": "18"}
    elif isinstance(stack, str):
        stack = dict(_STACK_SETTING.findall(stack))
    else:
        stack = mapping(stack, "applicationStack")
    return block("application_stack", *(Attr(k, str(v)) for k, v in stack.items()))


def role_assignments(target: Block, roles: list[tuple[str, str, str]]) -> list[Node]:
    """Grant the deploying principal built-in roles on ``target``.

    ``roles`` holds ``(label_suffix, comment, builtin_role_key)`` triples.
    """
    nodes: list[Node] = []
    target_label = target.labels[1]
    for suffix, title, role_key in roles:
        nodes.extend(
            [
                BLANK,
                Comment(f"{title} Role Assignment"),
                resource(
                    "azurerm_role_assignment",
                    f"{target_label}_{suffix}",
                    Attr("scope", target.ref("id")),
                    Attr("role_definition_id", role_definition_id(BUILTIN_ROLES[role_key])),
                    Attr("principal_id", CURRENT_OBJECT_ID),
                    Attr("principal_type", "User"),
                ),
            ]
        )
    return nodes


def _owner_reader(prefix: str, title: str) -> list[tuple[str, str, str]]:
    return [(f"{prefix}_owner", f"{title} Owner", "owner"), (f"{prefix}_reader", f"{title} Reader", "reader")]


# --- Fixed blocks ---


def provider_preamble() -> list[Node]:
    return [
        Comment("Configure the Azure Provider"),
        block(
            "terraform",
            block(
                "required_providers",
                Attr("azurerm", {"source": "hashicorp/azurerm", "version": AZURERM_VERSION}),
                Attr("azuread", {"source": "hashicorp/azuread", "version": AZUREAD_VERSION}),
            ),
            BLANK,
            Attr("required_version", TERRAFORM_VERSION),
        ),
        BLANK,
        Block("provider", ["azurerm"], [block("features"), Attr("skip_provider_registration", True)]),
        BLANK,
        Block("provider", ["azuread"]),
        BLANK,
        Comment("Get current client configuration"),
        Block("data", ["azurerm_client_config", "current"]),
        Block("data", ["azurerm_subscription", "current"]),
    ]


def resource_group_module(label: str, source: str, name: str, location: str, tags: Mapping[str, str] | None) -> list[Node]:
    body: list[Node] = [Attr("source", source), Attr("name", name), Attr("location", location)]
    if tags:
        body.extend([BLANK, tags_attr(tags)])
    return [Block("module", [label], body)]


# --- Per-type builders ---


def key_vault(ctx: TemplateContext) -> list[Node]:
    kv = resource(
        "azurerm_key_vault",
        ctx.label,
        Attr("name", ctx.name),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        Attr("tenant_id", CURRENT_TENANT_ID),
        Attr("sku_name", ctx.get("skuName", "standard")),
        BLANK,
        Attr("enabled_for_disk_encryption", True),
        Attr("soft_delete_retention_days", integer(ctx.get("softDeleteRetentionDays"), 7)),
        BLANK,
        block(
            "access_policy",
            Attr("tenant_id", CURRENT_TENANT_ID),
            Attr("object_id", CURRENT_OBJECT_ID),
            BLANK,
            Attr("key_permissions", ["Get", "List", "Create", "Delete", "Update", "Recover", "Purge"]),
            BLANK,
            Attr("secret_permissions", ["Get", "List", "Set", "Delete", "Recover", "Purge"]),
        ),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create Key Vault"),
        kv,
        *role_assignments(
            kv,
            [
                ("keyvault_admin", "Key Vault Administrator", "key_vault_administrator"),
                ("keyvault_secrets", "Key Vault Secrets Officer", "key_vault_secrets_officer"),
                ("keyvault_contributor", "Key Vault Contributor", "contributor"),
                ("keyvault_reader", "Key Vault Reader", "reader"),
            ],
        ),
    ]


def storage_account(ctx: TemplateContext) -> list[Node]:
    sa = resource(
        "azurerm_storage_account",
        ctx.label,
        Attr("name", ctx.name),
        Attr("resource_group_name", ctx.resource_group),
        Attr("location", ctx.location),
        Attr("account_tier", ctx.get("accountTier", "Standard")),
        Attr("account_replication_type", ctx.get("replicationType", "LRS")),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create Storage Account"),
        sa,
        *role_assignments(
            sa,
            [
                ("storage_owner", "Storage Blob Data Owner", "storage_blob_data_owner"),
                ("storage_contributor", "Storage Blob Data Contributor", "storage_blob_data_contributor"),
                ("storage_account_contributor", "Storage Account Contributor", "storage_account_contributor"),
                ("storage_reader", "Storage Account Reader", "reader"),
            ],
        ),
    ]


def virtual_network(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Virtual Network"),
        resource(
            "azurerm_virtual_network",
            ctx.label,
            Attr("name", ctx.name),
            Attr("address_space", string_list(ctx.get("addressSpace"), ["10.0.0.0/16"])),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def subnet(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Subnet"),
        resource(
            "azurerm_subnet",
            ctx.label,
            Attr("name", ctx.name),
            Attr("resource_group_name", ctx.resource_group),
            Attr(
                "virtual_network_name",
                ctx.ref("virtualNetworkName", "azurerm_virtual_network", "name", "azurerm_virtual_network.main.name"),
            ),
            Attr("address_prefixes", string_list(ctx.get("addressPrefixes"), ["10.0.1.0/24"])),
        ),
    ]


def network_security_group(ctx: TemplateContext) -> list[Node]:
    rules = security_rule_blocks(ctx.get("securityRules"))
    return [
        Comment("Create Network Security Group"),
        resource(
            "azurerm_network_security_group",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            *([BLANK, *rules] if rules else []),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def virtual_machine(ctx: TemplateContext) -> list[Node]:
    nic = resource(
        "azurerm_network_interface",
        ctx.label,
        Attr("name", f"{ctx.name}-nic"),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        BLANK,
        block(
            "ip_configuration",
            Attr("name", "internal"),
            Attr("subnet_id", ctx.ref("subnetId", "azurerm_subnet", "id", "azurerm_subnet.main.id")),
            Attr("private_ip_address_allocation", "Dynamic"),
        ),
        BLANK,
        tags_attr(ctx.tags),
    )
    interfaces = ctx.get("networkInterfaces")
    nic_ids = [reference(i) for i in interfaces] if interfaces else [nic.ref("id")]
    vm = resource(
        "azurerm_linux_virtual_machine",
        ctx.label,
        Attr("name", ctx.name),
        Attr("resource_group_name", ctx.resource_group),
        Attr("location", ctx.location),
        Attr("size", ctx.get("size", "Standard_B2s")),
        Attr("admin_username", ctx.get("adminUsername", "azureuser")),
        BLANK,
        Attr("disable_password_authentication", flag(ctx.get("disablePasswordAuth"), True)),
        BLANK,
        Attr("network_interface_ids", nic_ids),
        BLANK,
        admin_ssh_key_block(ctx.get("sshKey")),
        BLANK,
        os_disk_block(ctx.get("osDisk")),
        BLANK,
        source_image_block(ctx.get("sourceImage")),
        BLANK,
        tags_attr(ctx.tags),
    )
    grants = role_assignments(
        vm, [("vm_contributor", "Virtual Machine Contributor", "virtual_machine_contributor")]
    )
    grants += role_assignments(vm, [("vm_owner", "Virtual Machine Owner", "owner")])
    # network contributor is scoped to the NIC, not the VM
    grants += role_assignments(nic, [("network_contributor", "Network Contributor", "network_contributor")])
    grants += role_assignments(vm, [("vm_reader", "Virtual Machine Reader", "reader")])
    return [Comment("Create Network Interface"), nic, BLANK, Comment("Create Virtual Machine"), vm, *grants]


def app_service(ctx: TemplateContext) -> list[Node]:
    plan = resource(
        "azurerm_app_service_plan",
        ctx.label,
        Attr("name", f"{ctx.name}-plan"),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        BLANK,
        block("sku", Attr("tier", ctx.get("skuTier", "Standard")), Attr("size", ctx.get("skuSize", "S1"))),
        BLANK,
        tags_attr(ctx.tags),
    )
    plan_id = reference(ctx.get("appServicePlanId")) if ctx.get("appServicePlanId") else plan.ref("id")
    app = resource(
        "azurerm_app_service",
        ctx.label,
        Attr("name", ctx.name),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        Attr("app_service_plan_id", plan_id),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [Comment("Create App Service Plan"), plan, BLANK, Comment("Create App Service"), app]


def sql_database(ctx: TemplateContext) -> list[Node]:
    server = resource(
        "azurerm_mssql_server",
        ctx.label,
        Attr("name", f"{ctx.name}-server"),
        Attr("resource_group_name", ctx.resource_group),
        Attr("location", ctx.location),
        Attr("version", "12.0"),
        Attr("administrator_login", ctx.get("administratorLogin", "sqladmin")),
        Attr("administrator_login_password", ctx.get("administratorLoginPassword", "Password123!")),
        BLANK,
        tags_attr(ctx.tags),
    )
    db = resource(
        "azurerm_mssql_database",
        ctx.label,
        Attr("name", ctx.name),
        Attr("server_id", server.ref("id")),
        Attr("collation", ctx.get("collation", "SQL_Latin1_General_CP1_CI_AS")),
        Attr("sku_name", ctx.get("skuName", "S0")),
        BLANK,
        tags_attr(ctx.tags),
    )
    grants = role_assignments(db, [("sql_contributor", "SQL DB Contributor", "sql_db_contributor")])
    grants += role_assignments(
        server, [("sql_server_contributor", "SQL Server Contributor", "sql_server_contributor")]
    )
    grants += role_assignments(db, _owner_reader("sql", "SQL Database"))
    return [Comment("Create SQL Server"), server, BLANK, Comment("Create SQL Database"), db, *grants]


def ai_studio(ctx: TemplateContext) -> list[Node]:
    ws = resource(
        "azurerm_machine_learning_workspace",
        ctx.label,
        Attr("name", ctx.name),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        Attr(
            "application_insights_id",
            ctx.ref("applicationInsightsId", "azurerm_application_insights", "id", "azurerm_application_insights.main.id"),
        ),
        Attr("key_vault_id", ctx.ref("keyVaultId", "azurerm_key_vault", "id", "azurerm_key_vault.main.id")),
        Attr(
            "storage_account_id",
            ctx.ref("storageAccountId", "azurerm_storage_account", "id", "azurerm_storage_account.main.id"),
        ),
        BLANK,
        block("identity", Attr("type", "SystemAssigned")),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create AI Studio"),
        ws,
        *role_assignments(
            ws,
            [
                ("ai_developer", "AI Developer", "azure_ai_developer"),
                ("ai_contributor", "AI Studio Contributor", "contributor"),
                *_owner_reader("ai", "AI Studio"),
            ],
        ),
    ]


def api_management(ctx: TemplateContext) -> list[Node]:
    apim = resource(
        "azurerm_api_management",
        ctx.label,
        Attr("name", ctx.name),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        Attr("publisher_name", ctx.get("publisherName", "Publisher")),
        Attr("publisher_email", ctx.get("publisherEmail", "publisher@example.com")),
        Attr("sku_name", ctx.get("skuName", "Developer_1")),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create API Management"),
        apim,
        *role_assignments(
            apim,
            [
                ("apim_contributor", "API Management Contributor", "api_management_service_contributor"),
                *_owner_reader("apim", "API Management"),
            ],
        ),
    ]


def application_insights(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Application Insights"),
        resource(
            "azurerm_application_insights",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            Attr("application_type", ctx.get("applicationType", "web")),
            Attr(
                "workspace_id",
                ctx.ref("workspaceId", "azurerm_log_analytics_workspace", "id", "azurerm_log_analytics_workspace.main.id"),
            ),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def container_registry(ctx: TemplateContext) -> list[Node]:
    acr = resource(
        "azurerm_container_registry",
        ctx.label,
        Attr("name", ctx.name),
        Attr("resource_group_name", ctx.resource_group),
        Attr("location", ctx.location),
        Attr("sku", ctx.get("sku", "Basic")),
        Attr("admin_enabled", flag(ctx.get("adminEnabled"), False)),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create Container Registry"),
        acr,
        *role_assignments(
            acr,
            [("acr_contributor", "Container Registry Contributor", "contributor"), *_owner_reader("acr", "Container Registry")],
        ),
    ]


def cosmos_db(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Cosmos DB Account"),
        resource(
            "azurerm_cosmosdb_account",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            Attr("offer_type", "Standard"),
            Attr("kind", ctx.get("kind", "GlobalDocumentDB")),
            BLANK,
            block("consistency_policy", Attr("consistency_level", ctx.get("consistencyLevel", "Session"))),
            BLANK,
            block("geo_location", Attr("location", ctx.location), Attr("failover_priority", 0)),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def event_hub(ctx: TemplateContext) -> list[Node]:
    namespace = resource(
        "azurerm_eventhub_namespace",
        ctx.label,
        Attr("name", ctx.name),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        Attr("sku", ctx.get("sku", "Standard")),
        Attr("capacity", integer(ctx.get("capacity"), 1)),
        BLANK,
        tags_attr(ctx.tags),
    )
    hub = resource(
        "azurerm_eventhub",
        ctx.label,
        Attr("name", ctx.name),
        Attr("namespace_name", namespace.ref("name")),
        Attr("resource_group_name", ctx.resource_group),
        Attr("partition_count", integer(ctx.get("partitionCount"), 2)),
        Attr("message_retention", integer(ctx.get("messageRetentionInDays"), 1)),
    )
    return [Comment("Create Event Hub Namespace"), namespace, BLANK, Comment("Create Event Hub"), hub]


def functions(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Function App"),
        resource(
            "azurerm_linux_function_app",
            ctx.label,
            Attr("name", ctx.name),
            Attr("resource_group_name", ctx.resource_group),
            Attr("location", ctx.location),
            BLANK,
            Attr(
                "storage_account_name",
                ctx.ref("storageAccountName", "azurerm_storage_account", "name", "azurerm_storage_account.main.name"),
            ),
            Attr(
                "storage_account_access_key",
                ctx.ref(
                    "storageAccountAccessKey",
                    "azurerm_storage_account",
                    "primary_access_key",
                    "azurerm_storage_account.main.primary_access_key",
                ),
            ),
            Attr("service_plan_id", reference(ctx.get("servicePlanId", "azurerm_service_plan.main.id"))),
            BLANK,
            block("site_config", application_stack_block(ctx.get("applicationStack"))),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def log_analytics(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Log Analytics Workspace"),
        resource(
            "azurerm_log_analytics_workspace",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            Attr("sku", ctx.get("sku", "PerGB2018")),
            Attr("retention_in_days", integer(ctx.get("retentionInDays"), 30)),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def managed_identity(ctx: TemplateContext) -> list[Node]:
    identity = resource(
        "azurerm_user_assigned_identity",
        ctx.label,
        Attr("name", ctx.name),
        Attr("resource_group_name", ctx.resource_group),
        Attr("location", ctx.location),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create Managed Identity"),
        identity,
        *role_assignments(
            identity,
            [
                ("identity_contributor", "Managed Identity Contributor", "managed_identity_contributor"),
                *_owner_reader("identity", "Managed Identity"),
            ],
        ),
    ]


def openai(ctx: TemplateContext) -> list[Node]:
    account = resource(
        "azurerm_cognitive_account",
        ctx.label,
        Attr("name", ctx.name),
        Attr("location", ctx.location),
        Attr("resource_group_name", ctx.resource_group),
        Attr("kind", "OpenAI"),
        Attr("sku_name", ctx.get("skuName", "S0")),
        BLANK,
        tags_attr(ctx.tags),
    )
    return [
        Comment("Create OpenAI Service"),
        account,
        *role_assignments(
            account,
            [
                ("openai_contributor", "OpenAI Contributor", "cognitive_services_openai_contributor"),
                *_owner_reader("openai", "OpenAI"),
            ],
        ),
    ]


def private_endpoint(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Private Endpoint"),
        resource(
            "azurerm_private_endpoint",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            Attr("subnet_id", ctx.ref("subnetId", "azurerm_subnet", "id", "azurerm_subnet.main.id")),
            BLANK,
            block(
                "private_service_connection",
                Attr("name", f"{ctx.name}-privateserviceconnection"),
                Attr(
                    "private_connection_resource_id",
                    ctx.ref("privateConnectionResourceId", "azurerm_key_vault", "id", "azurerm_key_vault.main.id"),
                ),
                Attr("is_manual_connection", False),
                Attr("subresource_names", string_list(ctx.get("subresourceNames"), ["vault"])),
            ),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def redis(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Redis Cache"),
        resource(
            "azurerm_redis_cache",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            Attr("capacity", integer(ctx.get("capacity"), 1)),
            Attr("family", ctx.get("family", "C")),
            Attr("sku_name", ctx.get("skuName", "Standard")),
            Attr("enable_non_ssl_port", flag(ctx.get("enableNonSslPort"), False)),
            Attr("minimum_tls_version", ctx.get("minimumTlsVersion", "1.2")),
            BLANK,
            redis_configuration_block(ctx.get("redisConfiguration")),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def route_table(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Route Table"),
        resource(
            "azurerm_route_table",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            BLANK,
            *route_blocks(ctx.get("routes")),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def role_assignment(ctx: TemplateContext) -> list[Node]:
    # azurerm_role_assignment takes no tags
    if ctx.get("roleDefinitionName"):
        role = Attr("role_definition_name", ctx.get("roleDefinitionName"))
    else:
        role = Attr(
            "role_definition_id",
            reference(ctx.get("roleDefinitionId", role_definition_id(BUILTIN_ROLES["contributor"]))),
        )
    return [
        Comment("Create Role Assignment"),
        resource(
            "azurerm_role_assignment",
            ctx.label,
            Attr("scope", scope_value(ctx, ctx.resource_group_id)),
            role,
            Attr("principal_id", reference(ctx.get("principalId")) or CURRENT_OBJECT_ID),
            Attr("principal_type", ctx.get("principalType", "User")),
        ),
    ]


def role_definition(ctx: TemplateContext) -> list[Node]:
    scope = scope_value(ctx, SUBSCRIPTION.attr("id"))
    return [
        Comment("Create Custom Role Definition"),
        resource(
            "azurerm_role_definition",
            ctx.label,
            Attr("name", ctx.get("roleName", "Custom Role")),
            Attr("scope", scope),
            Attr("description", ctx.get("description", "Custom role definition")),
            BLANK,
            block(
                "permissions",
                Attr(
                    "actions",
                    string_list(ctx.get("actions"), ["Microsoft.Resources/subscriptions/resourceGroups/read"]),
                ),
                Attr("not_actions", string_list(ctx.get("notActions"), [])),
                Attr("data_actions", string_list(ctx.get("dataActions"), [])),
                Attr("not_data_actions", string_list(ctx.get("notDataActions"), [])),
            ),
            BLANK,
            Attr("assignable_scopes", [scope]),
        ),
    ]


def workbook(ctx: TemplateContext) -> list[Node]:
    display_name = ctx.get("displayName", ctx.name)
    data_json = call(
        "jsonencode",
        {
            "version": "Notebook/1.0",
            "items": [
                {
                    "type": 1,
                    "content": {
                        "json": f"# {display_name}\n\nWelcome to your Azure Workbook for monitoring and analytics."
                    },
                }
            ],
        },
    )
    return [
        Comment("Create Azure Workbook"),
        resource(
            "azurerm_application_insights_workbook",
            ctx.label,
            Attr("name", ctx.name),
            Attr("location", ctx.location),
            Attr("resource_group_name", ctx.resource_group),
            Attr("display_name", display_name),
            Attr("data_json", data_json),
            BLANK,
            tags_attr(ctx.tags),
        ),
    ]


def _mail_nickname(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def ad_group(ctx: TemplateContext) -> list[Node]:
    body: list[Node] = [
        Attr("display_name", ctx.get("displayName", ctx.name)),
        Attr("description", ctx.get("description", "Azure AD Group")),
        Attr("security_enabled", flag(ctx.get("securityEnabled"), True)),
        Attr("mail_enabled", flag(ctx.get("mailEnabled"), False)),
        Attr("mail_nickname", ctx.get("mailNickname", _mail_nickname(ctx.name))),
    ]
    for key, attr in (("groupTypes", "types"), ("owners", "owners"), ("members", "members")):
        values = string_list(ctx.get(key), [])
        if values:
            body.append(Attr(attr, [reference(v) for v in values]))
    return [Comment("Create Azure AD Group"), resource("azuread_group", ctx.label, *body)]


def ad_group_member(ctx: TemplateContext) -> list[Node]:
    return [
        Comment("Create Azure AD Group Member"),
        resource(
            "azuread_group_member",
            ctx.label,
            Attr("group_object_id", ctx.ref("groupId", "azuread_group", "object_id", "azuread_group.main.object_id")),
            Attr("member_object_id", reference(ctx.get("memberId")) or CURRENT_OBJECT_ID),
        ),
    ]


def group_role_assignment(ctx: TemplateContext) -> list[Node]:
    principal = ctx.get("principalId")
    if principal is not None and not isinstance(reference(principal), Expr):
        # a bare group label
        principal = Expr(f"azuread_group.{hcl_label(principal)}.object_id")
    else:
        principal = ctx.ref("principalId", "azuread_group", "object_id", "azuread_group.main.object_id")
    return [
        Comment("Create Role Assignment with AD Group"),
        resource(
            "azurerm_role_assignment",
            ctx.label,
            Attr("scope", scope_value(ctx, SUBSCRIPTION.attr("id"))),
            Attr("role_definition_name", ctx.get("roleDefinitionName", "Owner")),
            Attr("principal_id", principal),
            Attr("principal_type", "Group"),
        ),
    ]


TemplateBuilder = Callable[[TemplateContext], "list[Node]"]

# resource type -> (builder, terraform type of the block other resources reference)
TEMPLATES: dict[str, tuple[TemplateBuilder, str]] = {
    "key_vault": (key_vault, "azurerm_key_vault"),
    "storage_account": (storage_account, "azurerm_storage_account"),
    "virtual_network": (virtual_network, "azurerm_virtual_network"),
    "subnet": (subnet, "azurerm_subnet"),
    "network_security_group": (network_security_group, "azurerm_network_security_group"),
    "virtual_machine": (virtual_machine, "azurerm_linux_virtual_machine"),
    "app_service": (app_service, "azurerm_app_service"),
    "sql_database": (sql_database, "azurerm_mssql_database"),
    "ai_studio": (ai_studio, "azurerm_machine_learning_workspace"),
    "api_management": (api_management, "azurerm_api_management"),
    "application_insights": (application_insights, "azurerm_application_insights"),
    "container_registry": (container_registry, "azurerm_container_registry"),
    "cosmos_db": (cosmos_db, "azurerm_cosmosdb_account"),
    "cosmosdb": (cosmos_db, "azurerm_cosmosdb_account"),
    "event_hub": (event_hub, "azurerm_eventhub_namespace"),
    "functions": (functions, "azurerm_linux_function_app"),
    "log_analytics": (log_analytics, "azurerm_log_analytics_workspace"),
    "managed_identity": (managed_identity, "azurerm_user_assigned_identity"),
    "openai": (openai, "azurerm_cognitive_account"),
    "private_endpoint": (private_endpoint, "azurerm_private_endpoint"),
    "redis": (redis, "azurerm_redis_cache"),
    "route_table": (route_table, "azurerm_route_table"),
    "role_assignment": (role_assignment, "azurerm_role_assignment"),
    "role_definition": (role_definition, "azurerm_role_definition"),
    "workbook": (workbook, "azurerm_application_insights_workbook"),
    "ad_group": (ad_group, "azuread_group"),
    "azuread_group": (ad_group, "azuread_group"),
    "ad_group_member": (ad_group_member, "azuread_group_member"),
    "azurerm_role_assignment": (group_role_assignment, "azurerm_role_assignment"),
}
