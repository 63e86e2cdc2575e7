"""Azure naming conventions.

Every function here is pure: the same (project, environment, region) always
yields the same name. Region labels are the human strings the settings form
offers ("East US"); slugs are what Azure uses in names ("eastus").
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

REGION_SHORT_NAMES: dict[str, str] = {
    "East US": "eastus",
    "East US 2": "eastus2",
    "West US": "westus",
    "West US 2": "westus2",
    "West US 3": "westus3",
    "Central US": "centralus",
    "North Central US": "northcentralus",
    "South Central US": "southcentralus",
    "West Central US": "westcentralus",
    "Canada Central": "canadacentral",
    "Canada East": "canadaeast",
    "UK South": "uksouth",
    "UK West": "ukwest",
    "North Europe": "northeurope",
    "West Europe": "westeurope",
    "France Central": "francecentral",
    "France South": "francesouth",
    "Germany West Central": "germanywestcentral",
    "Germany North": "germanynorth",
    "Switzerland North": "switzerlandnorth",
    "Switzerland West": "switzerlandwest",
    "Norway East": "norwayeast",
    "Norway West": "norwaywest",
    "Southeast Asia": "southeastasia",
    "East Asia": "eastasia",
    "Australia East": "australiaeast",
    "Australia Southeast": "australiasoutheast",
    "Australia Central": "australiacentral",
    "Australia Central 2": "australiacentral2",
    "Japan East": "japaneast",
    "Japan West": "japanwest",
    "Korea Central": "koreacentral",
    "Korea South": "koreasouth",
    "South India": "southindia",
    "Central India": "centralindia",
    "West India": "westindia",
    "Brazil South": "brazilsouth",
    "Brazil Southeast": "brazilsoutheast",
    "South Africa North": "southafricanorth",
    "South Africa West": "southafricawest",
    "UAE North": "uaenorth",
    "UAE Central": "uaecentral",
}

DEFAULT_SHORT_REGION = "centralus"

_KNOWN_SLUGS = frozenset(REGION_SHORT_NAMES.values())

# type -> name prefix; storage accounts are handled separately
_NAME_PREFIXES: dict[str, str] = {
    "virtual_network": "vnet",
    "key_vault": "kv",
    "virtual_machine": "vm",
    "app_service": "app",
    "sql_database": "sqldb",
    "subnet": "snet",
    "network_security_group": "nsg",
    "route_table": "rt",
    "managed_identity": "id",
}

STORAGE_ACCOUNT_MAX_LENGTH = 24

GroupKind = Literal["regular", "network"]


def short_region(region: str) -> str:
    """Map a region label to its slug. Unknown labels fall back to centralus."""
    if region in REGION_SHORT_NAMES:
        return REGION_SHORT_NAMES[region]
    if region in _KNOWN_SLUGS:
        return region
    return DEFAULT_SHORT_REGION


def resource_group_name(kind: GroupKind, project: str, environment: str, region: str) -> str:
    short = short_region(region)
    if kind == "network":
        return f"rg-vnet-{short}-{environment}-01"
    if kind == "regular":
        return f"rg-{project.lower()}-{short}-{environment}-01"
    raise ValueError(f"Unknown resource group kind: {kind!r}")


def resource_name(resource_type: str, project: str, environment: str, region: str) -> str:
    """Default Azure name for a resource that has no explicit ``config.name``."""
    project = project.lower()
    short = short_region(region)
    if resource_type == "storage_account":
        return f"sa{project}{short}{environment}01"[:STORAGE_ACCOUNT_MAX_LENGTH]
    prefix = _NAME_PREFIXES.get(resource_type, resource_type.replace("_", ""))
    return f"{prefix}-{project}-{short}-{environment}-01"


# --- Validation rules ---


@dataclass(frozen=True)
class NamingRule:
    display_name: str
    short_code: str
    min_length: int
    max_length: int
    allow_hyphens: bool = True
    lowercase_only: bool = False
    alphanumeric_only: bool = True
    compact: bool = False  # no separators in suggested names


@dataclass
class NameValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "errors": self.errors}


NAMING_RULES: dict[str, NamingRule] = {
    "key_vault": NamingRule("Key Vault", "kv", 3, 24, allow_hyphens=False, lowercase_only=True),
    "managed_identity": NamingRule("Managed Identity", "mi", 1, 128),
    "private_endpoint": NamingRule("Private Endpoint", "pe", 1, 80),
    "role_assignment": NamingRule("Role Assignment", "ra", 1, 128),
    "role_definition": NamingRule("Role Definition", "rd", 1, 128),
    "ad_group": NamingRule("Azure AD Group", "aadg", 1, 256, alphanumeric_only=False),
    "ad_group_member": NamingRule("AD Group Member", "aadgm", 1, 128),
    "storage_account": NamingRule(
        "Storage Account", "st", 3, 24, allow_hyphens=False, lowercase_only=True, compact=True
    ),
    "container_registry": NamingRule("Container Registry", "acr", 5, 50, allow_hyphens=False, lowercase_only=True),
    "virtual_network": NamingRule("Virtual Network", "vnet", 1, 64),
    "subnet": NamingRule("Subnet", "snet", 1, 80),
    "network_security_group": NamingRule("Network Security Group", "nsg", 1, 80),
    "route_table": NamingRule("Route Table", "rt", 1, 80),
    "app_service": NamingRule("App Service", "app", 2, 60, lowercase_only=True),
    "functions": NamingRule("Function App", "func", 1, 60, lowercase_only=True),
    "sql_database": NamingRule("SQL Database", "sql", 1, 128, allow_hyphens=False),
    "cosmos_db": NamingRule("Cosmos DB", "cosmos", 3, 44, lowercase_only=True),
    "cosmosdb": NamingRule("Cosmos DB", "cosmos", 3, 44, lowercase_only=True),
    "redis": NamingRule("Redis Cache", "redis", 1, 63, lowercase_only=True),
    "ai_studio": NamingRule("AI Studio", "ai", 1, 80),
    "openai": NamingRule("OpenAI", "openai", 1, 64, lowercase_only=True),
    "application_insights": NamingRule("Application Insights", "appi", 1, 256),
    "log_analytics": NamingRule("Log Analytics Workspace", "log", 4, 63),
    "workbook": NamingRule("Azure Workbooks", "wb", 1, 256, alphanumeric_only=False),
    "api_management": NamingRule("API Management", "apim", 1, 50, lowercase_only=True),
    "event_hub": NamingRule("Event Hub", "eh", 1, 50, lowercase_only=True),
    "resource_group": NamingRule("Resource Group", "rg", 1, 90, alphanumeric_only=False),
    "azurerm_resource_group": NamingRule("Resource Group", "rg", 1, 90, alphanumeric_only=False),
}

_LOWER_ALNUM = re.compile(r"^[a-z0-9]+$")
_ALNUM = re.compile(r"^[a-zA-Z0-9]+$")
_ALNUM_HYPHEN = re.compile(r"^[a-zA-Z0-9-]+$")


def validate_name(resource_type: str, name: str) -> NameValidation:
    """Check ``name`` against Azure's rules for ``resource_type``.

    Types without a rule are always valid.
    """
    rule = NAMING_RULES.get(resource_type)
    if rule is None:
        return NameValidation(is_valid=True)

    errors: list[str] = []
    if len(name) < rule.min_length:
        errors.append(f"Name must be at least {rule.min_length} characters long")
    if len(name) > rule.max_length:
        errors.append(f"Name must be no more than {rule.max_length} characters long")
    if rule.lowercase_only and name != name.lower():
        errors.append("Name must be lowercase only")
    if not rule.allow_hyphens and "-" in name:
        errors.append("Hyphens are not allowed in this resource name")
    if rule.alphanumeric_only:
        pattern = _ALNUM_HYPHEN if rule.allow_hyphens else _ALNUM
        if not pattern.match(name):
            suffix = ", and hyphens" if rule.allow_hyphens else ""
            errors.append(f"Name can only contain letters, numbers{suffix}")

    if resource_type in ("resource_group", "azurerm_resource_group") and name.endswith("."):
        errors.append("Resource group name cannot end with a period")
    if resource_type in ("storage_account", "container_registry") and not _LOWER_ALNUM.match(name):
        errors.append(f"{rule.display_name} name can only contain lowercase letters and numbers")

    return NameValidation(is_valid=not errors, errors=errors)


def suggest_name(
    resource_type: str,
    instance: int = 1,
    project: str = "iim",
    environment: str = "nonprod",
    region: str = "Central US",
) -> str:
    """Suggest a name following the short-code convention, e.g. ``vnet-iim-nonprod-centralus-01``."""
    instance_str = f"{instance:02d}"
    rule = NAMING_RULES.get(resource_type)
    if rule is None:
        return f"{resource_type}-{instance_str}"

    project = project.lower()
    if rule.compact:
        return f"{rule.short_code}{project}{environment}{instance_str}"[: rule.max_length]
    name = f"{rule.short_code}-{project}-{environment}-{short_region(region)}-{instance_str}"
    if not rule.allow_hyphens:
        name = name.replace("-", "")
    return name[: rule.max_length]


def display_name(resource_type: str) -> str:
    rule = NAMING_RULES.get(resource_type)
    return rule.display_name if rule else resource_type
