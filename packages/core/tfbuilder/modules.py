"""Remote module resolver.

A subset of resource types have a Git-hosted Terraform module. For those
types the generator emits a ``module`` block instead of inline resources;
variable mapping is a per-type function registered in ``_MAPPERS``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from tfbuilder.errors import ModuleResolutionError
from tfbuilder.hcl import Attr, Block, Expr, render

logger = logging.getLogger(__name__)

GITHUB_ORG = "mukeshbharathigeakminds"
REPOSITORY = "terraform-azurerm-landing-zone"
DEFAULT_MODULE_LOCATION = "East US"


@dataclass(frozen=True)
class RemoteModule:
    resource_type: str
    module_name: str
    module_folder: str = ""
    ref: str = "main"
    github_org: str = GITHUB_ORG
    repository: str = REPOSITORY

    @property
    def source(self) -> str:
        path = f"//{self.module_folder}" if self.module_folder else ""
        ref = f"?ref={self.ref}" if self.ref else ""
        return f"git::https://github.com/{self.github_org}/{self.repository}.git{path}{ref}"

    def to_dict(self) -> dict[str, str]:
        return {
            "resourceType": self.resource_type,
            "moduleName": self.module_name,
            "githubOrg": self.github_org,
            "repository": self.repository,
            "moduleFolder": self.module_folder,
            "ref": self.ref,
            "source": self.source,
        }


# Resource groups are synthesized by the generator, never mapped from a resource.
RESOURCE_GROUP_MODULE = RemoteModule("resource_group", "resource_group", "modules/resource_group", ref="")

REMOTE_MODULES: dict[str, RemoteModule] = {
    m.resource_type: m
    for m in (
        RemoteModule("key_vault", "key_vault", "modules/key_vault", ref=""),
        RemoteModule("container_registry", "container_registry", "modules/container-registry"),
        RemoteModule("cosmosdb", "cosmosdb", "modules/cosmosdb"),
        RemoteModule("log_analytics", "log_analytics", "modules/log-analytics"),
        RemoteModule("application_insights", "application_insights", "modules/application-insights"),
        RemoteModule("functions", "functions", "modules/functions"),
        RemoteModule("event_hub", "event_hub", "modules/event-hub"),
        RemoteModule("api_management", "api_management", "modules/api-management"),
        RemoteModule("ai_studio", "ai_studio", "modules/ai-studio"),
    )
}


def has_remote_module(resource_type: str) -> bool:
    return resource_type in REMOTE_MODULES


def remote_module_source(module: str | RemoteModule) -> str:
    if isinstance(module, str):
        if module not in REMOTE_MODULES:
            raise ModuleResolutionError(f"No remote module configured for resource type: {module}")
        module = REMOTE_MODULES[module]
    return module.source


def list_remote_modules() -> list[RemoteModule]:
    return list(REMOTE_MODULES.values())


# --- Variable mappers ---


@dataclass
class ModuleInputs:
    """What a mapper sees: the resource config plus pipeline-resolved values."""

    config: dict[str, Any]
    name: str
    location: str
    resource_group: Expr

    def get(self, key: str, default: Any = None) -> Any:
        value = self.config.get(key)
        return default if value is None or value == "" else value


VariableMapper = Callable[[ModuleInputs], "dict[str, Any]"]

_MAPPERS: dict[str, VariableMapper] = {}


def variable_mapper(resource_type: str) -> Callable[[VariableMapper], VariableMapper]:
    def register(fn: VariableMapper) -> VariableMapper:
        _MAPPERS[resource_type] = fn
        return fn

    return register


@variable_mapper("key_vault")
def _key_vault(inputs: ModuleInputs) -> dict[str, Any]:
    use_hsm = inputs.config.get("use_hsm")
    return {
        "location": inputs.location,
        "resource_group_name": inputs.resource_group,
        "keyvault_name": inputs.get("keyvault_name") or inputs.name,
        "use_hsm": True if use_hsm is None else use_hsm,
        "secrets": inputs.get("secrets") or [{"name": "my-secret", "value": "supersecure"}],
        "certificates": inputs.get("certificates")
        or [{"name": "my-cert", "subject": "CN=myapp.local", "validity_months": 12}],
    }


@variable_mapper("container_registry")
def _container_registry(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group_name": inputs.resource_group,
        "sku": inputs.get("sku", "Basic"),
    }


@variable_mapper("cosmosdb")
def _cosmosdb(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "kind": inputs.get("kind", "GlobalDocumentDB"),
        "consistency_level": inputs.get("consistencyLevel", "Session"),
    }


@variable_mapper("log_analytics")
def _log_analytics(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "sku": inputs.get("sku", "PerGB2018"),
        "retention_in_days": inputs.get("retentionInDays", 30),
    }


@variable_mapper("application_insights")
def _application_insights(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "application_type": inputs.get("applicationType", "web"),
    }


@variable_mapper("functions")
def _functions(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "os_type": inputs.get("osType", "Linux"),
        "sku_name": inputs.get("skuName", "Y1"),
    }


@variable_mapper("event_hub")
def _event_hub(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "sku": inputs.get("sku", "Standard"),
        "capacity": inputs.get("capacity", 1),
    }


@variable_mapper("api_management")
def _api_management(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "publisher_name": inputs.get("publisherName", "INID"),
        "publisher_email": inputs.get("publisherEmail", "admin@inid.com"),
        "sku_name": inputs.get("skuName", "Developer_1"),
    }


@variable_mapper("ai_studio")
def _ai_studio(inputs: ModuleInputs) -> dict[str, Any]:
    return {
        "name": inputs.name,
        "location": inputs.location,
        "resource_group": inputs.resource_group,
        "description": inputs.get("description", "AI Studio workspace"),
    }


def _generic(inputs: ModuleInputs) -> dict[str, Any]:
    return {k: v for k, v in inputs.config.items() if k not in ("resourceGroup", "tags") and v is not None}


def module_variables(resource_type: str, inputs: ModuleInputs) -> dict[str, Any]:
    """Resolve module input variables. Tags are passed through only when non-empty."""
    mapper = _MAPPERS.get(resource_type, _generic)
    variables = mapper(inputs)
    tags = inputs.config.get("tags") or {}
    if tags:
        variables["tags"] = dict(tags)
    return variables


def build_module_block(
    resource_type: str,
    resource_name: str,
    config: dict[str, Any],
    *,
    location: str | None = None,
    resource_group: Expr | None = None,
    label: str | None = None,
) -> Block:
    """Build the ``module`` block for a resource.

    Raises ModuleResolutionError when the type has no remote module or its
    variables cannot be assembled; callers fall back to the inline template.
    """
    module = REMOTE_MODULES.get(resource_type)
    if module is None:
        raise ModuleResolutionError(f"No remote module configured for resource type: {resource_type}")

    inputs = ModuleInputs(
        config=dict(config or {}),
        name=config.get("name") or resource_name,
        location=location or config.get("location") or DEFAULT_MODULE_LOCATION,
        resource_group=resource_group or Expr("module.resource_group.name"),
    )
    try:
        variables = module_variables(resource_type, inputs)
    except Exception as e:
        raise ModuleResolutionError(
            f"Could not map variables for {resource_type} module", {"resource": resource_name}
        ) from e

    logger.debug("Using remote module %s for %s (%d variables)", module.source, resource_name, len(variables))
    body = [Attr("source", module.source)]
    body.extend(Attr(key, value) for key, value in variables.items() if value is not None)
    return Block("module", [label or module.module_name], body)


def build_module_call(resource_type: str, resource_name: str, config: dict[str, Any], **kwargs: Any) -> str:
    block = build_module_block(resource_type, resource_name, config, **kwargs)
    try:
        return render([block])
    except TypeError as e:
        raise ModuleResolutionError(f"Unrenderable variable in {resource_type} module: {e}") from e
