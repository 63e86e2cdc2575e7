"""Configuration merge layer.

Folds the settings form (GlobalConfig) into per-resource config the way the
designer does before a design is generated. Every function returns new
Resource objects; inputs are never mutated.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from tfbuilder import naming
from tfbuilder.partition import NETWORK_TYPES
from tfbuilder.spec import GlobalConfig, Position, Resource, validate_unique_names

logger = logging.getLogger(__name__)

# Resource types that carry per-resource Azure AD role lists.
AD_ROLE_TYPES = frozenset(
    {
        "key_vault",
        "storage_account",
        "virtual_machine",
        "sql_database",
        "ai_studio",
        "container_registry",
        "api_management",
        "managed_identity",
        "openai",
    }
)


def supports_ad_roles(resource_type: str) -> bool:
    return resource_type in AD_ROLE_TYPES


def group_name_for(resource_type: str, global_config: GlobalConfig) -> str:
    """Name of the resource group a resource of this type lands in."""
    kind = "network" if resource_type in NETWORK_TYPES else "regular"
    return naming.resource_group_name(kind, global_config.project_name, global_config.environment, global_config.region)


def merged_config(resource: Resource, global_config: GlobalConfig) -> dict[str, Any]:
    config = dict(resource.config)
    config.update(
        location=global_config.effective_location,
        projectName=global_config.project_name,
        environment=global_config.environment,
        resourceGroup=group_name_for(resource.type, global_config),
        tags={**resource.tags, **global_config.tags},
    )
    if global_config.ad_roles and supports_ad_roles(resource.type):
        config["resourceSpecificRoles"] = list(global_config.ad_roles)
    if resource.type == "key_vault" and not config.get("keyvault_name") and config.get("name"):
        config["keyvault_name"] = config["name"]
    return config


def apply_global_config(resources: Iterable[Resource], global_config: GlobalConfig) -> list[Resource]:
    """Return copies of ``resources`` with the global settings applied.

    Global tags win over a resource's own tags on key collisions.
    """
    updated = [r.model_copy(update={"config": merged_config(r, global_config)}, deep=True) for r in resources]
    logger.debug("Applied global config to %d resources", len(updated))
    return updated


def update_resource(resources: Iterable[Resource], updated: Resource) -> list[Resource]:
    """Replace the resource with ``updated.id`` by ``updated`` as a whole.

    Raises KeyError if no resource has that id and DuplicateNameError if the
    replacement would clash with another resource's name.
    """
    items = list(resources)
    for i, resource in enumerate(items):
        if resource.id == updated.id:
            result = items[:i] + [updated] + items[i + 1 :]
            validate_unique_names(result)
            return result
    raise KeyError(updated.id)


def create_resource(
    resource_type: str,
    existing: Iterable[Resource] = (),
    global_config: GlobalConfig | None = None,
    position: Position | None = None,
) -> Resource:
    """A freshly dropped resource with a suggested, unused name."""
    gc = global_config or GlobalConfig()
    items = list(existing)
    taken = {r.name.lower() for r in items}
    instance = sum(1 for r in items if r.type == resource_type) + 1
    name = naming.suggest_name(resource_type, instance, gc.project_name, gc.environment, gc.region)
    while name.lower() in taken:
        instance += 1
        name = naming.suggest_name(resource_type, instance, gc.project_name, gc.environment, gc.region)

    config: dict[str, Any] = {"location": gc.effective_location, "tags": dict(gc.tags)}
    if gc.ad_roles and supports_ad_roles(resource_type):
        config["resourceSpecificRoles"] = list(gc.ad_roles)
    return Resource(type=resource_type, name=name, config=config, position=position or Position())
