"""Split a design's resources between the regular and network resource groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from tfbuilder.errors import ResourceGroupConflictError
from tfbuilder.spec import Resource

NETWORK_TYPES = frozenset({"virtual_network", "subnet", "network_security_group", "route_table"})
RESOURCE_GROUP_TYPES = frozenset({"resource_group", "azurerm_resource_group"})
NETWORK_GROUP_PREFIX = "rg-vnet-"


def is_network_resource(resource: Resource) -> bool:
    return resource.type in NETWORK_TYPES


@dataclass
class Partition:
    regular_resource_groups: list[Resource] = field(default_factory=list)
    vnet_resource_groups: list[Resource] = field(default_factory=list)
    vnet_related_resources: list[Resource] = field(default_factory=list)
    # everything except resource groups, in input order
    filtered_resources: list[Resource] = field(default_factory=list)

    @property
    def regular_resource_group(self) -> Resource | None:
        return self.regular_resource_groups[0] if self.regular_resource_groups else None

    @property
    def vnet_resource_group(self) -> Resource | None:
        return self.vnet_resource_groups[0] if self.vnet_resource_groups else None

    @property
    def needs_regular_group(self) -> bool:
        """A regular group is emitted for any non-network resource or an explicit candidate."""
        return bool(self.regular_resource_groups) or any(
            not is_network_resource(r) for r in self.filtered_resources
        )

    @property
    def needs_vnet_group(self) -> bool:
        return bool(self.vnet_resource_groups) or bool(self.vnet_related_resources)


def partition(resources: Iterable[Resource]) -> Partition:
    """Partition resources.

    Raises ResourceGroupConflictError when more than one regular or more than
    one network resource group candidate is declared.
    """
    result = Partition()
    for resource in resources:
        if resource.type in RESOURCE_GROUP_TYPES:
            # legacy azurerm_resource_group entries are dropped without becoming candidates
            if resource.type != "resource_group":
                continue
            if resource.name.startswith(NETWORK_GROUP_PREFIX):
                result.vnet_resource_groups.append(resource)
            else:
                result.regular_resource_groups.append(resource)
            continue
        if is_network_resource(resource):
            result.vnet_related_resources.append(resource)
        result.filtered_resources.append(resource)

    if len(result.regular_resource_groups) > 1:
        raise ResourceGroupConflictError("regular", [r.name for r in result.regular_resource_groups])
    if len(result.vnet_resource_groups) > 1:
        raise ResourceGroupConflictError("network", [r.name for r in result.vnet_resource_groups])
    return result
