"""Per-type resource handlers.

Each resource type maps to one handler bundling its inline template, its
remote module (if any) and its default namer, so the generator never
switches on type strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tfbuilder import naming
from tfbuilder.hcl import Expr, Node, render
from tfbuilder.modules import REMOTE_MODULES, RemoteModule, build_module_call
from tfbuilder.partition import NETWORK_TYPES, RESOURCE_GROUP_TYPES
from tfbuilder.spec import GlobalConfig
from tfbuilder.templates import TEMPLATES, TemplateBuilder, TemplateContext


@dataclass(frozen=True)
class ResourceHandler:
    resource_type: str
    template: TemplateBuilder | None = None
    primary_type: str | None = None
    remote_module: RemoteModule | None = None

    @property
    def network(self) -> bool:
        return self.resource_type in NETWORK_TYPES

    @property
    def has_template(self) -> bool:
        return self.template is not None

    @property
    def has_remote_module(self) -> bool:
        return self.remote_module is not None

    def default_name(self, global_config: GlobalConfig) -> str:
        return naming.resource_name(
            self.resource_type, global_config.project_name, global_config.environment, global_config.region
        )

    def build_inline(self, ctx: TemplateContext) -> list[Node]:
        if self.template is None:
            return []
        return self.template(ctx)

    def render_inline(self, ctx: TemplateContext) -> str:
        return render(self.build_inline(ctx))

    def render_module(
        self, name: str, config: dict[str, Any], location: str, resource_group: Expr, label: str | None = None
    ) -> str:
        return build_module_call(
            self.resource_type, name, config, location=location, resource_group=resource_group, label=label
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.resource_type,
            "displayName": naming.display_name(self.resource_type),
            "terraformType": self.primary_type,
            "network": self.network,
            "remoteModule": self.remote_module.source if self.remote_module else None,
        }


def _build_handlers() -> dict[str, ResourceHandler]:
    handlers: dict[str, ResourceHandler] = {}
    for resource_type in sorted(set(TEMPLATES) | set(REMOTE_MODULES)):
        builder, primary = TEMPLATES.get(resource_type, (None, None))
        handlers[resource_type] = ResourceHandler(
            resource_type=resource_type,
            template=builder,
            primary_type=primary,
            remote_module=REMOTE_MODULES.get(resource_type),
        )
    return handlers


HANDLERS: dict[str, ResourceHandler] = _build_handlers()


def get_handler(resource_type: str) -> ResourceHandler | None:
    return HANDLERS.get(resource_type)


def known_types() -> list[str]:
    """Resource types the designer can place, group types included."""
    return sorted(set(HANDLERS) | RESOURCE_GROUP_TYPES)
