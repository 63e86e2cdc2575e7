"""Terraform code assembly.

Order of the emitted file is fixed: provider preamble, the regular resource
group module, the network resource group module, then one block group per
resource in input order. Blocks are separated by a blank line.

``render`` is pure. ``generate`` adds the optional Terraform Cloud token check,
which runs concurrently with rendering and only sets ``token_valid``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from tfbuilder import naming
from tfbuilder.config import Settings
from tfbuilder.errors import InvalidResourcesError, ModuleResolutionError, TemplateError
from tfbuilder.hcl import Block, Expr, Node, render as render_hcl
from tfbuilder.modules import RESOURCE_GROUP_MODULE
from tfbuilder.partition import Partition, partition
from tfbuilder.registry import ResourceHandler, get_handler
from tfbuilder.spec import GenerationResult, GlobalConfig, Resource, validate_unique_names
from tfbuilder.templates import TemplateContext, hcl_label, provider_preamble, resource_group_module
from tfbuilder.terraform_cloud import validate_token

logger = logging.getLogger(__name__)

REGULAR_GROUP_LABEL = "resource_group"
NETWORK_GROUP_LABEL = "vnet_resource_group"
REGULAR_GROUP_NAME = Expr(f"module.{REGULAR_GROUP_LABEL}.name")
NETWORK_GROUP_NAME = Expr(f"module.{NETWORK_GROUP_LABEL}.name")

TEST_LANDING_ZONE = "test_landing_zone"
TEST_ZONE_EXCLUDED_TYPES = frozenset({"role_definition", "role_assignment", "azurerm_role_assignment"})

_ENVIRONMENT_TAGS = {"nonprod": "Non-Prod", "dev": "Dev", "test": "Test", "prod": "Prod"}


@dataclass
class RenderOutput:
    code: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class _Plan:
    """Validated input for one run."""

    global_config: GlobalConfig
    partition: Partition
    use_remote_modules: bool


def environment_tag(environment: str) -> str:
    return _ENVIRONMENT_TAGS.get(environment, environment)


def coerce_resources(resources: Any) -> list[Resource]:
    """Accept Resource objects or plain dicts; anything else is rejected up front."""
    if not isinstance(resources, (list, tuple)):
        raise InvalidResourcesError("resources must be a list")
    items: list[Resource] = []
    for i, item in enumerate(resources):
        if isinstance(item, Resource):
            items.append(item)
        elif isinstance(item, Mapping):
            try:
                items.append(Resource.model_validate(item))
            except ValidationError as e:
                raise InvalidResourcesError(f"Invalid resource at index {i}: {e}") from e
        else:
            raise InvalidResourcesError(f"Invalid resource at index {i}: expected an object")
    return items


def _coerce_global_config(global_config: GlobalConfig | Mapping[str, Any] | None) -> GlobalConfig:
    if global_config is None:
        return GlobalConfig()
    if isinstance(global_config, GlobalConfig):
        return global_config
    return GlobalConfig.model_validate(global_config)


def _plan(resources: Any, global_config: Any, use_remote_modules: bool) -> _Plan:
    gc = _coerce_global_config(global_config)
    items = coerce_resources(resources)
    validate_unique_names(items)
    if gc.landing_zone_id == TEST_LANDING_ZONE:
        items = [r for r in items if r.type not in TEST_ZONE_EXCLUDED_TYPES]
    return _Plan(global_config=gc, partition=partition(items), use_remote_modules=use_remote_modules)


def regular_group_block(gc: GlobalConfig) -> str:
    name = naming.resource_group_name("regular", gc.project_name, gc.environment, gc.region)
    tags = {"Environment": environment_tag(gc.environment), "Project": gc.project_name, **gc.tags}
    logger.debug("Regular resource group: %s in %s", name, gc.effective_location)
    return render_hcl(
        resource_group_module(REGULAR_GROUP_LABEL, RESOURCE_GROUP_MODULE.source, name, gc.effective_location, tags)
    )


def network_group_block(gc: GlobalConfig) -> str:
    name = naming.resource_group_name("network", gc.project_name, gc.environment, gc.region)
    logger.debug("Network resource group: %s in %s", name, gc.effective_location)
    # No default tags on the network group, unlike the regular group.
    return render_hcl(
        resource_group_module(NETWORK_GROUP_LABEL, RESOURCE_GROUP_MODULE.source, name, gc.effective_location, None)
    )


def _unique(base: str, used: set[str]) -> str:
    label, n = base, 2
    while label in used:
        label = f"{base}_{n}"
        n += 1
    used.add(label)
    return label


class _Assembler:
    """Renders the per-resource blocks of one run."""

    def __init__(self, plan: _Plan):
        self.plan = plan
        self.gc = plan.global_config
        self.warnings: list[str] = []
        self._module_labels = {REGULAR_GROUP_LABEL, NETWORK_GROUP_LABEL}
        self._labels: dict[str, str] = {}
        # "type.label" of every resource block emitted or reserved so far
        self._addresses: set[str] = set()
        self.references: dict[str, str] = {}
        self._assign_labels(plan.partition.filtered_resources)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _goes_remote(self, handler: ResourceHandler) -> bool:
        return self.plan.use_remote_modules and handler.has_remote_module

    def _assign_labels(self, resources: Iterable[Resource]) -> None:
        used: set[str] = set()
        for resource in resources:
            label = _unique(hcl_label(resource.name), used)
            self._labels[resource.id] = label
            handler = get_handler(resource.type)
            if handler and handler.primary_type and not self._goes_remote(handler):
                self._addresses.add(f"{handler.primary_type}.{label}")
                self.references.setdefault(handler.primary_type, f"{handler.primary_type}.{label}")

    def _claim_addresses(self, nodes: list[Node], own_label: str) -> None:
        """Relabel generated blocks, such as fixed role assignments, whose address is taken.

        Blocks labelled after the resource itself keep their label; it was
        reserved up front and may be referenced by siblings.
        """
        for node in nodes:
            if not isinstance(node, Block) or node.type != "resource":
                continue
            resource_type, label = node.labels
            if label != own_label and node.address in self._addresses:
                prefix = f"{resource_type}."
                taken = {a[len(prefix) :] for a in self._addresses if a.startswith(prefix)}
                node.labels[1] = _unique(label, taken)
                logger.debug("Relabelled %s.%s to %s", resource_type, label, node.labels[1])
            self._addresses.add(node.address)

    def location_for(self, resource: Resource) -> str:
        return self.gc.location or resource.config.get("location") or self.gc.region

    def render_resource(self, resource: Resource) -> str:
        handler = get_handler(resource.type)
        if handler is None:
            self._warn(f"Unsupported resource type {resource.type!r} ({resource.name}); no code generated")
            return ""

        name = resource.config.get("name") or handler.default_name(self.gc)
        location = self.location_for(resource)
        group = NETWORK_GROUP_NAME if handler.network else REGULAR_GROUP_NAME
        logger.debug("Rendering %s %s as %s in %s", resource.type, resource.name, name, group.text)

        if self._goes_remote(handler):
            label = _unique(handler.remote_module.module_name, self._module_labels)
            try:
                return handler.render_module(name, resource.config, location, group, label=label)
            except ModuleResolutionError as e:
                self._module_labels.discard(label)
                self._warn(f"Remote module for {resource.name} failed ({e}); using inline template")

        if not handler.has_template:
            self._warn(f"No inline template for {resource.type!r} ({resource.name}); no code generated")
            return ""

        ctx = TemplateContext(
            label=self._labels[resource.id],
            name=name,
            location=location,
            resource_group=group,
            config=dict(resource.config),
            references=self.references,
        )
        try:
            nodes = handler.build_inline(ctx)
            self._claim_addresses(nodes, ctx.label)
            return render_hcl(nodes)
        except (TemplateError, TypeError, ValueError) as e:
            self._warn(f"Could not render {resource.name} ({resource.type}): {e}")
            return ""


def _render_plan(plan: _Plan) -> RenderOutput:
    gc = plan.global_config
    blocks = [render_hcl(provider_preamble())]
    if plan.partition.needs_regular_group:
        blocks.append(regular_group_block(gc))
    if plan.partition.needs_vnet_group:
        blocks.append(network_group_block(gc))

    assembler = _Assembler(plan)
    for resource in plan.partition.filtered_resources:
        code = assembler.render_resource(resource)
        if code:
            blocks.append(code)
    return RenderOutput(code="\n\n".join(blocks), warnings=assembler.warnings)


def render(
    resources: Any,
    global_config: GlobalConfig | Mapping[str, Any] | None = None,
    use_remote_modules: bool = True,
) -> RenderOutput:
    """Render Terraform for a design. Deterministic for a given input.

    Raises InvalidResourcesError, DuplicateNameError or ResourceGroupConflictError before any
    output is produced. Problems with individual resources become warnings.
    """
    return _render_plan(_plan(resources, global_config, use_remote_modules))


async def generate(
    resources: Any,
    global_config: GlobalConfig | Mapping[str, Any] | None = None,
    terraform_token: str | None = None,
    use_remote_modules: bool = True,
    settings: Settings | None = None,
) -> GenerationResult:
    """Render Terraform and, if a token is given, validate it concurrently."""
    plan = _plan(resources, global_config, use_remote_modules)
    settings = settings or Settings()

    token_task: asyncio.Task[bool] | None = None
    if terraform_token:
        token_task = asyncio.create_task(
            validate_token(terraform_token, settings.terraform_api_url, settings.token_timeout)
        )
    try:
        output = await asyncio.to_thread(_render_plan, plan)
    except BaseException:
        if token_task is not None:
            token_task.cancel()
        raise

    token_valid = False
    if token_task is not None:
        try:
            token_valid = await token_task
        except Exception:
            logger.exception("Token validation task failed")

    return GenerationResult(
        code=output.code,
        use_remote_modules=use_remote_modules,
        token_valid=token_valid,
        warnings=output.warnings,
    )


def generate_sync(*args: Any, **kwargs: Any) -> GenerationResult:
    return asyncio.run(generate(*args, **kwargs))


def write_terraform(code: str, output_dir: str | Path) -> Path:
    """Write ``main.tf`` into ``output_dir`` and return its path."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / "main.tf"
    path.write_text(code if code.endswith("\n") else code + "\n")
    return path
