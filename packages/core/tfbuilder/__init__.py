"""tfbuilder: Terraform generation for Azure landing-zone designs."""

from tfbuilder.errors import (
    DuplicateNameError,
    InvalidResourcesError,
    ModuleResolutionError,
    ResourceGroupConflictError,
    TemplateError,
    TfBuilderError,
    UnknownLandingZoneError,
)
from tfbuilder.spec import Design, GenerationResult, GlobalConfig, Position, Resource

__version__ = "0.1.0"

__all__ = [
    "apply_global_config",
    "Design",
    "DuplicateNameError",
    "expand_landing_zone",
    "generate",
    "generate_sync",
    "GenerationResult",
    "GlobalConfig",
    "InvalidResourcesError",
    "list_landing_zones",
    "ModuleResolutionError",
    "Position",
    "render",
    "Resource",
    "ResourceGroupConflictError",
    "TemplateError",
    "TfBuilderError",
    "UnknownLandingZoneError",
    "validate_token",
]


def __getattr__(name: str):
    # Lazy imports keep `import tfbuilder` cheap for the model-only callers
    if name in ("render", "generate", "generate_sync"):
        from tfbuilder import generator

        return getattr(generator, name)
    if name == "apply_global_config":
        from tfbuilder.merge import apply_global_config

        return apply_global_config
    if name in ("list_landing_zones", "expand_landing_zone"):
        from tfbuilder import landing_zones

        return getattr(landing_zones, name)
    if name == "validate_token":
        from tfbuilder.terraform_cloud import validate_token

        return validate_token
    raise AttributeError(f"module 'tfbuilder' has no attribute {name!r}")
