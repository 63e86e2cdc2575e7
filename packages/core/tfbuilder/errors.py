"""Exception types raised by the generation engine.

    TfBuilderError (base)
    ├── DuplicateNameError - two resources share a name (case-insensitive)
    ├── InvalidResourcesError - resources payload is not a list of resources
    ├── ResourceGroupConflictError - more than one group candidate of a kind
    ├── ModuleResolutionError - remote module call could not be assembled
    ├── TemplateError - an inline template is missing a required field
    └── UnknownLandingZoneError - landing zone id not in the catalog

Input errors subclass ValueError so callers that only know about ValueError
(the CLI error handler, FastAPI 400 mapping) treat them as bad input.
"""

from __future__ import annotations

from typing import Any


class TfBuilderError(Exception):
    """Base class for all tfbuilder errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class DuplicateNameError(TfBuilderError, ValueError):
    """Raised when resource names collide, ignoring case."""

    def __init__(self, name: str, ids: list[str] | None = None):
        context = {"ids": ",".join(ids)} if ids else None
        super().__init__(f"Duplicate resource name: {name!r}", context)
        self.name = name


class InvalidResourcesError(TfBuilderError, ValueError):
    pass


class ResourceGroupConflictError(TfBuilderError, ValueError):
    """Raised when a design declares more than one group of the same kind."""

    def __init__(self, kind: str, names: list[str]):
        super().__init__(
            f"Expected at most one {kind} resource group, got {len(names)}: {', '.join(names)}",
        )
        self.kind = kind
        self.names = names


class ModuleResolutionError(TfBuilderError):
    """Raised when a remote module call cannot be built for a resource type.

    The pipeline always catches this and falls back to the inline template.
    """


class TemplateError(TfBuilderError):
    """Raised when an inline template cannot be rendered from a resource config."""


class UnknownLandingZoneError(TfBuilderError, KeyError):
    def __init__(self, zone_id: str):
        super().__init__(f"Unknown landing zone: {zone_id!r}")
        self.zone_id = zone_id

    def __str__(self) -> str:
        return self.message
