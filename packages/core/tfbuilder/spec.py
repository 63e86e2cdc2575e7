"""Design data model for tfbuilder.

A design is a flat list of resources dropped on the canvas plus one
GlobalConfig. The generator consumes both and never reads settings from
anywhere else.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Iterable, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tfbuilder.errors import DuplicateNameError

Environment = Literal["dev", "test", "nonprod", "prod"]

DEFAULT_PROJECT = "iim"
DEFAULT_ENVIRONMENT: Environment = "nonprod"
DEFAULT_REGION = "Central US"


class Position(BaseModel):
    x: float = 0
    y: float = 0


class Resource(BaseModel):
    """One unit of infrastructure intent.

    ``config`` keys follow the camelCase names the designer forms emit
    (``accountTier``, ``securityRules``...). Updates replace the whole
    object, see :func:`tfbuilder.merge.update_resource`.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: str
    name: str
    config: dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Resource name must not be empty")
        return v

    @property
    def tags(self) -> dict[str, str]:
        return dict(self.config.get("tags") or {})

    @property
    def resource_group(self) -> str | None:
        return self.config.get("resourceGroup")


class GlobalConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_name: str = Field(DEFAULT_PROJECT, alias="projectName")
    environment: Environment = DEFAULT_ENVIRONMENT
    region: str = DEFAULT_REGION
    location: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    ad_roles: list[str] = Field(default_factory=list, alias="adRoles")
    landing_zone_id: str | None = Field(None, alias="landingZoneId")

    @field_validator("project_name", "region")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @property
    def effective_location(self) -> str:
        return self.location or self.region

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GenerationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    use_remote_modules: bool = Field(True, alias="useRemoteModules")
    token_valid: bool = Field(False, alias="tokenValid")
    warnings: list[str] = Field(default_factory=list)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Design(BaseModel):
    """A saved canvas: resources plus the settings they were designed under."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = "Untitled"
    resources: list[Resource] = Field(default_factory=list)
    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="globalConfig")

    def to_yaml(self) -> str:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data = _clean_empty(data)
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent, by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Design:
        design = cls.model_validate(data or {})
        validate_unique_names(design.resources)
        return design

    @classmethod
    def from_yaml(cls, yaml_str: str) -> Design:
        return cls.from_dict(yaml.safe_load(yaml_str))

    @classmethod
    def from_file(cls, path: str | Path) -> Design:
        p = Path(path)
        text = p.read_text()
        if p.suffix in (".yaml", ".yml"):
            return cls.from_yaml(text)
        design = cls.model_validate_json(text)
        validate_unique_names(design.resources)
        return design


def validate_unique_names(resources: Iterable[Resource]) -> None:
    """Raise DuplicateNameError if two resources share a name, ignoring case."""
    seen: dict[str, str] = {}
    for resource in resources:
        key = resource.name.lower()
        if key in seen:
            raise DuplicateNameError(resource.name, [seen[key], resource.id])
        seen[key] = resource.id


def _clean_empty(d: Any) -> Any:
    if isinstance(d, dict):
        return {k: _clean_empty(v) for k, v in d.items() if v not in ([], {}, None, "")}
    if isinstance(d, list):
        return [_clean_empty(i) for i in d]
    return d
