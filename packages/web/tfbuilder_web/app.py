"""FastAPI backend wrapping the tfbuilder core package."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tfbuilder import __version__
from tfbuilder.config import Settings, load_settings
from tfbuilder.errors import (
    DuplicateNameError,
    InvalidResourcesError,
    ResourceGroupConflictError,
    UnknownLandingZoneError,
)
from tfbuilder.generator import generate
from tfbuilder.landing_zones import expand_landing_zone, get_landing_zone, list_landing_zones
from tfbuilder.merge import apply_global_config
from tfbuilder.modules import RESOURCE_GROUP_MODULE, list_remote_modules
from tfbuilder.naming import display_name, suggest_name, validate_name
from tfbuilder.spec import GlobalConfig, Resource, validate_unique_names
from tfbuilder.terraform_cloud import validate_token

log = logging.getLogger(__name__)

settings: Settings = load_settings()

app = FastAPI(title="tfbuilder", version=__version__, description="Azure Terraform generation for landing zones")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

GENERATED_MESSAGE = "Terraform code generated using remote GitHub modules"
INLINE_MESSAGE = "Terraform code generated using inline templates"


# --- Configuration store ---


class Configuration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    description: str | None = None
    resources: list[Resource] = Field(default_factory=list)
    global_config: GlobalConfig | None = Field(None, alias="globalConfig")
    generated_code: str | None = Field(None, alias="generatedCode")
    deployment_status: str = Field("draft", alias="deploymentStatus")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ConfigurationStore:
    """In-memory configuration storage, keyed by an incrementing id."""

    def __init__(self):
        self._items: dict[int, Configuration] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def all(self) -> list[Configuration]:
        with self._lock:
            return list(self._items.values())

    def get(self, config_id: int) -> Configuration | None:
        with self._lock:
            return self._items.get(config_id)

    def create(self, data: dict[str, Any]) -> Configuration:
        now = datetime.now(timezone.utc)
        with self._lock:
            item = Configuration.model_validate({**data, "id": self._next_id, "createdAt": now, "updatedAt": now})
            validate_unique_names(item.resources)
            self._items[item.id] = item
            self._next_id += 1
        return item

    def update(self, config_id: int, updates: dict[str, Any]) -> Configuration | None:
        with self._lock:
            current = self._items.get(config_id)
            if current is None:
                return None
            data = current.model_dump(by_alias=True)
            data.update({k: v for k, v in updates.items() if k not in ("id", "createdAt")})
            data["updatedAt"] = datetime.now(timezone.utc)
            item = Configuration.model_validate(data)
            validate_unique_names(item.resources)
            self._items[config_id] = item
        return item

    def delete(self, config_id: int) -> bool:
        with self._lock:
            return self._items.pop(config_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._next_id = 1


store = ConfigurationStore()


# --- Request models ---


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # validated by the generator so that a non-list is a 400, not a 422
    resources: Any = None
    global_config: dict[str, Any] | None = Field(None, alias="globalConfig")
    terraform_token: str | None = Field(None, alias="terraformToken")
    use_remote_modules: bool | None = Field(None, alias="useRemoteModules")


class TokenRequest(BaseModel):
    token: str | None = None


class ExpandRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    existing: list[Resource] = Field(default_factory=list)
    global_config: dict[str, Any] | None = Field(None, alias="globalConfig")


class SuggestNameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    instance: int = Field(1, ge=1)
    global_config: dict[str, Any] | None = Field(None, alias="globalConfig")


class ValidateNameRequest(BaseModel):
    type: str
    name: str


def _global_config(data: dict[str, Any] | None) -> GlobalConfig:
    try:
        return GlobalConfig.model_validate(data or {})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid globalConfig: {e.errors()[0]['msg']}") from e


# --- Endpoints ---


@app.get("/api/health")
def health():
    return {"status": "ok", "version": __version__}


async def _generate(req: GenerateRequest, endpoint: str) -> dict[str, Any]:
    if not isinstance(req.resources, list):
        raise HTTPException(status_code=400, detail="Resources array is required")
    global_config = _global_config(req.global_config)
    use_remote = settings.use_remote_modules if req.use_remote_modules is None else req.use_remote_modules
    try:
        result = await generate(
            req.resources,
            global_config,
            terraform_token=req.terraform_token,
            use_remote_modules=use_remote,
            settings=settings,
        )
    except (InvalidResourcesError, ResourceGroupConflictError, DuplicateNameError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        log.exception("%s endpoint failed", endpoint)
        raise HTTPException(status_code=500, detail="Internal server error") from e

    return {
        **result.to_api(),
        "globalConfig": req.global_config,
        "message": GENERATED_MESSAGE if use_remote else INLINE_MESSAGE,
    }


@app.post("/api/terraform/generate")
async def generate_terraform(req: GenerateRequest):
    return await _generate(req, "Generate")


@app.post("/api/terraform/generate-code")
async def generate_code(req: GenerateRequest):
    return await _generate(req, "Generate code")


@app.post("/api/terraform/validate-token")
async def validate_terraform_token(req: TokenRequest):
    if not req.token:
        raise HTTPException(status_code=400, detail="Token is required")
    try:
        valid = await validate_token(req.token, settings.terraform_api_url, settings.token_timeout)
        return {"valid": valid}
    except Exception as e:
        log.exception("Validate token endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@app.get("/api/terraform/modules")
def modules():
    return {"modules": [m.to_dict() for m in (RESOURCE_GROUP_MODULE, *list_remote_modules())]}


@app.get("/api/terraform/configurations")
def list_configurations():
    return [c.model_dump(mode="json", by_alias=True) for c in store.all()]


@app.get("/api/terraform/configurations/{config_id}")
def get_configuration(config_id: int):
    item = store.get(config_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Configuration not found")
    return item.model_dump(mode="json", by_alias=True)


@app.post("/api/terraform/configurations", status_code=201)
def create_configuration(body: dict[str, Any]):
    try:
        item = store.create(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid configuration data: {e.errors()[0]['msg']}") from e
    except DuplicateNameError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return item.model_dump(mode="json", by_alias=True)


@app.put("/api/terraform/configurations/{config_id}")
def update_configuration(config_id: int, body: dict[str, Any]):
    try:
        item = store.update(config_id, body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid configuration data: {e.errors()[0]['msg']}") from e
    except DuplicateNameError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if item is None:
        raise HTTPException(status_code=404, detail="Configuration not found")
    return item.model_dump(mode="json", by_alias=True)


@app.delete("/api/terraform/configurations/{config_id}", status_code=204)
def delete_configuration(config_id: int):
    if not store.delete(config_id):
        raise HTTPException(status_code=404, detail="Configuration not found")
    return Response(status_code=204)


@app.get("/api/landing-zones")
def landing_zones():
    return {"landingZones": [z.summary() for z in list_landing_zones()]}


@app.post("/api/landing-zones/{zone_id}/expand")
def expand_zone(zone_id: str, req: ExpandRequest | None = None):
    req = req or ExpandRequest()
    try:
        zone = get_landing_zone(zone_id)
    except UnknownLandingZoneError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    global_config = _global_config({**(req.global_config or {}), "landingZoneId": zone.id})
    try:
        resources = apply_global_config(expand_landing_zone(zone.id, req.existing), global_config)
    except Exception as e:
        log.exception("Landing zone expand endpoint failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e
    return {
        "landingZone": zone.summary(),
        "resources": [r.model_dump(mode="json") for r in resources],
        "globalConfig": global_config.to_api(),
    }


@app.post("/api/naming/suggest")
def naming_suggest(req: SuggestNameRequest):
    gc = _global_config(req.global_config)
    name = suggest_name(req.type, req.instance, gc.project_name, gc.environment, gc.region)
    return {"type": req.type, "displayName": display_name(req.type), "name": name}


@app.post("/api/naming/validate")
def naming_validate(req: ValidateNameRequest):
    return validate_name(req.type, req.name).to_dict()


def serve(host: str = "127.0.0.1", port: int = 8000):
    """Start the tfbuilder web server."""
    import uvicorn

    uvicorn.run("tfbuilder_web.app:app", host=host, port=port)
