"""Process settings read from TFBUILDER_* environment variables.

These control the service around the engine (timeouts, CORS, defaults for
remote modules). Design settings such as project name or region are never
read from here; they always arrive as an explicit GlobalConfig.
"""

from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel, Field

DEFAULT_TERRAFORM_API_URL = "https://app.terraform.io/api/v2/account/details"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


class Settings(BaseModel):
    terraform_api_url: str = DEFAULT_TERRAFORM_API_URL
    token_timeout: float = Field(10.0, gt=0)
    use_remote_modules: bool = True
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))


def _env_bool(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    values: dict = {}
    if env.get("TFBUILDER_TERRAFORM_API_URL"):
        values["terraform_api_url"] = env["TFBUILDER_TERRAFORM_API_URL"]
    if env.get("TFBUILDER_TOKEN_TIMEOUT"):
        values["token_timeout"] = float(env["TFBUILDER_TOKEN_TIMEOUT"])
    if "TFBUILDER_USE_REMOTE_MODULES" in env:
        values["use_remote_modules"] = _env_bool(env["TFBUILDER_USE_REMOTE_MODULES"])
    if env.get("TFBUILDER_CORS_ORIGINS"):
        values["cors_origins"] = [o.strip() for o in env["TFBUILDER_CORS_ORIGINS"].split(",") if o.strip()]
    return Settings(**values)
