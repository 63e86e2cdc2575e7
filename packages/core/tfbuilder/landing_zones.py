"""Landing zones: predefined resource bundles expanded onto a design in one step.

Definitions live in data/landing_zones/*.yaml, one zone per file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import BaseModel, Field

from tfbuilder.errors import UnknownLandingZoneError
from tfbuilder.spec import Position, Resource

_ZONE_DIR = Path(__file__).parent / "data" / "landing_zones"


class ZoneResource(BaseModel):
    type: str
    name: str
    config: dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)


class LandingZone(BaseModel):
    id: str
    name: str
    description: str = ""
    resources: list[ZoneResource] = Field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "resourceCount": len(self.resources),
        }


@lru_cache(maxsize=4)
def _load(zone_dir: Path = _ZONE_DIR) -> dict[str, LandingZone]:
    zones: dict[str, LandingZone] = {}
    for path in sorted(zone_dir.glob("*.yaml")):
        zone = LandingZone.model_validate(yaml.safe_load(path.read_text()))
        zones[zone.id] = zone
    return zones


def list_landing_zones() -> list[LandingZone]:
    return list(_load().values())


def get_landing_zone(zone_id: str) -> LandingZone:
    try:
        return _load()[zone_id]
    except KeyError:
        raise UnknownLandingZoneError(zone_id) from None


def _unique_name(name: str, taken: set[str]) -> str:
    candidate, n = name, 2
    while candidate.lower() in taken:
        candidate = f"{name}-{n}"
        n += 1
    taken.add(candidate.lower())
    return candidate


def expand_landing_zone(zone_id: str, existing: Iterable[Resource] = ()) -> list[Resource]:
    """Fresh resources for a zone, with new ids and names unused in ``existing``.

    Names that collide with an existing resource get a ``-2``, ``-3``... suffix.
    """
    zone = get_landing_zone(zone_id)
    taken = {r.name.lower() for r in existing}
    return [
        Resource(
            type=item.type,
            name=_unique_name(item.name, taken),
            config=item.config.copy() | {"tags": dict(item.config.get("tags") or {})},
            position=item.position.model_copy(),
        )
        for item in zone.resources
    ]
