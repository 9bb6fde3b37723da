from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def ref_id(value: Any) -> Any:
    """Le store peuple les références (client, vehicle...) : on ne garde que l'id."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    if isinstance(value, BaseModel):
        return getattr(value, "id", None)
    if value == "":
        return None
    return value


def coerce_date(value: Any) -> Any:
    """Accepte 'YYYY-MM-DD', un datetime ISO ('2025-01-01T00:00:00.000Z') ou un date."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    return value


class Record(BaseModel):
    """JSON camelCase côté API, snake_case côté Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # tolère les clés inconnues renvoyées par le store
        validate_assignment=True,  # les brouillons sont édités champ par champ
    )


class Entity(Record):
    """Base des entités persistées par le store."""

    id: Optional[str] = Field(default=None, alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        """Corps d'un POST/PUT : document complet, sans id ni horodatage."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id", "created_at", "updated_at"},
        )
