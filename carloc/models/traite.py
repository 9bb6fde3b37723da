from __future__ import annotations
from datetime import date
from typing import List, Optional

from pydantic import Field, field_validator

from .common import Entity, coerce_date, ref_id
from .document import Document


class Traite(Entity):
    """Échéance mensuelle de financement d'un véhicule."""

    vehicle_id: Optional[str] = Field(default=None, alias="vehicle")
    mois: int = 0
    annee: int = 0
    montant: float = 0.0
    date_paiement: Optional[date] = None
    reference: str = ""
    notes: str = ""
    documents: List[Document] = Field(default_factory=list)

    @field_validator("vehicle_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)

    @field_validator("date_paiement", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_date(v)
