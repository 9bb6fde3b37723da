from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import Field

from .common import Entity
from .contract import Equipment, FuelLevel
from .document import Document


class Vehicle(Entity):
    chassis_number: str
    license_plate: str
    temporary_plate: str = ""  # matricule WW
    brand: str
    model: str
    circulation_date: str = ""
    fuel_type: Literal["diesel", "essence", "electrique", "hybride"] = "essence"
    fuel_level: FuelLevel = "plein"
    mileage: float = 0
    color: str = ""
    rental_price: float = 0.0
    nombre_de_places: int = 0
    transmission: Optional[Literal["Manuelle", "Automatique"]] = None
    observation: str = ""
    statut: Literal["En parc", "En circulation"] = "En parc"
    equipment: Equipment = Field(default_factory=Equipment)
    documents: List[Document] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model} ({self.license_plate})"
