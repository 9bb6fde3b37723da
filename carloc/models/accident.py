from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import Entity, ref_id
from .document import Document


class Accident(Entity):
    contract_id: Optional[str] = Field(default=None, alias="contrat")
    numero_contrat: str = ""
    client_id: Optional[str] = Field(default=None, alias="client")
    client_nom: str = ""
    vehicle_id: Optional[str] = Field(default=None, alias="vehicule")
    matricule: str = ""
    date_sortie: str = ""
    date_retour: str = ""
    date_accident: str = ""
    heure_accident: str = ""
    lieu_accident: str = ""
    description: str = ""
    etat: Literal["expertise", "en_cours", "repare"] = "expertise"

    montant_reparation: float = 0.0
    frais_client: float = 0.0
    indemnite_assurance: float = 0.0
    avance: float = 0.0
    documents: List[Document] = Field(default_factory=list)

    @field_validator("contract_id", "client_id", "vehicle_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)
