from __future__ import annotations
from datetime import date
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator

from .common import Entity, Record, coerce_date, ref_id
from .document import Document

ContractStatus = Literal["en_cours", "retournee"]
ContractPaymentType = Literal["espece", "cheque", "carte_bancaire", "virement"]
FuelLevel = Literal["reserve", "1/4", "1/2", "3/4", "plein"]


class Equipment(Record):
    pneu_de_secours: bool = False
    poste_radio: bool = False
    cric_manivelle: bool = False
    allume_cigare: bool = False
    jeu_de4_tapis: bool = Field(default=False, alias="jeuDe4Tapis")
    vet_de_securite: bool = False


class Extension(Record):
    duration: int = 0
    price_per_day: float = 0.0


class SecondDriver(Record):
    nom: Optional[str] = None
    nationalite: Optional[str] = None
    date_naissance: Optional[str] = None  # YYYY-MM-DD
    adresse: Optional[str] = None
    telephone: Optional[str] = None
    adresse_etranger: Optional[str] = None
    permis_numero: Optional[str] = None
    permis_delivre_le: Optional[str] = None
    passeport_cin: Optional[str] = None
    passeport_delivre_le: Optional[str] = None

    def is_empty(self) -> bool:
        return all(not (v or "").strip() for v in self.model_dump().values())


class Contract(Entity):
    client_id: Optional[str] = Field(default=None, alias="client")
    vehicle_id: Optional[str] = Field(default=None, alias="vehicle")
    contract_number: Optional[str] = None

    contract_date: Optional[date] = None
    departure_date: Optional[date] = None
    departure_time: str = ""  # HH:mm
    return_date: Optional[date] = None
    contract_location: str = ""
    pickup_location: str = ""
    return_location: str = ""
    matricule: str = ""

    # dérivés : recalculés par ContractService.recalc_totals
    duration: int = 0
    price_per_day: float = 0.0
    starting_km: float = 0
    discount: float = 0.0
    fuel_level: FuelLevel = "plein"
    total: float = 0.0
    guarantee: float = 0.0
    payment_type: ContractPaymentType = "espece"
    advance: float = 0.0
    remaining: float = 0.0
    status: ContractStatus = "en_cours"

    second_driver: Optional[SecondDriver] = None
    equipment: Equipment = Field(default_factory=Equipment)
    extension: Optional[Extension] = None
    # le store renvoie "piecesJointes", attend "documents" à la soumission
    documents: List[Document] = Field(
        default_factory=list,
        validation_alias=AliasChoices("documents", "piecesJointes"),
    )

    @field_validator("client_id", "vehicle_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)

    @field_validator("contract_date", "departure_date", "return_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_date(v)

    @field_validator("second_driver", mode="before")
    @classmethod
    def drop_empty_driver(cls, v):
        # le formulaire envoie un conducteur vide plutôt que null
        if isinstance(v, dict) and all(not str(x or "").strip() for x in v.values()):
            return None
        return v
