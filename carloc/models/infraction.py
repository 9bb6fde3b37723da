from __future__ import annotations
import datetime as dt
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import Entity, coerce_date, ref_id
from .document import Document

InfractionStatus = Literal["Pending", "Paid", "Disputed"]


class Infraction(Entity):
    vehicle_id: Optional[str] = Field(default=None, alias="vehicle")
    customer_id: Optional[str] = Field(default=None, alias="customer")
    infraction_number: Optional[str] = None
    infraction_date: Optional[dt.date] = None
    time_infraction: str = ""  # HH:mm
    location: str = ""
    # "fait le" : date du procès-verbal
    fait_le: Optional[dt.date] = Field(default=None, alias="date")

    permis: str = ""
    cin: str = ""
    passeport: str = ""
    type: Literal["professional", "particular"] = "particular"
    societe: str = ""
    telephone: str = ""
    telephone2: str = ""

    description: str = ""
    amount: float = 0.0
    status: InfractionStatus = "Pending"
    documents: List[Document] = Field(default_factory=list)

    @field_validator("vehicle_id", "customer_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)

    @field_validator("infraction_date", "fait_le", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_date(v)
