from __future__ import annotations
from datetime import date
from typing import Literal, Optional

from pydantic import Field, field_validator

from .common import Entity, coerce_date, ref_id

ReservationStatus = Literal["en_cours", "validee", "annulee", "fin_de_periode"]


class Reservation(Entity):
    customer_id: Optional[str] = Field(default=None, alias="customer")
    vehicle_id: Optional[str] = Field(default=None, alias="vehicle")
    reservation_number: Optional[str] = None

    reservation_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: int = 0  # dérivé des dates
    status: ReservationStatus = "en_cours"

    total_amount: float = 0.0
    advance: float = 0.0
    notes: str = ""

    @field_validator("customer_id", "vehicle_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)

    @field_validator("reservation_date", "start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_date(v)
