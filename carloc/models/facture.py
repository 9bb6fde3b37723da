from __future__ import annotations
from datetime import date
from typing import Literal, Optional

from pydantic import Field, field_validator

from .common import Entity, coerce_date, ref_id

FactureType = Literal["Professionel", "Particulier"]
FactureStatus = Literal["Pending", "Paid", "Cancelled"]
PaymentType = Literal["espèce", "chèque", "carte bancaire", "virement"]


class Facture(Entity):
    invoice_number: Optional[str] = None
    client_id: Optional[str] = Field(default=None, alias="client")
    contract_id: Optional[str] = Field(default=None, alias="contract")
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    location: str = ""
    type: FactureType = "Particulier"

    montant_ht: float = Field(default=0.0, alias="montantHT")
    tva_percentage: float = 20.0
    tva_amount: float = 0.0  # dérivé
    total_ttc: float = Field(default=0.0, alias="totalTTC")  # dérivé

    payment_type: PaymentType = "espèce"
    amount_paid: float = 0.0
    status: FactureStatus = "Pending"

    @field_validator("client_id", "contract_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)

    @field_validator("invoice_date", "due_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_date(v)
