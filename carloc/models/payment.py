from __future__ import annotations
from datetime import date
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import Entity, coerce_date, ref_id
from .document import Document
from .facture import PaymentType

PaymentFor = Literal["contract", "facture", "accident"]


class ClientPayment(Entity):
    payment_number: Optional[str] = None
    payment_date: Optional[date] = None
    payment_for: Optional[PaymentFor] = None
    reference_number: Optional[str] = None

    client_id: Optional[str] = Field(default=None, alias="client")
    contract_id: Optional[str] = Field(default=None, alias="contract")
    facture_id: Optional[str] = Field(default=None, alias="facture")
    accident_id: Optional[str] = Field(default=None, alias="accident")

    amount_paid: float = 0.0
    remaining_amount: float = 0.0
    payment_type: PaymentType = "espèce"
    documents: List[Document] = Field(default_factory=list)

    @field_validator("client_id", "contract_id", "facture_id", "accident_id", mode="before")
    @classmethod
    def normalize_refs(cls, v):
        return ref_id(v)

    @field_validator("payment_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return coerce_date(v)

    def target_id(self) -> Optional[str]:
        """Référence correspondant à paymentFor (contrat, facture ou accident)."""
        if not self.payment_for:
            return None
        return getattr(self, f"{self.payment_for}_id")
