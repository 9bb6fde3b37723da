from __future__ import annotations
from typing import Any, Optional

from carloc.models.accident import Accident
from carloc.models.contract import Contract
from carloc.models.facture import Facture
from carloc.models.payment import ClientPayment
from carloc.services import pricing
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, validate_payment

TARGET_RESOURCES = {"contract": "contracts", "facture": "factures", "accident": "accidents"}


def outstanding_of(target: Any) -> float:
    """Montant encore dû sur la cible d'un règlement."""
    if isinstance(target, Contract):
        return pricing.compute_remaining(pricing.compute_grand_total(target), target.advance)
    if isinstance(target, Facture):
        return pricing.compute_invoice_balance(target.total_ttc, target.amount_paid)
    if isinstance(target, Accident):
        return pricing.compute_remaining(target.frais_client, target.avance)
    raise TypeError(f"Cible de règlement non gérée: {type(target).__name__}")


class ClientPaymentService(EntityService[ClientPayment]):
    resource = "clientpayments"
    model = ClientPayment

    def load_target(self, payment: ClientPayment) -> Optional[Any]:
        target_id = payment.target_id()
        if not target_id:
            return None
        data = self.gateway.get(TARGET_RESOURCES[payment.payment_for], target_id)
        model = {"contract": Contract, "facture": Facture, "accident": Accident}[payment.payment_for]
        return model.model_validate(data)

    def target_outstanding(self, payment: ClientPayment, target: Optional[Any] = None) -> float:
        """Reste dû sur l'objet du règlement ; la cible est relue si elle n'est pas fournie."""
        target = target if target is not None else self.load_target(payment)
        return outstanding_of(target) if target is not None else 0.0

    def apply_amount_paid(self, draft: ClientPayment, amount: float, outstanding: float) -> ClientPayment:
        """remainingAmount = dû - payé ; un reste négatif est refusé à la validation."""
        draft.amount_paid = amount
        draft.remaining_amount = pricing.compute_remaining(outstanding, amount)
        return draft

    def apply_field_change(
        self, draft: ClientPayment, field: str, value: Any, outstanding: Optional[float] = None
    ) -> ClientPayment:
        name = set_field(draft, field, value)
        if name == "payment_for":
            # changer d'objet efface les références des autres cibles
            for kind in TARGET_RESOURCES:
                if kind != draft.payment_for:
                    setattr(draft, f"{kind}_id", None)
        if name == "amount_paid" and outstanding is not None:
            self.apply_amount_paid(draft, draft.amount_paid, outstanding)
        return draft

    def validate(self, draft: ClientPayment) -> Errors:
        return validate_payment(draft)

    def list_for_target(self, payment_for: str, target_id: str) -> list[ClientPayment]:
        return [p for p in self.list_all() if p.payment_for == payment_for and p.target_id() == target_id]
