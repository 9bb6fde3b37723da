from __future__ import annotations
import logging
from datetime import timedelta
from typing import Any

from carloc.models.contract import Contract, Equipment, Extension, SecondDriver
from carloc.services import pricing
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, validate_contract

logger = logging.getLogger(__name__)

DATE_FIELDS = {"departure_date", "return_date"}

# sous-objets éditables par "parent.champ" et leur fabrique
NESTED = {
    "extension": Extension,
    "equipment": Equipment,
    "secondDriver": SecondDriver,
    "second_driver": SecondDriver,
}


class ContractService(EntityService[Contract]):
    resource = "contracts"
    model = Contract
    existing_documents_field = "documents"  # le contrôleur contrats lit "documents"

    # ----------- recalculs -----------

    def recalc_totals(self, c: Contract, from_dates: bool = True) -> Contract:
        """durée (depuis les dates) -> total -> reste ; aucune valeur n'est bornée."""
        if from_dates and c.departure_date and c.return_date:
            c.duration = pricing.duration_or_zero(c.departure_date, c.return_date)
        c.total = pricing.compute_contract_total(c.price_per_day, c.duration, c.discount)
        c.remaining = pricing.compute_remaining(c.total, c.advance)
        return c

    def apply_field_change(self, draft: Contract, field: str, value: Any) -> Contract:
        """
        Point d'entrée unique des modifications de formulaire (création et édition).
        Champs imbriqués : "extension.duration", "equipment.posteRadio", "secondDriver.nom".
        """
        if "." in field:
            parent, child = field.split(".", 1)
            if parent not in NESTED:
                raise KeyError(f"Champ inconnu pour Contract: {field}")
            name = "second_driver" if parent in ("secondDriver", "second_driver") else parent
            sub = getattr(draft, name)
            if sub is None:
                sub = NESTED[parent]()
            else:
                sub = sub.model_copy()
            set_field(sub, child, value)
            setattr(draft, name, sub)
            return draft

        name = set_field(draft, field, value)
        if name == "duration" and draft.departure_date and draft.duration >= 1:
            # la durée saisie déplace la date de retour : dates et durée restent cohérentes
            draft.return_date = draft.departure_date + timedelta(days=draft.duration)
            return self.recalc_totals(draft, from_dates=False)
        if name in DATE_FIELDS:
            return self.recalc_totals(draft, from_dates=True)
        if name in ("price_per_day", "discount", "advance", "duration"):
            return self.recalc_totals(draft, from_dates=False)
        return draft

    def grand_total(self, c: Contract) -> float:
        return pricing.compute_grand_total(c)

    # ----------- soumission -----------

    def prepare(self, draft: Contract) -> Contract:
        if draft.second_driver is not None and draft.second_driver.is_empty():
            draft.second_driver = None
        return self.recalc_totals(draft)

    def validate(self, draft: Contract) -> Errors:
        return validate_contract(draft)

    def mark_returned(self, contract: Contract) -> Contract:
        draft = self.edit_draft(contract)
        draft.status = "retournee"
        logger.info("Contrat %s marqué retourné", contract.contract_number or contract.id)
        return self.submit(draft)

    def list_by_client(self, client_id: str) -> list[Contract]:
        return [c for c in self.list_all() if c.client_id == client_id]
