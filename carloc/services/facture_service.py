from __future__ import annotations
from datetime import date, timedelta
from typing import Any, Optional

from carloc.models.contract import Contract
from carloc.models.facture import Facture
from carloc.services import pricing
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, validate_facture

DEFAULT_DUE_DAYS = 30


class FactureService(EntityService[Facture]):
    """
    Factures : TVA dérivée à partir du HT.

    Règle de saisie (asymétrique, conservée telle quelle) :
    - montantHT ou tvaPercentage modifié -> tvaAmount et totalTTC recalculés
    - tvaAmount modifié -> tvaPercentage re-déduit du HT, totalTTC recalculé
    Un tvaAmount saisi n'est jamais repris quand le taux change ensuite.
    """

    resource = "factures"
    model = Facture

    # ----------- recalculs -----------

    def recalc_totals(self, f: Facture) -> Facture:
        r = pricing.compute_invoice_from_ht(f.montant_ht, f.tva_percentage)
        f.tva_amount = r.tva_amount
        f.total_ttc = r.total_ttc
        return f

    def apply_field_change(self, draft: Facture, field: str, value: Any) -> Facture:
        name = set_field(draft, field, value)
        if name in ("montant_ht", "tva_percentage"):
            return self.recalc_totals(draft)
        if name == "tva_amount":
            r = pricing.compute_invoice_from_tva_amount(draft.montant_ht, draft.tva_amount)
            draft.tva_percentage = r.tva_percentage
            draft.total_ttc = r.total_ttc
        return draft

    def balance(self, f: Facture) -> float:
        """Reste à payer."""
        return pricing.compute_invoice_balance(f.total_ttc, f.amount_paid)

    def sync_status(self, f: Facture) -> Facture:
        if f.status != "Cancelled":
            f.status = pricing.invoice_status_for(f.total_ttc, f.amount_paid)
        return f

    # ----------- génération -----------

    def draft_from_contract(
        self,
        contract: Contract,
        tva_percentage: Optional[float] = None,
        invoice_date: Optional[date] = None,
        due_days: int = DEFAULT_DUE_DAYS,
    ) -> Facture:
        """Facture d'un contrat : le total du contrat (prolongation comprise) est un TTC."""
        pct = self.settings.default_tva_percentage if tva_percentage is None else tva_percentage
        total = pricing.compute_grand_total(contract)
        r = pricing.compute_invoice_from_contract_total(total, pct)
        inv_date = invoice_date or date.today()
        return Facture(
            client_id=contract.client_id,
            contract_id=contract.id,
            invoice_date=inv_date,
            due_date=inv_date + timedelta(days=due_days),
            location=contract.contract_location,
            montant_ht=r.montant_ht,
            tva_percentage=pct,
            tva_amount=r.tva_amount,
            total_ttc=total,
        )

    # ----------- soumission -----------

    def prepare(self, draft: Facture) -> Facture:
        # le taux fait foi : après une saisie de tvaAmount il en est déjà dérivé
        return self.recalc_totals(draft)

    def validate(self, draft: Facture) -> Errors:
        return validate_facture(draft)

    def list_by_contract(self, contract_id: str) -> list[Facture]:
        return [f for f in self.list_all() if f.contract_id == contract_id]
