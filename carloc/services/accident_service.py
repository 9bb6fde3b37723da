from __future__ import annotations
from typing import Any

from carloc.models.accident import Accident
from carloc.models.contract import Contract
from carloc.services import pricing
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, _non_negative, _text


class AccidentService(EntityService[Accident]):
    resource = "accidents"
    model = Accident

    def draft_from_contract(self, contract: Contract, client_nom: str = "") -> Accident:
        """Pré-remplit un accident depuis le contrat en cours."""
        return Accident(
            contract_id=contract.id,
            numero_contrat=contract.contract_number or "",
            client_id=contract.client_id,
            client_nom=client_nom,
            vehicle_id=contract.vehicle_id,
            matricule=contract.matricule or "",
            date_sortie=contract.departure_date.isoformat() if contract.departure_date else "",
            date_retour=contract.return_date.isoformat() if contract.return_date else "",
        )

    def apply_field_change(self, draft: Accident, field: str, value: Any) -> Accident:
        set_field(draft, field, value)
        return draft

    def client_balance(self, a: Accident) -> float:
        """Reste dû par le client sur les frais qui lui sont imputés."""
        return pricing.compute_remaining(a.frais_client, a.avance)

    def validate(self, draft: Accident) -> Errors:
        errors: Errors = {}
        if not draft.contract_id:
            errors["contrat"] = "Veuillez sélectionner un contrat."
        if not draft.date_accident:
            errors["dateAccident"] = "La date de l'accident est obligatoire."
        _text(errors, "lieuAccident", draft.lieu_accident, "Le lieu de l'accident", required=True)
        _text(errors, "description", draft.description, "La description")
        _non_negative(errors, "montantReparation", draft.montant_reparation,
                      "Le montant de réparation ne peut pas être négatif.")
        _non_negative(errors, "fraisClient", draft.frais_client, "Les frais client ne peuvent pas être négatifs.")
        _non_negative(errors, "indemniteAssurance", draft.indemnite_assurance,
                      "L'indemnité d'assurance ne peut pas être négative.")
        _non_negative(errors, "avance", draft.avance, "L'avance ne peut pas être négative.")
        if "avance" not in errors and "fraisClient" not in errors and draft.avance > draft.frais_client:
            errors["avance"] = "L'avance ne peut pas dépasser les frais client."
        return errors
