from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from carloc.models.document import StagedFile
from carloc.models.infraction import Infraction
from carloc.services.attachments import AttachmentList
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, _non_negative, _required, _text


class InfractionService(EntityService[Infraction]):
    """
    Infractions : la liste à conserver ne porte que les urls des documents,
    les fichiers partent dans le champ "attachments".
    """

    resource = "infractions"
    model = Infraction

    def _payload(self, draft: Infraction, attachments: Optional[AttachmentList]) -> Tuple[Dict[str, Any], List[StagedFile]]:
        payload = draft.to_payload()
        if attachments is None:
            return payload, []
        payload.pop("documents", None)
        payload["existingDocuments"] = [d["url"] for d in attachments.to_existing_list()]
        return payload, list(attachments.staged_files)

    def apply_field_change(self, draft: Infraction, field: str, value: Any) -> Infraction:
        set_field(draft, field, value)
        return draft

    def validate(self, draft: Infraction) -> Errors:
        errors: Errors = {}
        _required(errors, "customer", draft.customer_id, "Veuillez sélectionner un client.")
        _required(errors, "infractionDate", draft.infraction_date, "La date de l'infraction est obligatoire.")
        _required(errors, "date", draft.fait_le, "La date du procès-verbal est obligatoire.")
        _text(errors, "location", draft.location, "Le lieu", required=True)
        _text(errors, "description", draft.description, "La description")
        _non_negative(errors, "amount", draft.amount, "Le montant ne peut pas être négatif.")
        return errors

    def mark_paid(self, infraction: Infraction) -> Infraction:
        draft = self.edit_draft(infraction)
        draft.status = "Paid"
        return self.submit(draft)

    def list_by_customer(self, customer_id: str) -> List[Infraction]:
        return [i for i in self.list_all() if i.customer_id == customer_id]
