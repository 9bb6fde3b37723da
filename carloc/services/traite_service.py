from __future__ import annotations
from typing import Any, List

from carloc.models.traite import Traite
from carloc.services.attachments import AttachmentList
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, _required, _text

# la route des traites n'accepte que les images et les PDF
TRAITE_EXTENSIONS = {"jpg", "jpeg", "png", "pdf"}


class TraiteService(EntityService[Traite]):
    resource = "traites"
    model = Traite

    def attachments_for(self, entity: Traite) -> AttachmentList:
        return AttachmentList.from_entity(
            entity, max_bytes=self.settings.max_upload_bytes, allowed_extensions=TRAITE_EXTENSIONS
        )

    def apply_field_change(self, draft: Traite, field: str, value: Any) -> Traite:
        set_field(draft, field, value)
        return draft

    def validate(self, draft: Traite) -> Errors:
        errors: Errors = {}
        _required(errors, "vehicle", draft.vehicle_id, "Veuillez sélectionner un véhicule.")
        if not 1 <= draft.mois <= 12:
            errors["mois"] = "Le mois doit être compris entre 1 et 12."
        if draft.annee < 1:
            errors["annee"] = "L'année est obligatoire."
        if draft.montant < 1:
            errors["montant"] = "Le montant ne peut pas être inférieur à 1."
        _text(errors, "reference", draft.reference, "La référence")
        _text(errors, "notes", draft.notes, "Les notes")
        return errors

    def list_for_vehicle(self, vehicle_id: str) -> List[Traite]:
        return sorted(
            (t for t in self.list_all() if t.vehicle_id == vehicle_id),
            key=lambda t: (t.annee, t.mois),
        )

    def total_for_year(self, annee: int) -> float:
        return sum(t.montant for t in self.list_all() if t.annee == annee)
