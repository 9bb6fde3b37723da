from __future__ import annotations
from typing import Any, List

from carloc.models.document import Document
from carloc.models.vehicle import Vehicle
from carloc.services.attachments import AttachmentList
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, _non_negative, _text


class VehicleService(EntityService[Vehicle]):
    """
    Véhicules : la route PUT reprend `documents` tel quel et n'a pas de
    suppression unitaire ; un retrait part avec la liste à conserver.
    """

    resource = "vehicles"
    model = Vehicle
    existing_documents_field = "documents"

    def apply_field_change(self, draft: Vehicle, field: str, value: Any) -> Vehicle:
        set_field(draft, field, value)
        return draft

    def remove_document(self, entity: Vehicle, attachments: AttachmentList, doc: Document) -> None:
        attachments.remove_document(doc)

    def validate(self, draft: Vehicle) -> Errors:
        errors: Errors = {}
        _text(errors, "chassisNumber", draft.chassis_number, "Le numéro de châssis", required=True)
        _text(errors, "licensePlate", draft.license_plate, "L'immatriculation", required=True)
        _text(errors, "brand", draft.brand, "La marque", required=True)
        _text(errors, "model", draft.model, "Le modèle", required=True)
        _text(errors, "color", draft.color, "La couleur")
        _non_negative(errors, "mileage", draft.mileage, "Le kilométrage ne peut pas être négatif.")
        _non_negative(errors, "rentalPrice", draft.rental_price, "Le prix de location ne peut pas être négatif.")
        _non_negative(errors, "nombreDePlaces", draft.nombre_de_places, "Le nombre de places ne peut pas être négatif.")
        return errors

    def available(self) -> List[Vehicle]:
        return [v for v in self.list_all() if v.statut == "En parc"]
