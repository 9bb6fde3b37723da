from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from carloc.models.customer import Customer
from carloc.models.document import Document, StagedFile
from carloc.services.attachments import AttachmentList
from carloc.services.entity_service import EntityService
from carloc.services.validation import Errors, _text


class CustomerService(EntityService[Customer]):
    """
    Clients : le store n'a pas de route de suppression unitaire de document ;
    les suppressions partent avec la mise à jour (documentsToDelete).
    """

    resource = "customers"
    model = Customer

    def _payload(self, draft: Customer, attachments: Optional[AttachmentList]) -> Tuple[Dict[str, Any], List[StagedFile]]:
        payload = draft.to_payload()
        if attachments is None:
            return payload, []
        payload.pop("documents", None)
        payload["documentsToDelete"] = [d.url for d in attachments.pending_deletions]
        return payload, list(attachments.staged_files)

    def remove_document(self, entity: Customer, attachments: AttachmentList, doc: Document) -> None:
        attachments.remove_document(doc)

    def validate(self, draft: Customer) -> Errors:
        errors: Errors = {}
        _text(errors, "nomFr", draft.nom_fr, "Le nom", required=True)
        _text(errors, "prenomFr", draft.prenom_fr, "Le prénom", required=True)
        if not draft.email:
            errors["email"] = "L'email est obligatoire."
        _text(errors, "cin", draft.cin, "Le CIN")
        _text(errors, "numeroPermis", draft.numero_permis, "Le numéro de permis")
        _text(errors, "adresseFr", draft.adresse_fr, "L'adresse")
        _text(errors, "ville", draft.ville, "La ville")
        _text(errors, "remarque", draft.remarque, "La remarque")
        return errors

    def blacklisted(self) -> List[Customer]:
        return [c for c in self.list_all() if c.liste_noire]
