from __future__ import annotations
import logging
from typing import Any, ClassVar, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from carloc.config import Settings
from carloc.errors import ApiError, FieldValidationError
from carloc.models.common import Entity
from carloc.models.document import Document, StagedFile
from carloc.services.attachments import AttachmentList
from carloc.services.validation import Errors, ensure_valid
from carloc.storage.gateway import EntityGateway

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


def attr_name(model: Type[BaseModel], key: str) -> str:
    """'pricePerDay' ou 'price_per_day' -> 'price_per_day'."""
    fields = model.model_fields
    if key in fields:
        return key
    for name, info in fields.items():
        if info.alias == key:
            return name
    raise KeyError(f"Champ inconnu pour {model.__name__}: {key}")


def set_field(target: BaseModel, key: str, value: Any) -> str:
    """Affecte un champ d'un brouillon ; une valeur non convertible devient une erreur de saisie."""
    name = attr_name(type(target), key)
    try:
        setattr(target, name, value)
    except ValidationError as e:
        raise FieldValidationError({key: "Valeur invalide."}) from e
    return name


class EntityService(Generic[E]):
    """
    Service CRUD d'un type d'entité, partagé par les flux création et édition.
    - list_all ignore les entrées invalides pour ne pas casser les listes
    - submit = préparation (recalculs) + validation + sauvegarde
    - le brouillon n'est pas modifié si la sauvegarde échoue
    """

    resource: ClassVar[str]
    model: ClassVar[Type[Entity]]
    # champ du corps portant les documents persistants à conserver
    existing_documents_field: ClassVar[str] = "existingDocuments"

    def __init__(self, gateway: EntityGateway, settings: Optional[Settings] = None):
        self.gateway = gateway
        self.settings = settings or Settings()

    # ----------- lecture -----------

    def _hydrate(self, d: Dict[str, Any]) -> E:
        return self.model.model_validate(d)  # type: ignore[return-value]

    def list_all(self, **params) -> List[E]:
        out: List[E] = []
        for d in self.gateway.list(self.resource, params or None):
            try:
                out.append(self._hydrate(d))
            except ValidationError as e:
                logger.warning("%s ignoré (%s): %s", self.resource, d.get("_id"), e.error_count())
                continue
        return out

    def get_by_id(self, entity_id: str) -> E:
        return self._hydrate(self.gateway.get(self.resource, entity_id))

    # ----------- brouillons -----------

    def new_draft(self, **fields) -> E:
        return self.model(**fields)  # type: ignore[return-value]

    def edit_draft(self, entity: E) -> E:
        return entity.model_copy(deep=True)

    def attachments_for(self, entity: E) -> AttachmentList:
        return AttachmentList.from_entity(entity, max_bytes=self.settings.max_upload_bytes)

    # ----------- écriture -----------

    def prepare(self, draft: E) -> E:
        """Recalcule les champs dérivés avant soumission."""
        return draft

    def validate(self, draft: E) -> Errors:
        return {}

    def _payload(self, draft: E, attachments: Optional[AttachmentList]) -> Tuple[Dict[str, Any], List[StagedFile]]:
        payload = draft.to_payload()
        if attachments is None:
            return payload, []
        payload.pop("documents", None)
        payload[self.existing_documents_field] = attachments.to_existing_list()
        return payload, list(attachments.staged_files)

    def save(self, draft: E, attachments: Optional[AttachmentList] = None) -> E:
        payload, files = self._payload(draft, attachments)
        try:
            if draft.id:
                saved = self.gateway.update(self.resource, draft.id, payload, files)
            else:
                saved = self.gateway.create(self.resource, payload, files)
        except ApiError:
            logger.error("Échec de l'enregistrement %s %s", self.resource, draft.id or "(nouveau)")
            raise
        entity = self._hydrate(saved)
        if attachments is not None:
            attachments.reset_from(getattr(entity, "documents", []) or [])
        return entity

    def submit(self, draft: E, attachments: Optional[AttachmentList] = None) -> E:
        self.prepare(draft)
        ensure_valid(self.validate(draft))
        return self.save(draft, attachments)

    def delete(self, entity_id: str) -> None:
        self.gateway.delete(self.resource, entity_id)

    def remove_document(self, entity: E, attachments: AttachmentList, doc: Document) -> None:
        """
        Retire un document : local s'il est nouveau ou si l'entité n'existe pas
        encore, sinon suppression confirmée par le store (restauré en cas d'échec).
        """
        if doc.is_new or not entity.id:
            attachments.remove_document(doc)
            return
        entity_id = entity.id
        attachments.remove_document(
            doc, delete=lambda url: self.gateway.remove_document(self.resource, entity_id, url)
        )
