"""
Brouillon des pièces jointes d'une entité en cours d'édition.

Les documents déjà connus du store et les fichiers ajoutés localement vivent
dans la même liste ; seuls ces derniers portent is_new. Le store remplace
l'ensemble des documents à chaque mise à jour : to_existing_list() doit donc
être envoyée à chaque soumission avec les nouveaux fichiers.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from carloc.errors import DocumentRemovalError, FieldValidationError
from carloc.models.document import Document, StagedFile

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "pdf", "doc", "docx", "xls", "xlsx"}
MAX_UPLOAD_BYTES = 10_000_000

DeleteFn = Callable[[str], Any]


class AttachmentList:
    def __init__(
        self,
        documents: Optional[Iterable[Document]] = None,
        *,
        max_bytes: int = MAX_UPLOAD_BYTES,
        allowed_extensions: Optional[set[str]] = None,
    ) -> None:
        self.documents: List[Document] = [d.model_copy() for d in (documents or [])]
        self.staged_files: List[StagedFile] = []
        self.pending_deletions: List[Document] = []
        self.max_bytes = max_bytes
        self.allowed_extensions = allowed_extensions or ALLOWED_EXTENSIONS
        self._ranks: Dict[str, int] = {}  # url -> rang dans l'ordre d'origine
        self._rank_all(self.documents)

    def _rank_all(self, docs: Iterable[Document]) -> None:
        for d in docs:
            self._ranks.setdefault(d.url, len(self._ranks))

    @classmethod
    def from_entity(cls, entity: Any, **kwargs) -> "AttachmentList":
        return cls(getattr(entity, "documents", None) or [], **kwargs)

    # ---------- ajout ---------- #

    def _check_file(self, f: StagedFile) -> Optional[str]:
        ext = f.name.rsplit(".", 1)[-1].lower() if "." in f.name else ""
        if ext not in self.allowed_extensions:
            return f"{f.name} : seuls les images, PDF et documents sont acceptés."
        if f.size > self.max_bytes:
            return f"{f.name} : fichier trop volumineux (max {self.max_bytes // 1_000_000} Mo)."
        return None

    def add_files(self, files: Iterable[StagedFile]) -> List[Document]:
        files = list(files)
        problems = [msg for msg in (self._check_file(f) for f in files) if msg]
        if problems:
            raise FieldValidationError({"documents": " ".join(problems)})

        added: List[Document] = []
        for f in files:
            doc = f.to_document()
            self.staged_files.append(f)
            self.documents.append(doc)
            added.append(doc)
        self._rank_all(added)
        return added

    # ---------- suppression ---------- #

    def _index_of(self, url: str) -> int:
        for i, d in enumerate(self.documents):
            if d.url == url:
                return i
        return -1

    def remove_document(self, doc: Document, delete: Optional[DeleteFn] = None) -> None:
        """
        Retire un document du brouillon.
        - nouveau : retiré des documents et des fichiers en attente d'envoi
        - persistant : mis en attente de suppression ; si `delete` est fourni,
          la suppression est confirmée tout de suite auprès du store
        """
        idx = self._index_of(doc.url)
        if idx < 0:
            raise KeyError(f"Document absent du brouillon: {doc.url}")

        if doc.is_new:
            self.documents.pop(idx)
            self.staged_files = [f for f in self.staged_files if f.ref != doc.url]
            return

        removed = self.documents.pop(idx)
        self.pending_deletions.append(removed)
        if delete is not None:
            self._commit(removed, delete)

    def _commit(self, doc: Document, delete: DeleteFn) -> None:
        try:
            delete(doc.url)
        except Exception as e:
            self.rollback(doc)
            logger.error("Suppression du document %s échouée, restauré: %s", doc.url, e)
            raise DocumentRemovalError(doc.url, e) from e
        self.pending_deletions = [d for d in self.pending_deletions if d.url != doc.url]

    def commit_deletions(self, delete: DeleteFn) -> None:
        """Confirme les suppressions en attente ; s'arrête au premier échec (déjà restauré)."""
        for doc in list(self.pending_deletions):
            self._commit(doc, delete)

    def rollback(self, doc: Document) -> None:
        """Remet un document en attente de suppression à sa place d'origine."""
        if all(d.url != doc.url for d in self.pending_deletions):
            return
        self.pending_deletions = [d for d in self.pending_deletions if d.url != doc.url]
        rank = self._ranks.get(doc.url, len(self._ranks))
        pos = next(
            (i for i, d in enumerate(self.documents) if self._ranks.get(d.url, len(self._ranks)) > rank),
            len(self.documents),
        )
        self.documents.insert(pos, doc)

    def rollback_all(self) -> None:
        for doc in list(self.pending_deletions):
            self.rollback(doc)

    # ---------- soumission ---------- #

    def to_existing_list(self) -> List[Dict[str, Any]]:
        """Documents persistants à conserver ; en omettre un revient à le supprimer."""
        return [d.to_payload() for d in self.documents if not d.is_new]

    def reset_from(self, documents: Iterable[Document]) -> None:
        """Resynchronise le brouillon avec l'état du store (après sauvegarde ou relecture)."""
        self.documents = [d.model_copy(update={"is_new": False}) for d in documents]
        self.staged_files = []
        self.pending_deletions = []
        self._ranks = {}
        self._rank_all(self.documents)

    @property
    def has_changes(self) -> bool:
        return bool(self.staged_files or self.pending_deletions)
