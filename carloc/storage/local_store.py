"""
Store local (hors ligne) : mêmes ressources et même comportement observable
que l'API, sur des fichiers JSON de `data_dir`.

- numéros générés : contrats Noc-00001, factures INV-<année>-0001,
  règlements REG-<année>-001, réservations RES-0001, infractions INF-00001
- documents : existants conservés (existingDocuments / documents) + nouveaux
  fichiers ; documentsToDelete retire des urls (clients) ; les infractions
  ne renvoient que les urls à conserver
- fichiers envoyés copiés dans data_dir/uploads
"""
from __future__ import annotations
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from uuid import uuid4

from carloc.config import Settings, load_settings
from carloc.errors import ApiError, NotFoundError
from carloc.models.document import StagedFile
from carloc.storage.gateway import RESOURCES, EntityGateway, Record
from carloc.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)

# ressource -> (champ numéro, format) ; {year} et {n} sont substitués
NUMBERING = {
    "contracts": ("contractNumber", "Noc-{n:05d}"),
    "factures": ("invoiceNumber", "INV-{year}-{n:04d}"),
    "clientpayments": ("paymentNumber", "REG-{year}-{n:03d}"),
    "reservations": ("reservationNumber", "RES-{n:04d}"),
    "infractions": ("infractionNumber", "INF-{n:05d}"),
}


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="milliseconds")


def _parse_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str) and not value.lstrip().startswith("["):
        return [value]  # une seule url envoyée en champ de formulaire
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ApiError(f"Liste de documents illisible: {e}", status_code=400) from e
    return list(value) if isinstance(value, list) else []


class LocalStore(EntityGateway):
    def __init__(self, data_dir: Union[str, Path, None] = None, settings: Optional[Settings] = None) -> None:
        if data_dir is None:
            data_dir = (settings or load_settings()).data_dir
        self.data_dir = Path(data_dir)
        self.uploads_dir = self.data_dir / "uploads"
        self._repos: Dict[str, JsonRepository] = {}

    def _repo(self, resource: str) -> JsonRepository:
        if resource not in RESOURCES:
            raise NotFoundError(f"Ressource inconnue: {resource}")
        if resource not in self._repos:
            self._repos[resource] = JsonRepository(
                self.data_dir / f"{resource}.json", entity_name=resource, key="_id"
            )
        return self._repos[resource]

    def _require(self, resource: str, entity_id: str) -> Dict[str, Any]:
        rec = self._repo(resource).get_by_id(entity_id)
        if rec is None:
            raise NotFoundError(f"{resource} {entity_id} introuvable")
        return rec

    # ---------------- numérotation ---------------- #

    def _next_number(self, resource: str) -> Optional[tuple[str, str]]:
        if resource not in NUMBERING:
            return None
        field, fmt = NUMBERING[resource]
        year = datetime.now().year
        prefix = fmt.split("{n")[0].format(year=year)
        max_n = 0
        for d in self._repo(resource).list_all():
            num = d.get(field) or ""
            if isinstance(num, str) and num.startswith(prefix):
                m = re.fullmatch(r"\d+", num[len(prefix):])
                if m:
                    max_n = max(max_n, int(m.group(0)))
        return field, fmt.format(year=year, n=max_n + 1)

    # ---------------- documents ---------------- #

    def _save_upload(self, f: StagedFile) -> Dict[str, Any]:
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(f.name).suffix
        target = self.uploads_dir / f"documents-{uuid4().hex}{suffix}"
        target.write_bytes(f.data)
        return {
            "name": f.name,
            "type": f.content_type or "application/octet-stream",
            "size": f.size,
            "url": f"uploads/{target.name}",
        }

    def _unlink_upload(self, url: str) -> None:
        if not url.startswith("uploads/"):
            return  # stocké ailleurs (S3...), hors de portée du store local
        path = self.data_dir / url
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            # le document est déjà détaché de l'entité, seul le fichier reste
            logger.error("Erreur de suppression du fichier %s: %s", path, e)

    @staticmethod
    def _kept(keep: Any, current: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Liste à conserver : documents complets, ou seulement leurs urls (infractions)."""
        kept = _parse_list(keep)
        if kept and all(isinstance(k, str) for k in kept):
            urls = set(kept)
            return [d for d in current if d.get("url") in urls]
        return [dict(d) for d in kept]

    def _resolve_documents(
        self, payload: Dict[str, Any], current: List[Dict[str, Any]], files: Sequence[StagedFile]
    ) -> Optional[List[Dict[str, Any]]]:
        keep: Any = payload.pop("existingDocuments", None)
        docs = payload.pop("documents", None)
        if keep is None:
            keep = docs
        to_delete = payload.pop("documentsToDelete", None)
        if isinstance(to_delete, str):
            to_delete = json.loads(to_delete)

        if keep is None and not files and not to_delete:
            return None  # ensemble inchangé

        base = self._kept(keep, current) if keep is not None else list(current)
        if to_delete:
            urls = set(to_delete)
            for url in urls:
                self._unlink_upload(url)
            base = [d for d in base if d.get("url") not in urls]
        return base + [self._save_upload(f) for f in files]

    # ---------------- EntityGateway ---------------- #

    def list(self, resource: str, params: Optional[Dict[str, Any]] = None) -> List[Record]:
        rows = self._repo(resource).list_all()
        if params:
            rows = [r for r in rows if all(str(r.get(k)) == str(v) for k, v in params.items())]
        return rows

    def get(self, resource: str, entity_id: str) -> Record:
        return self._require(resource, entity_id)

    def create(self, resource: str, payload: Record, files: Sequence[StagedFile] = ()) -> Record:
        record = dict(payload)
        record.pop("_id", None)
        docs = self._resolve_documents(record, [], files)
        record["documents"] = docs or []
        numbering = self._next_number(resource)
        if numbering:
            field, number = numbering
            record[field] = number
        now = _now_iso()
        record.update({"_id": uuid4().hex, "createdAt": now, "updatedAt": now})
        saved = self._repo(resource).add(record)
        logger.info("%s créé: %s", resource, saved["_id"])
        return saved

    def update(self, resource: str, entity_id: str, payload: Record, files: Sequence[StagedFile] = ()) -> Record:
        current = self._require(resource, entity_id)
        record = dict(payload)
        docs = self._resolve_documents(record, current.get("documents") or [], files)
        record["documents"] = (current.get("documents") or []) if docs is None else docs

        # identité, numéro et date de création ne sont pas modifiables
        numbering = NUMBERING.get(resource)
        if numbering and current.get(numbering[0]):
            record[numbering[0]] = current[numbering[0]]
        record.update({"_id": current["_id"], "createdAt": current.get("createdAt"), "updatedAt": _now_iso()})
        return self._repo(resource).replace(record)

    def delete(self, resource: str, entity_id: str) -> None:
        current = self._require(resource, entity_id)
        self._repo(resource).delete(entity_id)
        for doc in current.get("documents") or []:
            self._unlink_upload(str(doc.get("url", "")))

    def remove_document(self, resource: str, entity_id: str, document_url: str) -> Record:
        current = self._require(resource, entity_id)
        docs = current.get("documents") or []
        remaining = [d for d in docs if d.get("url") != document_url]
        if len(remaining) == len(docs):
            raise NotFoundError(f"Document introuvable: {document_url}")
        current["documents"] = remaining
        current["updatedAt"] = _now_iso()
        saved = self._repo(resource).replace(current)
        self._unlink_upload(document_url)
        return saved
