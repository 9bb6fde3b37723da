from __future__ import annotations

import glob
import json
import logging
import shutil
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

logger = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


class JsonRepository:
    """
    Collection JSON (une liste d'enregistrements) avec clé primaire configurable.
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas
    - replace() remplace l'enregistrement entier (sémantique PUT, pas de fusion)
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        entity_name: str = "entity",
        key: str = "_id",
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.entity_name = entity_name
        self.key = key
        self._lock = threading.Lock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))

        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        if not self.filepath.exists():
            self._write_raw([])

    # ---------------- I/O bas niveau ---------------- #

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, list) else []
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            # fichier corrompu : copie de côté puis liste vide
            backup = self.filepath.with_suffix(".corrupt.json")
            logger.warning("%s corrompu, copie dans %s", self.filepath, backup)
            shutil.copy2(self.filepath, backup)
            return []

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        for old in files[: max(0, len(files) - self.backup_keep)]:
            try:
                Path(old).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Backup %s non supprimé: %s", old, e)

    def _write_raw(self, data: Iterable[Mapping[str, Any]]) -> None:
        with self._lock:
            new_dump = json.dumps(list(data), ensure_ascii=False, indent=2, default=_json_default)

            if self.filepath.exists() and self.filepath.read_text(encoding="utf-8") == new_dump:
                return

            if self.backup_enabled and self.filepath.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
                shutil.copy2(self.filepath, self.filepath.with_suffix(f".{ts}.bak.json"))
                self._rotate_backups()

            self.filepath.write_text(new_dump, encoding="utf-8")

    def _index_of(self, data: List[Dict[str, Any]], obj_id: Any) -> int:
        for i, d in enumerate(data):
            if str(d.get(self.key)) == str(obj_id):
                return i
        return -1

    # ---------------- CRUD ---------------- #

    def list_all(self) -> List[Dict[str, Any]]:
        return self._read_raw()

    def get_by_id(self, obj_id: Any) -> Optional[Dict[str, Any]]:
        data = self._read_raw()
        idx = self._index_of(data, obj_id)
        return data[idx] if idx >= 0 else None

    def add(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        record = dict(record)
        if not record.get(self.key):
            record[self.key] = uuid4().hex
        data = self._read_raw()
        if self._index_of(data, record[self.key]) >= 0:
            raise ValueError(f"{self.entity_name} with {self.key}={record[self.key]} already exists")
        data.append(record)
        self._write_raw(data)
        return record

    def replace(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        record = dict(record)
        obj_id = record.get(self.key)
        if not obj_id:
            raise ValueError(f"Cannot update {self.entity_name} without '{self.key}'")
        data = self._read_raw()
        idx = self._index_of(data, obj_id)
        if idx < 0:
            raise KeyError(f"{self.entity_name} with {self.key}={obj_id} not found")
        data[idx] = record
        self._write_raw(data)
        return record

    def delete(self, obj_id: Any) -> bool:
        data = self._read_raw()
        new_data = [d for d in data if str(d.get(self.key)) != str(obj_id)]
        changed = len(new_data) != len(data)
        if changed:
            self._write_raw(new_data)
        return changed

    # ---------------- Recherches ---------------- #

    def find(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [r for r in self._read_raw() if predicate(r)]
