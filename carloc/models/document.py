from __future__ import annotations
import mimetypes
from pathlib import Path
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def guess_content_type(name: str) -> str:
    ctype, _ = mimetypes.guess_type(name)
    return ctype or "application/octet-stream"


class Document(BaseModel):
    """Pièce jointe : métadonnées seulement, le contenu vit dans le stockage du store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    type: str = "application/octet-stream"
    size: int = 0
    url: str
    # marqueur transitoire : jamais envoyé au store
    is_new: bool = Field(default=False, alias="isNew", exclude=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StagedFile(BaseModel):
    """Fichier local pas encore envoyé au store ; `ref` sert d'URL d'aperçu."""

    name: str
    content_type: str = ""
    data: bytes = b""
    ref: str = Field(default_factory=lambda: f"local://{uuid4().hex}")

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path) -> "StagedFile":
        p = Path(path)
        return cls(name=p.name, content_type=guess_content_type(p.name), data=p.read_bytes())

    def to_document(self) -> Document:
        return Document(
            name=self.name,
            type=self.content_type or guess_content_type(self.name),
            size=self.size,
            url=self.ref,
            is_new=True,
        )
