"""Contrat commun des accès au store : l'API REST ou le store local JSON."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from carloc.models.document import StagedFile

RESOURCES = (
    "customers",
    "vehicles",
    "contracts",
    "factures",
    "clientpayments",
    "accidents",
    "reservations",
    "traites",
    "infractions",
)

Record = Dict[str, Any]


class EntityGateway(ABC):
    """Une ressource = une collection `/api/<resource>` du store."""

    @abstractmethod
    def list(self, resource: str, params: Optional[Dict[str, Any]] = None) -> List[Record]: ...

    @abstractmethod
    def get(self, resource: str, entity_id: str) -> Record: ...

    @abstractmethod
    def create(self, resource: str, payload: Record, files: Sequence[StagedFile] = ()) -> Record: ...

    @abstractmethod
    def update(self, resource: str, entity_id: str, payload: Record, files: Sequence[StagedFile] = ()) -> Record: ...

    @abstractmethod
    def delete(self, resource: str, entity_id: str) -> None: ...

    @abstractmethod
    def remove_document(self, resource: str, entity_id: str, document_url: str) -> Record: ...
