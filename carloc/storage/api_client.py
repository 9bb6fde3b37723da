"""
Client HTTP de l'API du store (`/api/<resource>`).

Pas de relance automatique : une erreur est journalisée une fois puis levée
en ApiError, le brouillon de l'appelant reste intact pour une nouvelle
soumission.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from carloc.config import Settings, load_settings
from carloc.errors import ApiError, NotFoundError
from carloc.models.document import StagedFile
from carloc.storage.gateway import EntityGateway, Record

logger = logging.getLogger(__name__)


# champ multipart des fichiers quand il diffère de "documents"
UPLOAD_FIELDS = {"infractions": "attachments"}


def _form_value(value: Any) -> Any:
    """
    Multipart : les objets imbriqués voyagent en JSON (le store les re-parse),
    une liste de chaînes devient un champ répété.
    """
    if value is None:
        return None
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ApiClient(EntityGateway):
    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or load_settings()
        self.base_url = self.settings.api_base.rstrip("/")
        self.timeout = self.settings.timeout
        self.token = self.settings.api_token
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    # ---------------- transport ---------------- #

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "api", *[str(p).strip("/") for p in parts]])

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict):
            return str(body.get("message") or body.get("msg") or body)
        return str(body)

    def _request(self, method: str, url: str, **kwargs) -> Any:
        logger.info("Appel API: %s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.Timeout as e:
            logger.error("Timeout lors de l'appel à %s", url)
            raise ApiError(f"Timeout lors de l'appel à {url}") from e
        except requests.RequestException as e:
            logger.error("Erreur réseau sur %s: %s", url, e)
            raise ApiError(f"Erreur réseau: {e}") from e

        if not response.ok:
            message = self._error_message(response)
            logger.error("Erreur API %s sur %s %s: %s", response.status_code, method, url, message)
            if response.status_code == 404:
                raise NotFoundError(message or f"Ressource introuvable: {url}")
            raise ApiError(f"Erreur API ({response.status_code}): {message}", status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Réponse non JSON pour {url}", status_code=response.status_code) from e

    def _send(self, method: str, resource: str, url: str, payload: Record, files: Sequence[StagedFile]) -> Record:
        if not files:
            return self._request(method, url, json=payload)
        data = {k: v for k, v in ((k, _form_value(v)) for k, v in payload.items()) if v is not None}
        field = UPLOAD_FIELDS.get(resource, "documents")
        parts = [(field, (f.name, f.data, f.content_type or "application/octet-stream")) for f in files]
        return self._request(method, url, data=data, files=parts)

    # ---------------- auth ---------------- #

    def login(self, username: str, password: str) -> str:
        data = self._request("POST", self._url("users", "login"), json={"username": username, "password": password})
        token = (data or {}).get("token")
        if not token:
            raise ApiError("Aucun jeton renvoyé par /api/users/login")
        self.token = token
        return token

    # ---------------- ressources ---------------- #

    def list(self, resource: str, params: Optional[Dict[str, Any]] = None) -> List[Record]:
        data = self._request("GET", self._url(resource), params=params)
        return data if isinstance(data, list) else []

    def get(self, resource: str, entity_id: str) -> Record:
        return self._request("GET", self._url(resource, entity_id))

    def create(self, resource: str, payload: Record, files: Sequence[StagedFile] = ()) -> Record:
        return self._send("POST", resource, self._url(resource), payload, files)

    def update(self, resource: str, entity_id: str, payload: Record, files: Sequence[StagedFile] = ()) -> Record:
        return self._send("PUT", resource, self._url(resource, entity_id), payload, files)

    def delete(self, resource: str, entity_id: str) -> None:
        self._request("DELETE", self._url(resource, entity_id))

    def remove_document(self, resource: str, entity_id: str, document_url: str) -> Record:
        data = self._request("DELETE", self._url(resource, entity_id, "documents"), json={"documentUrl": document_url})
        # le store renvoie { message, <entité> }
        return data or {}
