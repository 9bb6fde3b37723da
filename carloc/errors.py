from __future__ import annotations
from typing import Dict, Optional


class CarlocError(Exception):
    """Erreur de base du back-office."""


class FieldValidationError(CarlocError, ValueError):
    """Erreurs de saisie par champ : la soumission est bloquée tant qu'elles existent."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("Veuillez corriger les erreurs de validation.")

    def __str__(self) -> str:
        details = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        return f"{self.args[0]} ({details})" if details else self.args[0]


class InvalidDateRange(FieldValidationError):
    def __init__(self, field: str = "returnDate"):
        super().__init__({field: "La date de retour doit être postérieure à la date de départ."})


class ApiError(CarlocError, RuntimeError):
    """Échec réseau ou réponse non-2xx du store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ApiError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class DocumentRemovalError(ApiError):
    """La suppression d'un document persistant a échoué ; la vue locale a été restaurée."""

    def __init__(self, document_url: str, cause: Exception):
        status = getattr(cause, "status_code", None)
        super().__init__(f"Impossible de supprimer le document {document_url}: {cause}", status_code=status)
        self.document_url = document_url
        self.cause = cause
