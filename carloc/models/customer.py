from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from .common import Entity
from .document import Document


class Customer(Entity):
    civilite: Optional[Literal["M.", "Mme", "Mlle"]] = None
    nationalite: str = ""
    type: Literal["Particulier", "Professionel"] = "Particulier"
    liste_noire: bool = False

    nom_fr: str
    prenom_fr: str
    nom_ar: str = ""
    prenom_ar: str = ""
    date_naissance: str = ""  # YYYY-MM-DD
    lieu_naissance: str = ""
    ice: str = ""

    cin: Optional[str] = None
    cin_validite: str = ""
    numero_permis: Optional[str] = None
    permis_validite: str = ""
    numero_passeport: str = ""

    email: Optional[EmailStr] = None
    adresse_fr: str = ""
    ville: str = ""
    code_postal: str = ""
    telephone: str = ""
    telephone2: str = ""
    remarque: str = ""

    total_rentals: int = 0
    status: Literal["Actif", "Inactif"] = "Actif"
    documents: List[Document] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.prenom_fr} {self.nom_fr}".strip()
