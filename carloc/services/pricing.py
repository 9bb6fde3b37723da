"""
Calculs financiers des contrats et factures.

Fonctions pures : aucune ne borne à zéro ni n'arrondit. Un total ou un reste
négatif est une erreur de validation côté appelant (voir services.validation),
pas une valeur à corriger ici.
"""
from __future__ import annotations
import math
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel

from carloc.errors import InvalidDateRange

DateLike = Union[date, datetime, str]

SECONDS_PER_DAY = 86400


class TvaFromHT(BaseModel):
    tva_amount: float
    total_ttc: float


class TvaFromAmount(BaseModel):
    tva_percentage: float
    total_ttc: float


class HtFromTotal(BaseModel):
    montant_ht: float
    tva_amount: float


def _to_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        s = str(value).strip()
        if len(s) == 10:
            return datetime.combine(date.fromisoformat(s), datetime.min.time())
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    # heures du store en UTC, comparées en naïf
    return dt.astimezone(timezone.utc).replace(tzinfo=None) if dt.tzinfo else dt


# ---------- Contrat ---------- #

def compute_duration(departure: DateLike, return_: DateLike) -> int:
    """
    Nombre de jours facturés : ceil((retour - départ) / 1 jour), au minimum 1.
    Lève InvalidDateRange si le départ est postérieur au retour.
    """
    start = _to_datetime(departure)
    end = _to_datetime(return_)
    if start > end:
        raise InvalidDateRange()
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def duration_or_zero(departure: Optional[DateLike], return_: Optional[DateLike]) -> int:
    """Politique des formulaires : 0 (soumission bloquée) si les dates manquent ou sont inversées."""
    if not departure or not return_:
        return 0
    try:
        return compute_duration(departure, return_)
    except InvalidDateRange:
        return 0


def compute_contract_total(price_per_day: float, duration: float, discount: float) -> float:
    return price_per_day * duration - discount


def compute_remaining(total: float, advance: float) -> float:
    return total - advance


def compute_extension_total(duration: float, price_per_day: float) -> float:
    return duration * price_per_day


def compute_grand_total(contract: Any) -> float:
    """Total du contrat + prolongation éventuelle."""
    ext = getattr(contract, "extension", None)
    extra = compute_extension_total(ext.duration, ext.price_per_day) if ext else 0.0
    return contract.total + extra


# ---------- Facture (TVA) ---------- #

def compute_invoice_from_ht(montant_ht: float, tva_percentage: float) -> TvaFromHT:
    tva_amount = montant_ht * tva_percentage / 100
    return TvaFromHT(tva_amount=tva_amount, total_ttc=montant_ht + tva_amount)


def compute_invoice_from_tva_amount(montant_ht: float, tva_amount: float) -> TvaFromAmount:
    pct = (tva_amount / montant_ht) * 100 if montant_ht != 0 else 0.0
    return TvaFromAmount(tva_percentage=pct, total_ttc=montant_ht + tva_amount)


def compute_invoice_from_contract_total(contract_total: float, tva_percentage: float) -> HtFromTotal:
    """Retrouve le HT à partir d'un total TTC connu (total du contrat)."""
    if tva_percentage != 0:
        montant_ht = contract_total / (1 + tva_percentage / 100)
    else:
        montant_ht = contract_total
    return HtFromTotal(montant_ht=montant_ht, tva_amount=contract_total - montant_ht)


def compute_invoice_balance(total_ttc: float, amount_paid: float) -> float:
    return total_ttc - amount_paid


def invoice_status_for(total_ttc: float, amount_paid: float) -> Literal["Paid", "Pending"]:
    return "Paid" if amount_paid >= total_ttc else "Pending"
