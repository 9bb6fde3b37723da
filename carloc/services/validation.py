from __future__ import annotations
from typing import Any, Dict, Optional

from carloc.errors import FieldValidationError
from carloc.models.contract import Contract
from carloc.models.facture import Facture
from carloc.models.payment import ClientPayment

Errors = Dict[str, str]


def is_blank_text(value: Optional[str]) -> bool:
    """Vrai si le texte est non vide mais ne contient que des espaces (distinct de vide)."""
    return bool(value) and not value.strip()


def _non_negative(errors: Errors, field: str, value: Any, message: str) -> None:
    if value is not None and value < 0:
        errors[field] = message


def _text(errors: Errors, field: str, value: Optional[str], label: str, required: bool = False) -> None:
    if is_blank_text(value):
        errors[field] = f"{label} ne peut pas contenir uniquement des espaces."
    elif required and not value:
        errors[field] = f"{label} est obligatoire."


def _required(errors: Errors, field: str, value: Any, message: str) -> None:
    if value in (None, ""):
        errors[field] = message


def ensure_valid(errors: Errors) -> None:
    if errors:
        raise FieldValidationError(errors)


# ---------- Contrat ---------- #

def validate_contract(c: Contract) -> Errors:
    errors: Errors = {}
    _required(errors, "client", c.client_id, "Veuillez sélectionner un client.")
    _required(errors, "vehicle", c.vehicle_id, "Veuillez sélectionner un véhicule.")
    _required(errors, "contractDate", c.contract_date, "La date du contrat est obligatoire.")
    _required(errors, "departureDate", c.departure_date, "La date de départ est obligatoire.")
    _required(errors, "returnDate", c.return_date, "La date de retour est obligatoire.")

    if c.departure_date and c.return_date and c.departure_date > c.return_date:
        errors["returnDate"] = "La date de retour doit être postérieure à la date de départ."
    elif c.duration < 1 and c.departure_date and c.return_date:
        errors["duration"] = "La durée doit être d'au moins 1 jour."

    _text(errors, "contractLocation", c.contract_location, "Le lieu du contrat")
    _text(errors, "pickupLocation", c.pickup_location, "Le lieu de livraison")
    _text(errors, "returnLocation", c.return_location, "Le lieu de récupération")
    _text(errors, "matricule", c.matricule, "Le matricule", required=True)

    _non_negative(errors, "pricePerDay", c.price_per_day, "Le prix par jour ne peut pas être négatif.")
    _non_negative(errors, "discount", c.discount, "La remise ne peut pas être négative.")
    _non_negative(errors, "guarantee", c.guarantee, "La garantie ne peut pas être négative.")
    _non_negative(errors, "advance", c.advance, "L'avance ne peut pas être négative.")
    _non_negative(errors, "startingKm", c.starting_km, "Le kilométrage de départ ne peut pas être négatif.")

    if "discount" not in errors and c.total < 0:
        errors["total"] = "Le total ne peut pas être négatif : la remise dépasse le montant."
    if "advance" not in errors and c.remaining < 0:
        errors["remaining"] = "L'avance ne peut pas dépasser le total."

    if c.extension is not None:
        if c.extension.duration < 1:
            errors["extension.duration"] = "La durée de prolongation doit être d'au moins 1 jour."
        if c.extension.price_per_day < 1:
            errors["extension.pricePerDay"] = "Le prix de prolongation doit être d'au moins 1."
    return errors


# ---------- Facture ---------- #

def validate_facture(f: Facture) -> Errors:
    errors: Errors = {}
    _required(errors, "client", f.client_id, "Veuillez sélectionner un client.")
    _required(errors, "contract", f.contract_id, "Veuillez sélectionner un contrat.")
    _required(errors, "invoiceDate", f.invoice_date, "La date de facture est obligatoire.")
    _required(errors, "dueDate", f.due_date, "La date d'échéance est obligatoire.")
    if f.invoice_date and f.due_date and f.due_date < f.invoice_date:
        errors["dueDate"] = "La date d'échéance doit être postérieure à la date de facture."

    _text(errors, "location", f.location, "Le lieu")
    _non_negative(errors, "montantHT", f.montant_ht, "Le montant HT ne peut pas être négatif.")
    _non_negative(errors, "tvaPercentage", f.tva_percentage, "Le taux de TVA ne peut pas être négatif.")
    _non_negative(errors, "amountPaid", f.amount_paid, "Le montant payé ne peut pas être inférieur à 0.")
    return errors


# ---------- Règlement client ---------- #

_TARGET_LABELS = {"contract": "un contrat", "facture": "une facture", "accident": "un accident"}


def validate_payment(p: ClientPayment) -> Errors:
    errors: Errors = {}
    _required(errors, "paymentDate", p.payment_date, "La date de règlement est obligatoire.")
    _required(errors, "client", p.client_id, "Veuillez sélectionner un client.")
    if not p.payment_for:
        errors["paymentFor"] = "Veuillez indiquer l'objet du règlement."
    elif not p.target_id():
        errors[p.payment_for] = f"Veuillez sélectionner {_TARGET_LABELS[p.payment_for]}."

    _text(errors, "referenceNumber", p.reference_number, "La référence")
    _non_negative(errors, "amountPaid", p.amount_paid, "Le montant payé ne peut pas être inférieur à 0.")
    if "amountPaid" not in errors:
        _non_negative(errors, "remainingAmount", p.remaining_amount,
                      "Le montant payé dépasse le montant restant dû.")
    return errors
