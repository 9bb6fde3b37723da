from __future__ import annotations
from datetime import timedelta
from typing import Any, List, Optional

from carloc.models.reservation import Reservation
from carloc.services import pricing
from carloc.services.entity_service import EntityService, set_field
from carloc.services.validation import Errors, _non_negative, _required, _text

DATE_FIELDS = {"start_date", "end_date"}


class ReservationService(EntityService[Reservation]):
    """
    Réservations : même arithmétique que les contrats, sans remise.
    Le prix par jour vient du véhicule choisi et n'est pas stocké ;
    sans prix, totalAmount reste celui saisi.
    """

    resource = "reservations"
    model = Reservation

    def recalc_totals(
        self, r: Reservation, price_per_day: Optional[float] = None, from_dates: bool = True
    ) -> Reservation:
        if from_dates and r.start_date and r.end_date:
            r.duration = pricing.duration_or_zero(r.start_date, r.end_date)
        if price_per_day is not None:
            r.total_amount = pricing.compute_contract_total(price_per_day, r.duration, 0)
        return r

    def apply_field_change(
        self, draft: Reservation, field: str, value: Any, price_per_day: Optional[float] = None
    ) -> Reservation:
        name = set_field(draft, field, value)
        if name == "duration" and draft.start_date and draft.duration >= 1:
            draft.end_date = draft.start_date + timedelta(days=draft.duration)
            return self.recalc_totals(draft, price_per_day, from_dates=False)
        if name in DATE_FIELDS:
            return self.recalc_totals(draft, price_per_day)
        return draft

    def remaining(self, r: Reservation) -> float:
        return pricing.compute_remaining(r.total_amount, r.advance)

    def prepare(self, draft: Reservation) -> Reservation:
        return self.recalc_totals(draft)

    def validate(self, draft: Reservation) -> Errors:
        errors: Errors = {}
        _required(errors, "customer", draft.customer_id, "Veuillez sélectionner un client.")
        _required(errors, "vehicle", draft.vehicle_id, "Veuillez sélectionner un véhicule.")
        _required(errors, "reservationDate", draft.reservation_date, "La date de réservation est obligatoire.")
        _required(errors, "startDate", draft.start_date, "La date de début est obligatoire.")
        _required(errors, "endDate", draft.end_date, "La date de fin est obligatoire.")
        if draft.start_date and draft.end_date:
            if draft.start_date > draft.end_date:
                errors["endDate"] = "La date de fin doit être postérieure à la date de début."
            elif draft.duration < 1:
                errors["duration"] = "La durée doit être d'au moins 1 jour."

        _non_negative(errors, "totalAmount", draft.total_amount, "Le montant total ne peut pas être négatif.")
        _non_negative(errors, "advance", draft.advance, "L'avance ne peut pas être négative.")
        if "advance" not in errors and "totalAmount" not in errors and self.remaining(draft) < 0:
            errors["advance"] = "L'avance ne peut pas dépasser le montant total."
        _text(errors, "notes", draft.notes, "Les notes")
        return errors

    def cancel(self, reservation: Reservation) -> Reservation:
        draft = self.edit_draft(reservation)
        draft.status = "annulee"
        return self.submit(draft)

    def list_by_vehicle(self, vehicle_id: str) -> List[Reservation]:
        return [r for r in self.list_all() if r.vehicle_id == vehicle_id]
