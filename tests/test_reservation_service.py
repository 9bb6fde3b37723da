from datetime import date

import pytest

from carloc.errors import FieldValidationError
from carloc.services.reservation_service import ReservationService


@pytest.fixture
def service(store):
    return ReservationService(store)


def booked(service, price=250):
    draft = service.new_draft(customer_id="c1", vehicle_id="v1", reservation_date=date(2025, 3, 1))
    service.apply_field_change(draft, "startDate", "2025-03-10", price_per_day=price)
    service.apply_field_change(draft, "endDate", "2025-03-14", price_per_day=price)
    service.apply_field_change(draft, "advance", 300)
    return draft


class TestFieldChanges:
    def test_dates_drive_duration_and_total(self, service):
        draft = booked(service)
        assert draft.duration == 4
        assert draft.total_amount == 1000
        assert service.remaining(draft) == 700

    def test_without_price_total_is_kept(self, service):
        draft = service.new_draft(total_amount=900)
        service.apply_field_change(draft, "startDate", "2025-03-10")
        service.apply_field_change(draft, "endDate", "2025-03-12")
        assert draft.duration == 2
        assert draft.total_amount == 900

    def test_duration_moves_end_date(self, service):
        draft = booked(service)
        service.apply_field_change(draft, "duration", 6, price_per_day=250)
        assert draft.end_date == date(2025, 3, 16)
        assert draft.total_amount == 1500


class TestValidation:
    def test_required_fields(self, service):
        errors = service.validate(service.new_draft())
        assert {"customer", "vehicle", "reservationDate", "startDate", "endDate"} <= set(errors)

    def test_reversed_dates(self, service):
        draft = booked(service)
        service.apply_field_change(draft, "endDate", "2025-03-01")
        errors = service.validate(draft)
        assert draft.duration == 0
        assert "endDate" in errors

    def test_advance_over_total(self, service):
        draft = booked(service)
        draft.advance = 1200
        assert service.validate(draft)["advance"] == "L'avance ne peut pas dépasser le montant total."

    def test_negative_amounts(self, service):
        draft = booked(service)
        draft.total_amount = -10
        errors = service.validate(draft)
        assert "totalAmount" in errors


class TestStore:
    def test_submit_numbers_and_recomputes_duration(self, service):
        draft = booked(service)
        draft.duration = 1  # écrasé par prepare
        saved = service.submit(draft)
        assert saved.reservation_number == "RES-0001"
        assert saved.duration == 4
        assert saved.status == "en_cours"

    def test_invalid_not_saved(self, service, store):
        with pytest.raises(FieldValidationError):
            service.submit(service.new_draft(customer_id="c1"))
        assert store.list("reservations") == []

    def test_cancel_and_list_by_vehicle(self, service):
        saved = service.submit(booked(service))
        service.submit(booked(service).model_copy(update={"vehicle_id": "v2"}))
        cancelled = service.cancel(saved)
        assert cancelled.status == "annulee"
        assert [r.id for r in service.list_by_vehicle("v1")] == [saved.id]
