from datetime import date

import pytest

from carloc.errors import FieldValidationError
from carloc.services.infraction_service import InfractionService


@pytest.fixture
def service(store):
    return InfractionService(store)


def pv(service, **kw):
    fields = dict(
        customer_id="c1",
        vehicle_id="v1",
        infraction_date=date(2025, 4, 2),
        fait_le=date(2025, 4, 3),
        location="Casablanca, bd Zerktouni",
        amount=300,
    )
    fields.update(kw)
    return service.new_draft(**fields)


def test_required_fields(service):
    errors = service.validate(service.new_draft(location="  "))
    assert set(errors) == {"customer", "infractionDate", "date", "location"}


def test_negative_amount(service):
    assert "amount" in service.validate(pv(service, amount=-1))


def test_payload_sends_urls_only(service, stored_docs):
    draft = pv(service, documents=stored_docs)
    attachments = service.attachments_for(draft)
    attachments.remove_document(attachments.documents[1])
    payload, files = service._payload(draft, attachments)
    assert "documents" not in payload
    assert payload["existingDocuments"] == ["uploads/documents-a.pdf", "uploads/documents-c.pdf"]
    assert payload["date"] == "2025-04-03"
    assert files == []


def test_submit_keeps_selected_documents(service, pdf_file, scan_file):
    draft = pv(service)
    attachments = service.attachments_for(draft)
    attachments.add_files([pdf_file, scan_file])
    saved = service.submit(draft, attachments)
    assert saved.infraction_number == "INF-00001"

    attachments = service.attachments_for(saved)
    service.remove_document(saved, attachments, attachments.documents[0])
    kept = attachments.documents[0].url
    updated = service.submit(service.edit_draft(saved), attachments)
    assert [d.url for d in updated.documents] == [kept]


def test_invalid_not_saved(service, store):
    with pytest.raises(FieldValidationError):
        service.submit(pv(service, customer_id=None))
    assert store.list("infractions") == []


def test_mark_paid(service):
    saved = service.submit(pv(service))
    assert service.mark_paid(saved).status == "Paid"
    assert [i.id for i in service.list_by_customer("c1")] == [saved.id]
