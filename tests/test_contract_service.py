from datetime import date

import pytest

from carloc.errors import ApiError, DocumentRemovalError, FieldValidationError
from carloc.services.contract_service import ContractService
from carloc.storage.local_store import LocalStore


@pytest.fixture
def service(store):
    return ContractService(store)


def filled_draft(service):
    draft = service.new_draft(client_id="c1", vehicle_id="v1", contract_date=date(2025, 1, 1), matricule="12345-A-6")
    for field, value in [
        ("pricePerDay", 300),
        ("departureDate", "2025-01-01"),
        ("returnDate", "2025-01-04"),
        ("discount", 50),
        ("advance", 200),
    ]:
        service.apply_field_change(draft, field, value)
    return draft


class TestFieldChanges:
    def test_dates_drive_duration_total_remaining(self, service):
        draft = filled_draft(service)
        assert draft.duration == 3
        assert draft.total == 850
        assert draft.remaining == 650

    def test_reversed_dates_give_zero_duration(self, service):
        draft = filled_draft(service)
        service.apply_field_change(draft, "returnDate", "2024-12-30")
        assert draft.duration == 0
        assert draft.total == -50

    def test_duration_moves_return_date(self, service):
        draft = filled_draft(service)
        service.apply_field_change(draft, "duration", 5)
        assert draft.return_date == date(2025, 1, 6)
        assert draft.total == 1450
        assert draft.remaining == 1250

    def test_advance_only_changes_remaining(self, service):
        draft = filled_draft(service)
        service.apply_field_change(draft, "advance", 1000)
        assert draft.total == 850
        assert draft.remaining == -150

    def test_nested_fields(self, service):
        draft = filled_draft(service)
        service.apply_field_change(draft, "extension.duration", 2)
        service.apply_field_change(draft, "extension.pricePerDay", 100)
        service.apply_field_change(draft, "equipment.posteRadio", True)
        service.apply_field_change(draft, "secondDriver.nom", "Karim")
        assert draft.extension.duration == 2
        assert service.grand_total(draft) == 1050
        assert draft.equipment.poste_radio is True
        assert draft.second_driver.nom == "Karim"

    def test_unknown_field(self, service):
        with pytest.raises(KeyError):
            service.apply_field_change(service.new_draft(), "kilometrage", 3)
        with pytest.raises(KeyError):
            service.apply_field_change(service.new_draft(), "garage.nom", "x")

    def test_unconvertible_value(self, service):
        with pytest.raises(FieldValidationError) as exc:
            service.apply_field_change(service.new_draft(), "pricePerDay", "cher")
        assert "pricePerDay" in exc.value.errors


class TestSubmit:
    def test_create_with_documents(self, service, pdf_file):
        draft = filled_draft(service)
        attachments = service.attachments_for(draft)
        attachments.add_files([pdf_file])

        saved = service.submit(draft, attachments)
        assert saved.id
        assert saved.contract_number == "Noc-00001"
        assert saved.total == 850
        assert [d.name for d in saved.documents] == ["permis.pdf"]
        assert not attachments.has_changes
        assert attachments.documents[0].url == saved.documents[0].url

    def test_invalid_draft_is_not_sent(self, service, store):
        draft = filled_draft(service)
        service.apply_field_change(draft, "advance", -1)
        with pytest.raises(FieldValidationError) as exc:
            service.submit(draft)
        assert "advance" in exc.value.errors
        assert store.list("contracts") == []

    def test_reversed_dates_block_submission(self, service):
        draft = filled_draft(service)
        service.apply_field_change(draft, "returnDate", "2024-12-30")
        with pytest.raises(FieldValidationError) as exc:
            service.submit(draft)
        assert "returnDate" in exc.value.errors

    def test_empty_second_driver_dropped(self, service, store):
        draft = filled_draft(service)
        service.apply_field_change(draft, "secondDriver.nom", "  ")
        saved = service.submit(draft)
        assert saved.second_driver is None
        assert store.get("contracts", saved.id)["secondDriver"] is None

    def test_edit_keeps_number_and_documents(self, service, pdf_file):
        draft = filled_draft(service)
        attachments = service.attachments_for(draft)
        attachments.add_files([pdf_file])
        saved = service.submit(draft, attachments)

        edit = service.edit_draft(saved)
        service.apply_field_change(edit, "discount", 0)
        updated = service.submit(edit, service.attachments_for(edit))
        assert updated.id == saved.id
        assert updated.contract_number == "Noc-00001"
        assert updated.total == 900
        assert len(updated.documents) == 1
        assert saved.total == 850

    def test_failed_save_leaves_draft_for_retry(self, tmp_path, pdf_file):
        class DownStore(LocalStore):
            def create(self, resource, payload, files=()):
                raise ApiError("Erreur réseau: refused")

        service = ContractService(DownStore(tmp_path))
        draft = filled_draft(service)
        attachments = service.attachments_for(draft)
        attachments.add_files([pdf_file])
        with pytest.raises(ApiError):
            service.submit(draft, attachments)
        assert draft.id is None
        assert len(attachments.staged_files) == 1

    def test_mark_returned(self, service):
        saved = service.submit(filled_draft(service))
        returned = service.mark_returned(saved)
        assert returned.status == "retournee"
        assert service.get_by_id(saved.id).status == "retournee"
        assert saved.status == "en_cours"


class TestRemoveDocument:
    def _saved_with_doc(self, service, pdf_file):
        draft = filled_draft(service)
        attachments = service.attachments_for(draft)
        attachments.add_files([pdf_file])
        return service.submit(draft, attachments)

    def test_persisted_document_removed_from_store(self, service, pdf_file):
        saved = self._saved_with_doc(service, pdf_file)
        attachments = service.attachments_for(saved)
        service.remove_document(saved, attachments, attachments.documents[0])
        assert attachments.documents == []
        assert attachments.pending_deletions == []
        assert service.get_by_id(saved.id).documents == []

    def test_new_document_removed_locally(self, service, store, pdf_file):
        saved = self._saved_with_doc(service, pdf_file)
        attachments = service.attachments_for(saved)
        (new_doc,) = attachments.add_files([pdf_file.model_copy(update={"ref": "local://x"})])
        service.remove_document(saved, attachments, new_doc)
        assert len(attachments.documents) == 1
        assert attachments.staged_files == []
        assert len(store.get("contracts", saved.id)["documents"]) == 1

    def test_failed_removal_restores_view(self, tmp_path, pdf_file):
        class RefusingStore(LocalStore):
            def remove_document(self, resource, entity_id, document_url):
                raise ApiError("Erreur API (500): disque plein", status_code=500)

        service = ContractService(RefusingStore(tmp_path))
        saved = self._saved_with_doc(service, pdf_file)
        attachments = service.attachments_for(saved)
        doc = attachments.documents[0]
        with pytest.raises(DocumentRemovalError):
            service.remove_document(saved, attachments, doc)
        assert [d.url for d in attachments.documents] == [doc.url]
        assert attachments.pending_deletions == []
        assert len(service.get_by_id(saved.id).documents) == 1


def test_list_skips_invalid_rows(service, store):
    service.submit(filled_draft(service))
    store._repo("contracts").add({"_id": "bad", "status": "perdu"})
    contracts = service.list_all()
    assert len(contracts) == 1
    assert service.list_by_client("c1")[0].id == contracts[0].id
