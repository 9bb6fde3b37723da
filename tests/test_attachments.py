import pytest

from carloc.errors import ApiError, DocumentRemovalError, FieldValidationError
from carloc.models.document import StagedFile
from carloc.services.attachments import AttachmentList


def urls(docs):
    return [d.url for d in docs]


def test_add_then_remove_restores_state(stored_docs, pdf_file):
    al = AttachmentList(stored_docs)
    before = urls(al.documents)

    added = al.add_files([pdf_file])
    assert added[0].is_new
    assert added[0].url == pdf_file.ref
    assert len(al.staged_files) == 1

    al.remove_document(added[0])
    assert urls(al.documents) == before
    assert al.staged_files == []
    assert al.pending_deletions == []
    assert not al.has_changes


def test_new_documents_are_not_in_existing_list(stored_docs, pdf_file):
    al = AttachmentList(stored_docs)
    al.add_files([pdf_file])
    existing = al.to_existing_list()
    assert [d["url"] for d in existing] == urls(stored_docs)
    assert all("isNew" not in d and "is_new" not in d for d in existing)


def test_staged_removal_and_rollback(stored_docs):
    al = AttachmentList(stored_docs)
    middle = al.documents[1]
    al.remove_document(middle)

    assert middle.url not in urls(al.documents)
    assert urls(al.pending_deletions) == [middle.url]
    assert middle.url not in [d["url"] for d in al.to_existing_list()]

    al.rollback(middle)
    assert urls(al.documents) == urls(stored_docs)
    assert al.pending_deletions == []


def test_rollback_all_keeps_order(stored_docs):
    al = AttachmentList(stored_docs)
    al.remove_document(al.documents[0])
    al.remove_document(al.documents[1])  # ancien troisième
    al.rollback_all()
    assert urls(al.documents) == urls(stored_docs)


def test_rollback_in_removal_order_restores_original_order(stored_docs):
    al = AttachmentList(stored_docs)
    a, b = al.documents[0], al.documents[1]
    al.remove_document(a)
    al.remove_document(b)
    al.rollback(a)
    al.rollback(b)
    assert urls(al.documents) == urls(stored_docs)


def test_rollback_after_added_file_keeps_new_at_end(stored_docs, scan_file):
    al = AttachmentList(stored_docs)
    al.add_files([scan_file])
    b = al.documents[1]
    al.remove_document(b)
    al.rollback(b)
    assert urls(al.documents) == urls(stored_docs) + [scan_file.ref]


def test_max_bytes_limit(scan_file):
    al = AttachmentList(max_bytes=4)
    with pytest.raises(FieldValidationError):
        al.add_files([scan_file])


def test_immediate_removal_success(stored_docs):
    al = AttachmentList(stored_docs)
    calls = []
    al.remove_document(al.documents[0], delete=calls.append)
    assert calls == ["uploads/documents-a.pdf"]
    assert al.pending_deletions == []
    assert "uploads/documents-a.pdf" not in urls(al.documents)


def test_failed_removal_restores_document(stored_docs):
    al = AttachmentList(stored_docs)
    target = al.documents[1]

    def failing(url):
        raise ApiError("Erreur API (500): boom", status_code=500)

    with pytest.raises(DocumentRemovalError) as exc:
        al.remove_document(target, delete=failing)

    assert exc.value.document_url == target.url
    assert exc.value.status_code == 500
    assert urls(al.documents) == urls(stored_docs)
    assert al.pending_deletions == []


def test_commit_deletions_stops_at_first_failure(stored_docs):
    al = AttachmentList(stored_docs)
    first, second = al.documents[0], al.documents[1]
    al.remove_document(first)
    al.remove_document(second)

    done = []

    def delete(url):
        if url == second.url:
            raise ApiError("refus")
        done.append(url)

    with pytest.raises(DocumentRemovalError):
        al.commit_deletions(delete)
    assert done == [first.url]
    assert second.url in urls(al.documents)
    assert al.pending_deletions == []


def test_remove_unknown_document(stored_docs):
    al = AttachmentList(stored_docs[:1])
    with pytest.raises(KeyError):
        al.remove_document(stored_docs[2])


class TestUploadFilter:
    def test_rejects_extension(self):
        al = AttachmentList()
        with pytest.raises(FieldValidationError) as exc:
            al.add_files([StagedFile(name="setup.exe", data=b"MZ")])
        assert "documents" in exc.value.errors
        assert al.documents == []
        assert al.staged_files == []

    def test_rejects_oversized_file(self):
        al = AttachmentList(max_bytes=2)
        with pytest.raises(FieldValidationError):
            al.add_files([StagedFile(name="scan.pdf", data=b"abc")])

    def test_batch_is_all_or_nothing(self, pdf_file):
        al = AttachmentList()
        with pytest.raises(FieldValidationError):
            al.add_files([pdf_file, StagedFile(name="virus.bat", data=b"x")])
        assert al.staged_files == []

    def test_content_type_guessed_from_name(self):
        al = AttachmentList()
        (doc,) = al.add_files([StagedFile(name="photo.PNG", data=b"\x89PNG")])
        assert doc.type == "image/png"
        assert doc.size == 4


def test_reset_from_clears_pending(stored_docs, pdf_file):
    al = AttachmentList(stored_docs)
    al.add_files([pdf_file])
    al.remove_document(al.documents[0])
    al.reset_from(stored_docs[1:])
    assert urls(al.documents) == urls(stored_docs[1:])
    assert not al.has_changes
