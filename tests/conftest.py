from datetime import date

import pytest

from carloc.models.contract import Contract
from carloc.models.document import Document, StagedFile
from carloc.storage.local_store import LocalStore


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path)


@pytest.fixture
def pdf_file():
    return StagedFile(name="permis.pdf", content_type="application/pdf", data=b"%PDF-1.4 test")


@pytest.fixture
def stored_docs():
    return [
        Document(name="cin.pdf", type="application/pdf", size=120, url="uploads/documents-a.pdf"),
        Document(name="carte-grise.png", type="image/png", size=300, url="uploads/documents-b.png"),
        Document(name="assurance.pdf", type="application/pdf", size=90, url="uploads/documents-c.pdf"),
    ]


@pytest.fixture
def valid_contract():
    return Contract(
        client_id="c1",
        vehicle_id="v1",
        contract_date=date(2025, 1, 1),
        departure_date=date(2025, 1, 1),
        return_date=date(2025, 1, 4),
        matricule="12345-A-6",
        duration=3,
        price_per_day=300,
        discount=50,
        total=850,
        advance=200,
        remaining=650,
    )


@pytest.fixture
def scan_file(tmp_path):
    path = tmp_path / "scan-carte-grise.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n scan")
    return StagedFile.from_path(path)
