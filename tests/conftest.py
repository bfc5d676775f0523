import os
import tempfile
import uuid
from datetime import date
from unittest.mock import patch

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SHARE_PASSWORD_ROUNDS"] = "4"
os.environ["DOCUMENT_UPLOAD_DIR"] = tempfile.mkdtemp(prefix="parafort-docs-")
os.environ["S3_ENDPOINT_URL"] = ""
os.environ["AI_ANALYSIS_URL"] = ""
os.environ["OTEL_EXPORTER_OTLP_ENDPOINT"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.api.deps import get_db  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.models.business import BusinessEntity  # noqa: E402
from app.models.person import Person  # noqa: E402
from app.schemas.document import DocumentCreate  # noqa: E402


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def published_events():
    """Domain events are recorded instead of being queued."""
    with patch("app.tasks.events.process_event.delay") as mock_delay:
        yield mock_delay


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_person(db_session, first_name: str, is_admin: bool = False) -> Person:
    p = Person(
        first_name=first_name,
        last_name="User",
        email=f"{first_name.lower()}-{uuid.uuid4().hex[:8]}@example.com",
        is_admin=is_admin,
    )
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


@pytest.fixture()
def person(db_session):
    return _make_person(db_session, "Test")


@pytest.fixture()
def other_person(db_session):
    return _make_person(db_session, "Other")


@pytest.fixture()
def admin_person(db_session):
    return _make_person(db_session, "Admin", is_admin=True)


@pytest.fixture()
def business(db_session, person):
    b = BusinessEntity(
        owner_id=person.id,
        name="Test Holdings LLC",
        entity_type="LLC",
        state="Alabama",
        filed_date=date(2025, 6, 10),
    )
    db_session.add(b)
    db_session.commit()
    db_session.refresh(b)
    return b


@pytest.fixture()
def make_document(db_session, person, tmp_path):
    """Write bytes to disk and register them as a document."""
    from app.services.document import documents

    def _make(
        content: bytes = b"%PDF-1.4 test invoice",
        name: str = "invoice-march.pdf",
        mime_type: str = "application/pdf",
        owner: Person | None = None,
        **kwargs,
    ):
        owner = owner or person
        path = tmp_path / f"{uuid.uuid4().hex[:8]}-{name}"
        path.write_bytes(content)
        payload = DocumentCreate(
            owner_id=owner.id,
            file_name=path.name,
            original_file_name=name,
            storage_path=str(path),
            file_size=len(content),
            mime_type=mime_type,
            document_type=kwargs.pop("document_type", "invoice"),
            service_type=kwargs.pop("service_type", "bookkeeping"),
            uploaded_by=kwargs.pop("uploaded_by", owner.id),
            **kwargs,
        )
        return documents.create(db_session, payload)

    return _make


@pytest.fixture()
def document(make_document):
    return make_document()


@pytest.fixture()
def client(db_session):
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(person):
    return {"X-Person-ID": str(person.id)}


@pytest.fixture()
def other_headers(other_person):
    return {"X-Person-ID": str(other_person.id)}
