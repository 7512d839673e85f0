# This project was developed with assistance from AI tools.
"""Shared fixtures: a throwaway SQLite database, a generated template, and a
complete visitor form.

Service tests run against a real (file-backed) aiosqlite database so that
the guarded UPDATE statements and concurrent step saves are exercised for
real. Storage is always a mock; nothing here talks to S3.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import fitz  # pymupdf
import httpx
import pytest
import pytest_asyncio
from db import Base, get_db
from db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.middleware.auth import get_current_user
from src.schemas.auth import UserContext
from src.services.clearance_pdf import FIELD_MAP
from src.services.storage import StorageService, StorageUploadError, get_storage_service
from src.services.template import StaticTemplate, get_template_source
from src.services.validation import _step_keys

TODAY = date(2025, 6, 1)

CHECKBOX_TARGETS = {
    "UsCitizen",
    "VisitedInmate",
    "FormerInmate",
    "RestrictedAccess",
    "FelonyConviction",
    "OnProbationParole",
    "PendingCharges",
}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def applicant() -> UserContext:
    return UserContext(user_id="visitor-1", role=UserRole.APPLICANT, email="jane@example.org")


@pytest.fixture
def other_applicant() -> UserContext:
    return UserContext(user_id="visitor-2", role=UserRole.APPLICANT, email="sam@example.org")


@pytest.fixture
def admin_user() -> UserContext:
    return UserContext(user_id="admin-1", role=UserRole.ADMIN, email="admin@example.org")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so separate sessions see each other's commits."""
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'clearance.db'}")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


# ---------------------------------------------------------------------------
# Template, signature and storage
# ---------------------------------------------------------------------------


def build_template(targets=None, pages: int = 1) -> bytes:
    """A fillable PDF with one widget per target name (all on the first page)."""
    names = [m.target for m in FIELD_MAP] if targets is None else list(targets)
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page(width=612, height=792)
    page = doc[0]
    for index, name in enumerate(names):
        widget = fitz.Widget()
        widget.field_name = name
        top = 330 + (index % 28) * 16
        left = 72 if index < 28 else 320
        if name in CHECKBOX_TARGETS:
            widget.field_type = fitz.PDF_WIDGET_TYPE_CHECKBOX
            widget.rect = fitz.Rect(left, top, left + 12, top + 12)
        else:
            widget.field_type = fitz.PDF_WIDGET_TYPE_TEXT
            widget.rect = fitz.Rect(left, top, left + 220, top + 14)
        page.add_widget(widget)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(scope="session")
def template_bytes() -> bytes:
    return build_template()


@pytest.fixture
def make_template():
    return build_template


@pytest.fixture
def template(template_bytes) -> StaticTemplate:
    return StaticTemplate(template_bytes)


@pytest.fixture(scope="session")
def signature_uri() -> str:
    """A small PNG signature as the wizard's canvas would send it."""
    import base64

    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, 40, 12), False)
    pix.set_rect(pix.irect, (20, 20, 20))
    return "data:image/png;base64," + base64.b64encode(pix.tobytes("png")).decode()


@pytest.fixture
def mock_storage() -> MagicMock:
    """Storage double that records uploads and returns the object key."""
    storage = MagicMock(spec=StorageService)
    storage.build_object_key.side_effect = StorageService.build_object_key
    storage.upload_file = AsyncMock(side_effect=lambda data, key, content_type: key)
    return storage


@pytest.fixture
def failing_storage() -> MagicMock:
    storage = MagicMock(spec=StorageService)
    storage.build_object_key.side_effect = StorageService.build_object_key
    storage.upload_file = AsyncMock(side_effect=StorageUploadError("S3 unavailable"))
    return storage


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


@pytest.fixture
def personal_step() -> dict:
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "dateOfBirth": "01-15-1990",
        "gender": "female",
    }


@pytest.fixture
def complete_form(personal_step, signature_uri) -> dict:
    """Every field of a valid driver's-license application, in wire format."""
    return {
        **personal_step,
        "otherNames": "",
        # contact
        "email": "jane@example.org",
        "phoneNumber": "(415) 555-0134",
        "companyOrOrganization": "Bay Area Reentry Coalition",
        "purposeOfVisit": "Facilitate a restorative justice workshop",
        "visitDate": "07-15-2025",
        # experience
        "engagedDirectly": "volunteer",
        "perceptions": "I expect a structured and respectful environment.",
        "expectations": "To learn how the program supports rehabilitation.",
        "justiceReformBefore": "limited",
        "interestsMost": "Education programs and family reunification work.",
        "reformFuture": "considering",
        "additionalNotes": "",
        # rules
        "rulesColor": "Black",
        "rulesPhonePolicy": "Leave in car / check at East Gate",
        "rulesShareContact": "Politely decline + ask Kai/Escort",
        "rulesWrittenMaterials": "Materials related to SkunkWorks with approval",
        "acknowledgmentAgreement": True,
        # security
        "governmentIdType": "driver_license",
        "governmentIdNumber": "D1234567",
        "governmentIdNumberConfirm": "d1234567",
        "idState": "CA",
        "idExpiration": "12-31-2030",
        "ssnMethod": "direct",
        "ssnFull": "123-45-6789",
        "ssnFullConfirm": "123456789",
        "isUsCitizen": True,
        "formerInmate": "no",
        "onParole": "no",
        "visitedInmate": "no",
        "restrictedAccess": "no",
        "felonyConviction": "no",
        "pendingCharges": "no",
        "confirmAccuracy": True,
        "digitalSignature": signature_uri,
        "consentToDataUse": True,
    }


@pytest.fixture
def step_payload():
    """Factory: the slice of a form a given wizard step would PATCH."""

    def _slice(form: dict, step: str) -> dict:
        return {key: form[key] for key in _step_keys(step) if key in form}

    return _slice


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client_factory(session_factory, mock_storage, template):
    """Factory: an AsyncClient on the real app acting as ``user``.

    Overrides are app-wide, so building a client for a second user switches
    the identity of every client built before it.
    """
    from src.main import app

    async def _get_db():
        async with session_factory() as db_session:
            yield db_session

    def _make(user: UserContext, storage=None) -> httpx.AsyncClient:
        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_storage_service] = lambda: storage or mock_storage
        app.dependency_overrides[get_template_source] = lambda: template
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make
    app.dependency_overrides.clear()
