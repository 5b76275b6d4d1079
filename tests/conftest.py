from __future__ import annotations

import os
import sys
from pathlib import Path

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

# Make the shared package and the service's app package importable without installing
ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "services" / "directory-service"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault("BCRYPT_ROUNDS", "4")

from shared.utils import build_password_context  # noqa: E402
from app.accounts import AccountLifecycleCoordinator  # noqa: E402
from app.credentials import CredentialStore  # noqa: E402
from app.freelancers import ProfileRepository  # noqa: E402
from app.reviews import ReviewLedger  # noqa: E402
from app.surveys import SurveyRecorder  # noqa: E402
from app.main import app, init_services  # noqa: E402


@pytest.fixture()
def hasher():
    """bcrypt at its minimum cost keeps the suite fast."""
    return build_password_context(rounds=4)


@pytest.fixture()
def db():
    return AsyncMongoMockClient()["wedding_directory_test"]


@pytest.fixture()
async def credentials(db, hasher):
    store = CredentialStore(db, hasher=hasher)
    await store.ensure_indexes()
    return store


@pytest.fixture()
async def profiles(db, credentials):
    repo = ProfileRepository(db, credentials)
    await repo.ensure_indexes()
    return repo


@pytest.fixture()
async def reviews(db):
    ledger = ReviewLedger(db)
    await ledger.ensure_indexes()
    return ledger


@pytest.fixture()
def surveys(db):
    return SurveyRecorder(db)


@pytest.fixture()
def accounts(credentials, profiles, reviews, surveys):
    return AccountLifecycleCoordinator(credentials, profiles, reviews, surveys)


@pytest.fixture()
def profile_data():
    """A complete profile as the repositories receive it (snake_case)."""
    return {
        "type": "photographer",
        "specialized": ["portrait", "candid"],
        "rate": 150,
        "rate_unit": "hour",
        "name": "Bob Lens",
        "bio": "Ten years of beach and garden weddings",
        "show_case": "https://example.com/showcase/bob",
        "profile_image": "https://example.com/img/bob.png",
        "social_media": {"instagram": "https://instagram.com/boblens"},
        "contact": {"email": "bob@example.com", "mobile": "91234567"},
        "portfolios": [
            {"title": "Sunset vows", "description": "Beach ceremony", "url": "https://example.com/p/1"},
        ],
    }


@pytest.fixture()
def profile_payload():
    """A complete profile as an HTTP client sends it (camelCase)."""
    return {
        "type": "photographer",
        "specialized": ["portrait", "candid"],
        "rate": 150,
        "rateUnit": "hour",
        "name": "Bob Lens",
        "bio": "Ten years of beach and garden weddings",
        "showCase": "https://example.com/showcase/bob",
        "socialMedia": {"instagram": "https://instagram.com/boblens"},
        "contact": {"email": "bob@example.com"},
        "portfolios": [
            {"title": "Sunset vows", "description": "Beach ceremony", "url": "https://example.com/p/1"},
        ],
    }


@pytest.fixture()
async def api(hasher):
    await init_services(app, AsyncMongoMockClient(), hasher=hasher)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://directory.test") as client:
        yield client
