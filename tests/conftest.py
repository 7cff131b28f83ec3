"""
Shared test fixtures.

HTTP tests get a Flask app on in-memory SQLite with a FakeGateway in place of
Stripe. Each logged-in actor (owner, player, admin) gets its own test client
so cookies and CSRF tokens stay separate.
"""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.enums import RoleName
from models.user import User
from tests.mocks.gateway import FakeGateway
from tests.mocks.store import InMemoryStore
from utils.seed import get_role

PASSWORD = "courtside123"

# far enough ahead that nothing is in the past and no cancellation cutoff applies
PLAY_DATE = date.today() + timedelta(days=7)


# ── Helpers ────────────────────────────────────────────────────────────────


class ApiClient:
    """Test client that echoes the CSRF cookie back as a header on writes."""

    def __init__(self, client):
        self.client = client

    def _headers(self):
        cookie = self.client.get_cookie("csrf_token")
        return {"X-CSRF-Token": cookie.value} if cookie else {}

    def get(self, url, **kwargs):
        return self.client.get(url, **kwargs)

    def post(self, url, json=None, **kwargs):
        return self.client.post(url, json=json if json is not None else {}, headers=self._headers(), **kwargs)

    def patch(self, url, json=None):
        return self.client.patch(url, json=json or {}, headers=self._headers())

    def delete(self, url):
        return self.client.delete(url, headers=self._headers())


def login_as(app, email, role="PLAYER") -> ApiClient:
    api = ApiClient(app.test_client())
    resp = api.post("/auth/register", json={"email": email, "password": PASSWORD, "role": role})
    assert resp.status_code == 201, resp.get_json()
    resp = api.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return api


def promote_to_admin(app, email):
    with app.app_context():
        user = User.query.filter_by(email=email).first()
        user.roles.append(get_role(RoleName.ADMIN))
        db.session.commit()


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def app(gateway):
    app = create_app(TestConfig, payment_gateway=gateway)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def anon(app):
    return ApiClient(app.test_client())


@pytest.fixture()
def owner(app):
    return login_as(app, "owner@example.com", role="OWNER")


@pytest.fixture()
def player(app):
    return login_as(app, "player@example.com")


@pytest.fixture()
def other_player(app):
    return login_as(app, "player2@example.com")


@pytest.fixture()
def admin(app):
    api = login_as(app, "admin@example.com")
    promote_to_admin(app, "admin@example.com")
    return api


@pytest.fixture()
def venue(owner, admin):
    """An approved facility with one court open 06-23 at 450 per hour."""
    resp = owner.post("/facilities", json={"name": "Riverside Sports", "location": "Pune"})
    assert resp.status_code == 201, resp.get_json()
    facility_id = resp.get_json()["id"]

    resp = admin.post(f"/facilities/{facility_id}/verify", json={"status": "APPROVED"})
    assert resp.status_code == 200, resp.get_json()

    resp = owner.post(
        f"/facilities/{facility_id}/courts",
        json={
            "name": "Court A",
            "sport_type": "badminton",
            "price_per_hour": 450,
            "operating_start_hour": 6,
            "operating_end_hour": 23,
        },
    )
    assert resp.status_code == 201, resp.get_json()
    return {"facility_id": facility_id, "court_id": resp.get_json()["id"]}


@pytest.fixture()
def generated_day(owner, venue):
    resp = owner.post(
        f"/courts/{venue['court_id']}/time-slots/generate",
        json={"start_date": PLAY_DATE.isoformat(), "end_date": PLAY_DATE.isoformat()},
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


@pytest.fixture()
def store():
    """In-memory store with one facility and one court (06-23, 450)."""
    s = InMemoryStore()
    s.add_facility()
    s.add_court()
    return s
