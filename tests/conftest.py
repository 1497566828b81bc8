"""Pytest configuration and shared fixtures."""

import os

# Keep the module-level app off the local SQLite file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from partybar.catalog import DrinkCatalog
from partybar.clock import FixedClock
from partybar.coins import CoinCodeService
from partybar.descriptions import GeminiDescriptionGenerator
from partybar.gate import SessionGate
from partybar.main import create_app
from partybar.orders import OrderService
from partybar.repository import Repository
from partybar.schemas import Drink
from partybar.sql_store import SqlRecordStore
from partybar.store import MemoryStore

T0 = 1_760_000_000_000
HOUR_MS = 3_600_000


def sqlite_store() -> SqlRecordStore:
    """A SqlRecordStore on a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return SqlRecordStore(engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repo(store) -> Repository:
    return Repository(store)


@pytest.fixture
def gate(repo, clock) -> SessionGate:
    return SessionGate(
        repo,
        clock,
        starting_coins=3,
        event_duration_hours=5,
        kitchen_login_name="cozinha",
    )


@pytest.fixture
def coins(repo) -> CoinCodeService:
    return CoinCodeService(repo, code_length=6, write_attempts=3)


@pytest.fixture
def orders(repo, clock) -> OrderService:
    return OrderService(repo, clock, write_attempts=3)


@pytest.fixture
def catalog(repo) -> DrinkCatalog:
    return DrinkCatalog(repo)


@pytest.fixture
def event(gate, repo):
    """An event created by the first admin login at T0, lasting 5 hours."""
    gate.login_staff("Admin", event_name="Launch Party", location="Rooftop")
    return repo.get_event_config()


@pytest.fixture
def guest_session(gate, event):
    """A guest logged into the shared current-user slot."""
    return gate.login_guest("Ana")


@pytest.fixture
def drink(repo) -> Drink:
    drink = Drink(id="d1", name="Neon Sunset", ingredients=["Vodka", "Grenadine"], image_url="img.png", cost=1)
    repo.save_drink(drink)
    return drink


@pytest.fixture
def app(store, clock):
    return create_app(
        store=store,
        clock=clock,
        generator=GeminiDescriptionGenerator(api_key=""),
        seed_drinks=False,
    )


@pytest.fixture
def api_client(app) -> TestClient:
    return TestClient(app)


def login(api_client: TestClient, path: str, **payload) -> dict:
    response = api_client.post(path, json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return {"X-Session-Key": body["session_key"]}


@pytest.fixture
def admin_headers(api_client) -> dict:
    return login(api_client, "/api/login/staff", name="Admin", event_name="Launch Party")


@pytest.fixture
def kitchen_headers(api_client, admin_headers) -> dict:
    return login(api_client, "/api/login/staff", name="Cozinha")


@pytest.fixture
def guest_headers(api_client, admin_headers) -> dict:
    return login(api_client, "/api/login/guest", name="Ana")
