import os
import sys
from typing import Callable, Iterator

# Ensure project root is on sys.path when pytest runs from a different CWD.
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Never touch a real database file or Redis from the test suite
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
import requests  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from country_api import crud, models  # noqa: E402
from country_api.config import settings  # noqa: E402
from country_api.database import Base, get_db  # noqa: E402
from country_api.main import app  # noqa: E402

COUNTRIES_URL_MARKER = "restcountries"
RATES_URL_MARKER = "open.er-api"


class FixedRandom:
    """Stands in for random.Random; always draws ``value``."""

    def __init__(self, value: int = 1500):
        self.value = value
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self.value


class DummyResponse:
    def __init__(self, data, status_code=200):
        self._data = data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


@pytest.fixture
def session_factory():
    # StaticPool keeps a single in-memory DB across threads/requests
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def cache_dir(tmp_path, monkeypatch):
    path = tmp_path / "cache"
    monkeypatch.setattr(settings, "CACHE_DIR", path)
    return path


@pytest.fixture(autouse=True)
def _reset_refresh_marker():
    crud.reset_last_refresh()
    yield
    crud.reset_last_refresh()


def override_get_db(SessionLocal) -> Callable[[], Iterator]:
    def _get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def client(session_factory):
    app.dependency_overrides[get_db] = override_get_db(session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fake_sources(monkeypatch):
    """Route requests.get to canned country/rate payloads.

    ``rates`` is the rate mapping; ``rates_body`` overrides the whole exchange
    response. Pass a requests exception instance as a payload to simulate a
    network failure.
    """
    calls = []

    def _install(countries, rates, rates_body=None, rates_status=200, countries_status=200):
        if rates_body is None:
            rates_body = rates
            if isinstance(rates, dict):
                rates_body = {"result": "success", "base_code": "USD", "rates": rates}

        def fake_get(url, timeout=None):
            calls.append(url)
            if COUNTRIES_URL_MARKER in url:
                payload, status = countries, countries_status
            elif RATES_URL_MARKER in url:
                payload, status = rates_body, rates_status
            else:
                raise RuntimeError(f"Unexpected URL {url}")
            if isinstance(payload, requests.RequestException):
                raise payload
            return DummyResponse(payload, status)

        monkeypatch.setattr("requests.get", fake_get)
        return calls

    return _install


def make_country(id, name, gdp=0.0, region=None, currency_code=None, exchange_rate=None, population=100):
    return models.Country(
        id=id,
        name=name,
        capital=f"{name} City",
        region=region,
        population=population,
        currency_code=currency_code,
        exchange_rate=exchange_rate,
        estimated_gdp=gdp,
        flag_url=f"https://flags.example/{name.lower()}.svg",
        last_refreshed_at="2025-01-01T00:00:00Z",
    )


SCENARIO_COUNTRIES = [
    {"name": "A", "capital": "A City", "region": "Europe", "population": 1000,
     "flag": "https://flags.example/a.svg", "currencies": [{"code": "XAA", "name": "A dollar"}]},
    {"name": "B", "capital": "B City", "region": "Africa", "population": 500,
     "flag": "https://flags.example/b.svg", "currencies": []},
    {"name": "C", "capital": "C City", "region": "europe", "population": 2000,
     "flag": "https://flags.example/c.svg", "currencies": [{"code": "XBB", "name": "B pound"}]},
]
SCENARIO_RATES = {"XAA": 2.0}
