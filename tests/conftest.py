"""Pytest configuration and shared fixtures."""
import pytest

from fleetlog import create_app
from fleetlog.accounts import add_user, add_vehicle, get_user
from fleetlog.models import DRIVER
from fleetlog.store import LocalJsonStore, get_store


def _config(tmp_path, mode):
    cfg = {
        "TESTING": True,
        "SECRET_KEY": "test",
        "LOCAL_STORE_PATH": str(tmp_path / "fleetlog.json"),
        "SQLALCHEMY_DATABASE_URI": None,
    }
    if mode == "remote":
        cfg["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{tmp_path / 'fleetlog.db'}"
    return cfg


@pytest.fixture(params=["local", "remote"])
def app(request, tmp_path):
    app = create_app(_config(tmp_path, request.param))
    with app.app_context():
        yield app


@pytest.fixture
def local_app(tmp_path):
    app = create_app(_config(tmp_path, "local"))
    with app.app_context():
        yield app


@pytest.fixture
def store(app):
    return get_store()


@pytest.fixture
def local_store(tmp_path):
    return LocalJsonStore(tmp_path / "bare.json")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(store):
    return get_user(store, store.find("users", role="HEAD_DRIVER")[0]["id"])


@pytest.fixture
def driver(store):
    return add_user(store, "Ali Bakar", "ali", "secret", role=DRIVER)


@pytest.fixture
def vehicle(store):
    return add_vehicle(store, "wxy 1234", "Toyota Hiace", "Van")


@pytest.fixture
def clock(monkeypatch):
    """Controls the time seen by the trip lifecycle, in epoch ms."""

    class Clock:
        now = 1_760_000_000_000

        def advance(self, minutes=0, seconds=0):
            self.now += minutes * 60_000 + seconds * 1000

    c = Clock()
    monkeypatch.setattr("fleetlog.lifecycle.now_ms", lambda: c.now)
    return c
