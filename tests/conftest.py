"""
Shared fixtures: a fresh SQLite-backed pool with the parcel schema per test.
"""

import random

import pytest

from db.connection import close_pool, init_pool
from db.init_db import create_tables
from models.parcel import PARCEL_STATUS_REGISTERED, Parcel
from repositories.parcel_repo import ParcelRepository
from services.parcel_service import ParcelService

# Seeded so client ids are reproducible; owned here, not by the random module.
_client_ids = random.Random(20240101)


@pytest.fixture
def database(tmp_path):
    close_pool()
    init_pool(database_url=f"sqlite:///{tmp_path / 'tracker.db'}")
    create_tables()
    yield
    close_pool()


@pytest.fixture
def repo(database):
    return ParcelRepository()


@pytest.fixture
def service(repo):
    return ParcelService(repo)


@pytest.fixture
def client_id():
    return _client_ids.randint(1, 10_000_000)


@pytest.fixture
def make_parcel():
    def _make(client: int = 1000, address: str = "test") -> Parcel:
        return Parcel(
            client=client,
            status=PARCEL_STATUS_REGISTERED,
            address=address,
            created_at="2024-01-01T00:00:00Z",
        )

    return _make
