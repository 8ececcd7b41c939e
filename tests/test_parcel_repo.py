"""
Tests for ParcelRepository against a throwaway SQLite database.
"""

import sqlite3
import threading

import pytest

from db.connection import get_connection, release_connection
from models.parcel import PARCEL_STATUS_DELIVERED, PARCEL_STATUS_SENT
from repositories.errors import ParcelNotFoundError, ParcelStoreError, StoreError


def test_add_get_delete(repo, make_parcel):
    parcel = make_parcel()

    number = repo.add(parcel)
    assert number

    stored = repo.get(number)
    parcel.number = number
    assert stored == parcel

    assert repo.delete(number) is True
    with pytest.raises(ParcelNotFoundError) as exc_info:
        repo.get(number)
    assert exc_info.value.number == number


def test_get_missing_is_not_a_store_error(repo):
    with pytest.raises(ParcelNotFoundError) as exc_info:
        repo.get(424242)
    assert not isinstance(exc_info.value, StoreError)
    assert isinstance(exc_info.value, LookupError)


def test_set_address_while_registered(repo, make_parcel):
    number = repo.add(make_parcel())

    assert repo.set_address(number, "new test address") is True
    assert repo.get(number).address == "new test address"


def test_set_address_blocked_once_sent(repo, make_parcel):
    number = repo.add(make_parcel(client=1000, address="test"))
    repo.set_status(number, PARCEL_STATUS_SENT)

    assert repo.set_address(number, "new") is False
    assert repo.get(number).address == "test"


def test_set_address_of_missing_parcel_is_silent(repo):
    assert repo.set_address(424242, "nowhere") is False


def test_set_status(repo, make_parcel):
    number = repo.add(make_parcel())

    assert repo.set_status(number, PARCEL_STATUS_SENT) is True
    assert repo.set_status(number, PARCEL_STATUS_DELIVERED) is True
    assert repo.get(number).status == PARCEL_STATUS_DELIVERED


def test_set_status_accepts_any_string(repo, make_parcel):
    number = repo.add(make_parcel())

    repo.set_status(number, "lost")
    assert repo.get(number).status == "lost"


def test_set_status_of_missing_parcel_is_silent(repo):
    assert repo.set_status(424242, PARCEL_STATUS_SENT) is False


def test_delete_blocked_once_sent(repo, make_parcel):
    number = repo.add(make_parcel())
    repo.set_status(number, PARCEL_STATUS_SENT)

    assert repo.delete(number) is False
    assert repo.get(number).status == PARCEL_STATUS_SENT


def test_delete_missing_parcel_is_silent(repo):
    assert repo.delete(424242) is False


def test_numbers_are_not_reused(repo, make_parcel):
    first = repo.add(make_parcel())
    repo.delete(first)

    second = repo.add(make_parcel())
    assert second > first


def test_get_by_client(repo, make_parcel, client_id):
    parcels = [make_parcel(client=client_id) for _ in range(3)]
    expected = {}
    for parcel in parcels:
        parcel.number = repo.add(parcel)
        expected[parcel.number] = parcel
        # Another client's parcel in between must not leak into the result.
        repo.add(make_parcel(client=client_id + 1))

    stored = repo.get_by_client(client_id)

    assert len(stored) == len(expected)
    for parcel in stored:
        assert parcel == expected[parcel.number]


def test_get_by_client_without_parcels(repo, client_id):
    assert repo.get_by_client(client_id) == []


def test_add_failure_surfaces_as_store_error(repo, make_parcel):
    parcel = make_parcel()
    parcel.address = None  # violates NOT NULL

    with pytest.raises(StoreError) as exc_info:
        repo.add(parcel)
    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
    assert isinstance(exc_info.value, ParcelStoreError)


@pytest.mark.parametrize(
    "row",
    [
        ("abc", 1000, "registered", "test", "2024-01-01T00:00:00Z"),
        (1, 1000, "registered"),
        (None, 1000, "registered", "test", "2024-01-01T00:00:00Z"),
    ],
)
def test_malformed_row_raises_store_error(repo, row):
    with pytest.raises(StoreError):
        repo._row_to_parcel(row)


def test_listing_aborts_on_malformed_row(repo, make_parcel, monkeypatch):
    repo.add(make_parcel(client=77))
    repo.add(make_parcel(client=77))

    conn = get_connection()
    real_cursor = conn.cursor

    class _TruncatingCursor:
        def __init__(self):
            self._cur = real_cursor()

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return self._cur.__exit__(*exc)

        def execute(self, sql, params=()):
            self._cur.execute(sql, params)

        def fetchall(self):
            rows = self._cur.fetchall()
            return rows[:1] + [rows[1][:2]]

    release_connection(conn)
    monkeypatch.setattr(conn, "cursor", _TruncatingCursor)

    with pytest.raises(StoreError):
        repo.get_by_client(77)


def _drop_parcel_table():
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("DROP TABLE parcel;")
        conn.commit()
    finally:
        release_connection(conn)


@pytest.mark.parametrize(
    "call",
    [
        lambda repo: repo.get(1),
        lambda repo: repo.get_by_client(1000),
        lambda repo: repo.set_status(1, PARCEL_STATUS_SENT),
        lambda repo: repo.set_address(1, "new"),
        lambda repo: repo.delete(1),
    ],
    ids=["get", "get_by_client", "set_status", "set_address", "delete"],
)
def test_driver_failure_surfaces_as_store_error(repo, call):
    _drop_parcel_table()

    with pytest.raises(StoreError) as exc_info:
        call(repo)
    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

    # The connection went back to the pool and is usable again.
    conn = get_connection()
    release_connection(conn)


def test_failed_add_keeps_concurrent_uncommitted_insert(repo, make_parcel):
    inserted = threading.Event()
    commit_now = threading.Event()
    errors = []

    def writer():
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO parcel (client, status, address, created_at) VALUES (%s, %s, %s, %s);",
                    (555, "registered", "test", "2024-01-01T00:00:00Z"),
                )
            inserted.set()
            commit_now.wait(timeout=5)
            conn.commit()
        finally:
            release_connection(conn)

    def failing_add():
        parcel = make_parcel(client=556)
        parcel.address = None
        try:
            repo.add(parcel)
        except StoreError as e:
            errors.append(e)

    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    assert inserted.wait(timeout=5)

    adder_thread = threading.Thread(target=failing_add)
    adder_thread.start()
    adder_thread.join(timeout=0.2)
    # The failing add waits until the writer hands the connection back.
    assert adder_thread.is_alive()

    commit_now.set()
    writer_thread.join(timeout=5)
    adder_thread.join(timeout=5)

    assert len(errors) == 1
    assert len(repo.get_by_client(555)) == 1
