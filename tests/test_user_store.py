"""Unit tests for auth/store.py -- the user directory.

Covers:
- create() normalizes email and never stores the raw password
- find_by_email() is case-insensitive
- create() rejects a duplicate normalized email with DuplicateEmail
- concurrent create() calls for one email: exactly one wins
- create() past its deadline rolls back instead of committing
- shared-memory URLs get an explicit pool and raise no warnings
"""

import time
import warnings
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.pool import QueuePool

from auth.errors import DuplicateEmail
from auth.store import UserStore
from conftest import shared_memory_url


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


def test_create_normalizes_email_and_name(store):
    user = store.create("  Al  ", "  Al@X.com ", "$2b$04$hash")
    assert user.email == "al@x.com"
    assert user.name == "Al"
    assert user.id
    assert user.created_at


def test_find_by_email_is_case_insensitive(store):
    created = store.create("Al", "al@x.com", "$2b$04$hash")
    found = store.find_by_email("AL@X.COM")
    assert found is not None
    assert found.id == created.id
    assert found.hashed_password == "$2b$04$hash"


def test_find_by_email_missing_returns_none(store):
    assert store.find_by_email("nobody@x.com") is None


def test_get_by_id(store):
    created = store.create("Al", "al@x.com", "h")
    assert store.get_by_id(created.id).email == "al@x.com"
    assert store.get_by_id("does-not-exist") is None


def test_duplicate_email_any_case_rejected(store):
    store.create("Al", "E@x.com", "h1")
    with pytest.raises(DuplicateEmail):
        store.create("Other", "e@X.COM", "h2")
    assert store.count_users() == 1


def test_ids_are_unique(store):
    a = store.create("A", "a@x.com", "h")
    b = store.create("B", "b@x.com", "h")
    assert a.id != b.id


def test_ping(store):
    assert store.ping() is True


def test_concurrent_creates_only_one_wins(tmp_path):
    """Eight threads racing to create the same email: one success, seven DuplicateEmail."""
    store = UserStore(f"sqlite:///{tmp_path / 'race.db'}")

    def attempt(i: int) -> str:
        try:
            store.create(f"user{i}", "race@x.com", "h")
            return "ok"
        except DuplicateEmail:
            return "dup"

    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(8)))
        assert outcomes.count("ok") == 1
        assert outcomes.count("dup") == 7
        assert store.count_users() == 1
    finally:
        store.close()


def test_create_past_deadline_rolls_back(store):
    with pytest.raises(TimeoutError):
        store.create("Al", "al@x.com", "h", deadline=time.monotonic() - 1)
    assert store.find_by_email("al@x.com") is None
    assert store.count_users() == 0
    # Nothing was left behind, so the same email is still free.
    assert store.create("Al", "al@x.com", "h", deadline=time.monotonic() + 5).email == "al@x.com"


def test_shared_memory_store_is_pooled_without_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        store = UserStore(shared_memory_url("pool"))
        try:
            assert isinstance(store.engine.pool, QueuePool)
            store.create("Al", "al@x.com", "h")
            with ThreadPoolExecutor(max_workers=2) as pool:
                found = list(pool.map(store.find_by_email, ["al@x.com", "AL@x.com"]))
            assert all(user is not None for user in found)
        finally:
            store.close()
