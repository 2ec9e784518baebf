"""Unit tests for accounts/store.py -- role and user persistence.

Covers:
- role CRUD, including missing ids
- user CRUD and the two credential lookups the auth service depends on
- unique name enforcement (IntegrityError)
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import IntegrityError

from accounts.models import Role, User
from accounts.store import AccountStore


@pytest.fixture
def store():
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


class TestRoles:
    def test_create_and_get(self, store: AccountStore) -> None:
        role = store.create_role("admin")
        assert role.id is not None
        assert store.get_role(role.id) == Role(id=role.id, name="admin")

    def test_list_in_creation_order(self, store: AccountStore) -> None:
        store.create_role("admin")
        store.create_role("viewer")
        assert [r.name for r in store.list_roles()] == ["admin", "viewer"]

    def test_update(self, store: AccountStore) -> None:
        role = store.create_role("admin")
        assert store.update_role(role.id, "owner") == Role(id=role.id, name="owner")
        assert store.get_role(role.id).name == "owner"

    def test_update_missing_returns_none(self, store: AccountStore) -> None:
        assert store.update_role(999, "ghost") is None

    def test_delete(self, store: AccountStore) -> None:
        role = store.create_role("admin")
        assert store.delete_role(role.id) is True
        assert store.get_role(role.id) is None
        assert store.delete_role(role.id) is False

    def test_duplicate_name_rejected(self, store: AccountStore) -> None:
        store.create_role("admin")
        with pytest.raises(IntegrityError):
            store.create_role("admin")


class TestUsers:
    def test_create_and_find(self, store: AccountStore) -> None:
        user = store.create_user("alice", "$2b$04$hash")
        assert store.find_user_by_id(user.id) == User(id=user.id, name="alice", hashed_password="$2b$04$hash")
        assert store.find_user_by_name("alice").id == user.id

    def test_find_missing_returns_none(self, store: AccountStore) -> None:
        assert store.find_user_by_name("nobody") is None
        assert store.find_user_by_id(12345) is None

    def test_name_lookup_is_case_sensitive(self, store: AccountStore) -> None:
        store.create_user("alice", "h")
        assert store.find_user_by_name("Alice") is None

    def test_update_replaces_hash(self, store: AccountStore) -> None:
        user = store.create_user("alice", "old")
        updated = store.update_user(user.id, "alice2", "new")
        assert updated == User(id=user.id, name="alice2", hashed_password="new")
        assert store.find_user_by_name("alice") is None

    def test_update_missing_returns_none(self, store: AccountStore) -> None:
        assert store.update_user(999, "ghost", "h") is None

    def test_delete(self, store: AccountStore) -> None:
        user = store.create_user("alice", "h")
        assert store.delete_user(user.id) is True
        assert store.find_user_by_id(user.id) is None
        assert store.delete_user(user.id) is False

    def test_duplicate_name_rejected(self, store: AccountStore) -> None:
        store.create_user("alice", "h")
        with pytest.raises(IntegrityError):
            store.create_user("alice", "h2")

    def test_list(self, store: AccountStore) -> None:
        store.create_user("alice", "h")
        store.create_user("bob", "h")
        assert [u.name for u in store.list_users()] == ["alice", "bob"]


def test_ping(store: AccountStore) -> None:
    assert store.ping() is True


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_private_memory_db_is_shared_across_threads(url: str) -> None:
    """Route handlers run in a thread pool; every thread must see one database."""
    s = AccountStore(url)
    try:
        s.create_role("admin")
        with ThreadPoolExecutor(max_workers=1) as pool:
            names = pool.submit(lambda: [r.name for r in s.list_roles()]).result()
        assert names == ["admin"]
    finally:
        s.close()
