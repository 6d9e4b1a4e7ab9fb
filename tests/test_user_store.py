"""
tests/test_user_store.py -- Unit tests for auth/store.py (UserStore and admin seeding).

Covers:
  - create_user / find_user_by_username round trip, exact-match lookup
  - duplicate username -> ConflictError, first row untouched
  - seed_default_admin: creates once, idempotent on restart, tolerates a
    concurrent seeder, never overwrites an existing admin password
"""

from __future__ import annotations

import logging

import pytest

from auth.passwords import PasswordHasher
from auth.store import UserStore, seed_default_admin
from core.errors import ConflictError


class TestUserStore:
    def test_create_then_find(self, user_store: UserStore) -> None:
        created = user_store.create_user("clerk", "hash-value", "clerk")
        assert created.id is not None
        assert created.created_at

        found = user_store.find_user_by_username("clerk")
        assert found is not None
        assert found.id == created.id
        assert found.password_hash == "hash-value"
        assert found.role == "clerk"

    def test_unknown_username_returns_none(self, user_store: UserStore) -> None:
        assert user_store.find_user_by_username("nobody") is None

    def test_lookup_is_exact_match(self, user_store: UserStore) -> None:
        user_store.create_user("clerk", "hash-value", "clerk")
        assert user_store.find_user_by_username("Clerk") is None
        assert user_store.find_user_by_username("clerk ") is None

    def test_duplicate_username_raises_conflict(self, user_store: UserStore) -> None:
        user_store.create_user("clerk", "first-hash", "clerk")
        with pytest.raises(ConflictError):
            user_store.create_user("clerk", "second-hash", "admin")
        # The first account is unchanged.
        assert user_store.find_user_by_username("clerk").password_hash == "first-hash"
        assert user_store.count_users() == 1

    def test_count_users(self, user_store: UserStore) -> None:
        assert user_store.count_users() == 0
        user_store.create_user("a", "h", "clerk")
        user_store.create_user("b", "h", "clerk")
        assert user_store.count_users() == 2


class TestSeedDefaultAdmin:
    def test_first_seed_creates_admin(self, user_store: UserStore, hasher: PasswordHasher) -> None:
        assert seed_default_admin(user_store, hasher) is True
        admin = user_store.find_user_by_username("admin")
        assert admin is not None
        assert admin.role == "admin"
        assert hasher.verify("adminpass", admin.password_hash)

    def test_second_seed_is_a_no_op(self, user_store: UserStore, hasher: PasswordHasher) -> None:
        seed_default_admin(user_store, hasher)
        assert seed_default_admin(user_store, hasher) is False
        assert user_store.count_users() == 1

    def test_existing_admin_password_is_not_reset(self, user_store: UserStore, hasher: PasswordHasher) -> None:
        user_store.create_user("admin", hasher.hash("changed-later"), "admin")
        assert seed_default_admin(user_store, hasher) is False
        admin = user_store.find_user_by_username("admin")
        assert hasher.verify("changed-later", admin.password_hash)
        assert not hasher.verify("adminpass", admin.password_hash)

    def test_concurrent_seeder_is_tolerated(self, user_store: UserStore, hasher: PasswordHasher, monkeypatch) -> None:
        """Another process inserted the admin between our lookup and our insert."""
        user_store.create_user("admin", hasher.hash("adminpass"), "admin")
        monkeypatch.setattr(user_store, "find_user_by_username", lambda username: None)
        assert seed_default_admin(user_store, hasher) is False
        assert user_store.count_users() == 1

    def test_custom_credentials(self, user_store: UserStore, hasher: PasswordHasher) -> None:
        assert seed_default_admin(user_store, hasher, username="root", password="s3cret-value") is True
        root = user_store.find_user_by_username("root")
        assert hasher.verify("s3cret-value", root.password_hash)
        assert user_store.find_user_by_username("admin") is None

    def test_long_default_password(self, user_store: UserStore, hasher: PasswordHasher) -> None:
        password = "q" * 100
        assert seed_default_admin(user_store, hasher, password=password) is True
        assert hasher.verify(password, user_store.find_user_by_username("admin").password_hash)

    def test_default_password_logs_warning(self, user_store: UserStore, hasher: PasswordHasher, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="pickuplog.auth"):
            seed_default_admin(user_store, hasher)
        assert any("default password" in r.getMessage() for r in caplog.records)
