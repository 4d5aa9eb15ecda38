"""
Tests for UserService.
"""

import pytest

from docflow.users.service import (
    InvalidRoleError,
    UserAlreadyExistsError,
    UserNotFoundError,
    UserService,
)


@pytest.fixture
def users(db_session):
    return UserService(db_session)


class TestUserService:
    """Tests for account creation and role management."""

    def test_create_normalizes_email_and_defaults_to_viewer(self, users):
        user = users.create("  Alice@Example.COM ", "password1")

        assert user.email == "alice@example.com"
        assert user.role_names == ["viewer"]
        assert user.password_hash != "password1"

    def test_duplicate_email_rejected(self, users):
        users.create("bob@example.com", "password1")

        with pytest.raises(UserAlreadyExistsError):
            users.create("BOB@example.com", "password2")

    def test_create_with_invalid_role(self, users):
        with pytest.raises(InvalidRoleError):
            users.create("carol@example.com", "password1", roles=["superuser"])

    def test_update_roles_merges(self, users):
        user = users.create("dave@example.com", "password1")

        updated = users.update_roles(user.id, ["editor", "viewer", "editor"])

        assert updated.role_names == ["viewer", "editor"]
        assert updated.has_any_role("editor")

    def test_update_roles_unknown_user(self, users):
        with pytest.raises(UserNotFoundError):
            users.update_roles(999999, ["editor"])

    def test_update_roles_requires_a_role(self, users):
        user = users.create("erin@example.com", "password1")

        with pytest.raises(InvalidRoleError):
            users.update_roles(user.id, [])

    def test_find_all_ordered_by_id(self, users):
        first = users.create("f1@example.com", "password1")
        second = users.create("f2@example.com", "password1")

        assert [user.id for user in users.find_all()] == [first.id, second.id]
