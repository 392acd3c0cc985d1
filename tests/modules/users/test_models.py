"""
Tests for the User table definition.
"""

from request_manager.modules.users.models import User


class TestUserTable:
    """The model declares what the digest migration creates."""

    def test_digest_hour_check_constraint(self):
        """digest_hour is limited to 0-23 in the database."""
        constraints = {c.name: c for c in User.__table__.constraints}

        assert "ck_users_digest_hour_range" in constraints
        assert str(constraints["ck_users_digest_hour_range"].sqltext) == (
            "digest_hour >= 0 AND digest_hour <= 23"
        )

    def test_partial_index_on_digest_enabled(self):
        """Candidate scan index covers only opted-in users."""
        indexes = {i.name: i for i in User.__table__.indexes}

        index = indexes["ix_users_digest_enabled"]
        assert [c.name for c in index.columns] == ["digest_enabled"]
        assert str(index.dialect_options["postgresql"]["where"]) == "digest_enabled = true"
