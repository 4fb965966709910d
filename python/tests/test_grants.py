"""Tests for the grant store.

Tests cover:
- Ownership predicate, including a missing track
- Grant insert outcomes (new, duplicate, unknown grantee)
- Revoke reporting the number of rows removed
"""

import pytest
from sqlalchemy.orm import Session

from audioshare.stores import grants
from audioshare.stores.errors import ConstraintViolation, DuplicateGrant, RecordNotFound
from tests.factories import create_test_grant, create_test_track, create_test_user, grantee_ids


@pytest.fixture
def owner(db_session: Session) -> int:
    return create_test_user(db_session, name="Owner")


@pytest.fixture
def track(db_session: Session, owner: int) -> int:
    return create_test_track(db_session, owner)


class TestIsOwner:
    def test_owner(self, db_session: Session, owner: int, track: int):
        assert grants.is_owner(db_session, track, owner) is True

    def test_not_owner(self, db_session: Session, track: int):
        other = create_test_user(db_session)
        assert grants.is_owner(db_session, track, other) is False

    def test_missing_track(self, db_session: Session, owner: int):
        with pytest.raises(RecordNotFound):
            grants.is_owner(db_session, 999_999, owner)


class TestAddGrant:
    def test_adds_grant(self, db_session: Session, track: int):
        grantee = create_test_user(db_session)

        grants.add_grant(db_session, track, grantee)

        assert grantee_ids(db_session, track) == {grantee}

    def test_duplicate_grant(self, db_session: Session, track: int):
        grantee = create_test_user(db_session)
        create_test_grant(db_session, track, grantee)

        with pytest.raises(DuplicateGrant):
            grants.add_grant(db_session, track, grantee)

        assert grantee_ids(db_session, track) == {grantee}

    def test_unknown_grantee(self, db_session: Session, track: int):
        with pytest.raises(ConstraintViolation) as exc_info:
            grants.add_grant(db_session, track, 999_999)

        assert not isinstance(exc_info.value, DuplicateGrant)
        assert grantee_ids(db_session, track) == set()

    def test_session_usable_after_rejection(self, db_session: Session, track: int):
        grantee = create_test_user(db_session)
        with pytest.raises(ConstraintViolation):
            grants.add_grant(db_session, track, 999_999)

        grants.add_grant(db_session, track, grantee)

        assert grantee_ids(db_session, track) == {grantee}


class TestRevokeGrant:
    def test_removes_existing_grant(self, db_session: Session, track: int):
        grantee = create_test_user(db_session)
        create_test_grant(db_session, track, grantee)

        assert grants.revoke_grant(db_session, track, grantee) == 1
        assert grantee_ids(db_session, track) == set()

    def test_missing_grant_removes_nothing(self, db_session: Session, track: int):
        grantee = create_test_user(db_session)

        assert grants.revoke_grant(db_session, track, grantee) == 0

    def test_only_named_pair_removed(self, db_session: Session, track: int):
        keep = create_test_user(db_session)
        drop = create_test_user(db_session)
        create_test_grant(db_session, track, keep)
        create_test_grant(db_session, track, drop)

        grants.revoke_grant(db_session, track, drop)

        assert grantee_ids(db_session, track) == {keep}
