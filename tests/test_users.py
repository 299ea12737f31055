from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from userauth import users
from userauth.exceptions import DuplicateEmailError
from userauth.models import User


def test_insert_and_find(db):
    created = users.insert(db, "bob@example.com", "hash")

    found = users.find_by_email(db, "bob@example.com")

    assert found.id == created.id
    assert found.password_hash == "hash"
    assert found.has_pending_reset is False


def test_find_missing_returns_none(db):
    assert users.find_by_email(db, "nobody@example.com") is None


def test_email_lookup_is_case_sensitive(db):
    users.insert(db, "Bob@example.com", "hash")

    assert users.find_by_email(db, "bob@example.com") is None


def test_duplicate_insert_raises_and_keeps_one_row(db):
    users.insert(db, "bob@example.com", "hash")

    with pytest.raises(DuplicateEmailError) as exc_info:
        users.insert(db, "bob@example.com", "other")

    assert exc_info.value.email == "bob@example.com"
    assert db.execute(select(func.count(User.id))).scalar_one() == 1
    # session is usable again after the rollback
    assert users.find_by_email(db, "bob@example.com").password_hash == "hash"


def test_reset_token_pair_is_enforced(db):
    db.add(User(email="half@example.com", password_hash="hash", reset_token="tok"))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_reset_token_pair_both_present(db):
    user = User(
        email="reset@example.com",
        password_hash="hash",
        reset_token="tok",
        reset_token_expires=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    db.add(user)
    db.commit()

    assert users.find_by_email(db, "reset@example.com").has_pending_reset is True
