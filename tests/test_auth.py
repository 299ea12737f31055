from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update

from userauth import auth, users
from userauth.models import Session as SessionModel


# ============================================================================
# Password hasher
# ============================================================================

def test_hash_is_not_plaintext_and_verifies():
    hashed = auth.hash_password("pw1")

    assert hashed != "pw1"
    assert hashed.startswith("$argon2id$")
    assert auth.verify_password("pw1", hashed)


def test_hash_is_salted():
    assert auth.hash_password("pw1") != auth.hash_password("pw1")


def test_verify_rejects_other_passwords():
    hashed = auth.hash_password("pw1")

    for attempt in ["pw2", "PW1", "pw1 ", ""]:
        assert not auth.verify_password(attempt, hashed)


def test_verify_returns_false_for_garbage_hash():
    assert auth.verify_password("pw1", "not-a-hash") is False


def test_burn_verify_never_raises():
    assert auth.burn_verify("anything") is None


# ============================================================================
# Session manager
# ============================================================================

def _user(db, email="sess@example.com"):
    return users.insert(db, email, auth.hash_password("pw1"))


def test_create_session_resolves_to_user(db):
    user = _user(db)

    session_id = auth.create_session(db, user.id)

    assert len(session_id) == 64
    assert auth.get_user_from_session(db, session_id).id == user.id


def test_raw_handle_is_not_stored(db):
    user = _user(db)
    session_id = auth.create_session(db, user.id)

    stored = db.execute(select(SessionModel.session_key)).scalars().all()

    assert session_id not in stored
    assert auth.session_key(session_id) in stored


def test_unknown_or_missing_handle_is_anonymous(db):
    assert auth.get_user_from_session(db, None) is None
    assert auth.get_user_from_session(db, "") is None
    assert auth.get_user_from_session(db, "f" * 64) is None


def test_expired_session_is_anonymous(db):
    user = _user(db)
    session_id = auth.create_session(db, user.id)

    db.execute(
        update(SessionModel).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    )
    db.commit()

    assert auth.get_user_from_session(db, session_id) is None


def test_session_lifetime_is_configured_hours(db, settings):
    user = _user(db)
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    auth.create_session(db, user.id)

    expires_at = db.execute(select(SessionModel.expires_at)).scalar_one().replace(tzinfo=None)

    delta = expires_at - before
    assert timedelta(hours=settings.session_expire_hours) - timedelta(minutes=1) < delta
    assert delta <= timedelta(hours=settings.session_expire_hours, minutes=1)


def test_delete_session(db):
    user = _user(db)
    session_id = auth.create_session(db, user.id)

    assert auth.delete_session(db, session_id) is True
    assert auth.get_user_from_session(db, session_id) is None
    assert auth.delete_session(db, session_id) is False


def test_cleanup_expired_sessions_keeps_live_ones(db):
    user = _user(db)
    live = auth.create_session(db, user.id)
    stale = auth.create_session(db, user.id)

    db.execute(
        update(SessionModel)
        .where(SessionModel.session_key == auth.session_key(stale))
        .values(expires_at=datetime.now(timezone.utc) - timedelta(hours=1))
    )
    db.commit()

    assert auth.cleanup_expired_sessions(db) == 1
    assert auth.get_user_from_session(db, live).id == user.id
