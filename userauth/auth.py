from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from userauth.models import User, Session as SessionModel
from userauth.config import get_settings

settings = get_settings()

# Argon2id with the configured work factor
ph = PasswordHasher(
    time_cost=settings.password_hash_time_cost,
    memory_cost=settings.password_hash_memory_cost,
    parallelism=settings.password_hash_parallelism,
)


def hash_password(password: str) -> str:
    """
    Hash password using Argon2id.

    Returns hash string that includes algorithm parameters and salt.
    Format: $argon2id$v=19$m=65536,t=3,p=4$salt$hash

    Raises argon2.exceptions.HashingError if the primitive fails.
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against stored hash.

    Uses constant-time comparison internally.
    Returns False on mismatch or an unreadable hash.
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return ph.hash(secrets.token_hex(16))


def burn_verify(password: str) -> None:
    """
    Run a verification that can never succeed.

    Called when the email is unknown so the response takes as long as a
    wrong-password attempt.
    """
    verify_password(password, _dummy_hash())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_id() -> str:
    """
    Generate cryptographically secure session handle.

    32 bytes of randomness, hex encoded = 64 character string.
    """
    return secrets.token_hex(32)


def session_key(session_id: str) -> str:
    """
    Keyed digest of a session handle, as stored in the sessions table.
    """
    return hmac.new(
        settings.session_secret_key.encode(),
        session_id.encode(),
        hashlib.sha256,
    ).hexdigest()


def create_session(db: Session, user_id: int) -> str:
    """
    Create new session for user.

    Returns the handle to be stored in the cookie.
    Session expires after configured duration.
    """
    session_id = generate_session_id()
    expires_at = _utcnow() + timedelta(hours=settings.session_expire_hours)

    session = SessionModel(
        session_key=session_key(session_id),
        user_id=user_id,
        expires_at=expires_at
    )

    db.add(session)
    db.commit()

    return session_id


def get_user_from_session(db: Session, session_id: Optional[str]) -> Optional[User]:
    """
    Validate session and retrieve associated user.

    Returns None if:
    - No handle was sent
    - Session doesn't exist
    - Session is expired
    """
    if not session_id:
        return None

    stmt = (
        select(User)
        .join(SessionModel, SessionModel.user_id == User.id)
        .where(
            SessionModel.session_key == session_key(session_id),
            SessionModel.expires_at > _utcnow(),
        )
    )
    return db.execute(stmt).scalar_one_or_none()


def delete_session(db: Session, session_id: str) -> bool:
    """
    Destroy a session.

    Returns True if session was deleted, False if not found.
    """
    result = db.execute(
        delete(SessionModel).where(SessionModel.session_key == session_key(session_id))
    )

    db.commit()
    return result.rowcount > 0


def cleanup_expired_sessions(db: Session) -> int:
    """
    Remove expired sessions from database.

    Returns number of sessions cleaned up.
    """
    result = db.execute(
        delete(SessionModel).where(SessionModel.expires_at <= _utcnow())
    )

    db.commit()
    return result.rowcount
