from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from userauth.database import Base


class User(Base):
    """
    Registered account. Stores credentials and the password-reset pair.

    - email is unique and indexed; compared case-sensitively as stored
    - password_hash never leaves the database layer
    - reset_token / reset_token_expires are both set while a reset is
      pending and both NULL otherwise
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    reset_token = Column(String(255), nullable=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(reset_token IS NULL) = (reset_token_expires IS NULL)",
            name="ck_users_reset_token_pair",
        ),
    )

    @property
    def has_pending_reset(self) -> bool:
        return self.reset_token is not None

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class Session(Base):
    """
    Server-side session storage.

    session_key is the keyed digest of the handle held in the client
    cookie; the handle itself is never stored.

    Session lifecycle:
    1. Created on login
    2. Validated on each request against expires_at
    3. Deleted on destroy or swept once expired
    """
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_key = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Lookup by key and expiry in one index
    __table_args__ = (
        Index('ix_session_lookup', 'session_key', 'expires_at'),
    )

    def __repr__(self):
        return f"<Session(id={self.id}, user_id={self.user_id})>"
