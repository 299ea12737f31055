import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from userauth.exceptions import DuplicateEmailError
from userauth.models import User

logger = logging.getLogger(__name__)


def find_by_email(db: Session, email: str) -> Optional[User]:
    """
    Look up a user by exact email.

    Connectivity problems surface as SQLAlchemyError to the caller.
    """
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def insert(db: Session, email: str, password_hash: str) -> User:
    """
    Persist a new user.

    The unique constraint on email decides duplicates; a violation rolls
    the transaction back and raises DuplicateEmailError.
    """
    user = User(email=email, password_hash=password_hash)

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError(email)

    db.refresh(user)
    logger.info("Created user id=%s", user.id)
    return user
