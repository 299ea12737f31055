import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from userauth.auth import get_user_from_session
from userauth.config import get_settings
from userauth.database import get_db
from userauth.exceptions import LoginRequired, ServiceUnavailable
from userauth.flows import SERVICE_FAULTS
from userauth.models import User

settings = get_settings()
logger = logging.getLogger(__name__)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Resolve the session cookie to a user, or None for anonymous requests.

    The user is also put on request.state for request logging. A store
    fault raises ServiceUnavailable, rendered as the generic error page.
    """
    try:
        user = get_user_from_session(db, request.cookies.get(settings.cookie_name))
    except SERVICE_FAULTS:
        logger.exception("Session lookup failed")
        raise ServiceUnavailable()
    request.state.user = user
    return user


def require_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Route guard for authenticated-only views.

    Raises LoginRequired, which the application turns into a redirect
    to /login.
    """
    if user is None:
        raise LoginRequired()
    return user
