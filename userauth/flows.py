"""
Registration and login flows.

Each flow is a straight sequence of store, hasher, notifier and session
calls. Expected outcomes (validation, conflict, bad credentials) come
back as a FlowResult; faults in the collaborators are logged here and
turned into a generic retry-later result, so nothing raw reaches the
client.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from argon2.exceptions import HashingError
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from userauth import auth, users
from userauth.exceptions import DuplicateEmailError
from userauth.models import User
from userauth.notifier import SmtpNotifier, send_welcome_email
from userauth.schemas import LoginForm, RegisterForm

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Email and password are required"
INVALID_EMAIL = "Please enter a valid email address"
PASSWORD_MISMATCH = "Passwords do not match"
EMAIL_TAKEN = "Email already registered"
INVALID_CREDENTIALS = "Invalid email or password"
REGISTERED = "Registration successful. Please log in."
SERVICE_ERROR = "Something went wrong. Please try again later."

SERVICE_FAULTS = (SQLAlchemyError, HashingError, OSError)


@dataclass
class FlowResult:
    ok: bool
    message: str
    status_code: int
    user: Optional[User] = None
    session_id: Optional[str] = None


def _service_error() -> FlowResult:
    return FlowResult(ok=False, message=SERVICE_ERROR, status_code=503)


def register(
    db: Session,
    form: RegisterForm,
    notifier: SmtpNotifier,
    defer: Optional[Callable] = None,
) -> FlowResult:
    """
    Create an account.

    The existence check is only a fast path; the insert's unique
    constraint makes the final call on duplicates.

    With ``defer`` (e.g. ``BackgroundTasks.add_task``) the welcome mail is
    sent after the response and its failure is only logged. Without it the
    mail is sent inline and a failure is reported as a service error, even
    though the account already exists at that point.
    """
    if not form.email or not form.password:
        return FlowResult(ok=False, message=MISSING_FIELDS, status_code=400)

    if form.password != form.confirm_password:
        return FlowResult(ok=False, message=PASSWORD_MISMATCH, status_code=400)

    try:
        validate_email(form.email, check_deliverability=False)
    except EmailNotValidError:
        return FlowResult(ok=False, message=INVALID_EMAIL, status_code=400)

    try:
        if users.find_by_email(db, form.email) is not None:
            return FlowResult(ok=False, message=EMAIL_TAKEN, status_code=409)

        password_hash = auth.hash_password(form.password)
        user = users.insert(db, form.email, password_hash)
    except DuplicateEmailError:
        logger.info("Duplicate registration rejected by store")
        return FlowResult(ok=False, message=EMAIL_TAKEN, status_code=409)
    except SERVICE_FAULTS:
        logger.exception("Registration failed")
        return _service_error()

    if defer is not None:
        defer(send_welcome_email, notifier, user.email)
    elif not send_welcome_email(notifier, user.email):
        logger.warning(
            "Welcome email failed for user id=%s; account was created but registration is reported as failed",
            user.id,
        )
        return _service_error()

    return FlowResult(ok=True, message=REGISTERED, status_code=201, user=user)


def login(db: Session, form: LoginForm) -> FlowResult:
    """
    Check credentials and open a session.

    Unknown email and wrong password produce the same result.
    """
    if not form.email or not form.password:
        return FlowResult(ok=False, message=INVALID_CREDENTIALS, status_code=401)

    try:
        user = users.find_by_email(db, form.email)

        if user is None:
            auth.burn_verify(form.password)
            return FlowResult(ok=False, message=INVALID_CREDENTIALS, status_code=401)

        if not auth.verify_password(form.password, user.password_hash):
            return FlowResult(ok=False, message=INVALID_CREDENTIALS, status_code=401)

        session_id = auth.create_session(db, user.id)
    except SERVICE_FAULTS:
        logger.exception("Login failed")
        return _service_error()

    logger.info("User id=%s logged in", user.id)
    return FlowResult(ok=True, message="", status_code=303, user=user, session_id=session_id)
