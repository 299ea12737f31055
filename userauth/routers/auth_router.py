from pathlib import Path
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Request, Response, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from userauth import flows
from userauth.config import get_settings
from userauth.database import get_db
from userauth.dependencies import get_optional_user, require_user
from userauth.models import User
from userauth.notifier import SmtpNotifier, get_notifier
from userauth.schemas import LoginForm, RegisterForm

router = APIRouter(tags=["auth"])
settings = get_settings()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

LANDING_PATH = "/dashboard"
LOGIN_PATH = "/login"


def _render(request: Request, template_name: str, status_code: int = 200, **ctx):
    """TemplateResponse wrapper injecting the current user."""
    context = {"current_user": getattr(request.state, "user", None), **ctx}
    return templates.TemplateResponse(request, template_name, context, status_code=status_code)


def render_error(request: Request, message: str, status_code: int):
    return _render(request, "error.html", status_code=status_code, error=message)


@router.get("/", dependencies=[Depends(get_optional_user)])
def home(request: Request):
    return _render(request, "index.html")


@router.get("/login")
def login_form(request: Request, user: Optional[User] = Depends(get_optional_user)):
    """
    Show the login form.

    An already-authenticated visitor is sent on to the landing view.
    """
    if user is not None:
        return RedirectResponse(LANDING_PATH, status_code=status.HTTP_303_SEE_OTHER)
    return _render(request, "login.html", email="", error=None)


@router.post("/login")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    """
    Authenticate and open a session.

    Failure re-renders the form with the email echoed and a message that
    does not say which of email or password was wrong.
    """
    form = LoginForm(email=email, password=password)
    result = flows.login(db, form)

    if not result.ok:
        return _render(
            request, "login.html", status_code=result.status_code,
            email=form.email, error=result.message,
        )

    request.state.user = result.user
    response = RedirectResponse(LANDING_PATH, status_code=status.HTTP_303_SEE_OTHER)
    _set_session_cookie(response, result.session_id)
    return response


@router.get("/register", dependencies=[Depends(get_optional_user)])
def register_form(request: Request):
    return _render(request, "register.html", email="", error=None, message=None)


@router.post("/register")
def register(
    request: Request,
    background_tasks: BackgroundTasks,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form("", alias="confirmPassword"),
    db: Session = Depends(get_db),
    notifier: SmtpNotifier = Depends(get_notifier),
):
    """
    Create an account. Does not log the new user in.
    """
    form = RegisterForm(email=email, password=password, confirm_password=confirm_password)
    defer = None if settings.welcome_email_blocking else background_tasks.add_task
    result = flows.register(db, form, notifier, defer=defer)

    if not result.ok:
        return _render(
            request, "register.html", status_code=result.status_code,
            email=form.email, error=result.message, message=None,
        )

    return _render(
        request, "register.html", status_code=result.status_code,
        email="", error=None, message=result.message,
    )


@router.get(LANDING_PATH)
def dashboard(request: Request, user: User = Depends(require_user)):
    return _render(request, "dashboard.html", user=user)


def _set_session_cookie(response: Response, session_id: str):
    """
    Set session cookie.

    The cookie only carries the opaque handle; user data stays server-side.
    secure is on for production deployments or when forced by config.
    """
    response.set_cookie(
        key=settings.cookie_name,
        value=session_id,
        httponly=settings.cookie_httponly,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,
        max_age=settings.session_expire_hours * 3600,
        path="/",
        domain=settings.cookie_domain
    )
