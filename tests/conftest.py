import os
import tempfile
from pathlib import Path

import pytest

# === Environment, set before the application is imported ===
_TMP_DIR = Path(tempfile.mkdtemp(prefix="userauth-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ.setdefault("SESSION_SECRET_KEY", "test_secret_key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SMTP_USERNAME", "")
os.environ.setdefault("SMTP_PASSWORD", "")
# Cheap argon2 parameters so the suite stays fast
os.environ.setdefault("PASSWORD_HASH_TIME_COST", "1")
os.environ.setdefault("PASSWORD_HASH_MEMORY_COST", "1024")
os.environ.setdefault("PASSWORD_HASH_PARALLELISM", "1")

from fastapi.testclient import TestClient

from userauth.config import get_settings
from userauth.database import Base, SessionLocal, engine, init_db
from userauth.main import app
from userauth.notifier import get_notifier


class FakeNotifier:
    """Records messages instead of talking to SMTP."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent = []

    def send(self, to_email, subject, body):
        self.sent.append({"to": to_email, "subject": subject, "body": body})
        return self.succeed


@pytest.fixture(autouse=True)
def fresh_db():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def notifier():
    fake = FakeNotifier()
    app.dependency_overrides[get_notifier] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def client(notifier):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    def _register(email="alice@example.com", password="pw1", confirm=None):
        return client.post(
            "/register",
            data={
                "email": email,
                "password": password,
                "confirmPassword": password if confirm is None else confirm,
            },
        )
    return _register


@pytest.fixture
def login(client):
    def _login(email="alice@example.com", password="pw1"):
        return client.post(
            "/login",
            data={"email": email, "password": password},
            follow_redirects=False,
        )
    return _login
