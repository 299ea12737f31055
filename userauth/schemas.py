from pydantic import BaseModel, field_validator


class RegisterForm(BaseModel):
    """
    Registration form payload.

    Email is trimmed but otherwise kept as typed; lookups are exact.
    Passwords are never trimmed.
    """
    email: str = ""
    password: str = ""
    confirm_password: str = ""

    @field_validator('email')
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()


class LoginForm(BaseModel):
    """
    Login form payload.
    """
    email: str = ""
    password: str = ""

    @field_validator('email')
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()


class HealthResponse(BaseModel):
    status: str
    version: str
