class DuplicateEmailError(Exception):
    """Raised by the credential store when the email is already registered."""

    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email


class LoginRequired(Exception):
    """Raised by the route guard when no valid session is present."""


class ServiceUnavailable(Exception):
    """Raised when a backing service fails while resolving the session."""
