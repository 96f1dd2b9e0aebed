import secrets

from fastapi import Request

from portfolio.core.config import Settings
from portfolio.core.errors import Unauthorized


class SessionGuard:
    """Authorizes mutating requests by comparing the session cookie to a fixed sentinel."""

    def __init__(self, cookie_name: str, sentinel: str):
        self.cookie_name = cookie_name
        self.sentinel = sentinel

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionGuard":
        return cls(settings.SESSION_COOKIE_NAME, settings.SESSION_SENTINEL)

    def is_authorized(self, token: str | None) -> bool:
        if not token:
            return False
        return secrets.compare_digest(token.encode(), self.sentinel.encode())

    def check_request(self, request: Request) -> None:
        if not self.is_authorized(request.cookies.get(self.cookie_name)):
            raise Unauthorized()


def credentials_match(settings: Settings, username: str | None, password: str | None) -> bool:
    if username is None or password is None:
        return False
    user_ok = secrets.compare_digest(username.encode(), settings.ADMIN_USER.encode())
    pass_ok = secrets.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    return user_ok and pass_ok
