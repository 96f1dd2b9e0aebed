from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


class SessionStatus(BaseModel):
    success: bool = True
    authenticated: bool
