"""
Typed failures raised by the auth and registration services.
Each carries the HTTP status and a detail message that is safe to show
to the caller; main.py translates them in one exception handler.
"""

from typing import Optional


class PortalError(Exception):
    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def headers(self) -> Optional[dict]:
        return None


class ValidationError(PortalError):
    status_code = 422
    default_detail = "Invalid input"


class DuplicateKey(PortalError):
    status_code = 409
    default_detail = "A record with this value already exists"


class DuplicateEmail(DuplicateKey):
    default_detail = "User already exists"


class Unauthenticated(PortalError):
    status_code = 401
    default_detail = "Could not validate credentials"

    @property
    def headers(self) -> Optional[dict]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(PortalError):
    status_code = 403
    default_detail = "Not authorized"


class NotFound(PortalError):
    status_code = 404
    default_detail = "Not found"


class InvalidCredentials(PortalError):
    status_code = 401
    default_detail = "Invalid email or password"
