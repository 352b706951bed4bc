from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException


class AuthenticationError(HTTPException):
    def __init__(self, detail: Any = "Not authenticated") -> None:
        super().__init__(401, detail)


class AuthorizationError(HTTPException):
    def __init__(self, detail: Any = "Forbidden") -> None:
        super().__init__(403, detail)


class ValidationError(HTTPException):
    def __init__(self, detail: Any) -> None:
        super().__init__(400, detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: Any = "Not found") -> None:
        super().__init__(404, detail)


class PersistenceError(HTTPException):
    def __init__(self, detail: Any = "Storage unavailable") -> None:
        super().__init__(500, detail)


class UpstreamError(HTTPException):
    """The verification provider could not produce a usable answer."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 502,
        provider_status: Optional[int] = None,
        provider_error: Optional[Any] = None,
    ) -> None:
        detail: Dict[str, Any] = {"message": message}
        if provider_status is not None:
            detail["provider_status"] = provider_status
        if provider_error is not None:
            detail["provider_error"] = provider_error
        super().__init__(status_code, detail)
        self.message = message
        self.provider_status = provider_status


class AuthError(UpstreamError):
    """The configured provider credential is missing or was rejected."""

    def __init__(self, message: str, *, provider_status: Optional[int] = None, provider_error: Optional[Any] = None) -> None:
        super().__init__(message, status_code=502, provider_status=provider_status, provider_error=provider_error)
