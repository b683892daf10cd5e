# storeadmin/errors.py
from typing import Optional


class StoreAdminError(Exception):
    """Base class for everything the admin client raises on purpose."""


class ApiError(StoreAdminError):
    """The API answered with status >= 400, or could not be reached (status_code is None)."""

    def __init__(self, status_code: Optional[int], message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}" if status_code else (message or "request failed"))

    def user_message(self, fallback: str) -> str:
        # transport errors never leak into forms, only server-supplied text does
        if self.status_code is None or not self.message:
            return fallback
        return self.message


class AuthError(ApiError):
    pass


class ValidationError(StoreAdminError):
    pass


class ImageError(StoreAdminError):
    pass


class DeleteFailed(StoreAdminError):
    pass
