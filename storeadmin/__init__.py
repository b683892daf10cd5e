# storeadmin/__init__.py
from .client import AdminClient, AsyncAdminClient, RequestContext
from .config import Settings
from .errors import StoreAdminError, ApiError, AuthError, ValidationError, ImageError, DeleteFailed
from .models import Product, Category, User, DashboardStats, CURRENCY_CODES, DEFAULT_RATES
from .session import AuthSession, TokenStore, LoginResult

__all__ = [
    "AdminClient", "AsyncAdminClient", "RequestContext", "Settings",
    "StoreAdminError", "ApiError", "AuthError", "ValidationError", "ImageError", "DeleteFailed",
    "Product", "Category", "User", "DashboardStats", "CURRENCY_CODES", "DEFAULT_RATES",
    "AuthSession", "TokenStore", "LoginResult",
]
