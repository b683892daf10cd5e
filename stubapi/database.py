import os
from typing import Dict, Any

# In-memory stores for the stand-in API. Everything is lost on restart.

USERS: Dict[str, Dict[str, str]] = {
    os.getenv("ADMIN_USERNAME", "admin"): {
        "password": os.getenv("ADMIN_PASSWORD", "admin123"),
        "role": "admin",
    }
}
TOKENS: Dict[str, str] = {}
PRODUCTS: Dict[str, Dict[str, Any]] = {}
CATEGORIES: Dict[str, Dict[str, Any]] = {}
SETTINGS: Dict[str, Any] = {}
IDEMPOTENCY: Dict[str, Dict[str, Any]] = {}


def reset_all() -> None:
    TOKENS.clear()
    PRODUCTS.clear()
    CATEGORIES.clear()
    SETTINGS.clear()
    IDEMPOTENCY.clear()
