# storeadmin/config.py
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TOKEN_FILE = "~/.storeadmin/token.json"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout: float = 10.0
    token_file: Path = Path(DEFAULT_TOKEN_FILE).expanduser()
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        api_url = os.getenv("STORE_ADMIN_API_URL", DEFAULT_API_URL).strip() or DEFAULT_API_URL
        try:
            timeout = float(os.getenv("STORE_ADMIN_TIMEOUT", "10"))
        except ValueError:
            timeout = 10.0
        token_file = Path(os.getenv("STORE_ADMIN_TOKEN_FILE", DEFAULT_TOKEN_FILE)).expanduser()
        log_level = os.getenv("STORE_ADMIN_LOG_LEVEL", "WARNING").upper()
        return cls(api_url=api_url.rstrip("/"), timeout=timeout, token_file=token_file, log_level=log_level)
