import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)

DEFAULT_APP_URL = "http://localhost:8000"


@dataclass(frozen=True)
class Settings:
    stripe_publishable_key: str
    stripe_secret_key: str
    stripe_webhook_secret: str
    app_url: str = DEFAULT_APP_URL
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def success_url(self) -> str:
        # Stripe substitutes the placeholder with the real session id on redirect
        return f"{self.app_url}/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.app_url}/cancel"


def load_settings() -> Settings:
    return Settings(
        stripe_publishable_key=os.getenv("STRIPE_PUBLISHABLE_KEY", ""),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
        app_url=(os.getenv("APP_URL") or DEFAULT_APP_URL).rstrip("/"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_json=os.getenv("LOG_JSON", "false").lower() == "true",
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
