"""
Configuration module for the Dreamteller client.
Loads settings from a .env file and environment variables.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Existing process variables win over .env values
load_dotenv(Path.cwd() / ".env", override=False)


class Settings:
    """Client configuration loaded from environment variables."""

    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "Dreamteller")
        self.debug: bool = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
        self.environment: str = os.getenv("ENVIRONMENT", "development")

        # Backend API
        self.api_base_url: str = os.getenv("DREAMTELLER_API_BASE_URL", "https://api.dreamteller.app")
        self.request_timeout: float = float(os.getenv("DREAMTELLER_REQUEST_TIMEOUT", "30"))

        # Firebase (client-side Web API key, not admin credentials)
        self.firebase_api_key: str = os.getenv("FIREBASE_API_KEY", "")

        # Local client storage
        default_prefs = Path.home() / ".dreamteller" / "preferences.json"
        self.preferences_path: str = os.getenv("DREAMTELLER_PREFERENCES_PATH", str(default_prefs))

    @property
    def use_local_auth(self) -> bool:
        """Run against the in-memory identity provider when no Firebase key is configured."""
        return not self.firebase_api_key


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get client settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
