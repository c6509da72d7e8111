"""mbr-tui configuration management.

Handles persistent settings stored in ~/.mbr-tui/config.json. The API key is
never persisted; it is read from the MBR_API_KEY environment variable.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from mbr_tui.errors import ConfigurationError


logger = logging.getLogger(__name__)


# Default configuration values
DEFAULT_URL = "http://localhost:3000"
DEFAULT_PAGE_SIZE = 100
DEFAULT_TICK_RATE_MS = 250
DEFAULT_QUESTION_LIMIT = 50
DEFAULT_COLLECTION_QUESTION_LIMIT = 100
DEFAULT_PREVIEW_LIMIT = 100
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_QUERY_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_THEME = "textual-dark"

CONFIG_PATH_ENV = "MBR_TUI_CONFIG"
URL_ENV = "MBR_URL"
API_KEY_ENV = "MBR_API_KEY"


def get_api_key() -> Optional[str]:
    """Return the API key from the environment, or None if unset or empty."""
    key = os.environ.get(API_KEY_ENV, "")
    return key or None


@dataclass
class MbrConfig:
    """mbr-tui application configuration."""

    # Connection
    url: str = DEFAULT_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES

    # Session
    page_size: int = DEFAULT_PAGE_SIZE
    tick_rate_ms: int = DEFAULT_TICK_RATE_MS
    question_limit: int = DEFAULT_QUESTION_LIMIT
    collection_question_limit: int = DEFAULT_COLLECTION_QUESTION_LIMIT
    preview_limit: int = DEFAULT_PREVIEW_LIMIT

    # Appearance
    theme: str = DEFAULT_THEME

    # Logging
    log_file: Optional[str] = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the path to the config file."""
        override = os.environ.get(CONFIG_PATH_ENV)
        if override:
            return Path(override)
        return Path.home() / ".mbr-tui" / "config.json"

    @classmethod
    def load(cls) -> "MbrConfig":
        """Load configuration from file, or return defaults if not found."""
        config_path = cls.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                # Only use known fields to avoid issues with old config versions
                known_fields = {f.name for f in fields(cls)}
                filtered_data = {k: v for k, v in data.items() if k in known_fields}
                return cls(**filtered_data)
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
                # Invalid config, return defaults
                logger.warning("ignoring invalid config at %s: %s", config_path, e)

        return cls()

    def save(self) -> None:
        """Save configuration to file."""
        config_path = self.get_config_path()

        # Ensure directory exists
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    def reset(self) -> None:
        """Reset configuration to defaults."""
        defaults = MbrConfig()
        for f in fields(self):
            setattr(self, f.name, getattr(defaults, f.name))

    def resolve_url(self, override: Optional[str] = None) -> str:
        """Resolve the server URL: explicit override > MBR_URL > config file."""
        if override:
            return override.rstrip("/")
        env_url = os.environ.get(URL_ENV, "")
        if env_url:
            return env_url.rstrip("/")
        return self.url.rstrip("/")

    def set_value(self, key: str, raw_value: str) -> None:
        """Set a field from its string form, coercing to the field's type."""
        field_types = {f.name: f.type for f in fields(self)}
        if key not in field_types:
            raise ConfigurationError(f"Unknown setting '{key}'")

        current = getattr(self, key)
        try:
            if isinstance(current, bool):
                value = raw_value.lower() in ("1", "true", "yes", "on")
            elif isinstance(current, int):
                value = int(raw_value)
            elif isinstance(current, float):
                value = float(raw_value)
            elif key == "log_file" and raw_value.lower() in ("", "none"):
                value = None
            else:
                value = raw_value
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for '{key}': {raw_value}") from e

        setattr(self, key, value)
        self.validate()

    def validate(self) -> None:
        """Validate settings, raising ConfigurationError on the first problem."""
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"Invalid server URL: {self.url}")
        if self.page_size < 1:
            raise ConfigurationError("page_size must be at least 1")
        if self.tick_rate_ms < 10:
            raise ConfigurationError("tick_rate_ms must be at least 10")
        if self.request_timeout <= 0 or self.query_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")
        for name in ("question_limit", "collection_question_limit", "preview_limit"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")
        if self.theme not in {name for name, _ in AVAILABLE_THEMES}:
            raise ConfigurationError(f"Unknown theme '{self.theme}'")


# Available options for settings
AVAILABLE_THEMES = [
    ("textual-dark", "Textual Dark"),
    ("textual-light", "Textual Light"),
    ("nord", "Nord"),
    ("gruvbox", "Gruvbox"),
    ("dracula", "Dracula"),
    ("tokyo-night", "Tokyo Night"),
    ("monokai", "Monokai"),
]
