# server/config.py
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Searched in order, the first existing file wins
CONFIG_PATHS = (
    Path.cwd() / "etc" / "config.json",
    Path("/usr/local/etc/cloudbsd/admin-panel/config.json"),
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLOUDBSD_", extra="ignore")

    # HTTP server
    PORT: int = 3001
    SERVERNAME: str = "localhost"

    # Token signing key, never returned by the API
    SECRET_KEY: str = "your-secret-key-change-me"
    TOKEN_EXPIRE_HOURS: int = 8
    BCRYPT_ROUNDS: int = 10

    DATABASE_URL: str = "sqlite:///./data/admin.db"

    # Demo mode seeds decorative nodes/resources and emits simulated updates
    DEMO_MODE: bool = True
    HEARTBEAT_INTERVAL_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    SSL_ENABLED: bool = False
    SSL_CERT_PATH: str = "/usr/local/etc/cloudbsd/admin-panel/ssl/cert.pem"
    SSL_KEY_PATH: str = "/usr/local/etc/cloudbsd/admin-panel/ssl/key.pem"


DEFAULT_SECRET_KEY = Settings.model_fields["SECRET_KEY"].default

# camelCase keys written by earlier panel releases
LEGACY_KEYS = {
    "secretKey": "SECRET_KEY",
    "demoMode": "DEMO_MODE",
}

# Nested "ssl" object
SSL_KEYS = {
    "enabled": "SSL_ENABLED",
    "certPath": "SSL_CERT_PATH",
    "keyPath": "SSL_KEY_PATH",
}


def normalize_config(data: dict, source: str = "config") -> dict:
    """Map file keys onto Settings field names; unknown keys are dropped with a warning"""
    values = {}
    for key, value in data.items():
        if key in LEGACY_KEYS:
            values[LEGACY_KEYS[key]] = value
        elif key == "dbPath":
            values["DATABASE_URL"] = f"sqlite:///{value}"
        elif key.lower() == "ssl" and isinstance(value, dict):
            for ssl_key, ssl_value in value.items():
                field = SSL_KEYS.get(ssl_key) or f"SSL_{ssl_key.upper()}"
                if field in Settings.model_fields:
                    values[field] = ssl_value
                else:
                    logger.warning(f"Ignoring unknown key ssl.{ssl_key} in {source}")
        elif key.upper() in Settings.model_fields:
            values[key.upper()] = value
        else:
            logger.warning(f"Ignoring unknown key {key} in {source}")
    return values


def read_config_file(paths: Sequence[Path] = CONFIG_PATHS) -> dict:
    """Return overrides from the first readable JSON config file, as Settings field names"""
    for path in paths:
        path = Path(path)
        if not path.exists():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to parse config at {path}: {e}")
            continue
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config at {path}: top level is not an object")
            continue
        logger.info(f"Loaded configuration from {path}")
        return normalize_config(data, source=str(path))

    logger.info("No config file found, using defaults and environment")
    return {}


def load_settings(paths: Sequence[Path] = CONFIG_PATHS, **overrides) -> Settings:
    """Build settings from env, then the config file, then explicit overrides"""
    values = read_config_file(paths)
    values.update(overrides)
    return Settings(**values)
