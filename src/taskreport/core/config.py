# taskreport/core/config.py
"""
Configuration
-------------
Reads backend credentials and runtime knobs from the environment (after
loading a `.env` file) into a single immutable Settings object. Settings are
built once at process entry and handed to the backend client.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

REQUIRED_VARS = ("FRAPPE_URL", "FRAPPE_API_KEY", "FRAPPE_API_SECRET")


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    base_url: str
    api_key: str
    api_secret: str
    timeout: float = 30.0
    retries: int = 0
    page_size: int = 500
    out_dir: str = "out"

    @property
    def token(self) -> str:
        return f"{self.api_key}:{self.api_secret}"


def load_env_file():
    """Load `.env` from the working directory, falling back to dotenv discovery."""
    cwd_env = os.path.join(os.getcwd(), ".env")
    if os.path.exists(cwd_env):
        load_dotenv(cwd_env, override=True)
    else:
        load_dotenv()


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigError(f"Invalid value for {name}: {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from `env` (defaults to os.environ after loading `.env`).
    Raises ConfigError listing every missing required variable.
    """
    if env is None:
        load_env_file()
        env = os.environ

    missing = [name for name in REQUIRED_VARS if not (env.get(name) or "").strip()]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    page_size = _number(env, "FRAPPE_PAGE_SIZE", 500, int)
    if page_size <= 0:
        raise ConfigError(f"FRAPPE_PAGE_SIZE must be positive, got {page_size}")

    return Settings(
        base_url=env["FRAPPE_URL"].strip().rstrip("/"),
        api_key=env["FRAPPE_API_KEY"].strip(),
        api_secret=env["FRAPPE_API_SECRET"].strip(),
        timeout=_number(env, "FRAPPE_API_TIMEOUT", 30.0, float),
        retries=max(0, _number(env, "FRAPPE_API_RETRIES", 0, int)),
        page_size=page_size,
        out_dir=(env.get("TASKREPORT_OUT_DIR") or "out").strip() or "out",
    )
