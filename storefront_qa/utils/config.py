"""Environment-driven configuration for the seed/cleanup scripts and suites."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ..errors import ConfigurationError
from ..fixture_schema import Tier
from ..tiers import parse_tier

DEFAULT_API_TIMEOUT = 30.0


@dataclass(frozen=True)
class StorefrontConfig:
    """Resolved storefront location and admin API credentials."""

    base_url: str
    admin_user: str = ""
    admin_pass: str = ""
    test_tier: Tier = Tier.B
    timeout: float = DEFAULT_API_TIMEOUT

    @property
    def has_admin_credentials(self) -> bool:
        return bool(self.admin_user and self.admin_pass)


def load_env_file(path: str | Path | None = None) -> bool:
    """Load a ``.env`` file (default: the working directory's) without overriding the environment."""
    env_path = Path(path) if path else Path.cwd() / ".env"
    return load_dotenv(env_path, override=False)


def get_base_url() -> str:
    """Return the storefront base URL from ``BASE_URL`` (or legacy ``url``), without trailing slash."""
    configured = os.environ.get("BASE_URL", "").strip() or os.environ.get("url", "").strip()
    return configured.rstrip("/")


def _get_timeout() -> float:
    raw = os.environ.get("API_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_API_TIMEOUT
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"API_TIMEOUT must be a number of seconds, got '{raw}'") from exc


def load_config(require_admin: bool = True) -> StorefrontConfig:
    """Build a :class:`StorefrontConfig` from the environment.

    Raises ConfigurationError naming every missing variable.
    """
    base_url = get_base_url()
    admin_user = os.environ.get("ADMIN_USER", "").strip()
    admin_pass = os.environ.get("ADMIN_PASS", "")

    if not base_url:
        raise ConfigurationError("BASE_URL environment variable is required")
    if require_admin and not (admin_user and admin_pass):
        raise ConfigurationError("ADMIN_USER and ADMIN_PASS environment variables are required")

    return StorefrontConfig(
        base_url=base_url,
        admin_user=admin_user,
        admin_pass=admin_pass,
        test_tier=parse_tier(os.environ.get("TEST_TIER")),
        timeout=_get_timeout(),
    )
