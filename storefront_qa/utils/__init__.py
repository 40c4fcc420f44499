"""Utility helpers for configuration and logging."""

from .config import StorefrontConfig, get_base_url, load_config, load_env_file
from .logging_utils import configure_logging

__all__ = [
    "StorefrontConfig",
    "configure_logging",
    "get_base_url",
    "load_config",
    "load_env_file",
]
