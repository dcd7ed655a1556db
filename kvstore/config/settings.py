"""
KV-Store Configuration Settings

This module contains all configuration constants for the KV-Store server
and client. Values marked with an environment variable can be overridden
without touching the code.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server and client configuration settings."""

    # Network settings
    HOST: str = os.environ.get("KV_STORE_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("KV_STORE_PORT", "8080"))

    # Worker pool executing store operations
    WORKERS: int = int(os.environ.get("KV_STORE_WORKERS", "8"))

    # HTTP settings
    STORE_PREFIX: str = "/store/"
    MAX_BODY_SIZE: int = 10 * 1024 * 1024
    MAX_HEADER_COUNT: int = 100
    MAX_HEADER_BYTES: int = 64 * 1024
    READ_TIMEOUT: float = 5.0  # Request line, and the whole header block
    BODY_TIMEOUT: float = 30.0

    # Client settings
    CLIENT_HOST: str = "localhost"
    CLIENT_TIMEOUT: float = 5.0

    # Logging settings
    DEBUG: bool = os.environ.get("KV_STORE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("KV_STORE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
