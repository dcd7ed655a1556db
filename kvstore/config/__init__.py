"""Configuration module for KV-Store."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
