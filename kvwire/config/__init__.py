"""Configuration module for KV-Wire."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
