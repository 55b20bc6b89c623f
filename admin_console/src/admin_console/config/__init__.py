"""Configuration module for the admin console."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
