"""Application configuration."""

from jobmirror.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
