"""Configuration layer."""

from alloydb_vectorstore.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
