"""Configuration package for the ledger sync service."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
