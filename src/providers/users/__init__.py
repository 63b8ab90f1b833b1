"""Backoffice user directory providers."""

from src.providers.users.static_directory import StaticUserDirectory

__all__ = ["StaticUserDirectory"]
