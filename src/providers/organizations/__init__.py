"""Organisation directory providers."""

from src.providers.organizations.group_directory import OrganizationGroupDirectory

__all__ = ["OrganizationGroupDirectory"]
