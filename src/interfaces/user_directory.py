"""Abstract base class for the backoffice user directory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryUser:
    """A backoffice user as known to the directory.

    Attributes
    ----------
    auth_identifier:
        Identifier the record ``editorId`` fields refer to.
    first_name, last_name:
        Display name parts.
    is_admin:
        Whether the user may see every record version.
    """

    auth_identifier: str
    first_name: str = ""
    last_name: str = ""
    is_admin: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class IUserDirectory(ABC):
    """Contract for looking up backoffice users."""

    @abstractmethod
    async def list_users(self) -> list[DirectoryUser]:
        """Return every known user, in directory order."""
