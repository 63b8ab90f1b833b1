"""User directory backed by a fixed list of users."""

from __future__ import annotations

from typing import Iterable

from src.interfaces.user_directory import DirectoryUser, IUserDirectory


class StaticUserDirectory(IUserDirectory):
    def __init__(self, users: Iterable[DirectoryUser] = ()) -> None:
        self._users = list(users)

    async def list_users(self) -> list[DirectoryUser]:
        return list(self._users)
