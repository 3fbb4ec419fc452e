from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from .runtime_constants import Outbound
from .runtime_types import User
from .runtime_utils import RoomNameGenerator, envelope, send_safe

logger = logging.getLogger(__name__)


@dataclass
class Room:
    name: str
    users: list[User] = field(default_factory=list)
    votes: dict[str, Any] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def nicknames(self) -> list[str]:
        return [user.nickname for user in self.users]

    def has_user(self, nickname: str) -> bool:
        return self.get_user(nickname) is not None

    def get_user(self, nickname: str) -> User | None:
        for user in self.users:
            if user.nickname == nickname:
                return user
        return None

    def add_user(self, user: User) -> None:
        self.users.append(user)

    def users_payload(self) -> list[dict[str, Any]]:
        return [user.to_payload() for user in self.users]

    def votes_payload(self) -> dict[str, Any]:
        return dict(self.votes)

    async def broadcast(self, payload: dict[str, Any]) -> int:
        delivered = 0
        for user in list(self.users):
            if await send_safe(user.connection, payload, room=self.name):
                delivered += 1
        return delivered

    def record_vote(self, nickname: str, value: Any) -> None:
        self.votes[nickname] = value

    async def revoke_vote(self, nickname: str) -> None:
        self.votes.pop(nickname, None)
        await self.broadcast(
            envelope(
                Outbound.CLIENT_REVOKE.value,
                {"nickname": nickname, "votes": self.votes_payload()},
            )
        )

    async def reset_votes(self) -> None:
        self.votes.clear()
        await self.broadcast(envelope(Outbound.RESET.value, {"votes": self.votes_payload()}))

    async def remove_user(self, nickname: str) -> User | None:
        removed = self.get_user(nickname)
        if removed is None:
            return None
        self.users.remove(removed)
        self.votes.pop(nickname, None)
        await self.broadcast(
            envelope(
                Outbound.CLIENT_DISCONNECT.value,
                {
                    "nickname": nickname,
                    "users": self.users_payload(),
                    "votes": self.votes_payload(),
                },
            )
        )
        return removed


class RoomRegistry:
    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}
        self.lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self.rooms)

    async def get(self, name: str) -> Room | None:
        if not name:
            return None
        async with self.lock:
            return self.rooms.get(name)

    async def get_or_create(self, name: str) -> Room:
        async with self.lock:
            return self._get_or_create_locked(name)

    async def create_generated(self, generator: RoomNameGenerator) -> Room:
        async with self.lock:
            name = generator.next()
            while name in self.rooms:
                name = generator.next()
            return self._get_or_create_locked(name)

    async def snapshot(self) -> list[Room]:
        async with self.lock:
            return list(self.rooms.values())

    def _get_or_create_locked(self, name: str) -> Room:
        existing = self.rooms.get(name)
        if existing is not None:
            return existing
        room = Room(name=name)
        self.rooms[name] = room
        logger.info("Room %s created (total: %d)", name, len(self.rooms))
        return room
