from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


class Connection(Protocol):
    peer_id: str

    @property
    def is_open(self) -> bool: ...

    async def send(self, payload: dict[str, Any]) -> None: ...

    def record_send_failure(self) -> None: ...


@dataclass
class User:
    nickname: str
    room: str
    connection: Connection = field(repr=False, compare=False)

    def to_payload(self) -> dict[str, Any]:
        return {"nickname": self.nickname, "room": self.room}
