from __future__ import annotations

import logging
import random
import re
import time
import uuid
from typing import Any, Collection, Iterable

from .runtime_constants import GENERATED_ROOM_NUMBER_LIMIT
from .runtime_types import Connection

logger = logging.getLogger(__name__)

_DISALLOWED_NAME_CHARS = re.compile(r"[^\w\s-]+", re.ASCII)


def now_ms() -> int:
    return int(time.time() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def envelope(message_type: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"type": message_type, "data": data if data is not None else {}}


def format_entity_name(raw: Any) -> str:
    """Canonical identity key for a room or nickname; "" when there is nothing to key on."""
    if raw is None:
        return ""
    value = raw if isinstance(raw, str) else str(raw)
    if not value:
        return ""
    return _DISALLOWED_NAME_CHARS.sub("", value.lower())


def unique_formatted_entity_name(raw: Any, taken: Collection[str]) -> str:
    formatted = format_entity_name(raw)
    if not formatted or formatted in taken:
        return ""
    return formatted


class RoomNameGenerator:
    """Hands out room names from a shuffled word pool, then random numbers.

    Names never repeat for the lifetime of one generator. Names already used by
    rooms created some other way are not known here.
    """

    def __init__(
        self,
        words: Iterable[str],
        *,
        rng: random.Random | None = None,
        number_limit: int = GENERATED_ROOM_NUMBER_LIMIT,
    ) -> None:
        self._rng = rng or random.Random()
        self._number_limit = max(1, number_limit)
        self._used: set[str] = set()
        self._used_numbers: set[int] = set()
        pool = [format_entity_name(word) for word in words]
        self._pool = [word for word in dict.fromkeys(pool) if word]
        self._rng.shuffle(self._pool)

    @property
    def remaining_words(self) -> int:
        return len(self._pool)

    @property
    def number_limit(self) -> int:
        return self._number_limit

    def _number_range_exhausted(self) -> bool:
        if len(self._used_numbers) < self._number_limit:
            return False
        in_range = sum(1 for number in self._used_numbers if number < self._number_limit)
        return in_range >= self._number_limit

    def _mark_used(self, candidate: str) -> None:
        self._used.add(candidate)
        if candidate.isdigit() and candidate == str(int(candidate)):
            self._used_numbers.add(int(candidate))

    def next(self) -> str:
        while True:
            if self._pool:
                candidate = self._pool.pop()
            else:
                while self._number_range_exhausted():
                    self._number_limit *= 2
                candidate = str(self._rng.randrange(self._number_limit))
            if candidate not in self._used:
                break
        self._mark_used(candidate)
        return candidate


async def send_safe(
    connection: Connection,
    payload: dict[str, Any],
    *,
    room: str | None = None,
) -> bool:
    if not connection.is_open:
        logger.debug(
            "[SEND_SKIP] room=%s peer=%s type=%s connection closed",
            room or "-",
            connection.peer_id,
            payload.get("type"),
        )
        connection.record_send_failure()
        return False
    try:
        await connection.send(payload)
    except Exception as exc:
        # Connection may already be closed.
        logger.debug(
            "[SEND_FAIL] room=%s peer=%s type=%s reason=%s",
            room or "-",
            connection.peer_id,
            payload.get("type"),
            repr(exc),
        )
        connection.record_send_failure()
        return False
    return True
