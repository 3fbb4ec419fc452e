from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .runtime_constants import (
    INVALID_VOTE_MESSAGE,
    MALFORMED_MESSAGE,
    NICKNAME_UNAVAILABLE_MESSAGE,
    NO_VOTES_TO_REVEAL_MESSAGE,
    NO_VOTES_TO_REVOKE_MESSAGE,
    NOT_A_MEMBER_MESSAGE,
    ROOM_NOT_FOUND_MESSAGE,
    UNEXPECTED_FAILURE_MESSAGE,
    UNKNOWN_TYPE_MESSAGE,
    Outbound,
)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_VALUE = "invalid_value"
    PRECONDITION = "precondition"


@dataclass(frozen=True)
class CommandError:
    """A recoverable failure of one inbound message, reported to its sender only."""

    kind: ErrorKind
    message: str

    def to_envelope(self) -> dict[str, Any]:
        return {"type": Outbound.ERROR.value, "data": {"message": self.message}}

    @classmethod
    def unknown_type(cls, message_type: Any) -> "CommandError":
        return cls(ErrorKind.VALIDATION, UNKNOWN_TYPE_MESSAGE.format(type=message_type))

    @classmethod
    def malformed(cls, detail: str) -> "CommandError":
        return cls(ErrorKind.VALIDATION, MALFORMED_MESSAGE.format(detail=detail))

    @classmethod
    def unexpected(cls, message_type: str) -> "CommandError":
        return cls(ErrorKind.VALIDATION, UNEXPECTED_FAILURE_MESSAGE.format(type=message_type))

    @classmethod
    def room_not_found(cls, room: str | None) -> "CommandError":
        return cls(ErrorKind.NOT_FOUND, ROOM_NOT_FOUND_MESSAGE.format(room=room or ""))

    @classmethod
    def nickname_unavailable(cls) -> "CommandError":
        return cls(ErrorKind.CONFLICT, NICKNAME_UNAVAILABLE_MESSAGE)

    @classmethod
    def invalid_vote(cls, vote: Any) -> "CommandError":
        return cls(ErrorKind.INVALID_VALUE, INVALID_VOTE_MESSAGE.format(vote=vote))

    @classmethod
    def no_votes_to_reveal(cls, nickname: str) -> "CommandError":
        return cls(ErrorKind.PRECONDITION, NO_VOTES_TO_REVEAL_MESSAGE.format(nickname=nickname))

    @classmethod
    def no_votes_to_revoke(cls, nickname: str) -> "CommandError":
        return cls(ErrorKind.PRECONDITION, NO_VOTES_TO_REVOKE_MESSAGE.format(nickname=nickname))

    @classmethod
    def not_a_member(cls, nickname: str, room: str) -> "CommandError":
        return cls(
            ErrorKind.PRECONDITION,
            NOT_A_MEMBER_MESSAGE.format(nickname=nickname, room=room),
        )
