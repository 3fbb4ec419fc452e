from __future__ import annotations

from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from scrummy.runtime_constants import Command


class InboundEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def default_missing_data(cls, value: Any) -> Any:
        return {} if value is None else value


class RoomPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    # "game" is what older clients send.
    room: str | None = Field(default=None, validation_alias=AliasChoices("room", "game"))


class SignInPayload(RoomPayload):
    nickname: str | None = None


class MemberPayload(RoomPayload):
    nickname: str | None = None


class PlaceVotePayload(MemberPayload):
    # Strict so that true stays a bool and is rejected as a vote.
    vote: StrictInt | StrictFloat | StrictStr | StrictBool | None = None


PAYLOAD_MODELS: dict[Command, type[RoomPayload]] = {
    Command.SIGN_IN: SignInPayload,
    Command.PLACE_VOTE: PlaceVotePayload,
    Command.REVEAL: MemberPayload,
    Command.RESET: MemberPayload,
    Command.REVOKE_VOTE: MemberPayload,
    Command.DISCONNECT: MemberPayload,
    Command.GET_PLAYER_COUNT: RoomPayload,
}
