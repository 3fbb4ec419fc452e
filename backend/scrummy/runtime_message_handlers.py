from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, assert_never, cast

from pydantic import ValidationError

from .runtime_constants import Command, Outbound
from .runtime_errors import CommandError
from .runtime_types import Connection, User
from .runtime_utils import envelope, format_entity_name, unique_formatted_entity_name
from .schemas.messages import (
    PAYLOAD_MODELS,
    InboundEnvelope,
    MemberPayload,
    PlaceVotePayload,
    RoomPayload,
    SignInPayload,
)

if TYPE_CHECKING:
    from .runtime import ScrummyRuntime

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid payload"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "message"
    return f"{location}: {first.get('msg', 'invalid value')}"


def parse_envelope(raw: str | bytes) -> InboundEnvelope | CommandError:
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return CommandError.malformed("expected a JSON object")
    if not isinstance(decoded, dict):
        return CommandError.malformed("expected a JSON object")
    try:
        return InboundEnvelope.model_validate(decoded)
    except ValidationError as exc:
        return CommandError.malformed(_describe_validation_error(exc))


async def handle_message(
    runtime: "ScrummyRuntime",
    connection: Connection,
    raw: str | bytes,
) -> CommandError | None:
    parsed = parse_envelope(raw)
    if isinstance(parsed, CommandError):
        runtime._increment_stat("rejectMalformed")
        await _report_error(runtime, connection, parsed, message_type="-")
        return parsed

    try:
        command = Command(parsed.type)
    except ValueError:
        error = CommandError.unknown_type(parsed.type)
        runtime._increment_stat("rejectUnknownType")
        runtime._log_ws_event(
            "unknown_type",
            level=logging.WARNING,
            peerId=connection.peer_id,
            messageType=parsed.type[:64],
        )
        await _report_error(runtime, connection, error, message_type=parsed.type)
        return error

    try:
        payload = PAYLOAD_MODELS[command].model_validate(parsed.data)
    except ValidationError as exc:
        error = CommandError.malformed(_describe_validation_error(exc))
        runtime._increment_stat("rejectMalformed")
        await _report_error(runtime, connection, error, message_type=command.value)
        return error

    try:
        error = await dispatch_command(runtime, command, payload, connection)
    except Exception:
        logger.exception("Unhandled error in %s from peer %s", command.value, connection.peer_id)
        error = CommandError.unexpected(command.value)

    if error is not None:
        await _report_error(runtime, connection, error, message_type=command.value)
    return error


async def dispatch_command(
    runtime: "ScrummyRuntime",
    command: Command,
    payload: RoomPayload,
    connection: Connection,
) -> CommandError | None:
    match command:
        case Command.SIGN_IN:
            return await sign_in(runtime, cast(SignInPayload, payload), connection)
        case Command.PLACE_VOTE:
            return await place_vote(runtime, cast(PlaceVotePayload, payload), connection)
        case Command.REVEAL:
            return await reveal(runtime, cast(MemberPayload, payload))
        case Command.RESET:
            return await reset(runtime, payload)
        case Command.REVOKE_VOTE:
            return await revoke_vote(runtime, cast(MemberPayload, payload))
        case Command.DISCONNECT:
            return await disconnect(runtime, cast(MemberPayload, payload))
        case Command.GET_PLAYER_COUNT:
            return await get_player_count(runtime, payload, connection)
        case _:
            assert_never(command)


async def _report_error(
    runtime: "ScrummyRuntime",
    connection: Connection,
    error: CommandError,
    *,
    message_type: str,
) -> None:
    runtime._increment_stat("commandErrors")
    runtime._log_ws_event(
        "command_error",
        level=logging.INFO,
        peerId=connection.peer_id,
        messageType=message_type[:64],
        kind=error.kind.value,
    )
    await runtime._send_safe(connection, error.to_envelope())


async def sign_in(
    runtime: "ScrummyRuntime",
    payload: SignInPayload,
    connection: Connection,
) -> CommandError | None:
    if not format_entity_name(payload.nickname):
        return CommandError.nickname_unavailable()

    requested_room = format_entity_name(payload.room)
    if requested_room:
        room = await runtime.registry.get_or_create(requested_room)
    else:
        room = await runtime.registry.create_generated(runtime.name_generator)

    async with room.lock:
        nickname = unique_formatted_entity_name(payload.nickname, room.nicknames)
        if not nickname:
            return CommandError.nickname_unavailable()

        room.add_user(User(nickname=nickname, room=room.name, connection=connection))
        runtime.track_membership(connection, room.name, nickname)
        users = room.users_payload()

        await runtime._send_safe(
            connection,
            envelope(
                Outbound.YOU_SIGNED_IN.value,
                {
                    "nickname": nickname,
                    "points": list(runtime.settings.points),
                    "room": room.name,
                    "users": users,
                },
            ),
            room=room.name,
        )
        await room.broadcast(
            envelope(
                Outbound.SOMEONE_SIGNED_IN.value,
                {"nickname": nickname, "room": room.name, "users": users},
            )
        )

    runtime._log_ws_event(
        "sign_in",
        room=room.name,
        peerId=connection.peer_id,
        members=len(users),
    )
    return None


async def place_vote(
    runtime: "ScrummyRuntime",
    payload: PlaceVotePayload,
    connection: Connection,
) -> CommandError | None:
    room = await runtime.registry.get(format_entity_name(payload.room))
    if room is None:
        return CommandError.room_not_found(payload.room)
    if str(payload.vote) not in runtime.settings.points:
        return CommandError.invalid_vote(payload.vote)

    nickname = format_entity_name(payload.nickname)
    async with room.lock:
        if not room.has_user(nickname):
            return CommandError.not_a_member(nickname, room.name)

        room.record_vote(nickname, payload.vote)
        await runtime._send_safe(
            connection,
            envelope(Outbound.YOU_VOTED.value, {"nickname": nickname, "vote": payload.vote}),
            room=room.name,
        )
        await room.broadcast(
            envelope(
                Outbound.SOMEONE_VOTED.value,
                {"nickname": nickname, "votes": room.votes_payload()},
            )
        )
    return None


async def reveal(runtime: "ScrummyRuntime", payload: MemberPayload) -> CommandError | None:
    room = await runtime.registry.get(format_entity_name(payload.room))
    if room is None:
        return CommandError.room_not_found(payload.room)

    async with room.lock:
        if not room.votes:
            return CommandError.no_votes_to_reveal(format_entity_name(payload.nickname))
        await room.broadcast(envelope(Outbound.REVEAL.value))
    return None


async def reset(runtime: "ScrummyRuntime", payload: RoomPayload) -> CommandError | None:
    room = await runtime.registry.get(format_entity_name(payload.room))
    if room is None:
        return CommandError.room_not_found(payload.room)

    async with room.lock:
        await room.reset_votes()
    return None


async def revoke_vote(runtime: "ScrummyRuntime", payload: MemberPayload) -> CommandError | None:
    room = await runtime.registry.get(format_entity_name(payload.room))
    if room is None:
        return CommandError.room_not_found(payload.room)

    nickname = format_entity_name(payload.nickname)
    async with room.lock:
        if nickname not in room.votes:
            return CommandError.no_votes_to_revoke(nickname)
        await room.revoke_vote(nickname)
    return None


async def disconnect(runtime: "ScrummyRuntime", payload: MemberPayload) -> CommandError | None:
    room = await runtime.registry.get(format_entity_name(payload.room))
    if room is None:
        return CommandError.room_not_found(payload.room)

    nickname = format_entity_name(payload.nickname)
    async with room.lock:
        removed = await room.remove_user(nickname)
        if removed is None:
            return CommandError.not_a_member(nickname, room.name)
        runtime.forget_membership(removed.connection, room.name, nickname)
    return None


async def get_player_count(
    runtime: "ScrummyRuntime",
    payload: RoomPayload,
    connection: Connection,
) -> CommandError | None:
    room_name = format_entity_name(payload.room)
    count = await runtime.player_count(room_name)
    await runtime._send_safe(
        connection,
        envelope(Outbound.PLAYER_COUNT.value, {"room": room_name, "count": count}),
        room=room_name or None,
    )
    return None
