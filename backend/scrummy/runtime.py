from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from .config import Settings
from .runtime_connection import WebSocketConnection
from .runtime_constants import ROOM_SUMMARY_LIMIT
from .runtime_message_handlers import handle_message as handle_room_message
from .runtime_rooms import RoomRegistry
from .runtime_types import Connection
from .runtime_utils import RoomNameGenerator, now_ms, send_safe

logger = logging.getLogger(__name__)


class ScrummyRuntime:
    def __init__(self, settings: Settings, *, name_generator: RoomNameGenerator | None = None) -> None:
        self.settings = settings
        self.registry = RoomRegistry()
        self.name_generator = name_generator or RoomNameGenerator(settings.words)
        self._memberships: dict[str, set[tuple[str, str]]] = {}
        self._ws_stats: dict[str, int] = {
            "connectSuccess": 0,
            "disconnects": 0,
            "messageReceived": 0,
            "sendFailures": 0,
            "rejectUnknownType": 0,
            "rejectMalformed": 0,
            "commandErrors": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }

    @property
    def active_rooms_count(self) -> int:
        return len(self.registry)

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _on_connect(self) -> None:
        self._increment_stat("connectSuccess")
        active_connections = int(self._ws_stats.get("activeConnections", 0)) + 1
        self._ws_stats["activeConnections"] = active_connections
        if active_connections > int(self._ws_stats.get("peakConnections", 0)):
            self._ws_stats["peakConnections"] = active_connections

    def _on_disconnect(self) -> None:
        self._increment_stat("disconnects")
        active_connections = max(0, int(self._ws_stats.get("activeConnections", 0)) - 1)
        self._ws_stats["activeConnections"] = active_connections

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def _send_safe(
        self,
        connection: Connection,
        data: dict[str, Any],
        room: str | None = None,
    ) -> bool:
        return await send_safe(connection, data, room=room)

    def track_membership(self, connection: Connection, room: str, nickname: str) -> None:
        self._memberships.setdefault(connection.peer_id, set()).add((room, nickname))

    def forget_membership(self, connection: Connection, room: str, nickname: str) -> None:
        memberships = self._memberships.get(connection.peer_id)
        if memberships is None:
            return
        memberships.discard((room, nickname))
        if not memberships:
            self._memberships.pop(connection.peer_id, None)

    def memberships_for(self, connection: Connection) -> set[tuple[str, str]]:
        return set(self._memberships.get(connection.peer_id, set()))

    async def player_count(self, room_name: str) -> int:
        room = await self.registry.get(room_name)
        if room is None:
            return 0
        async with room.lock:
            return len(room.users)

    async def get_ws_stats(self) -> dict[str, Any]:
        room_summaries = [
            {
                "room": room.name,
                "members": len(room.users),
                "votes": len(room.votes),
            }
            for room in await self.registry.snapshot()
        ]
        room_summaries.sort(key=lambda item: int(item.get("members", 0)), reverse=True)

        return {
            "generatedAt": now_ms(),
            "activeRooms": len(room_summaries),
            "stats": dict(self._ws_stats),
            "rooms": room_summaries[:ROOM_SUMMARY_LIMIT],
        }

    async def handle_message(self, connection: Connection, raw: str | bytes) -> None:
        self._increment_stat("messageReceived")
        await handle_room_message(self, connection, raw)

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        connection = WebSocketConnection(
            websocket,
            on_send_failure=lambda: self._increment_stat("sendFailures"),
        )
        self._on_connect()
        self._log_ws_event("connect", peerId=connection.peer_id)

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                raw = await websocket.receive_text()
                await self.handle_message(connection, raw)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception("Unexpected websocket error for peer %s", connection.peer_id)
        finally:
            connection.mark_closed()
            await self.cleanup_connection(
                connection,
                reason=disconnect_reason,
                close_code=disconnect_code,
            )

    async def cleanup_connection(
        self,
        connection: Connection,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        memberships = self._memberships.pop(connection.peer_id, set())
        pruned: list[str] = []

        for room_name, nickname in sorted(memberships):
            room = await self.registry.get(room_name)
            if room is None:
                continue
            async with room.lock:
                current = room.get_user(nickname)
                if current is None or current.connection is not connection:
                    continue
                await room.remove_user(nickname)
                pruned.append(room_name)

        self._on_disconnect()
        self._log_ws_event(
            "disconnect",
            peerId=connection.peer_id,
            rooms=pruned,
            reason=reason,
            closeCode=close_code,
        )
