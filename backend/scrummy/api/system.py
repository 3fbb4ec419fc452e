from __future__ import annotations

from fastapi import APIRouter, Request

from scrummy.runtime import ScrummyRuntime
from scrummy.runtime_utils import format_entity_name

router = APIRouter(tags=["system"])


def _runtime(request: Request) -> ScrummyRuntime:
    return request.app.state.runtime


@router.get("/api/health")
async def health(request: Request) -> dict[str, object]:
    runtime = _runtime(request)
    ws_stats = await runtime.get_ws_stats()
    ws_summary = {
        "activeConnections": ws_stats["stats"].get("activeConnections", 0),
        "peakConnections": ws_stats["stats"].get("peakConnections", 0),
    }
    return {
        "ok": True,
        "activeRooms": runtime.active_rooms_count,
        "websocket": ws_summary,
    }


@router.get("/api/ws-stats")
async def websocket_stats(request: Request) -> dict[str, object]:
    return await _runtime(request).get_ws_stats()


@router.get("/api/rooms/{room}/count")
async def room_player_count(room: str, request: Request) -> dict[str, object]:
    room_name = format_entity_name(room)
    count = await _runtime(request).player_count(room_name)
    return {"room": room_name, "count": count}
