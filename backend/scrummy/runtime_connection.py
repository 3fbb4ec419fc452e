from __future__ import annotations

import json
from typing import Any, Callable

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from .runtime_utils import random_id


class WebSocketConnection:
    def __init__(
        self,
        websocket: WebSocket,
        *,
        on_send_failure: Callable[[], None] | None = None,
    ) -> None:
        self.peer_id = random_id()
        self.websocket = websocket
        self._on_send_failure = on_send_failure
        self._closed = False

    @property
    def is_open(self) -> bool:
        if self._closed:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    def record_send_failure(self) -> None:
        if self._on_send_failure is not None:
            self._on_send_failure()

    async def send(self, payload: dict[str, Any]) -> None:
        await self.websocket.send_text(
            json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        )
