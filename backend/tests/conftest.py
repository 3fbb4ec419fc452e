import json
import random
import uuid

import pytest
from fastapi.testclient import TestClient

from scrummy.application import create_app
from scrummy.config import Settings
from scrummy.runtime import ScrummyRuntime
from scrummy.runtime_utils import RoomNameGenerator

TEST_POINTS = "0,1,2,3,5,8,13,?"
TEST_WORDS = "alpha,bravo,charlie"


class FakeConnection:
    """Stands in for a websocket: records every envelope it is sent."""

    def __init__(self, *, fail_sends: bool = False) -> None:
        self.peer_id = str(uuid.uuid4())
        self.sent: list[dict] = []
        self.open = True
        self.fail_sends = fail_sends
        self.failures = 0

    @property
    def is_open(self) -> bool:
        return self.open

    async def send(self, payload: dict) -> None:
        if self.fail_sends:
            raise ConnectionError("socket went away")
        self.sent.append(payload)

    def record_send_failure(self) -> None:
        self.failures += 1

    def types(self) -> list[str]:
        return [message["type"] for message in self.sent]

    def last(self, message_type: str) -> dict:
        for message in reversed(self.sent):
            if message["type"] == message_type:
                return message
        raise AssertionError(f"{message_type} was never sent; got {self.types()}")

    def errors(self) -> list[str]:
        return [message["data"]["message"] for message in self.sent if message["type"] == "error"]


@pytest.fixture()
def app_settings(monkeypatch):
    monkeypatch.setenv("POINTS", TEST_POINTS)
    monkeypatch.setenv("WORDS", TEST_WORDS)
    monkeypatch.setenv("LOGGING_ENABLED", "false")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("WS_PORT", raising=False)
    return Settings()


@pytest.fixture()
def runtime(app_settings):
    generator = RoomNameGenerator(app_settings.words, rng=random.Random(7))
    return ScrummyRuntime(app_settings, name_generator=generator)


@pytest.fixture()
def connect():
    def factory(**kwargs) -> FakeConnection:
        return FakeConnection(**kwargs)

    return factory


@pytest.fixture()
def send(runtime):
    async def sender(connection, message_type, **data):
        await runtime.handle_message(
            connection,
            json.dumps({"type": message_type, "data": data}),
        )

    return sender


@pytest.fixture()
def client(app_settings):
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client
