from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_POINTS: tuple[str, ...] = ("0", "1", "2", "3", "5", "8", "13", "20", "40", "100", "?")
DEFAULT_WORDS: tuple[str, ...] = (
    "aardvark",
    "albatross",
    "armadillo",
    "badger",
    "barracuda",
    "bison",
    "capybara",
    "chameleon",
    "cheetah",
    "dingo",
    "dolphin",
    "falcon",
    "ferret",
    "gazelle",
    "gecko",
    "hedgehog",
    "heron",
    "jackal",
    "kestrel",
    "koala",
    "lemur",
    "lynx",
    "mongoose",
    "narwhal",
    "ocelot",
    "otter",
    "pangolin",
    "pelican",
    "quokka",
    "raccoon",
    "salamander",
    "tapir",
    "toucan",
    "walrus",
    "wombat",
    "yak",
)

_TRUTHY = {"1", "true", "yes", "on"}


def _parse_csv(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    values = tuple(part.strip() for part in (raw or "").split(",") if part.strip())
    return values or default


class Settings:
    def __init__(self) -> None:
        self.port = int(os.getenv("PORT") or os.getenv("WS_PORT") or "3001")
        self.points = _parse_csv(os.getenv("POINTS"), DEFAULT_POINTS)
        self.words = _parse_csv(os.getenv("WORDS"), DEFAULT_WORDS)
        self.logging_enabled = (
            os.getenv("LOGGING_ENABLED", "true").strip().lower() in _TRUTHY
        )
        self.log_level = os.getenv("LOG_LEVEL", "").strip().upper() or None

    @property
    def effective_log_level(self) -> int:
        if self.log_level:
            level = logging.getLevelName(self.log_level)
            if isinstance(level, int):
                return level
        return logging.INFO if self.logging_enabled else logging.WARNING


settings = Settings()
