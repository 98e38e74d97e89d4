"""Configuration helpers for the encounter builder runtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DIFFICULTY_XP = {
    "trivial": 40,
    "low": 60,
    "moderate": 80,
    "severe": 120,
    "extreme": 160,
}


@dataclass(frozen=True)
class BuilderSettings:
    server_url: str
    default_difficulty: str
    default_party_size: int
    database_url: str | None
    session_path: str | None
    host: str
    port: int
    log_level: str


def load_settings() -> BuilderSettings:
    port_raw = os.getenv("ENCOUNTERBUILDER_PORT", "8000")
    party_size_raw = os.getenv("ENCOUNTERBUILDER_DEFAULT_PARTY_SIZE", "4")
    difficulty = os.getenv("ENCOUNTERBUILDER_DEFAULT_DIFFICULTY", "severe").strip().lower()
    if difficulty not in DIFFICULTY_XP:
        raise ValueError(f"Unknown default difficulty: {difficulty!r}")
    return BuilderSettings(
        server_url=os.getenv("ENCOUNTERBUILDER_SERVER_URL", "http://localhost:3000").rstrip("/"),
        default_difficulty=difficulty,
        default_party_size=int(party_size_raw),
        database_url=os.getenv("ENCOUNTERBUILDER_DATABASE_URL"),
        session_path=os.getenv("ENCOUNTERBUILDER_SESSION_PATH"),
        host=os.getenv("ENCOUNTERBUILDER_HOST", "127.0.0.1"),
        port=int(port_raw),
        log_level=os.getenv("ENCOUNTERBUILDER_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
