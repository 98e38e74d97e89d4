"""Persistence interfaces and implementations for session settings."""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Protocol

SESSION_SCOPE = "encounter-builder"

LAST_ARTIFACT_KEY = "lastArtifact"
LAST_VARIANT_KEY = "lastVariant"
VIEW_OPEN_KEY = "viewOpen"
SESSION_KEYS = (LAST_ARTIFACT_KEY, LAST_VARIANT_KEY, VIEW_OPEN_KEY)


class SessionStore(Protocol):
    def get(self, key: str) -> Any:
        """Return the stored value for key, or None when unset."""

    def set(self, key: str, value: Any) -> None:
        """Store a single JSON-compatible value."""

    def set_many(self, values: Mapping[str, Any]) -> None:
        """Store several values so readers never see only some of them."""


@dataclass
class InMemorySessionStore:
    scope: str = SESSION_SCOPE

    def __post_init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, Any]) -> None:
        next_values = dict(self._values)
        next_values.update(copy.deepcopy(dict(values)))
        self._values = next_values


@dataclass
class JsonFileSessionStore:
    """Stores every scope in one JSON document, rewritten whole on each write."""

    path: Path
    scope: str = SESSION_SCOPE

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        document = json.loads(raw)
        return document if isinstance(document, dict) else {}

    def get(self, key: str) -> Any:
        scoped = self._read_document().get(self.scope, {})
        return scoped.get(key) if isinstance(scoped, dict) else None

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, Any]) -> None:
        document = self._read_document()
        scoped = dict(document.get(self.scope) or {})
        scoped.update(values)
        document[self.scope] = scoped

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)


@dataclass
class PostgresSessionStore:
    database_url: str
    scope: str = SESSION_SCOPE

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def get(self, key: str) -> Any:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT value_json
                    FROM session_settings
                    WHERE scope = %s AND key = %s
                    """,
                    (self.scope, key),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return row[0]

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            with conn.cursor() as cur:
                for key, value in values.items():
                    cur.execute(
                        """
                        INSERT INTO session_settings (scope, key, value_json, updated_at)
                        VALUES (%s, %s, %s::jsonb, %s)
                        ON CONFLICT (scope, key)
                        DO UPDATE SET value_json = EXCLUDED.value_json, updated_at = EXCLUDED.updated_at
                        """,
                        (self.scope, key, json.dumps(value), now),
                    )
            conn.commit()


def create_store(database_url: str | None, session_path: str | None = None) -> SessionStore:
    if database_url:
        return PostgresSessionStore(database_url=database_url)
    if session_path:
        return JsonFileSessionStore(path=Path(session_path))
    return InMemorySessionStore()
