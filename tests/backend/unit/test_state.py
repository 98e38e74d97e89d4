from encounterbuilder.backend.models import ParsedSections, Session, StructuredArtifact, TextArtifact
from encounterbuilder.backend.state import build_initial_session, build_session_record, load_session
from encounterbuilder.backend.store import (
    LAST_ARTIFACT_KEY,
    LAST_VARIANT_KEY,
    VIEW_OPEN_KEY,
    InMemorySessionStore,
)

TEXT_ARTIFACT = TextArtifact(
    variant="combat",
    sections=ParsedSections(title="Goblin Ambush", monsters="Gesamt-XP: 80", xp_total=80),
    raw_text="## 0. Titel\nGoblin Ambush\n## 2. Monster\nGesamt-XP: 80",
)


def test_build_initial_session_is_empty() -> None:
    assert build_initial_session() == {
        LAST_ARTIFACT_KEY: None,
        LAST_VARIANT_KEY: None,
        VIEW_OPEN_KEY: False,
    }


def test_build_session_record_serializes_artifact_and_variant() -> None:
    record = build_session_record(TEXT_ARTIFACT)

    assert record[LAST_VARIANT_KEY] == "combat"
    assert record[VIEW_OPEN_KEY] is True
    assert record[LAST_ARTIFACT_KEY]["kind"] == "text"
    assert record[LAST_ARTIFACT_KEY]["sections"]["xpTotal"] == 80


def test_load_session_initializes_empty_store() -> None:
    store = InMemorySessionStore()

    session = load_session(store)

    assert session == Session()
    assert store.get(VIEW_OPEN_KEY) is False


def test_load_session_rebuilds_stored_artifacts() -> None:
    store = InMemorySessionStore()
    structured = StructuredArtifact(variant="travel", title="Road to Absalom", xp_total=60, payload={"days": 3})
    store.set_many(build_session_record(structured, view_open=False))

    session = load_session(store)

    assert session.last_artifact == structured
    assert session.last_variant == "travel"
    assert session.view_open is False


def test_load_session_drops_unreadable_artifact() -> None:
    store = InMemorySessionStore()
    store.set_many({LAST_ARTIFACT_KEY: {"kind": "hologram"}, LAST_VARIANT_KEY: "combat", VIEW_OPEN_KEY: True})

    session = load_session(store)

    assert session == Session()


def test_load_session_drops_artifact_stored_under_other_variant() -> None:
    store = InMemorySessionStore()
    record = build_session_record(TEXT_ARTIFACT)
    record[LAST_VARIANT_KEY] = "lair"
    store.set_many(record)

    session = load_session(store)

    assert session.last_artifact is None
    assert session.view_open is False
