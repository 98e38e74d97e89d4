"""Builders and loaders for the persisted session record."""

from __future__ import annotations

import logging
from typing import Any

from .models import EncounterArtifact, Session, artifact_from_dict, artifact_to_dict
from .store import LAST_ARTIFACT_KEY, LAST_VARIANT_KEY, VIEW_OPEN_KEY, SessionStore

logger = logging.getLogger(__name__)


def build_initial_session() -> dict[str, Any]:
    """Return the empty session written on first run."""
    return {
        LAST_ARTIFACT_KEY: None,
        LAST_VARIANT_KEY: None,
        VIEW_OPEN_KEY: False,
    }


def build_session_record(artifact: EncounterArtifact, view_open: bool = True) -> dict[str, Any]:
    return {
        LAST_ARTIFACT_KEY: artifact_to_dict(artifact),
        LAST_VARIANT_KEY: artifact.variant,
        VIEW_OPEN_KEY: view_open,
    }


def load_session(store: SessionStore) -> Session:
    """Read the session, writing an empty one if nothing was stored yet.

    A stored artifact that cannot be rebuilt, or whose variant disagrees with
    the stored variant tag, is dropped with a warning.
    """
    raw_artifact = store.get(LAST_ARTIFACT_KEY)
    last_variant = store.get(LAST_VARIANT_KEY)
    view_open = store.get(VIEW_OPEN_KEY)

    if raw_artifact is None and last_variant is None and view_open is None:
        store.set_many(build_initial_session())
        return Session()

    artifact: EncounterArtifact | None = None
    if raw_artifact is not None:
        try:
            artifact = artifact_from_dict(raw_artifact)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Ignoring unreadable stored encounter: %s", exc)
        else:
            if artifact.variant != last_variant:
                logger.warning(
                    "Ignoring stored %s encounter recorded under variant %r",
                    artifact.variant,
                    last_variant,
                )
                artifact = None

    return Session(
        last_artifact=artifact,
        last_variant=last_variant if artifact is not None else None,
        view_open=bool(view_open) and artifact is not None,
    )
