"""Session state machine owning the input/display slots and persisted session.

States::

    IDLE --submit--> REQUESTING --success--> DISPLAYING --close--> IDLE
                          |                       |
                          +--failure--> IDLE      +--regenerate--> REQUESTING

All slot and last-request state lives on the registry instance, and only
the registry writes the persisted session. A successful generation replaces
artifact, variant and view flag with a single ``SessionStore.set_many``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from .client import EncounterGenerator
from .config import BuilderSettings
from .errors import (
    GenerationError,
    InvalidTransitionError,
    RegenerateWithoutContextError,
    RequestInFlightError,
)
from .models import EncounterArtifact, Session
from .normalize import build_artifact
from .schemas import EncounterRequest, VariantRequest
from .state import build_session_record, load_session
from .store import VIEW_OPEN_KEY, SessionStore
from .variants import get_variant, validate_request

logger = logging.getLogger(__name__)

ArtifactRenderer = Callable[[str, EncounterArtifact], None]


class BuilderState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    DISPLAYING = "displaying"


@dataclass
class InputSlot:
    defaults: dict[str, Any]
    focus_count: int = 0


@dataclass
class DisplaySlot:
    variant: str
    artifact: EncounterArtifact
    focus_count: int = 0


@dataclass
class _Slots:
    input: InputSlot | None = None
    display: DisplaySlot | None = None


class EncounterRegistry:
    def __init__(
        self,
        client: EncounterGenerator,
        store: SessionStore,
        settings: BuilderSettings | None = None,
        renderer: ArtifactRenderer | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._settings = settings
        self._renderer = renderer
        self._state = BuilderState.IDLE
        self._session = Session()
        self._slots = _Slots()
        self._last_request: EncounterRequest | None = None
        self._started = False

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def session(self) -> Session:
        return self._session

    @property
    def input_slot(self) -> InputSlot | None:
        return self._slots.input

    @property
    def display_slot(self) -> DisplaySlot | None:
        return self._slots.display

    @property
    def last_request(self) -> EncounterRequest | None:
        return self._last_request

    def restore(self) -> EncounterArtifact | None:
        """Rebuild the last view from the persisted session without any network call."""
        if self._started:
            raise InvalidTransitionError(
                "restore",
                self._state.value,
                message="Session can only be restored at process start",
            )
        self._started = True
        self._session = load_session(self._store)

        artifact = self._session.last_artifact
        if artifact is None or not self._session.view_open:
            return None
        logger.info("Restoring %s encounter from previous session", artifact.variant)
        self._show(artifact)
        self._state = BuilderState.DISPLAYING
        return artifact

    def open_input(self) -> InputSlot:
        self._started = True
        if self._slots.input is not None:
            self._slots.input.focus_count += 1
            return self._slots.input
        self._slots.input = InputSlot(defaults=self._input_defaults())
        return self._slots.input

    def close_input(self) -> None:
        self._slots.input = None

    def open_display(self) -> DisplaySlot:
        """Focus the open view, or reopen the stored artifact from ``IDLE``."""
        self._started = True
        if self._slots.display is not None:
            self._focus_display()
            return self._slots.display
        if self._state is not BuilderState.IDLE:
            raise InvalidTransitionError("open the encounter view", self._state.value)
        artifact = self._session.last_artifact
        if artifact is None:
            raise InvalidTransitionError(
                "open the encounter view",
                self._state.value,
                message="No generated encounter is stored yet",
            )
        self._store.set(VIEW_OPEN_KEY, True)
        self._session = Session(last_artifact=artifact, last_variant=artifact.variant, view_open=True)
        self._show(artifact)
        self._state = BuilderState.DISPLAYING
        return self._slots.display

    async def submit(self, request: Mapping[str, Any] | VariantRequest) -> EncounterArtifact:
        self._started = True
        if self._state is BuilderState.REQUESTING:
            raise RequestInFlightError()
        if self._state is not BuilderState.IDLE:
            raise InvalidTransitionError("submit a new request", self._state.value)

        validated = validate_request(request)
        spec = get_variant(validated.variant)
        self._last_request = validated
        self._state = BuilderState.REQUESTING
        try:
            payload = await self._client.generate(validated)
            artifact = build_artifact(spec.tag, payload, textual=spec.textual)
            self._store.set_many(build_session_record(artifact, view_open=True))
            self._session = Session(last_artifact=artifact, last_variant=spec.tag, view_open=True)
            self._slots.input = None
            self._show(artifact)
            self._state = BuilderState.DISPLAYING
        except GenerationError as exc:
            logger.warning("Could not generate %s encounter: %s", spec.tag, exc)
            raise
        finally:
            if self._state is BuilderState.REQUESTING:
                self._state = BuilderState.IDLE
        return artifact

    async def regenerate(self) -> EncounterArtifact:
        if self._state is not BuilderState.DISPLAYING:
            raise InvalidTransitionError("regenerate", self._state.value)
        if self._last_request is None:
            raise RegenerateWithoutContextError()
        self._slots.display = None
        self._state = BuilderState.IDLE
        try:
            return await self.submit(self._last_request)
        except GenerationError:
            # The view is gone; a restart must not reopen it.
            self._store.set(VIEW_OPEN_KEY, False)
            self._session = Session(
                last_artifact=self._session.last_artifact,
                last_variant=self._session.last_variant,
                view_open=False,
            )
            raise

    def close(self) -> None:
        if self._state is not BuilderState.DISPLAYING:
            raise InvalidTransitionError("close the encounter view", self._state.value)
        self._store.set(VIEW_OPEN_KEY, False)
        self._session = Session(
            last_artifact=self._session.last_artifact,
            last_variant=self._session.last_variant,
            view_open=False,
        )
        self._slots.display = None
        self._state = BuilderState.IDLE

    def _show(self, artifact: EncounterArtifact) -> None:
        self._slots.display = DisplaySlot(variant=artifact.variant, artifact=artifact)
        if self._renderer is not None:
            self._renderer(artifact.variant, artifact)

    def _focus_display(self) -> None:
        slot = self._slots.display
        slot.focus_count += 1
        if self._renderer is not None:
            self._renderer(slot.variant, slot.artifact)

    def _input_defaults(self) -> dict[str, Any]:
        if self._settings is None:
            return {"partySize": 4, "difficulty": "severe"}
        return {
            "partySize": self._settings.default_party_size,
            "difficulty": self._settings.default_difficulty,
        }
