"""FastAPI endpoints for submitting encounters and following the displayed one."""

from __future__ import annotations

from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from .client import GenerationClient
from .config import load_settings
from .errors import (
    EncounterBuilderError,
    EncounterValidationError,
    GenerationTimeout,
    GenerationError,
    InvalidTransitionError,
    RegenerateWithoutContextError,
    describe_error,
)
from .models import EncounterArtifact, artifact_to_dict
from .registry import EncounterRegistry
from .store import create_store
from .variants import VARIANTS


class VariantInfo(BaseModel):
    tag: str
    label: str
    required_fields: list[str]
    textual: bool


class SessionResponse(BaseModel):
    state: str
    variant: str | None
    view_open: bool
    artifact: dict[str, Any] | None


class InputResponse(BaseModel):
    defaults: dict[str, Any]
    focus_count: int


class DisplayWebSocketHub:
    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)

    async def send_display(self, websocket: WebSocket, variant: str, artifact: EncounterArtifact) -> None:
        await websocket.send_json(
            {"type": "artifact.display", "variant": variant, "artifact": artifact_to_dict(artifact)}
        )

    async def broadcast_display(self, variant: str, artifact: EncounterArtifact) -> None:
        stale_connections: list[WebSocket] = []
        for websocket in list(self._connections):
            try:
                await self.send_display(websocket, variant, artifact)
            except RuntimeError:
                stale_connections.append(websocket)
        for websocket in stale_connections:
            self.disconnect(websocket)


def _default_registry() -> EncounterRegistry:
    settings = load_settings()
    return EncounterRegistry(
        client=GenerationClient(server_url=settings.server_url),
        store=create_store(settings.database_url, settings.session_path),
        settings=settings,
    )


def _status_for(exc: EncounterBuilderError) -> int:
    if isinstance(exc, EncounterValidationError):
        return 422
    if isinstance(exc, (InvalidTransitionError, RegenerateWithoutContextError)):
        return 409
    if isinstance(exc, GenerationTimeout):
        return 504
    if isinstance(exc, GenerationError):
        return 502
    return 400


def _to_http_error(exc: EncounterBuilderError) -> HTTPException:
    return HTTPException(status_code=_status_for(exc), detail=describe_error(exc))


def create_app(registry: EncounterRegistry | None = None) -> FastAPI:
    app = FastAPI(title="Encounter Builder API", version="0.1.0")
    encounter_registry = registry if registry is not None else _default_registry()
    encounter_registry.restore()
    websocket_hub = DisplayWebSocketHub()
    app.state.registry = encounter_registry
    app.state.websocket_hub = websocket_hub

    def get_registry() -> EncounterRegistry:
        return encounter_registry

    def session_response(local_registry: EncounterRegistry) -> SessionResponse:
        slot = local_registry.display_slot
        session = local_registry.session
        return SessionResponse(
            state=local_registry.state.value,
            variant=slot.variant if slot is not None else session.last_variant,
            view_open=slot is not None,
            artifact=artifact_to_dict(slot.artifact) if slot is not None else None,
        )

    async def publish_display(local_registry: EncounterRegistry) -> None:
        slot = local_registry.display_slot
        if slot is not None:
            await websocket_hub.broadcast_display(slot.variant, slot.artifact)

    @app.get("/api/variants", response_model=list[VariantInfo])
    def list_variants() -> list[VariantInfo]:
        return [
            VariantInfo(
                tag=spec.tag,
                label=spec.label,
                required_fields=spec.required_fields(),
                textual=spec.textual,
            )
            for spec in VARIANTS.values()
        ]

    @app.get("/api/session", response_model=SessionResponse)
    def get_session(local_registry: EncounterRegistry = Depends(get_registry)) -> SessionResponse:
        return session_response(local_registry)

    @app.post("/api/input", response_model=InputResponse)
    def open_input(local_registry: EncounterRegistry = Depends(get_registry)) -> InputResponse:
        slot = local_registry.open_input()
        return InputResponse(defaults=slot.defaults, focus_count=slot.focus_count)

    @app.post("/api/encounters/{variant}", response_model=SessionResponse)
    async def submit_encounter(
        variant: str,
        payload: dict[str, Any] | None = Body(default=None),
        local_registry: EncounterRegistry = Depends(get_registry),
    ) -> SessionResponse:
        try:
            await local_registry.submit({**(payload or {}), "variant": variant})
        except EncounterBuilderError as exc:
            raise _to_http_error(exc) from exc
        await publish_display(local_registry)
        return session_response(local_registry)

    @app.post("/api/session/regenerate", response_model=SessionResponse)
    async def regenerate_encounter(local_registry: EncounterRegistry = Depends(get_registry)) -> SessionResponse:
        try:
            await local_registry.regenerate()
        except EncounterBuilderError as exc:
            raise _to_http_error(exc) from exc
        await publish_display(local_registry)
        return session_response(local_registry)

    @app.post("/api/session/close", response_model=SessionResponse)
    def close_view(local_registry: EncounterRegistry = Depends(get_registry)) -> SessionResponse:
        try:
            local_registry.close()
        except EncounterBuilderError as exc:
            raise _to_http_error(exc) from exc
        return session_response(local_registry)

    @app.post("/api/session/display", response_model=SessionResponse)
    async def open_view(local_registry: EncounterRegistry = Depends(get_registry)) -> SessionResponse:
        try:
            local_registry.open_display()
        except EncounterBuilderError as exc:
            raise _to_http_error(exc) from exc
        await publish_display(local_registry)
        return session_response(local_registry)

    @app.websocket("/ws/session")
    async def session_ws(
        websocket: WebSocket,
        local_registry: EncounterRegistry = Depends(get_registry),
    ) -> None:
        await websocket_hub.connect(websocket)
        slot = local_registry.display_slot
        if slot is not None:
            await websocket_hub.send_display(websocket, slot.variant, slot.artifact)

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            websocket_hub.disconnect(websocket)

    return app


app = create_app()
