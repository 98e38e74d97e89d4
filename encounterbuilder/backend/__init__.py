"""Backend package for the encounter builder."""

from .client import GenerationClient
from .config import BuilderSettings, configure_logging, load_settings
from .errors import (
    EncounterBuilderError,
    EncounterValidationError,
    GenerationError,
    GenerationRejected,
    GenerationTimeout,
    GenerationTransportError,
    InvalidTransitionError,
    RegenerateWithoutContextError,
    RequestInFlightError,
    describe_error,
)
from .models import ParsedSections, Session, StructuredArtifact, TextArtifact
from .parser import parse_sections
from .registry import BuilderState, EncounterRegistry
from .state import build_initial_session
from .store import (
    InMemorySessionStore,
    JsonFileSessionStore,
    PostgresSessionStore,
    SessionStore,
    create_store,
)
from .variants import VARIANTS, validate_request

__all__ = [
    "BuilderSettings",
    "BuilderState",
    "build_initial_session",
    "configure_logging",
    "create_store",
    "describe_error",
    "EncounterBuilderError",
    "EncounterRegistry",
    "EncounterValidationError",
    "GenerationClient",
    "GenerationError",
    "GenerationRejected",
    "GenerationTimeout",
    "GenerationTransportError",
    "InMemorySessionStore",
    "InvalidTransitionError",
    "JsonFileSessionStore",
    "load_settings",
    "parse_sections",
    "ParsedSections",
    "PostgresSessionStore",
    "RegenerateWithoutContextError",
    "RequestInFlightError",
    "Session",
    "SessionStore",
    "StructuredArtifact",
    "TextArtifact",
    "validate_request",
    "VARIANTS",
]
