"""Request models for every encounter variant.

Python attributes are snake_case; the generation service speaks lowerCamelCase,
so every model serializes by alias. Unknown fields are ignored on input.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

SINGLE_ITERATION_DEADLINE_S = 120.0
MULTI_ITERATION_DEADLINE_S = 300.0

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PartyLevel = Annotated[int, Field(ge=1, le=20)]
PartySize = Annotated[int, Field(ge=1, le=8)]
PositiveCount = Annotated[int, Field(ge=1)]
Difficulty = Literal["trivial", "low", "moderate", "severe", "extreme"]


class VariantRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    endpoint: ClassVar[str]
    deadline_s: ClassVar[float] = MULTI_ITERATION_DEADLINE_S

    variant: str
    party_level: PartyLevel
    narrative_hook: str | None = None

    @field_validator("narrative_hook", mode="before")
    @classmethod
    def _blank_hook_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_wire(self) -> dict[str, Any]:
        """Return the flat document sent to the generation service."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"variant"})


def _split_traits(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return value


class CombatRequest(VariantRequest):
    endpoint: ClassVar[str] = "/encounter"
    deadline_s: ClassVar[float] = SINGLE_ITERATION_DEADLINE_S

    variant: Literal["combat"] = "combat"
    party_size: PartySize
    difficulty: Difficulty
    terrain: str | None = None
    include_traits: list[str] = Field(default_factory=list)
    exclude_traits: list[str] = Field(default_factory=list)

    @field_validator("include_traits", "exclude_traits", mode="before")
    @classmethod
    def _normalize_traits(cls, value: Any) -> Any:
        return _split_traits(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lower_difficulty(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("terrain", mode="before")
    @classmethod
    def _blank_terrain_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class InfluenceRequest(VariantRequest):
    endpoint: ClassVar[str] = "/influence"

    variant: Literal["influence"] = "influence"
    context: NonBlankStr
    npc_count: PositiveCount = 1


class ResearchRequest(VariantRequest):
    endpoint: ClassVar[str] = "/research"

    variant: Literal["research"] = "research"
    context: NonBlankStr
    library_name: str | None = None


class ChaseRequest(VariantRequest):
    endpoint: ClassVar[str] = "/chase"

    variant: Literal["chase"] = "chase"
    context: NonBlankStr
    obstacle_count: PositiveCount


class DungeonRequest(VariantRequest):
    endpoint: ClassVar[str] = "/dungeon"

    variant: Literal["dungeon"] = "dungeon"
    party_size: PartySize
    room_count: PositiveCount
    theme: str | None = None


class InfiltrationRequest(VariantRequest):
    endpoint: ClassVar[str] = "/infiltration"

    variant: Literal["infiltration"] = "infiltration"
    context: NonBlankStr
    objective: NonBlankStr


class LairRequest(VariantRequest):
    endpoint: ClassVar[str] = "/lair"

    variant: Literal["lair"] = "lair"
    creature: NonBlankStr
    context: str | None = None


class TravelRequest(VariantRequest):
    endpoint: ClassVar[str] = "/travel"

    variant: Literal["travel"] = "travel"
    origin: NonBlankStr
    destination: NonBlankStr
    days: PositiveCount = 1


EncounterRequest = Annotated[
    Union[
        CombatRequest,
        InfluenceRequest,
        ResearchRequest,
        ChaseRequest,
        DungeonRequest,
        InfiltrationRequest,
        LairRequest,
        TravelRequest,
    ],
    Field(discriminator="variant"),
]


class ServiceEnvelope(BaseModel):
    """Outer wrapper returned by the generation service.

    Older server builds answer with ``encounter`` or ``result`` instead of
    ``payload``; the aliases are tried in that order.
    """

    model_config = ConfigDict(extra="ignore")

    success: bool
    error: str | None = None
    payload: Any = Field(default=None, validation_alias=AliasChoices("payload", "encounter", "result"))
