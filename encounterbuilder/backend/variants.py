"""Variant registry: request model and payload kind for every encounter tag."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from .errors import EncounterValidationError
from .schemas import (
    ChaseRequest,
    CombatRequest,
    DungeonRequest,
    EncounterRequest,
    InfiltrationRequest,
    InfluenceRequest,
    LairRequest,
    ResearchRequest,
    TravelRequest,
    VariantRequest,
)


@dataclass(frozen=True)
class VariantSpec:
    tag: str
    label: str
    request_model: type[VariantRequest]
    textual: bool = False

    def required_fields(self) -> list[str]:
        return [
            name
            for name, info in self.request_model.model_fields.items()
            if info.is_required()
        ]


VARIANTS: dict[str, VariantSpec] = {
    spec.tag: spec
    for spec in (
        VariantSpec("combat", "Combat", CombatRequest, textual=True),
        VariantSpec("influence", "Influence", InfluenceRequest),
        VariantSpec("research", "Research", ResearchRequest),
        VariantSpec("chase", "Chase", ChaseRequest),
        VariantSpec("dungeon", "Dungeon", DungeonRequest),
        VariantSpec("infiltration", "Infiltration", InfiltrationRequest),
        VariantSpec("lair", "Lair", LairRequest),
        VariantSpec("travel", "Travel", TravelRequest),
    )
}


def get_variant(tag: str) -> VariantSpec:
    spec = VARIANTS.get(tag)
    if spec is None:
        raise EncounterValidationError(f"Unknown encounter variant '{tag}'", field="variant")
    return spec


def required_fields(tag: str) -> list[str]:
    return get_variant(tag).required_fields()


def validate_request(request: Mapping[str, Any] | VariantRequest) -> EncounterRequest:
    """Validate raw input against its variant's schema.

    Accepts a mapping carrying a ``variant`` key or an already-built request
    model. Raises ``EncounterValidationError`` naming the first bad field.
    """
    if isinstance(request, VariantRequest):
        data: dict[str, Any] = request.model_dump()
    else:
        data = dict(request)

    tag = data.get("variant")
    if not isinstance(tag, str) or not tag.strip():
        raise EncounterValidationError("Missing required field 'variant'", field="variant")
    spec = get_variant(tag.strip().lower())
    data["variant"] = spec.tag

    try:
        return spec.request_model.model_validate(data)
    except ValidationError as exc:
        raise _to_encounter_error(spec, exc) from exc


def _to_encounter_error(spec: VariantSpec, exc: ValidationError) -> EncounterValidationError:
    names_by_alias = {
        (info.alias or name): name for name, info in spec.request_model.model_fields.items()
    }
    first = exc.errors()[0]
    location = first.get("loc") or ("request",)
    field = names_by_alias.get(str(location[0]), str(location[0]))

    if first.get("type") == "missing":
        message = f"Missing required field '{field}' for a {spec.label.lower()} encounter"
    elif first.get("type") == "string_too_short":
        message = f"Field '{field}' must not be empty"
    else:
        message = f"Invalid value for '{field}': {first.get('msg', 'invalid')}"
    return EncounterValidationError(message, field=field)
