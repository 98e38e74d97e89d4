"""Domain models for generated artifacts and persisted session state."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

TITLE_PLACEHOLDER = "Untitled Encounter"
SCENE_PLACEHOLDER = "No scene description provided."
MONSTERS_PLACEHOLDER = "No monsters specified."
TACTICS_PLACEHOLDER = "No tactics specified."
WIN_CONDITIONS_PLACEHOLDER = "Defeat all enemies."


@dataclass(frozen=True)
class ParsedSections:
    title: str = TITLE_PLACEHOLDER
    scene: str = SCENE_PLACEHOLDER
    monsters: str = MONSTERS_PLACEHOLDER
    tactics: str = TACTICS_PLACEHOLDER
    win_conditions: str = WIN_CONDITIONS_PLACEHOLDER
    xp_total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "scene": self.scene,
            "monsters": self.monsters,
            "tactics": self.tactics,
            "winConditions": self.win_conditions,
            "xpTotal": self.xp_total,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ParsedSections:
        return cls(
            title=str(data["title"]),
            scene=str(data["scene"]),
            monsters=str(data["monsters"]),
            tactics=str(data["tactics"]),
            win_conditions=str(data["winConditions"]),
            xp_total=int(data["xpTotal"]),
        )


@dataclass(frozen=True)
class StructuredArtifact:
    """Artifact for variants whose payload arrives as structured data."""

    kind: ClassVar[str] = "structured"

    variant: str
    title: str
    xp_total: int
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "variant": self.variant,
            "title": self.title,
            "xpTotal": self.xp_total,
            "payload": copy.deepcopy(self.payload),
        }


@dataclass(frozen=True)
class TextArtifact:
    """Artifact for the prose variant: parsed sections plus the source text."""

    kind: ClassVar[str] = "text"

    variant: str
    sections: ParsedSections
    raw_text: str

    @property
    def title(self) -> str:
        return self.sections.title

    @property
    def xp_total(self) -> int:
        return self.sections.xp_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "variant": self.variant,
            "sections": self.sections.to_dict(),
            "rawText": self.raw_text,
        }


EncounterArtifact = StructuredArtifact | TextArtifact


def artifact_to_dict(artifact: EncounterArtifact) -> dict[str, Any]:
    return artifact.to_dict()


def artifact_from_dict(data: Mapping[str, Any]) -> EncounterArtifact:
    """Rebuild an artifact from its persisted form.

    Raises ``ValueError`` for an unknown kind and ``KeyError``/``TypeError``
    for a record missing its fields.
    """
    kind = data.get("kind")
    if kind == StructuredArtifact.kind:
        return StructuredArtifact(
            variant=str(data["variant"]),
            title=str(data["title"]),
            xp_total=int(data["xpTotal"]),
            payload=copy.deepcopy(dict(data["payload"])),
        )
    if kind == TextArtifact.kind:
        return TextArtifact(
            variant=str(data["variant"]),
            sections=ParsedSections.from_dict(data["sections"]),
            raw_text=str(data["rawText"]),
        )
    raise ValueError(f"Unknown artifact kind: {kind!r}")


@dataclass(frozen=True)
class Session:
    last_artifact: EncounterArtifact | None = None
    last_variant: str | None = None
    view_open: bool = False
