"""Normalization of service payloads into artifacts.

Server builds disagree on key names for the same concept. Each canonical
field lists its known aliases in priority order; only the canonical value is
kept on the artifact, so nothing downstream needs to know about aliases.
Dotted aliases walk into nested objects.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping, Sequence

from .errors import GenerationRejected
from .models import TITLE_PLACEHOLDER, EncounterArtifact, StructuredArtifact, TextArtifact
from .parser import parse_sections

TITLE_ALIASES = ("title", "name", "encounterName")
XP_ALIASES = ("xpTotal", "xpBudget.total", "totalXp", "xp")
TEXT_ALIASES = ("text", "encounterText", "content", "markdown")


def coalesce(data: Mapping[str, Any], aliases: Sequence[str], default: Any = None) -> Any:
    for alias in aliases:
        value: Any = data
        for part in alias.split("."):
            if not isinstance(value, Mapping) or part not in value:
                value = None
                break
            value = value[part]
        if value is not None and value != "":
            return value
    return default


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def extract_text(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, Mapping):
        text = coalesce(payload, TEXT_ALIASES)
        if isinstance(text, str):
            return text
    raise GenerationRejected("Service returned no encounter text")


def build_artifact(variant: str, payload: Any, textual: bool) -> EncounterArtifact:
    """Wrap a successful payload into the artifact for ``variant``.

    Raises ``GenerationRejected`` when the payload shape does not fit the
    variant, since nothing usable can be displayed from it.
    """
    if textual:
        raw_text = extract_text(payload)
        return TextArtifact(variant=variant, sections=parse_sections(raw_text), raw_text=raw_text)

    if not isinstance(payload, Mapping):
        raise GenerationRejected(f"Service returned unstructured data for a {variant} encounter")
    return StructuredArtifact(
        variant=variant,
        title=str(coalesce(payload, TITLE_ALIASES, TITLE_PLACEHOLDER)),
        xp_total=_as_int(coalesce(payload, XP_ALIASES, 0)),
        payload=copy.deepcopy(dict(payload)),
    )
