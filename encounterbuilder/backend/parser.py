"""Section parser for prose encounter output.

The combat generator answers with loosely formatted text split by numbered
headers ("0. Title" .. "4. Win Conditions"). Header wording and casing drift
between runs, so parsing is layered:

1. Anchored pass: a header is the section number followed by a keyword
   word. The word must end the line or be followed by a colon, in which
   case the rest of the line already belongs to the section
   ("2. Monsters: Gesamt-XP: 80"). A sentence such as "2 creatures watch"
   is not a header.
2. Keyword pass: only when the anchored pass finds none of the four content
   sections. Numbers become optional, but the line must hold nothing except
   the (decorated) keyword, so sentences mentioning "monsters" never split
   a section. A bold keyword ("**Monsters:** Bog hag") may carry inline
   content.

The parser never raises; anything it cannot find falls back to the
placeholders defined on ``ParsedSections``.
"""

from __future__ import annotations

import re

from .models import ParsedSections

_STEMS = {
    "title": r"titel|title|name",
    "scene": r"szene|scene|setting|schauplatz",
    "monsters": r"monster|creature|kreatur|gegner|enem(?:y|ies)",
    "tactics": r"taktik|tactic",
    "win_conditions": r"win[ \t\-]*condition|victory[ \t\-]*condition|siegbedingung|victory|win",
}
_SECTION_NUMBERS = {
    "title": 0,
    "scene": 1,
    "monsters": 2,
    "tactics": 3,
    "win_conditions": 4,
}
CONTENT_SECTIONS = ("scene", "monsters", "tactics", "win_conditions")

# Optional markdown heading and bold markers around the header text.
_HEADING = r"^[ \t]*(?:#{1,6}[ \t]*)?"
_LEAD = _HEADING + r"(?:\*\*|__)?[ \t]*"
_BOLD = r"(?:\*\*|__)?[ \t]*"
_NUMBER = r"\d+[ \t]*[.):\-]?[ \t]*"
# Keyword word ends the line, or a colon opens inline content.
_HEADER_END = r"[ \t]*" + _BOLD + r"(?::[ \t]*" + _BOLD + r"|$)"

_ANCHORED_PATTERNS = {
    name: re.compile(
        _LEAD + rf"{_SECTION_NUMBERS[name]}[ \t]*[.):\-]?[ \t]*" + _BOLD + rf"(?:{stems})[\w\-]*" + _HEADER_END,
        re.IGNORECASE | re.MULTILINE,
    )
    for name, stems in _STEMS.items()
}

_KEYWORD_PATTERNS = {
    name: re.compile(
        _HEADING
        + rf"(?:(?:\*\*|__)[ \t]*(?:{_NUMBER})?(?:{stems})[\w\-]*[ \t]*:?[ \t]*(?:\*\*|__)[ \t]*:?[ \t]*"
        + rf"|(?:{_NUMBER})?" + _BOLD + rf"(?:{stems})[\w\-]*[ \t]*:?[ \t]*" + _BOLD + r"$)",
        re.IGNORECASE | re.MULTILINE,
    )
    for name, stems in _STEMS.items()
}

# First match wins; multiple XP figures in one section are not summed.
_XP_PATTERN = re.compile(
    r"\b(?:gesamt[ \t\-]*xp|total[ \t\-]*xp|xp[ \t\-]*total|xp)\b[ \t]*[:=]?[ \t]*(\d+)",
    re.IGNORECASE,
)


def parse_sections(text: str | None) -> ParsedSections:
    """Turn prose encounter text into a ``ParsedSections`` record."""
    if not text:
        return ParsedSections()

    source = text.replace("\r\n", "\n").replace("\r", "\n")
    sections = split_sections(source, _ANCHORED_PATTERNS)
    if not _has_content_section(sections):
        fallback = split_sections(source, _KEYWORD_PATTERNS)
        if _has_content_section(fallback):
            sections = fallback

    defaults = ParsedSections()
    monsters = sections.get("monsters") or defaults.monsters
    return ParsedSections(
        title=sections.get("title") or defaults.title,
        scene=sections.get("scene") or defaults.scene,
        monsters=monsters,
        tactics=sections.get("tactics") or defaults.tactics,
        win_conditions=sections.get("win_conditions") or defaults.win_conditions,
        xp_total=extract_xp_total(sections.get("monsters", "")),
    )


def split_sections(source: str, patterns: dict[str, re.Pattern[str]]) -> dict[str, str]:
    """Cut ``source`` at the first header found for each pattern.

    Boundaries follow textual position, not the order of ``patterns``.
    """
    headers: list[tuple[int, int, str]] = []
    for name, pattern in patterns.items():
        match = pattern.search(source)
        if match is not None:
            headers.append((match.start(), match.end(), name))
    headers.sort()

    sections: dict[str, str] = {}
    for index, (_, header_end, name) in enumerate(headers):
        next_start = headers[index + 1][0] if index + 1 < len(headers) else len(source)
        sections[name] = source[header_end:next_start].strip()
    return sections


def extract_xp_total(monsters_text: str) -> int:
    match = _XP_PATTERN.search(monsters_text)
    if match is None:
        return 0
    return int(match.group(1))


def _has_content_section(sections: dict[str, str]) -> bool:
    return any(name in sections for name in CONTENT_SECTIONS)
