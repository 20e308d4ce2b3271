# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  故事结构节拍目录 - Save the Cat（15）、英雄之旅（12）、Dan Harmon 故事圈（8）
  Story structure beat catalogs - Save the Cat (15), Hero's Journey (12),
  Dan Harmon Story Circle (8).
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from modo.exceptions import ValidationError


@dataclass(frozen=True)
class Beat:
    key: str
    label: str
    description: str


SAVE_THE_CAT: Tuple[Beat, ...] = (
    Beat("openingImage", "Opening Image", "A snapshot of the hero's world before the journey"),
    Beat("themeStated", "Theme Stated", "Someone states the lesson the hero must learn"),
    Beat("setup", "Setup", "The hero's status quo, flaws and stakes"),
    Beat("catalyst", "Catalyst", "The life-changing event that starts the story"),
    Beat("debate", "Debate", "The hero doubts whether to act"),
    Beat("breakIntoTwo", "Break Into Two", "The hero commits and enters a new world"),
    Beat("bStory", "B Story", "A relationship that carries the theme"),
    Beat("funAndGames", "Fun and Games", "The promise of the premise delivered"),
    Beat("midpoint", "Midpoint", "A false victory or false defeat raises the stakes"),
    Beat("badGuysCloseIn", "Bad Guys Close In", "Pressure mounts from outside and within"),
    Beat("allIsLost", "All Is Lost", "The lowest point, something dies"),
    Beat("darkNightOfSoul", "Dark Night of Soul", "The hero wallows before the breakthrough"),
    Beat("breakIntoThree", "Break Into Three", "The solution is found by joining A and B stories"),
    Beat("finale", "Finale", "The hero applies the lesson and defeats the antagonist"),
    Beat("finalImage", "Final Image", "The mirror of the opening image, showing change"),
)

HERO_JOURNEY: Tuple[Beat, ...] = (
    Beat("ordinaryWorld", "Ordinary World", "The hero's normal life"),
    Beat("callToAdventure", "Call to Adventure", "A challenge or quest appears"),
    Beat("refusalOfCall", "Refusal of Call", "Fear makes the hero hesitate"),
    Beat("meetingMentor", "Meeting the Mentor", "Guidance, training or a gift"),
    Beat("crossingThreshold", "Crossing the Threshold", "The hero leaves the known world"),
    Beat("testsAlliesEnemies", "Tests, Allies, Enemies", "The rules of the special world are learned"),
    Beat("approachInmostCave", "Approach to Inmost Cave", "Preparation for the central ordeal"),
    Beat("ordeal", "Ordeal", "The hero faces death or their greatest fear"),
    Beat("reward", "Reward", "The hero seizes the prize"),
    Beat("roadBack", "Road Back", "Consequences chase the hero home"),
    Beat("resurrection", "Resurrection", "A final test that purifies the hero"),
    Beat("returnWithElixir", "Return with Elixir", "The hero returns transformed"),
)

DAN_HARMON: Tuple[Beat, ...] = (
    Beat("youZone", "You / Zone", "A character in a zone of comfort"),
    Beat("needDesire", "Need / Desire", "But they want something"),
    Beat("go", "Go", "They enter an unfamiliar situation"),
    Beat("searchAdapt", "Search / Adapt", "They adapt to it"),
    Beat("findTake", "Find / Take", "They get what they wanted"),
    Beat("payPrice", "Pay the Price", "They pay a heavy price for it"),
    Beat("returnChange", "Return / Change", "They return to their familiar situation"),
    Beat("newCapability", "New Capability", "Having changed"),
)

STRUCTURES: Dict[str, Tuple[str, Tuple[Beat, ...]]] = {
    "save_the_cat": ("Save the Cat", SAVE_THE_CAT),
    "hero_journey": ("Hero's Journey", HERO_JOURNEY),
    "dan_harmon": ("Dan Harmon Story Circle", DAN_HARMON),
}

# Spellings found in older clients
_ALIASES = {
    "savethecat": "save_the_cat",
    "herosjourney": "hero_journey",
    "heros_journey": "hero_journey",
    "harmon": "dan_harmon",
}


def normalize_structure(structure: str) -> str:
    key = (structure or "").strip().lower()
    key = _ALIASES.get(key, key)
    if key not in STRUCTURES:
        raise ValidationError(f"Unknown story structure: {structure}")
    return key


def structure_label(structure: str) -> str:
    return STRUCTURES[normalize_structure(structure)][0]


def get_beats(structure: str) -> Tuple[Beat, ...]:
    return STRUCTURES[normalize_structure(structure)][1]


def list_structures() -> List[Dict]:
    """Beat catalog for every structure, in API shape."""
    return [
        {
            "key": key,
            "label": label,
            "beats": [{"key": b.key, "label": b.label, "description": b.description} for b in beats],
        }
        for key, (label, beats) in STRUCTURES.items()
    ]
