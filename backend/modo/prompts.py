# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  系统提示词 - 各生成类型的系统提示词与用户提示词构建
  System prompts per generation type plus the user-prompt builders that
  feed them project context.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from modo.story_structures import Beat

JSON_ONLY = "Respond with valid JSON only. Do not wrap it in markdown or add commentary."

STORY_STRUCTURE_SYSTEM = f"""You are a senior story developer for film, series and animation IP.
Given a premise and a story structure, write a complete beat sheet.
Return a JSON object with keys:
  "synopsis": a one-paragraph synopsis,
  "global_synopsis": a longer synopsis covering the whole arc,
  "beats": an object mapping every beat key to 2-4 sentences,
  "tension_levels": an object mapping every beat key to an integer 1-10,
  "want_need_matrix": an object with "want", "need", "external_conflict", "internal_conflict".
{JSON_ONLY}"""

SYNOPSIS_SYSTEM = """You are a story editor. Write a tight, vivid synopsis of at most 150 words
for the premise you are given. Return plain prose, no headings."""

CHARACTER_PROFILE_SYSTEM = f"""You are a character designer building production bibles.
Return a JSON object with keys "physiological", "psychological", "emotional",
"family", "sociocultural", "core_beliefs", "educational", "sociopolitics" and "swot".
Each value is an object of short descriptive fields; "swot" has
"strengths", "weaknesses", "opportunities" and "threats" as lists of strings.
{JSON_ONLY}"""

CHARACTER_IMAGE_SYSTEM = "Character portrait, full body, consistent design sheet lighting."

UNIVERSE_SYSTEM = f"""You are a world-building consultant.
Return a JSON object with keys "environment", "society", "government", "economy",
"culture", "history" and "lore". Each value is an object of descriptive fields
consistent with the story you are given.
{JSON_ONLY}"""

KEY_ACTIONS_SYSTEM = f"""You break a story beat into concrete visual key actions for a moodboard.
Return a JSON array. Each element is an object with
  "description": one visual moment in a single sentence,
  "character_ids": ids of the characters involved (from the list provided),
  "universe_level": the world location scale, such as "room", "city" or "world".
{JSON_ONLY}"""

MOODBOARD_PROMPT_SYSTEM = f"""You write prompts for text-to-image models.
Return a JSON object with "prompt" (a detailed image prompt including subject,
composition, lighting, and the art style given) and "negative_prompt".
{JSON_ONLY}"""

SCENE_DISTRIBUTION_SYSTEM = f"""You are a film editor planning scene coverage.
Distribute the total number of scenes across the story beats in proportion to
their dramatic weight. Return a JSON object mapping every beat key to an integer
scene count. The counts must add up to the total given.
{JSON_ONLY}"""

SCENE_SHOTS_SYSTEM = f"""You are a director of photography writing a shot list.
Return a JSON array of shots. Each shot is an object with "shot_type",
"camera_angle", "camera_movement", "duration_seconds" (integer), "action" and
optional "dialogue".
{JSON_ONLY}"""

SCENE_SCRIPT_SYSTEM = """You are a screenwriter. Write the scene in standard screenplay format:
scene heading, action lines, character cues and dialogue. Follow the synopsis and
the shot list. Return only the script text."""

ANIMATION_PROMPT_SYSTEM = f"""You write prompts for image-to-video models.
Return a JSON object with "video_prompt" (describe motion, not the still image)
and "camera_motion", one of: static, pan_left, pan_right, zoom_in, zoom_out,
tilt_up, tilt_down, orbit, dolly.
{JSON_ONLY}"""

SCRIPT_SYSTEM = SCENE_SCRIPT_SYSTEM

STRATEGIC_SECTION_SYSTEM = """You are an IP business strategist for film, series and animation
franchises. Write one section of a business model canvas for the project you are
given. Cover every focus point with specific, actionable analysis in short
paragraphs or bullet lists. Return plain prose, no JSON."""

# Business model canvas section -> focus points for the analysis
STRATEGIC_SECTION_FOCUS: Dict[str, List[str]] = {
    "customer_segments": [
        "Primary audience demographics: age, gender, location, interests",
        "Secondary audience segments",
        "Audience needs and pain points",
        "Market size and growth potential",
        "Audience behaviours and preferences",
    ],
    "value_propositions": [
        "The core value this IP delivers",
        "Emotional benefits for the audience",
        "Functional benefits",
        "Differentiation from competing IPs",
        "Why audiences should choose this IP",
    ],
    "channels": [
        "Digital channels: streaming, social media, web",
        "Traditional channels: TV, theatrical, physical media",
        "Distribution strategy",
        "Marketing channels",
        "Channel partnership opportunities",
    ],
    "customer_relationships": [
        "Relationship type: community, fandom or casual",
        "Engagement strategies",
        "Community building",
        "Fan interaction",
        "Long-term relationship building",
    ],
    "revenue_streams": [
        "Primary revenue: streaming, licensing, merchandise",
        "Secondary revenue opportunities",
        "Monetization strategy",
        "Pricing models",
        "Revenue diversification",
    ],
    "key_resources": [
        "IP assets: characters, stories, world-building",
        "Creative talent: writers, artists, voice actors",
        "Production resources: equipment, software, facilities",
        "Financial resources",
        "Distribution and marketing resources",
    ],
    "key_activities": [
        "Content creation: writing, design, production",
        "Marketing and promotion",
        "Distribution management",
        "Fan engagement",
        "Business development",
    ],
    "key_partnerships": [
        "Distribution partners: streamers, publishers",
        "Production partners: studios, animation houses",
        "Marketing partners",
        "Licensing partners: merchandise, games",
        "Technology and infrastructure partners",
    ],
    "cost_structure": [
        "Production costs: talent, equipment, facilities",
        "Marketing and promotion costs",
        "Distribution costs",
        "Ongoing operating costs",
        "Fixed versus variable costs",
    ],
}

SYSTEM_PROMPTS: Dict[str, str] = {
    "synopsis": SYNOPSIS_SYSTEM,
    "story_structure": STORY_STRUCTURE_SYSTEM,
    "character_profile": CHARACTER_PROFILE_SYSTEM,
    "universe": UNIVERSE_SYSTEM,
    "key_actions": KEY_ACTIONS_SYSTEM,
    "moodboard_prompt": MOODBOARD_PROMPT_SYSTEM,
    "scene_distribution": SCENE_DISTRIBUTION_SYSTEM,
    "scene_shots": SCENE_SHOTS_SYSTEM,
    "scene_script": SCENE_SCRIPT_SYSTEM,
    "script": SCRIPT_SYSTEM,
    "animation_prompt": ANIMATION_PROMPT_SYSTEM,
    "strategic_plan_section": STRATEGIC_SECTION_SYSTEM,
}


def get_system_prompt(generation_type: str) -> Optional[str]:
    return SYSTEM_PROMPTS.get(generation_type)


def _line(label: str, value: Any) -> str:
    return f"{label}: {value}" if value else ""


def _join(lines: Iterable[str]) -> str:
    return "\n".join(line for line in lines if line)


def build_story_prompt(project: Any, story: Any, beats: List[Beat]) -> str:
    beat_lines = "\n".join(f"- {b.key} ({b.label}): {b.description}" for b in beats)
    return _join(
        [
            _line("Title", project.title),
            _line("Genre", story.genre or project.genre),
            _line("Premise", story.premise),
            _line("Tone", story.tone),
            _line("Theme", story.theme),
            _line("Conflict", story.conflict),
            _line("Target audience", story.target_audience),
            f"Structure beats:\n{beat_lines}",
        ]
    )


def build_character_prompt(project: Any, character: Any, hint: Optional[str] = None) -> str:
    return _join(
        [
            _line("Project", project.title),
            _line("Genre", project.genre),
            _line("Character", character.name),
            _line("Role", character.role),
            _line("Age", character.age),
            _line("Notes", hint),
        ]
    )


def build_character_image_prompt(character: Any, art_style: Optional[str], template: Optional[str]) -> str:
    physical = character.physiological or {}
    details = ", ".join(f"{k}: {v}" for k, v in physical.items() if v)
    return _join(
        [
            f"{character.name}, {character.role}",
            details,
            _line("Art style", art_style),
            _line("Template", template),
            CHARACTER_IMAGE_SYSTEM,
        ]
    )


def build_universe_prompt(project: Any, story: Optional[Any]) -> str:
    return _join(
        [
            _line("Project", project.title),
            _line("Genre", project.genre),
            _line("Premise", story.premise if story else None),
            _line("Synopsis", story.synopsis if story else None),
        ]
    )


def build_key_actions_prompt(beat_label: str, beat_content: Optional[str], count: int, characters: List[Dict[str, str]]) -> str:
    return _join(
        [
            _line("Beat", beat_label),
            _line("Beat content", beat_content),
            f"Number of key actions: {count}",
            f"Characters: {json.dumps(characters, ensure_ascii=False)}" if characters else "",
        ]
    )


def build_moodboard_prompt(item: Any, art_style: str) -> str:
    return _join(
        [
            _line("Beat", item.beat_label),
            _line("Key action", item.key_action_description),
            _line("World scale", item.universe_level),
            _line("Art style", art_style),
        ]
    )


def build_distribution_prompt(beats: List[Beat], story: Any, total_scenes: int) -> str:
    beat_lines = "\n".join(
        f"- {b.key} ({b.label}): {(story.beats or {}).get(b.key) or b.description}" for b in beats
    )
    return _join([_line("Synopsis", story.synopsis), f"Total scenes: {total_scenes}", f"Beats:\n{beat_lines}"])


def build_shots_prompt(scene: Any) -> str:
    return _join(
        [
            _line("Scene", scene.title or f"Scene {scene.scene_number}"),
            _line("Synopsis", scene.synopsis),
            _line("Location", scene.location),
            _line("Time of day", scene.time_of_day),
        ]
    )


def build_script_prompt(scene: Any, shots: List[Any]) -> str:
    shot_lines = "\n".join(f"{s.shot_number}. [{s.shot_type or 'shot'}] {s.action}" for s in shots)
    return _join([build_shots_prompt(scene), f"Shots:\n{shot_lines}" if shot_lines else ""])


def build_animation_prompt(clip: Any) -> str:
    return _join(
        [
            _line("Key action", clip.key_action_description),
            _line("Beat", clip.beat_key),
            f"Clip duration: {clip.duration} seconds",
        ]
    )


def build_strategic_section_prompt(project: Any, section: str, project_context: Optional[str] = None) -> str:
    label = section.replace("_", " ").title()
    focus = STRATEGIC_SECTION_FOCUS.get(section)
    if focus:
        task = f"Write the {label} analysis. Cover:\n" + "\n".join(f"{i}. {point}" for i, point in enumerate(focus, 1))
    else:
        task = f"Write the {label} section of the business model canvas."
    return _join(
        [
            _line("Project", project.title),
            _line("Genre", project.genre),
            _line("Sub-genre", project.sub_genre),
            _line("Additional context", project_context),
            task,
        ]
    )
