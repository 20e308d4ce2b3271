# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  场景服务 - 场景分布、镜头表、剧本与分镜图生成
  Scene service - beat-to-scene distribution, shot lists, scripts and
  storyboard images for scene plots.
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from modo.exceptions import ValidationError
from modo.models import SceneImageVersion, ScenePlot, SceneScriptVersion, SceneShot
from modo.prompts import build_distribution_prompt, build_script_prompt, build_shots_prompt
from modo.services.generation_service import GenerationResult, GenerationService, generation_service
from modo.storage.projects import ProjectStorage
from modo.storage.scenes import SceneStorage
from modo.storage.stories import StoryStorage
from modo.story_structures import get_beats
from modo.utils.logger import get_logger

logger = get_logger(__name__)

MAX_SCENES = 500


def normalize_distribution(raw: Dict[str, Any], beat_keys: Sequence[str], total: int) -> List[Tuple[str, int]]:
    """
    归一化场景分布 / Scale AI scene counts so they sum to `total`

    Unknown keys are dropped and invalid counts count as zero. Counts are
    scaled proportionally, floored, and the remainder goes to the beats with
    the largest fractional parts (earlier beats win ties). With no usable
    counts the total is spread evenly from the first beat.
    """
    if not beat_keys or total <= 0:
        return [(key, 0) for key in beat_keys]

    counts = []
    for key in beat_keys:
        try:
            count = float(raw.get(key) or 0)
        except (TypeError, ValueError):
            count = 0.0
        counts.append(count if math.isfinite(count) and count > 0 else 0.0)

    peak = max(counts)
    if peak <= 0:
        base, extra = divmod(total, len(beat_keys))
        return [(key, base + (1 if i < extra else 0)) for i, key in enumerate(beat_keys)]

    # scale by the peak first so huge finite counts cannot overflow the sum
    counts = [c / peak for c in counts]
    weight = sum(counts)
    exact = [c * total / weight for c in counts]
    floors = [int(math.floor(x)) for x in exact]
    remainder = total - sum(floors)
    order = sorted(range(len(beat_keys)), key=lambda i: (-(exact[i] - floors[i]), i))
    for i in order[:remainder]:
        floors[i] += 1
    return list(zip(beat_keys, floors))


class SceneService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        stories: Optional[StoryStorage] = None,
        scenes: Optional[SceneStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.stories = stories or StoryStorage()
        self.scenes = scenes or SceneStorage()

    async def get_owned_scene(self, scene_id: str, user_id: str) -> ScenePlot:
        scene = await self.scenes.get_scene(scene_id)
        await self.projects.get_owned_project(scene.project_id, user_id)
        return scene

    # ------------------------------------------------------------------
    # Distribution
    # ------------------------------------------------------------------

    async def generate_distribution(
        self,
        project_id: str,
        story_version_id: str,
        user_id: str,
        duration_minutes: float,
        scenes_per_minute: float = 1,
    ) -> Dict[str, Any]:
        """
        生成场景分布 / Ask the AI how many scenes each beat gets

        The normalised distribution is stored under
        `projects.storyboard_config["distributions"][story_version_id]`.
        """
        if not story_version_id:
            raise ValidationError("story_version_id is required")
        try:
            duration_minutes = float(duration_minutes)
            scenes_per_minute = float(scenes_per_minute)
        except (TypeError, ValueError):
            raise ValidationError("duration_minutes and scenes_per_minute must be numbers")
        if not (math.isfinite(duration_minutes) and math.isfinite(scenes_per_minute)):
            raise ValidationError("duration_minutes and scenes_per_minute must be finite")
        if duration_minutes <= 0 or scenes_per_minute <= 0:
            raise ValidationError("duration_minutes and scenes_per_minute must be positive")
        total = int(math.ceil(duration_minutes * scenes_per_minute))
        if total > MAX_SCENES:
            raise ValidationError(f"A distribution may hold at most {MAX_SCENES} scenes")

        project = await self.projects.get_owned_project(project_id, user_id)
        story = await self.stories.get_version(story_version_id, project_id)
        beats = get_beats(story.structure)

        raw, result = await self.generation.generate_json(
            user_id,
            "scene_distribution",
            build_distribution_prompt(list(beats), story, total),
            dict,
            project_id=project_id,
            input_params={"story_version_id": story_version_id, "total_scenes": total},
        )
        distribution = normalize_distribution(raw, [b.key for b in beats], total)
        labels = {b.key: b.label for b in beats}
        entry = {
            "duration_minutes": duration_minutes,
            "scenes_per_minute": scenes_per_minute,
            "total_scenes": total,
            "beats": [
                {"beat_key": key, "beat_label": labels[key], "scene_count": count} for key, count in distribution
            ],
        }
        distributions = dict((project.storyboard_config or {}).get("distributions") or {})
        distributions[story_version_id] = entry
        await self.projects.set_storyboard_config(project_id, {"distributions": distributions})
        return {**entry, "generation_id": result.generation_id, "credit_cost": result.credit_cost}

    async def create_scenes_from_distribution(
        self,
        project_id: str,
        story_version_id: str,
        user_id: str,
        distribution: Optional[Dict[str, int]] = None,
    ) -> List[ScenePlot]:
        """Replace the version's scenes; without an explicit distribution the stored one is used."""
        project = await self.projects.get_owned_project(project_id, user_id)
        story = await self.stories.get_version(story_version_id, project_id)
        beat_keys = [b.key for b in get_beats(story.structure)]

        if distribution is None:
            stored = ((project.storyboard_config or {}).get("distributions") or {}).get(story_version_id)
            if not stored:
                raise ValidationError("No scene distribution for this story version")
            distribution = {b["beat_key"]: b["scene_count"] for b in stored.get("beats", [])}

        unknown = set(distribution) - set(beat_keys)
        if unknown:
            raise ValidationError(f"Unknown beat keys: {', '.join(sorted(unknown))}")
        try:
            ordered = [(key, int(distribution.get(key) or 0)) for key in beat_keys]
        except (TypeError, ValueError, OverflowError):
            raise ValidationError("Scene counts must be whole numbers")
        if any(count < 0 for _, count in ordered):
            raise ValidationError("Scene counts must not be negative")
        if sum(count for _, count in ordered) > MAX_SCENES:
            raise ValidationError(f"A distribution may hold at most {MAX_SCENES} scenes")

        scenes = await self.scenes.create_scenes_from_distribution(project_id, story_version_id, ordered)
        logger.info(f"Created {len(scenes)} scenes for story version {story_version_id}")
        return scenes

    # ------------------------------------------------------------------
    # Shots / scripts / images
    # ------------------------------------------------------------------

    async def generate_shots(self, scene_id: str, user_id: str) -> Tuple[List[SceneShot], GenerationResult]:
        scene = await self.get_owned_scene(scene_id, user_id)
        if not scene.synopsis:
            raise ValidationError("Scene needs a synopsis before generating shots")
        shots, result = await self.generation.generate_json(
            user_id,
            "scene_shots",
            build_shots_prompt(scene),
            list,
            project_id=scene.project_id,
            input_params={"scene_id": scene_id},
        )
        cleaned = []
        for shot in shots:
            if not isinstance(shot, dict) or not shot.get("action"):
                continue
            data = dict(shot)
            try:
                data["duration_seconds"] = max(int(shot.get("duration_seconds") or 3), 1)
            except (TypeError, ValueError, OverflowError):
                data["duration_seconds"] = 3
            cleaned.append(data)
        rows = await self.scenes.replace_shots(scene_id, cleaned)
        return rows, result

    async def generate_script(self, scene_id: str, user_id: str) -> Tuple[SceneScriptVersion, GenerationResult]:
        """Generate a script as a new active version (`source=generated`)."""
        scene = await self.get_owned_scene(scene_id, user_id)
        shots = await self.scenes.list_shots(scene_id)
        result = await self.generation.generate(
            user_id,
            "scene_script",
            build_script_prompt(scene, shots),
            project_id=scene.project_id,
            input_params={"scene_id": scene_id, "shot_count": len(shots)},
        )
        version, _ = await self.scenes.save_script(
            scene_id,
            result.result_text or "",
            force_new_version=True,
            source="generated",
            model_used=result.model,
            credit_cost=result.credit_cost,
        )
        return version, result

    async def generate_image(self, scene_id: str, user_id: str) -> Tuple[SceneImageVersion, GenerationResult]:
        scene = await self.get_owned_scene(scene_id, user_id)
        shots = await self.scenes.list_shots(scene_id)
        parts = [scene.synopsis or scene.title or f"Scene {scene.scene_number}"]
        if scene.location:
            parts.append(f"Location: {scene.location}")
        if scene.time_of_day:
            parts.append(f"Time of day: {scene.time_of_day}")
        if shots:
            parts.append(f"Key shot: {shots[0].action}")
        prompt = ". ".join(parts)

        result = await self.generation.generate(
            user_id,
            "moodboard_image",
            prompt,
            project_id=scene.project_id,
            input_params={"scene_id": scene_id},
        )
        version = await self.scenes.add_image_version(
            scene_id,
            image_url=result.result_url,
            prompt=prompt,
            source="generated",
            model_used=result.model,
            credit_cost=result.credit_cost,
        )
        return version, result


scene_service = SceneService()
