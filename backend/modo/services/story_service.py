"""
Story generation: beat sheets and synopses written onto story versions.
"""

import math
from typing import Any, Dict, Optional, Tuple

from modo.exceptions import ValidationError
from modo.models import StoryVersion
from modo.prompts import build_story_prompt
from modo.services.generation_service import GenerationResult, GenerationService, generation_service
from modo.storage.projects import ProjectStorage
from modo.storage.stories import StoryStorage
from modo.story_structures import get_beats
from modo.utils.logger import get_logger

logger = get_logger(__name__)


def _clamp_tension(value: Any) -> Optional[int]:
    """Clamp an AI tension level to 1..10; unreadable or non-finite levels are dropped."""
    try:
        level = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(level):
        return None
    return max(1, min(10, int(round(level))))


class StoryService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        stories: Optional[StoryStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.stories = stories or StoryStorage()

    async def _load(self, project_id: Optional[str], version_id: Optional[str], user_id: Optional[str]):
        if not project_id or not version_id or not user_id:
            raise ValidationError("project_id, version_id and user_id are required")
        project = await self.projects.get_owned_project(project_id, user_id)
        story = await self.stories.get_version(version_id, project_id)
        return project, story

    async def generate_story(
        self,
        project_id: str,
        version_id: str,
        user_id: str,
    ) -> Tuple[StoryVersion, GenerationResult]:
        """
        生成完整节拍表 / Generate the full beat sheet for a story version

        Only beat keys of the version's structure are kept; tension levels are
        clamped to 1..10.

        Raises:
            ValidationError: 缺少 id / Missing ids
            NotFoundError: 项目不属于用户 / Project not owned
            InsufficientCreditsError: 积分不足 / Not enough credits
        """
        project, story = await self._load(project_id, version_id, user_id)
        beats = get_beats(story.structure)
        keys = {b.key for b in beats}

        data, result = await self.generation.generate_json(
            user_id,
            "story_structure",
            build_story_prompt(project, story, list(beats)),
            dict,
            project_id=project_id,
            input_params={"story_version_id": version_id, "structure": story.structure},
        )

        beat_text = {k: str(v) for k, v in (data.get("beats") or {}).items() if k in keys and v}
        tension = {}
        for key, value in (data.get("tension_levels") or {}).items():
            level = _clamp_tension(value)
            if key in keys and level is not None:
                tension[key] = level

        updates: Dict[str, Any] = {
            "synopsis": data.get("synopsis"),
            "global_synopsis": data.get("global_synopsis"),
            "beats": {**(story.beats or {}), **beat_text},
            "tension_levels": {**(story.tension_levels or {}), **tension},
        }
        if isinstance(data.get("want_need_matrix"), dict):
            updates["want_need_matrix"] = data["want_need_matrix"]

        version = await self.stories.update_version(version_id, updates)
        logger.info(f"Generated {len(beat_text)} beats for story version {version_id}")
        return version, result

    async def generate_synopsis(
        self,
        project_id: str,
        version_id: str,
        user_id: str,
    ) -> Tuple[StoryVersion, GenerationResult]:
        project, story = await self._load(project_id, version_id, user_id)
        if not (story.premise or project.description):
            raise ValidationError("A premise is required to generate a synopsis")
        prompt = "\n".join(
            line
            for line in (
                f"Title: {project.title}",
                f"Genre: {story.genre or project.genre}" if (story.genre or project.genre) else "",
                f"Premise: {story.premise or project.description}",
            )
            if line
        )
        result = await self.generation.generate(
            user_id,
            "synopsis",
            prompt,
            project_id=project_id,
            input_params={"story_version_id": version_id},
        )
        version = await self.stories.update_version(version_id, {"synopsis": (result.result_text or "").strip()})
        return version, result


story_service = StoryService()
