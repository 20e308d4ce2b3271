"""
Universe generation: fills the seven world-building sections of a universe version.
"""

from typing import Optional, Tuple

from modo.models import UniverseVersion
from modo.prompts import build_universe_prompt
from modo.services.generation_service import GenerationResult, GenerationService, generation_service
from modo.storage.projects import ProjectStorage
from modo.storage.stories import StoryStorage
from modo.storage.universes import UNIVERSE_SECTIONS, UniverseStorage


class UniverseService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        stories: Optional[StoryStorage] = None,
        universes: Optional[UniverseStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.stories = stories or StoryStorage()
        self.universes = universes or UniverseStorage()

    async def generate_universe(
        self,
        project_id: str,
        version_id: str,
        user_id: str,
    ) -> Tuple[UniverseVersion, GenerationResult]:
        project = await self.projects.get_owned_project(project_id, user_id)
        universe = await self.universes.get_version(version_id, project_id)
        if universe.story_version_id:
            story = await self.stories.get_version(universe.story_version_id, project_id)
        else:
            story = await self.stories.get_active_version(project_id)

        data, result = await self.generation.generate_json(
            user_id,
            "universe",
            build_universe_prompt(project, story),
            dict,
            project_id=project_id,
            input_params={"universe_version_id": version_id},
        )
        sections = {k: v for k, v in data.items() if k in UNIVERSE_SECTIONS and v}
        universe = await self.universes.update_version(version_id, sections)
        return universe, result


universe_service = UniverseService()
