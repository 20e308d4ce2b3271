"""
Character generation: AI profiles and portrait image versions.
"""

from typing import Optional, Tuple

from modo.models import Character, CharacterImageVersion
from modo.prompts import build_character_image_prompt, build_character_prompt
from modo.services.generation_service import GenerationResult, GenerationService, generation_service
from modo.storage.characters import PROFILE_SECTIONS, CharacterStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)


class CharacterService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        characters: Optional[CharacterStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.characters = characters or CharacterStorage()

    async def generate_profile(
        self,
        project_id: str,
        character_id: str,
        user_id: str,
        prompt_hint: Optional[str] = None,
    ) -> Tuple[Character, GenerationResult]:
        """Fill the profile sections from a `character_profile` generation."""
        project = await self.projects.get_owned_project(project_id, user_id)
        character = await self.characters.get_character(character_id, project_id)

        data, result = await self.generation.generate_json(
            user_id,
            "character_profile",
            build_character_prompt(project, character, prompt_hint),
            dict,
            project_id=project_id,
            input_params={"character_id": character_id},
        )
        sections = {k: v for k, v in data.items() if k in PROFILE_SECTIONS and isinstance(v, dict)}
        character = await self.characters.update_character(character_id, sections)
        logger.info(f"Generated profile sections {sorted(sections)} for character {character_id}")
        return character, result

    async def generate_image(
        self,
        character_id: str,
        user_id: str,
        art_style: Optional[str] = None,
        template: Optional[str] = None,
    ) -> Tuple[CharacterImageVersion, GenerationResult]:
        """
        生成角色形象 / Generate a portrait as a new active image version

        The prompt is built from the character's physiological profile.
        """
        character = await self.characters.get_character(character_id)
        await self.projects.get_owned_project(character.project_id, user_id)

        prompt = build_character_image_prompt(character, art_style, template)
        result = await self.generation.generate(
            user_id,
            "character_image",
            prompt,
            project_id=character.project_id,
            input_params={"character_id": character_id, "art_style": art_style, "template": template},
        )
        version = await self.characters.add_image_version(
            character_id,
            image_url=result.result_url,
            prompt=prompt,
            template=template,
            art_style=art_style,
            model_used=result.model,
            credit_cost=result.credit_cost,
        )
        return version, result


character_service = CharacterService()
