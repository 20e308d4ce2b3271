"""
Moodboard generation: key actions per beat, image prompts per item and item images.
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from modo.exceptions import InsufficientCreditsError, ModoError, NotFoundError, ValidationError
from modo.models import MoodboardItem, MoodboardItemVersion
from modo.prompts import build_key_actions_prompt, build_moodboard_prompt
from modo.services.generation_service import GenerationResult, GenerationService, generation_service
from modo.storage.characters import CharacterStorage
from modo.storage.moodboards import MoodboardStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

GENERATE_TYPES = ("key_actions", "prompts")


class MoodboardService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        moodboards: Optional[MoodboardStorage] = None,
        characters: Optional[CharacterStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.moodboards = moodboards or MoodboardStorage()
        self.characters = characters or CharacterStorage()

    async def generate(
        self,
        project_id: str,
        moodboard_id: str,
        user_id: str,
        generate_type: str,
        beat_key: Optional[str] = None,
        item_id: Optional[str] = None,
    ) -> Tuple[int, List[Dict[str, Any]]]:
        """
        批量生成关键动作或图像提示词

        Batch-generate key actions (per beat) or image prompts (per described
        item), optionally narrowed to one beat or one item.

        Returns:
            (generated_count, results): one result entry per beat or item,
            carrying an `error` when that unit failed.

        Raises:
            ValidationError: 未知生成类型 / Unknown type
            NotFoundError: 没有匹配条目 / No items match
            InsufficientCreditsError: 首个单元即积分不足 / Out of credits before anything was generated
        """
        if generate_type not in GENERATE_TYPES:
            raise ValidationError(f"type must be one of {', '.join(GENERATE_TYPES)}")
        await self.projects.get_owned_project(project_id, user_id)
        moodboard = await self.moodboards.get_moodboard_by_id(moodboard_id, project_id)
        items = await self.moodboards.list_items(moodboard.id, beat_key, item_id)
        if not items:
            raise NotFoundError("No moodboard items found")

        if generate_type == "key_actions":
            return await self._generate_key_actions(project_id, user_id, items)
        return await self._generate_prompts(project_id, user_id, moodboard.art_style, items)

    async def _generate_key_actions(
        self, project_id: str, user_id: str, items: List[MoodboardItem]
    ) -> Tuple[int, List[Dict[str, Any]]]:
        live_characters, _ = await self.characters.list_characters(project_id)
        roster = [{"id": c.id, "name": c.name, "role": c.role} for c in live_characters]
        known_ids = {c["id"] for c in roster}

        by_beat: "OrderedDict[str, List[MoodboardItem]]" = OrderedDict()
        for item in items:
            by_beat.setdefault(item.beat_key, []).append(item)

        generated = 0
        results: List[Dict[str, Any]] = []
        for key, beat_items in by_beat.items():
            first = beat_items[0]
            try:
                actions, _ = await self.generation.generate_json(
                    user_id,
                    "key_actions",
                    build_key_actions_prompt(first.beat_label, first.beat_content, len(beat_items), roster),
                    list,
                    project_id=project_id,
                    input_params={"beat_key": key, "count": len(beat_items)},
                )
            except InsufficientCreditsError:
                if generated == 0:
                    raise
                results.append({"beat_key": key, "error": "Insufficient credits"})
                break
            except ModoError as e:
                logger.warning(f"Key action generation failed for beat {key}: {e.message}")
                results.append({"beat_key": key, "error": e.message})
                continue

            updated = 0
            for item, action in zip(beat_items, actions):
                if isinstance(action, str):
                    action = {"description": action}
                if not isinstance(action, dict) or not action.get("description"):
                    continue
                await self.moodboards.update_item(
                    item.id,
                    {
                        "key_action_description": str(action["description"]),
                        "characters_involved": [c for c in action.get("character_ids") or [] if c in known_ids],
                        "universe_level": action.get("universe_level"),
                        "status": "has_description",
                    },
                )
                updated += 1
            generated += updated
            results.append({"beat_key": key, "generated": updated})
        return generated, results

    async def _generate_prompts(
        self, project_id: str, user_id: str, art_style: str, items: List[MoodboardItem]
    ) -> Tuple[int, List[Dict[str, Any]]]:
        described = [item for item in items if item.key_action_description]
        if not described:
            raise ValidationError("Generate key actions before prompts")

        generated = 0
        results: List[Dict[str, Any]] = []
        for item in described:
            try:
                data, _ = await self.generation.generate_json(
                    user_id,
                    "moodboard_prompt",
                    build_moodboard_prompt(item, art_style),
                    dict,
                    project_id=project_id,
                    input_params={"item_id": item.id},
                )
            except InsufficientCreditsError:
                if generated == 0:
                    raise
                results.append({"item_id": item.id, "error": "Insufficient credits"})
                break
            except ModoError as e:
                logger.warning(f"Prompt generation failed for item {item.id}: {e.message}")
                results.append({"item_id": item.id, "error": e.message})
                continue

            if not data.get("prompt"):
                results.append({"item_id": item.id, "error": "AI returned no prompt"})
                continue
            await self.moodboards.update_item(
                item.id,
                {
                    "prompt": str(data["prompt"]),
                    "negative_prompt": data.get("negative_prompt"),
                    "status": "has_prompt",
                },
            )
            generated += 1
            results.append({"item_id": item.id, "prompt": data["prompt"]})
        return generated, results

    async def generate_item_image(self, item_id: str, user_id: str) -> Tuple[MoodboardItemVersion, GenerationResult]:
        """Generate an image for one item as a new active version (`has_image`)."""
        item = await self.moodboards.get_item(item_id)
        moodboard = await self.moodboards.get_moodboard_by_id(item.moodboard_id)
        await self.projects.get_owned_project(moodboard.project_id, user_id)

        prompt = item.prompt or item.key_action_description
        if not prompt:
            raise ValidationError("Item has no prompt or key action description")

        params: Dict[str, Any] = {}
        if item.negative_prompt:
            params["negative_prompt"] = item.negative_prompt
        result = await self.generation.generate(
            user_id,
            "moodboard_image",
            prompt,
            project_id=moodboard.project_id,
            input_params={"item_id": item_id, "art_style": moodboard.art_style},
            media_params=params,
        )
        version = await self.moodboards.add_item_version(
            item_id, image_url=result.result_url, prompt=prompt, model_used=result.model
        )
        return version, result


moodboard_service = MoodboardService()
