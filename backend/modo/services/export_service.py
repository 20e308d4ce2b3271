# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  IP Bible 导出 - 汇总项目资产并渲染为 Markdown 或 JSON 文件
  IP Bible export - collects the project's active assets and writes a
  Markdown or JSON document under the export directory.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from modo.config import settings
from modo.exceptions import ValidationError
from modo.models.planning import CANVAS_SECTIONS, PERFORMANCE_FACTORS
from modo.storage.characters import PROFILE_SECTIONS, CharacterStorage
from modo.storage.moodboards import MoodboardStorage
from modo.storage.projects import ProjectStorage
from modo.storage.stories import StoryStorage
from modo.storage.strategic_plans import StrategicPlanStorage
from modo.storage.team import TeamStorage
from modo.storage.universes import UNIVERSE_SECTIONS, UniverseStorage
from modo.story_structures import get_beats, structure_label
from modo.utils.logger import get_logger

logger = get_logger(__name__)

EXPORT_FORMATS = {"markdown": "md", "json": "json"}


def _title(key: str) -> str:
    return key.replace("_", " ").title()


def _render_value(value: Any, indent: int = 0) -> List[str]:
    pad = "  " * indent
    if isinstance(value, dict):
        lines = []
        for k, v in value.items():
            if isinstance(v, (dict, list)):
                lines.append(f"{pad}- **{_title(str(k))}**:")
                lines.extend(_render_value(v, indent + 1))
            elif v not in (None, ""):
                lines.append(f"{pad}- **{_title(str(k))}**: {v}")
        return lines
    if isinstance(value, list):
        return [f"{pad}- {item}" for item in value if item not in (None, "")]
    return [f"{pad}{value}"] if value not in (None, "") else []


class ExportService:

    def __init__(self, export_dir: Optional[str] = None) -> None:
        self._export_dir = export_dir
        self.projects = ProjectStorage()
        self.stories = StoryStorage()
        self.characters = CharacterStorage()
        self.universes = UniverseStorage()
        self.moodboards = MoodboardStorage()
        self.plans = StrategicPlanStorage()
        self.team = TeamStorage()

    @property
    def export_dir(self) -> Path:
        return Path(self._export_dir or settings.export_dir)

    async def build_ip_bible(self, project_id: str, user_id: str) -> Dict[str, Any]:
        """
        汇总 IP Bible 数据 / Collect the IP Bible document

        Project, active story, live characters with their active image,
        active universe, a moodboard summary for the active story, the
        strategic plan, the team and the material library.
        """
        project = await self.projects.get_owned_project(project_id, user_id)
        story = await self.stories.get_active_version(project_id)
        live_characters, _ = await self.characters.list_characters(project_id)
        universe = await self.universes.get_active(project_id)
        plan = await self.plans.get_plan(project_id, user_id)
        members = await self.team.list_members(project_id, user_id)
        materials = await self.team.list_materials(project_id, user_id)

        story_doc = None
        moodboard_doc = None
        if story is not None:
            story_doc = {
                "version_name": story.version_name,
                "structure": story.structure,
                "structure_label": structure_label(story.structure),
                "premise": story.premise,
                "synopsis": story.synopsis,
                "global_synopsis": story.global_synopsis,
                "genre": story.genre,
                "tone": story.tone,
                "theme": story.theme,
                "conflict": story.conflict,
                "target_audience": story.target_audience,
                "beats": [
                    {
                        "key": beat.key,
                        "label": beat.label,
                        "content": (story.beats or {}).get(beat.key),
                        "tension": (story.tension_levels or {}).get(beat.key),
                    }
                    for beat in get_beats(story.structure)
                ],
                "want_need_matrix": story.want_need_matrix or {},
            }
            found = await self.moodboards.get_moodboard(project_id, story.id)
            if found is not None:
                moodboard, items = found
                moodboard_doc = {
                    "art_style": moodboard.art_style,
                    "total_items": len(items),
                    "with_description": sum(1 for i in items if i.key_action_description),
                    "with_image": sum(1 for i in items if i.image_url),
                    "images": [
                        {"beat": i.beat_label, "description": i.key_action_description, "image_url": i.image_url}
                        for i in items
                        if i.image_url
                    ],
                }

        characters = []
        for character in live_characters:
            characters.append(
                {
                    "name": character.name,
                    "role": character.role,
                    "age": character.age,
                    "cast_reference": character.cast_reference,
                    "image_url": character.image_url,
                    "traits": character.traits,
                    **{section: getattr(character, section) or {} for section in PROFILE_SECTIONS},
                }
            )

        universe_doc = None
        if universe is not None:
            universe_doc = {
                "version_name": universe.version_name,
                **{section: getattr(universe, section) or {} for section in UNIVERSE_SECTIONS},
            }

        plan_doc = None
        if plan is not None:
            plan_doc = {
                **{section: getattr(plan, section) for section in CANVAS_SECTIONS},
                "performance_factors": plan.performance_factors or {},
                "competitor_name": plan.competitor_name,
                "competitor_scores": plan.competitor_scores or {},
                "project_scores": plan.project_scores or {},
                "predicted_audience": plan.predicted_audience or {},
                "ai_suggestions": plan.ai_suggestions,
            }

        return {
            "project": {
                "id": project.id,
                "title": project.title,
                "description": project.description,
                "genre": project.genre,
                "sub_genre": project.sub_genre,
                "studio_name": project.studio_name,
                "ip_owner": project.ip_owner,
                "status": project.status,
            },
            "story": story_doc,
            "characters": characters,
            "universe": universe_doc,
            "moodboard": moodboard_doc,
            "strategic_plan": plan_doc,
            "team": [
                {
                    "name": m.name,
                    "role": m.role,
                    "email": m.email,
                    "responsibilities": m.responsibilities,
                    "expertise": m.expertise,
                }
                for m in members
            ],
            "materials": [
                {
                    "name": m.name,
                    "description": m.description,
                    "type": m.type,
                    "file_url": m.file_url,
                    "category": m.category,
                    "tags": m.tags or [],
                }
                for m in materials
            ],
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def render_markdown(bible: Dict[str, Any]) -> str:
        project = bible["project"]
        lines = [f"# {project['title']} - IP Bible", ""]
        for key in ("description", "genre", "sub_genre", "studio_name", "ip_owner"):
            if project.get(key):
                lines.append(f"- **{_title(key)}**: {project[key]}")
        lines.append("")

        story = bible.get("story")
        if story:
            lines += [f"## Story ({story['structure_label']})", ""]
            for key in ("premise", "synopsis", "global_synopsis"):
                if story.get(key):
                    lines += [f"### {_title(key)}", "", story[key], ""]
            lines += ["### Beats", ""]
            for beat in story["beats"]:
                tension = f" (tension {beat['tension']})" if beat.get("tension") else ""
                lines.append(f"- **{beat['label']}**{tension}: {beat.get('content') or '-'}")
            lines.append("")

        if bible.get("characters"):
            lines += ["## Characters", ""]
            for character in bible["characters"]:
                lines += [f"### {character['name']} ({character['role']})", ""]
                if character.get("image_url"):
                    lines += [f"![{character['name']}]({character['image_url']})", ""]
                for section in PROFILE_SECTIONS:
                    rendered = _render_value(character.get(section))
                    if rendered:
                        lines += [f"#### {_title(section)}", *rendered, ""]

        universe = bible.get("universe")
        if universe:
            lines += ["## Universe", ""]
            for section in UNIVERSE_SECTIONS:
                rendered = _render_value(universe.get(section))
                if rendered:
                    lines += [f"### {_title(section)}", *rendered, ""]

        moodboard = bible.get("moodboard")
        if moodboard:
            lines += [
                "## Moodboard",
                "",
                f"- **Art Style**: {moodboard['art_style']}",
                f"- **Items**: {moodboard['with_image']}/{moodboard['total_items']} with images",
                "",
            ]
            for image in moodboard["images"]:
                lines.append(f"- {image['beat']}: {image.get('description') or ''} ![]({image['image_url']})")
            lines.append("")

        plan = bible.get("strategic_plan")
        if plan:
            lines += ["## Strategic Plan", ""]
            for section in CANVAS_SECTIONS:
                if plan.get(section):
                    lines += [f"### {_title(section)}", "", plan[section], ""]
            scored = plan["performance_factors"]
            factors = {k: scored[k] for k in PERFORMANCE_FACTORS if scored.get(k)}
            if factors:
                lines += ["### Performance Factors", *_render_value(factors), ""]
            if plan.get("competitor_name"):
                lines += [f"- **Competitor**: {plan['competitor_name']}", ""]

        if bible.get("team"):
            lines += ["## Team", ""]
            for member in bible["team"]:
                lines.append(f"- **{member['name']}** ({member['role']})")
                for key in ("responsibilities", "expertise"):
                    if member.get(key):
                        lines.append(f"  - {_title(key)}: {member[key]}")
            lines.append("")

        if bible.get("materials"):
            lines += ["## Materials", ""]
            for material in bible["materials"]:
                link = f" ({material['file_url']})" if material.get("file_url") else ""
                lines.append(f"- **{material['name']}** [{material['type']}]{link}")
                if material.get("description"):
                    lines.append(f"  - {material['description']}")
            lines.append("")

        lines.append(f"_Generated {bible['generated_at']}_")
        return "\n".join(lines) + "\n"

    async def export_ip_bible(self, project_id: str, user_id: str, export_format: str = "markdown") -> Dict[str, Any]:
        """
        导出 IP Bible 文件

        Render and write the IP Bible to
        `<export_dir>/<project_id>/ip-bible-<timestamp>.<ext>`.

        Returns:
            {"format", "path", "content"}
        """
        if export_format not in EXPORT_FORMATS:
            raise ValidationError(f"format must be one of {', '.join(EXPORT_FORMATS)}")
        bible = await self.build_ip_bible(project_id, user_id)
        if export_format == "json":
            content = json.dumps(bible, ensure_ascii=False, indent=2, default=str)
        else:
            content = self.render_markdown(bible)

        target_dir = self.export_dir / project_id
        target_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        path = target_dir / f"ip-bible-{stamp}.{EXPORT_FORMATS[export_format]}"
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)
        logger.info(f"Exported IP Bible for project {project_id} to {path}")
        return {"format": export_format, "path": str(path), "content": content}


export_service = ExportService()
