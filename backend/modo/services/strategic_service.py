"""
Strategic plan generation: AI drafts for business model canvas sections.
"""

import re
from typing import Any, Dict, Optional

from modo.exceptions import ValidationError
from modo.models.planning import CANVAS_SECTIONS
from modo.prompts import build_strategic_section_prompt
from modo.services.generation_service import GenerationService, generation_service
from modo.storage.projects import ProjectStorage
from modo.storage.strategic_plans import StrategicPlanStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)


def normalize_section(section: str) -> str:
    """Accept `customerSegments` or `customer_segments` alike."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", section.strip()).lower()


class StrategicService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        plans: Optional[StrategicPlanStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.plans = plans or StrategicPlanStorage()

    async def generate_section(
        self,
        project_id: str,
        user_id: str,
        section: str,
        project_context: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        生成战略计划章节 / Draft one business model canvas section

        Canvas sections are written into the project's plan; any other
        section name gets a generic canvas prompt and is only returned.

        Raises:
            ValidationError: 缺少章节 / No section given
            NotFoundError: 项目不属于用户 / Project not owned
            InsufficientCreditsError: 积分不足 / Not enough credits
        """
        if not section or not section.strip():
            raise ValidationError("section is required")
        key = normalize_section(section)
        project = await self.projects.get_owned_project(project_id, user_id)

        result = await self.generation.generate(
            user_id,
            "strategic_plan_section",
            build_strategic_section_prompt(project, key, project_context),
            project_id=project_id,
            input_params={"section": key},
        )
        content = (result.result_text or "").strip()

        saved = key in CANVAS_SECTIONS and bool(content)
        if saved:
            await self.plans.set_section(project_id, user_id, key, content)
            logger.info(f"Saved generated {key} for project {project_id}")
        return {
            "section": key,
            "content": content,
            "saved": saved,
            "generation_id": result.generation_id,
            "credit_cost": result.credit_cost,
        }


strategic_service = StrategicService()
