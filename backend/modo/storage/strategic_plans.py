"""
Strategic Plan Storage
One business-canvas plan per project, created on first save.
"""

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from modo.exceptions import ValidationError
from modo.models import StrategicPlan
from modo.models.planning import CANVAS_SECTIONS, PERFORMANCE_FACTORS
from modo.storage.base import BaseStorage, utcnow
from modo.storage.projects import ProjectStorage

PLAN_FIELDS = CANVAS_SECTIONS + (
    "performance_factors",
    "competitor_name",
    "competitor_scores",
    "project_scores",
    "predicted_audience",
    "ai_suggestions",
)


def _check_factors(factors: Dict[str, Any]) -> None:
    unknown = set(factors) - set(PERFORMANCE_FACTORS)
    if unknown:
        raise ValidationError(f"Unknown performance factors: {', '.join(sorted(unknown))}")


class StrategicPlanStorage(BaseStorage):
    """Database storage for strategic plans."""

    @staticmethod
    async def _plan(session: AsyncSession, project_id: str) -> Optional[StrategicPlan]:
        result = await session.execute(select(StrategicPlan).where(StrategicPlan.project_id == project_id))
        return result.scalars().first()

    async def get_plan(self, project_id: str, user_id: str) -> Optional[StrategicPlan]:
        """The project's plan, or None before the first save."""
        async with self.session() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            return await self._plan(session, project_id)

    async def save_plan(self, project_id: str, user_id: str, data: Dict[str, Any]) -> StrategicPlan:
        """
        保存战略计划 / Create or update the project's plan

        Only fields present (and not None) in `data` are written; score and
        factor maps replace the stored ones whole.

        Raises:
            NotFoundError: 项目不属于用户 / Project not owned
            ValidationError: 未知的表现因素 / Unknown performance factor
        """
        if data.get("performance_factors") is not None:
            _check_factors(data["performance_factors"])
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            plan = await self._plan(session, project_id)
            if plan is None:
                plan = StrategicPlan(
                    project_id=project_id,
                    performance_factors={},
                    competitor_scores={},
                    project_scores={},
                    predicted_audience={},
                )
                session.add(plan)
            self.apply_updates(plan, data, PLAN_FIELDS)
            plan.updated_at = utcnow()
            await session.flush()
            return plan

    async def set_section(self, project_id: str, user_id: str, section: str, content: str) -> StrategicPlan:
        if section not in CANVAS_SECTIONS:
            raise ValidationError(f"Unknown strategic plan section: {section}")
        return await self.save_plan(project_id, user_id, {section: content})
