"""
Strategic Plan Router / 战略计划路由

商业模式画布、表现因素分析与 AI 章节生成。
"""

from fastapi import APIRouter, Depends, HTTPException

from modo.dependencies import get_strategic_plan_storage
from modo.exceptions import ModoError
from modo.schemas.project import StrategicPlan, StrategicPlanSave, StrategicSectionGenerate
from modo.services.strategic_service import strategic_service
from modo.storage.strategic_plans import StrategicPlanStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects/{project_id}/strategic-plan", tags=["strategic-plan"])


@router.get("")
async def get_plan(
    project_id: str,
    user_id: str,
    plans: StrategicPlanStorage = Depends(get_strategic_plan_storage),
):
    """
    获取项目战略计划

    Returns:
        {"success": True, "plan": 计划或 None（尚未保存）}
    """
    try:
        plan = await plans.get_plan(project_id, user_id)
        return {"success": True, "plan": StrategicPlan.model_validate(plan) if plan else None}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get strategic plan for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("", response_model=StrategicPlan)
async def save_plan(
    project_id: str,
    payload: StrategicPlanSave,
    plans: StrategicPlanStorage = Depends(get_strategic_plan_storage),
):
    """
    保存战略计划（不存在时创建）

    Args:
        payload: 画布章节、表现因素、竞品评分与预测受众；未提供的字段保持不变

    Raises:
        HTTPException: 400 未知表现因素；404 项目不存在
    """
    try:
        plan = await plans.save_plan(project_id, payload.user_id, payload.model_dump(exclude={"user_id"}))
        logger.info(f"Saved strategic plan for project {project_id}")
        return plan
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to save strategic plan for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate-section")
async def generate_section(project_id: str, payload: StrategicSectionGenerate):
    try:
        data = await strategic_service.generate_section(
            project_id, payload.user_id, payload.section, payload.project_context
        )
        return {"success": True, **data}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Strategic section generation failed for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
