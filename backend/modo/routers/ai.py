"""
AI Router / AI 路由

积分费率目录、计量生成与生成历史。
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from modo.exceptions import ModoError
from modo.pricing import (
    GENERATION_KINDS,
    calculate_margin,
    estimate_monthly_cost,
    generation_costs,
    get_rates_by_kind,
    get_recommended_models,
)
from modo.schemas.ai import GenerateRequest, GenerationLog
from modo.schemas.project import OwnerRequest
from modo.schemas.user import UsageEstimate
from modo.services.generation_service import generation_service
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/rates")
async def get_rates(type: Optional[str] = Query(None, description="text / image / video / audio")):
    """
    模型积分费率目录

    Returns:
        每种类型的模型费率（含利润率）、推荐模型与各生成类型费用
    """
    try:
        kinds = [type] if type else list(GENERATION_KINDS)
        catalog = {}
        for kind in kinds:
            rates = get_rates_by_kind(kind)
            catalog[kind] = {
                "models": [
                    {
                        "model_id": model_id,
                        **rate.__dict__,
                        "margin_percent": calculate_margin(rate.api_cost_usd, rate.credits),
                    }
                    for model_id, rate in rates.items()
                ],
                "recommended": get_recommended_models(kind),
            }
        return {"success": True, "rates": catalog, "generation_costs": generation_costs()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to load rates: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/rates/estimate")
async def estimate_rates(payload: UsageEstimate):
    try:
        return {"success": True, "estimate": estimate_monthly_cost(payload.usage)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to estimate usage cost: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate")
async def generate(payload: GenerateRequest):
    """
    直接执行一次计量生成

    Raises:
        400: 未知生成类型
        402: 积分不足
        502: 所有 AI 模型失败（已退款）
    """
    try:
        result = await generation_service.generate(
            payload.user_id,
            payload.generation_type,
            payload.prompt,
            project_id=payload.project_id,
            input_params=payload.input_params,
        )
        return {"success": True, **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Generation failed for user {payload.user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/generations")
async def list_generations(
    user_id: str,
    project_id: Optional[str] = None,
    generation_type: Optional[str] = None,
    accepted_only: bool = False,
    limit: int = Query(20, ge=1, le=100),
):
    try:
        logs = await generation_service.get_history(user_id, project_id, generation_type, accepted_only, limit)
        return {"success": True, "generations": [GenerationLog.model_validate(log) for log in logs]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list generations for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/generations/{generation_id}", response_model=GenerationLog)
async def get_generation(generation_id: str, user_id: str):
    try:
        return await generation_service.get_generation(generation_id, user_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get generation {generation_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generations/{generation_id}/accept")
async def accept_generation(generation_id: str, payload: OwnerRequest):
    """采纳一次生成结果；同项目同类型的其他结果取消采纳"""
    try:
        log = await generation_service.accept(generation_id, payload.user_id)
        return {"success": True, "generation": GenerationLog.model_validate(log)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to accept generation {generation_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
