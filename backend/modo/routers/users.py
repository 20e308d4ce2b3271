"""
Users Router / 用户路由

用户、积分余额、积分流水、积分购买与企业自有 AI 设置。
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_user_storage
from modo.exceptions import ModoError
from modo.schemas.user import CreditPurchase, CreditTransaction, OwnAISettings, Payment, User, UserCreate
from modo.services.user_service import user_service
from modo.storage.users import UserStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=User, status_code=201)
async def create_user(payload: UserCreate):
    """
    创建用户（含注册赠送积分）

    Args:
        payload: 邮箱、名称与订阅档位

    Returns:
        新用户
    """
    try:
        return await user_service.create_user(payload.email, payload.name, payload.tier)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create user {payload.email}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, users: UserStorage = Depends(get_user_storage)):
    try:
        return await users.get_user(user_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{user_id}/credits")
async def get_credits(user_id: str):
    """
    积分余额与套餐限额

    Returns:
        {"success", "balance", "subscription_tier", "plan_limits"}
    """
    try:
        return {"success": True, **(await user_service.get_credits(user_id))}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get credits for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{user_id}/credits/transactions")
async def list_transactions(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    users: UserStorage = Depends(get_user_storage),
):
    try:
        items, total = await users.list_transactions(user_id, limit=limit, offset=offset)
        return {
            "success": True,
            "transactions": [CreditTransaction.model_validate(t) for t in items],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list transactions for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{user_id}/credits/purchase", status_code=201)
async def purchase_credits(user_id: str, payload: CreditPurchase):
    """
    购买积分（仅创建待审核的付款记录）

    Returns:
        {"success", "payment", "message"}
    """
    try:
        payment = await user_service.purchase_credits(user_id, payload.credits, payload.amount, payload.package_id)
        return {
            "success": True,
            "payment": Payment.model_validate(payment),
            "message": "Payment created. Credits are added once the payment is verified.",
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create payment for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{user_id}/own-ai")
async def get_own_ai(user_id: str):
    try:
        return {"success": True, "settings": await user_service.get_own_ai(user_id)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get own AI settings for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{user_id}/own-ai")
async def update_own_ai(user_id: str, payload: OwnAISettings):
    """
    更新企业自有 AI 设置（仅 enterprise 档位）

    Raises:
        403: 非企业用户
    """
    try:
        settings = await user_service.update_own_ai(
            user_id, payload.use_own_api_key, payload.provider, payload.model, payload.api_key
        )
        logger.info(f"Updated own AI settings for user {user_id}")
        return {"success": True, "settings": settings}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update own AI settings for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
