"""
Admin Router / 管理后台路由

仪表盘统计、用户管理与积分调整。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_admin_storage, get_user_storage
from modo.exceptions import ModoError
from modo.schemas.user import CreditAdjustment, CreditTransaction, Payment, User, UserUpdate
from modo.storage.admin import AdminStorage
from modo.storage.users import UserStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard")
async def dashboard(admin: AdminStorage = Depends(get_admin_storage)):
    """
    管理后台统计

    Returns:
        {"success", "stats", "recent_users", "recent_payments"}
    """
    try:
        data = await admin.dashboard()
        return {
            "success": True,
            "stats": data["stats"],
            "recent_users": [User.model_validate(u) for u in data["recent_users"]],
            "recent_payments": [Payment.model_validate(p) for p in data["recent_payments"]],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to load admin dashboard: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/users")
async def list_users(
    search: Optional[str] = None,
    tier: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    users: UserStorage = Depends(get_user_storage),
):
    try:
        items, total = await users.list_users(search, tier, limit, offset)
        return {"success": True, "users": [User.model_validate(u) for u in items], "total": total}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/users/{user_id}", response_model=User)
async def update_user(user_id: str, payload: UserUpdate, users: UserStorage = Depends(get_user_storage)):
    try:
        user = await users.update_user(user_id, payload.model_dump(exclude_unset=True))
        logger.info(f"Admin updated user {user_id}: {payload.model_dump(exclude_unset=True)}")
        return user
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/users/{user_id}/credits")
async def adjust_credits(user_id: str, payload: CreditAdjustment, users: UserStorage = Depends(get_user_storage)):
    """
    管理员积分调整（正数增加，负数扣减）

    Raises:
        400: 扣减后余额为负
    """
    try:
        transaction = await users.adjust_credits(user_id, payload.amount, payload.description)
        logger.info(f"Admin adjusted credits for user {user_id} by {payload.amount}")
        return {
            "success": True,
            "transaction": CreditTransaction.model_validate(transaction),
            "balance": transaction.balance_after,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to adjust credits for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
