"""
User and credit service: signup, balances, purchases and enterprise own-AI settings.
"""

from typing import Any, Dict, Optional

from modo.exceptions import PermissionDeniedError, ValidationError
from modo.models import Payment, User
from modo.pricing import get_plan_limits
from modo.storage.users import UserStorage
from modo.utils.logger import get_logger
from modo.utils.text import mask_api_key

logger = get_logger(__name__)


class UserService:

    def __init__(self, users: Optional[UserStorage] = None) -> None:
        self.users = users or UserStorage()

    async def create_user(self, email: str, name: str, tier: str = "trial") -> User:
        user = await self.users.create_user(email=email, name=name, tier=tier)
        logger.info(f"Created user {user.id} ({tier})")
        return user

    async def get_credits(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.get_user(user_id)
        return {
            "user_id": user.id,
            "balance": user.credit_balance,
            "subscription_tier": user.subscription_tier,
            "plan_limits": get_plan_limits(user.subscription_tier),
        }

    async def purchase_credits(
        self,
        user_id: str,
        credits: int,
        amount: float,
        package_id: Optional[str] = None,
    ) -> Payment:
        """Record a pending payment; credits are granted once the payment is verified."""
        payment = await self.users.create_payment(user_id, amount=amount, credits=credits, package_id=package_id)
        logger.info(f"Pending payment {payment.id} for {credits} credits (user {user_id})")
        return payment

    async def get_own_ai(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.get_user(user_id)
        return {
            "use_own_api_key": bool(user.use_own_api_key),
            "provider": user.own_ai_provider,
            "model": user.own_ai_model,
            "api_key": mask_api_key(user.own_ai_api_key) if user.own_ai_api_key else None,
            "has_api_key": bool(user.own_ai_api_key),
            "eligible": user.subscription_tier == "enterprise",
        }

    async def update_own_ai(
        self,
        user_id: str,
        use_own_api_key: bool,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        更新企业自有 AI 设置 / Update enterprise own-AI settings

        Raises:
            PermissionDeniedError: 非企业用户 / Tier is not enterprise
            ValidationError: 启用时缺少提供商或模型 / Missing provider or model when enabling
        """
        user = await self.users.get_user(user_id)
        if user.subscription_tier != "enterprise":
            raise PermissionDeniedError("Own AI keys are available on the enterprise plan only")
        if use_own_api_key and not ((provider or user.own_ai_provider) and (model or user.own_ai_model)):
            raise ValidationError("provider and model are required to use your own API key")
        await self.users.update_own_ai(user_id, use_own_api_key, provider, model, api_key)
        return await self.get_own_ai(user_id)


user_service = UserService()
