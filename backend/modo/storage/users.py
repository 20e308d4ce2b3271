"""
User Storage
Users, credit ledger and pending payments.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modo.config import config
from modo.exceptions import InsufficientCreditsError, ValidationError
from modo.models import CreditTransaction, Payment, User
from modo.models.user import SUBSCRIPTION_TIERS, TRANSACTION_TYPES, USER_ROLES
from modo.storage.base import BaseStorage


class UserStorage(BaseStorage):
    """Database storage for users and their credit balances."""

    async def create_user(self, email: str, name: str, tier: str = "trial", role: str = "trial") -> User:
        """
        Create a user and grant the signup bonus.
        创建用户并发放注册赠送积分。
        """
        if tier not in SUBSCRIPTION_TIERS:
            raise ValidationError(f"Invalid subscription tier: {tier}")
        if role not in USER_ROLES:
            raise ValidationError(f"Invalid role: {role}")

        bonus = int(config.get("credits", {}).get("signup_bonus", 50))
        async with self.transaction() as session:
            existing = await session.execute(select(User.id).where(func.lower(User.email) == email.lower()))
            if existing.first():
                raise ValidationError(f"Email {email} is already registered")

            user = User(email=email, name=name, subscription_tier=tier, role=role, credit_balance=0)
            session.add(user)
            await session.flush()
            if bonus > 0:
                await self.credit(session, user.id, bonus, "bonus", description="Signup bonus")
            await session.refresh(user)
            return user

    async def get_user(self, user_id: str) -> User:
        async with self.session() as session:
            return await self.get_live(session, User, user_id, "User")

    async def list_users(
        self,
        search: Optional[str] = None,
        tier: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[User], int]:
        """List live users, newest first, with the unpaginated total."""
        conditions = [User.deleted_at.is_(None)]
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(func.lower(User.email).like(pattern), func.lower(User.name).like(pattern)))
        if tier and tier != "all":
            conditions.append(User.subscription_tier == tier)

        async with self.session() as session:
            total = (await session.execute(select(func.count(User.id)).where(*conditions))).scalar() or 0
            result = await session.execute(
                select(User).where(*conditions).order_by(User.created_at.desc()).limit(limit).offset(offset)
            )
            return list(result.scalars().all()), int(total)

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> User:
        if updates.get("role") is not None and updates["role"] not in USER_ROLES:
            raise ValidationError(f"Invalid role: {updates['role']}")
        if updates.get("subscription_tier") is not None and updates["subscription_tier"] not in SUBSCRIPTION_TIERS:
            raise ValidationError(f"Invalid subscription tier: {updates['subscription_tier']}")

        async with self.transaction() as session:
            user = await self.get_live(session, User, user_id, "User")
            self.apply_updates(user, updates, ("name", "role", "subscription_tier"))
            return user

    # ------------------------------------------------------------------
    # Credit ledger
    # ------------------------------------------------------------------

    async def debit(
        self,
        session: AsyncSession,
        user_id: str,
        amount: int,
        tx_type: str = "debit",
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CreditTransaction:
        """
        在调用方事务中扣减积分

        Deduct credits inside the caller's transaction. The conditional UPDATE
        keeps the balance from going negative under concurrent requests.

        Raises:
            NotFoundError: 用户不存在 / User missing
            InsufficientCreditsError: 余额不足 / Balance lower than amount
        """
        user = await self.get_live(session, User, user_id, "User")
        if amount <= 0:
            return await self._record(session, user_id, tx_type, 0, user.credit_balance, reference_type, reference_id, description)

        result = await session.execute(
            update(User)
            .where(User.id == user_id, User.credit_balance >= amount)
            .values(credit_balance=User.credit_balance - amount)
            .returning(User.credit_balance)
            .execution_options(synchronize_session="fetch")
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise InsufficientCreditsError(required=amount, balance=user.credit_balance)
        return await self._record(session, user_id, tx_type, -amount, new_balance, reference_type, reference_id, description)

    async def credit(
        self,
        session: AsyncSession,
        user_id: str,
        amount: int,
        tx_type: str,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CreditTransaction:
        """Add credits inside the caller's transaction."""
        if tx_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type: {tx_type}")
        await self.get_live(session, User, user_id, "User")
        result = await session.execute(
            update(User)
            .where(User.id == user_id)
            .values(credit_balance=User.credit_balance + amount)
            .returning(User.credit_balance)
            .execution_options(synchronize_session="fetch")
        )
        new_balance = result.scalar_one()
        return await self._record(session, user_id, tx_type, amount, new_balance, reference_type, reference_id, description)

    @staticmethod
    async def _record(
        session: AsyncSession,
        user_id: str,
        tx_type: str,
        amount: int,
        balance_after: int,
        reference_type: Optional[str],
        reference_id: Optional[str],
        description: Optional[str],
    ) -> CreditTransaction:
        transaction = CreditTransaction(
            user_id=user_id,
            type=tx_type,
            amount=amount,
            balance_after=balance_after,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
        )
        session.add(transaction)
        await session.flush()
        return transaction

    async def get_balance(self, user_id: str) -> int:
        user = await self.get_user(user_id)
        return int(user.credit_balance)

    async def check_credits(self, user_id: str, cost: int) -> bool:
        return await self.get_balance(user_id) >= cost

    async def deduct_credits(
        self,
        user_id: str,
        amount: int,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CreditTransaction:
        async with self.transaction() as session:
            return await self.debit(session, user_id, amount, "debit", reference_type, reference_id, description)

    async def refund_credits(
        self,
        user_id: str,
        amount: int,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CreditTransaction:
        async with self.transaction() as session:
            return await self.credit(session, user_id, amount, "refund", reference_type, reference_id, description)

    async def grant_credits(
        self,
        user_id: str,
        amount: int,
        tx_type: str = "bonus",
        description: Optional[str] = None,
    ) -> CreditTransaction:
        if amount <= 0:
            raise ValidationError("Granted credits must be positive")
        async with self.transaction() as session:
            return await self.credit(session, user_id, amount, tx_type, description=description)

    async def adjust_credits(self, user_id: str, amount: int, description: Optional[str] = None) -> CreditTransaction:
        """
        管理员积分调整 / Admin adjustment, positive or negative.

        A negative adjustment larger than the balance is rejected with 400.
        """
        if amount == 0:
            raise ValidationError("Adjustment amount must not be zero")
        async with self.transaction() as session:
            if amount > 0:
                return await self.credit(session, user_id, amount, "adjustment", description=description)
            try:
                return await self.debit(session, user_id, -amount, "adjustment", description=description)
            except InsufficientCreditsError as e:
                raise ValidationError(
                    f"Adjustment would make balance negative (balance {e.balance})"
                ) from e

    async def list_transactions(self, user_id: str, limit: int = 20, offset: int = 0) -> Tuple[List[CreditTransaction], int]:
        async with self.session() as session:
            await self.get_live(session, User, user_id, "User")
            total = (
                await session.execute(
                    select(func.count(CreditTransaction.id)).where(CreditTransaction.user_id == user_id)
                )
            ).scalar() or 0
            result = await session.execute(
                select(CreditTransaction)
                .where(CreditTransaction.user_id == user_id)
                .order_by(CreditTransaction.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().all()), int(total)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def create_payment(
        self,
        user_id: str,
        amount: float,
        credits: int,
        package_id: Optional[str] = None,
    ) -> Payment:
        """Create a pending manual-transfer payment. Credits are not granted here."""
        if credits <= 0 or amount <= 0:
            raise ValidationError("credits and amount must be positive")
        async with self.transaction() as session:
            await self.get_live(session, User, user_id, "User")
            payment = Payment(
                user_id=user_id,
                amount=amount,
                credits=credits,
                package_id=package_id,
                status="pending",
                payment_method="transfer",
                description=f"Credit purchase: {credits} credits",
            )
            session.add(payment)
            await session.flush()
            return payment

    # ------------------------------------------------------------------
    # Enterprise own AI settings
    # ------------------------------------------------------------------

    async def update_own_ai(
        self,
        user_id: str,
        use_own_api_key: bool,
        provider: Optional[str],
        model: Optional[str],
        api_key: Optional[str],
    ) -> User:
        async with self.transaction() as session:
            user = await self.get_live(session, User, user_id, "User")
            user.use_own_api_key = bool(use_own_api_key)
            if provider is not None:
                user.own_ai_provider = provider
            if model is not None:
                user.own_ai_model = model
            if api_key:
                user.own_ai_api_key = api_key
            return user

