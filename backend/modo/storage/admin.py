"""
Admin Storage
Aggregate queries for the admin dashboard.
"""

from typing import Any, Dict

from sqlalchemy import func, select

from modo.models import GenerationLog, Payment, User
from modo.storage.base import BaseStorage


class AdminStorage(BaseStorage):

    async def dashboard(self) -> Dict[str, Any]:
        """
        管理后台统计 / Dashboard counters

        Returns total users, active (non-trial) subscriptions, pending
        payments, verified revenue, generation count and the five most
        recent users and payments.
        """
        async with self.session() as session:
            live_users = User.deleted_at.is_(None)
            total_users = (await session.execute(select(func.count(User.id)).where(live_users))).scalar() or 0
            active_subscriptions = (
                await session.execute(
                    select(func.count(User.id)).where(live_users, User.subscription_tier != "trial")
                )
            ).scalar() or 0
            pending_payments = (
                await session.execute(select(func.count(Payment.id)).where(Payment.status == "pending"))
            ).scalar() or 0
            total_revenue = (
                await session.execute(
                    select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.status == "verified")
                )
            ).scalar() or 0
            generations = (await session.execute(select(func.count(GenerationLog.id)))).scalar() or 0

            recent_users = (
                await session.execute(select(User).where(live_users).order_by(User.created_at.desc()).limit(5))
            ).scalars().all()
            recent_payments = (
                await session.execute(select(Payment).order_by(Payment.created_at.desc()).limit(5))
            ).scalars().all()

        return {
            "stats": {
                "total_users": int(total_users),
                "active_subscriptions": int(active_subscriptions),
                "pending_payments": int(pending_payments),
                "total_revenue": float(total_revenue),
                "ai_generations": int(generations),
            },
            "recent_users": list(recent_users),
            "recent_payments": list(recent_payments),
        }
