"""
Investing Storage
Crowdfunding campaigns, their reward tiers and investments.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update

from modo.exceptions import NotFoundError, ValidationError
from modo.models import Campaign, Investment, InvestmentTier, Project, User
from modo.models.commerce import CAMPAIGN_STATUSES, INVESTMENT_STATUSES
from modo.storage.base import BaseStorage, utcnow
from modo.storage.projects import ProjectStorage


def funding_percentage(raised: float, goal: float) -> float:
    if not goal:
        return 0.0
    return round(float(raised) / float(goal) * 100, 1)


class InvestingStorage(BaseStorage):
    """Database storage for campaigns and investments."""

    async def list_public_campaigns(self, status: str = "active", limit: int = 20) -> List[Dict[str, Any]]:
        """Campaigns with backer count and funding percentage, newest first."""
        backers = (
            select(Investment.campaign_id, func.count(func.distinct(Investment.user_id)).label("backers"))
            .where(Investment.deleted_at.is_(None), Investment.status != "refunded")
            .group_by(Investment.campaign_id)
            .subquery()
        )
        stmt = (
            select(Campaign, Project.title, func.coalesce(backers.c.backers, 0))
            .join(Project, Project.id == Campaign.project_id)
            .outerjoin(backers, backers.c.campaign_id == Campaign.id)
            .where(Campaign.deleted_at.is_(None))
        )
        if status and status != "all":
            stmt = stmt.where(Campaign.status == status)

        async with self.session() as session:
            result = await session.execute(stmt.order_by(Campaign.created_at.desc()).limit(limit))
            rows = result.all()
        return [
            {
                "campaign": campaign,
                "project_title": project_title,
                "backer_count": int(backer_count),
                "funding_percentage": funding_percentage(campaign.funding_raised, campaign.funding_goal),
            }
            for campaign, project_title, backer_count in rows
        ]

    async def get_campaign(self, campaign_id: str) -> Campaign:
        async with self.session() as session:
            return await self.get_live(session, Campaign, campaign_id, "Campaign")

    async def create_campaign(
        self,
        project_id: str,
        user_id: str,
        title: str,
        funding_goal: float,
        description: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
        status: str = "draft",
        end_date: Optional[datetime] = None,
    ) -> Campaign:
        if not title or not title.strip():
            raise ValidationError("title is required")
        if funding_goal is None or funding_goal <= 0:
            raise ValidationError("funding_goal must be positive")
        if status not in CAMPAIGN_STATUSES:
            raise ValidationError(f"Invalid campaign status: {status}")
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            campaign = Campaign(
                project_id=project_id,
                title=title.strip(),
                description=description,
                thumbnail_url=thumbnail_url,
                funding_goal=float(funding_goal),
                funding_raised=0.0,
                status=status,
                end_date=end_date,
            )
            session.add(campaign)
            await session.flush()
            return campaign

    async def add_tier(
        self,
        campaign_id: str,
        name: str,
        min_amount: float = 0.0,
        rewards: Optional[List[Any]] = None,
    ) -> InvestmentTier:
        if min_amount < 0:
            raise ValidationError("min_amount must not be negative")
        async with self.transaction() as session:
            await self.get_live(session, Campaign, campaign_id, "Campaign")
            tier = InvestmentTier(campaign_id=campaign_id, name=name, min_amount=float(min_amount), rewards=rewards or [])
            session.add(tier)
            await session.flush()
            return tier

    async def invest(
        self,
        user_id: str,
        campaign_id: str,
        amount: float,
        tier_id: Optional[str] = None,
    ) -> Investment:
        """
        投资 / Back a campaign

        Records a pending investment and raises the campaign's funding_raised
        in one transaction.

        Raises:
            ValidationError: 活动未激活、金额无效或低于档位最低额
        """
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise ValidationError("amount must be positive")
        async with self.transaction() as session:
            await self.get_live(session, User, user_id, "User")
            campaign = await self.get_live(session, Campaign, campaign_id, "Campaign")
            if campaign.status != "active":
                raise ValidationError("Campaign is not accepting investments")
            if tier_id:
                tier = await session.get(InvestmentTier, tier_id)
                if tier is None or tier.campaign_id != campaign_id:
                    raise NotFoundError("Tier not found")
                if amount < tier.min_amount:
                    raise ValidationError(f"Minimum investment for {tier.name} is {tier.min_amount}")

            investment = Investment(
                user_id=user_id,
                campaign_id=campaign_id,
                tier_id=tier_id,
                amount=float(amount),
                status="pending",
            )
            session.add(investment)
            await session.execute(
                update(Campaign)
                .where(Campaign.id == campaign_id)
                .values(funding_raised=func.coalesce(Campaign.funding_raised, 0) + float(amount), updated_at=utcnow())
                .execution_options(synchronize_session="fetch")
            )
            await session.flush()
            return investment

    async def get_portfolio(self, user_id: str, status: Optional[str] = None) -> Dict[str, Any]:
        if status and status != "all" and status not in INVESTMENT_STATUSES:
            raise ValidationError(f"Invalid investment status: {status}")
        stmt = (
            select(Investment, Campaign, Project.title, InvestmentTier.name)
            .join(Campaign, Campaign.id == Investment.campaign_id)
            .join(Project, Project.id == Campaign.project_id)
            .outerjoin(InvestmentTier, InvestmentTier.id == Investment.tier_id)
            .where(Investment.user_id == user_id, Investment.deleted_at.is_(None))
        )
        if status and status != "all":
            stmt = stmt.where(Investment.status == status)

        async with self.session() as session:
            result = await session.execute(stmt.order_by(Investment.created_at.desc()))
            rows = result.all()

        investments = [
            {
                "id": investment.id,
                "amount": investment.amount,
                "status": investment.status,
                "created_at": investment.created_at,
                "campaign_id": campaign.id,
                "campaign_title": campaign.title,
                "campaign_status": campaign.status,
                "funding_percentage": funding_percentage(campaign.funding_raised, campaign.funding_goal),
                "project_title": project_title,
                "tier_name": tier_name,
            }
            for investment, campaign, project_title, tier_name in rows
        ]
        return {
            "investments": investments,
            "summary": {
                "total_invested": round(sum(i["amount"] for i in investments), 2),
                "investment_count": len(investments),
                "campaign_count": len({i["campaign_id"] for i in investments}),
            },
        }
