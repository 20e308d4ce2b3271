"""User, credit ledger and payment ORM models."""

from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modo.models.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin

USER_ROLES = ("trial", "premium", "pro", "unlimited", "admin", "superadmin")
SUBSCRIPTION_TIERS = ("trial", "creator", "studio", "enterprise")
TRANSACTION_TYPES = ("subscription_credit", "purchase", "usage", "debit", "refund", "bonus", "adjustment")
PAYMENT_STATUSES = ("pending", "verified", "rejected")


class User(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Platform user with credit balance and subscription tier."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(32), default="trial")
    subscription_tier: Mapped[str] = mapped_column(String(32), default="trial", index=True)
    credit_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Enterprise tier only
    use_own_api_key: Mapped[bool] = mapped_column(Boolean, default=False)
    own_ai_provider: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    own_ai_model: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    own_ai_api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CreditTransaction(IdMixin, TimestampMixin, Base):
    """One signed movement on a user's credit balance."""

    __tablename__ = "credit_transactions"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    type: Mapped[str] = mapped_column(String(32))
    amount: Mapped[int] = mapped_column(Integer)
    balance_after: Mapped[int] = mapped_column(Integer)
    reference_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reference_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Payment(IdMixin, TimestampMixin, Base):
    """Manual-transfer payment awaiting admin verification."""

    __tablename__ = "payments"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    amount: Mapped[float] = mapped_column(Float)
    credits: Mapped[int] = mapped_column(Integer, default=0)
    package_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", index=True)
    payment_method: Mapped[str] = mapped_column(String(32), default="transfer")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
