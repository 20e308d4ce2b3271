"""Licensing, investing and distribution ORM models."""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modo.models.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin

ORDER_STATUSES = ("pending", "paid", "processing", "shipped", "delivered", "cancelled")
CAMPAIGN_STATUSES = ("draft", "active", "funded", "closed")
INVESTMENT_STATUSES = ("pending", "confirmed", "refunded")
CONTENT_TYPES = ("film", "series", "short", "animation")
CONTENT_STATUSES = ("draft", "published", "archived")


class LicenseProduct(IdMixin, TimestampMixin, Base):
    __tablename__ = "license_products"

    project_id: Mapped[Optional[str]] = mapped_column(ForeignKey("projects.id"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class LicenseProductVariant(IdMixin, TimestampMixin, Base):
    __tablename__ = "license_product_variants"

    product_id: Mapped[str] = mapped_column(ForeignKey("license_products.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    sku: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    price: Mapped[float] = mapped_column(Float)


class LicenseCartItem(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "license_cart_items"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("license_products.id"))
    variant_id: Mapped[Optional[str]] = mapped_column(ForeignKey("license_product_variants.id"), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)


class LicenseOrder(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "license_orders"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True)
    shipping_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_method: Mapped[str] = mapped_column(String(32), default="credit_card")
    tracking_number: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    tax: Mapped[float] = mapped_column(Float, default=0.0)
    total: Mapped[float] = mapped_column(Float, default=0.0)


class LicenseOrderItem(IdMixin, TimestampMixin, Base):
    __tablename__ = "license_order_items"

    order_id: Mapped[str] = mapped_column(ForeignKey("license_orders.id"), index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("license_products.id"))
    variant_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[float] = mapped_column(Float)


class Campaign(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "campaigns"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    funding_goal: Mapped[float] = mapped_column(Float)
    funding_raised: Mapped[float] = mapped_column(Float, default=0.0)
    status: Mapped[str] = mapped_column(String(16), default="draft", index=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class InvestmentTier(IdMixin, TimestampMixin, Base):
    __tablename__ = "investment_tiers"

    campaign_id: Mapped[str] = mapped_column(ForeignKey("campaigns.id"), index=True)
    name: Mapped[str] = mapped_column(String(128))
    min_amount: Mapped[float] = mapped_column(Float, default=0.0)
    rewards: Mapped[List[Any]] = mapped_column(JSON, default=list)


class Investment(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "investments"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    campaign_id: Mapped[str] = mapped_column(ForeignKey("campaigns.id"), index=True)
    tier_id: Mapped[Optional[str]] = mapped_column(ForeignKey("investment_tiers.id"), nullable=True)
    amount: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True)


class Content(IdMixin, TimestampMixin, Base):
    """Distributable title shown on the public watch catalog."""

    __tablename__ = "contents"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(16), default="film", index=True)
    genre: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    rating: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    release_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    synopsis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    poster_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    banner_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="draft", index=True)
    view_count: Mapped[int] = mapped_column(Integer, default=0)
