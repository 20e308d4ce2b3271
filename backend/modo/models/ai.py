"""AI provider registry and generation log ORM models."""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from modo.models.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin

GENERATION_STATUSES = ("processing", "completed", "failed")
AI_TYPES = ("text", "image", "video", "audio")


class AIProvider(IdMixin, TimestampMixin, Base):
    __tablename__ = "ai_providers"

    slug: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(128))
    # text / image / video / audio / multi
    type: Mapped[str] = mapped_column(String(16), default="text")
    api_base_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class AIModel(IdMixin, TimestampMixin, Base):
    __tablename__ = "ai_models"
    __table_args__ = (UniqueConstraint("provider_id", "model_id", name="uq_ai_models_provider_model"),)

    provider_id: Mapped[str] = mapped_column(ForeignKey("ai_providers.id"), index=True)
    model_id: Mapped[str] = mapped_column(String(128), index=True)
    name: Mapped[str] = mapped_column(String(128))
    type: Mapped[str] = mapped_column(String(16), index=True)
    credit_cost: Mapped[int] = mapped_column(Integer, default=5)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)


class PlatformApiKey(IdMixin, TimestampMixin, Base):
    __tablename__ = "platform_api_keys"

    provider_id: Mapped[str] = mapped_column(ForeignKey("ai_providers.id"), index=True)
    name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    encrypted_key: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TierModel(IdMixin, TimestampMixin, Base):
    """Model chosen for one subscription tier and generation type."""

    __tablename__ = "ai_tier_models"
    __table_args__ = (UniqueConstraint("tier", "type", name="uq_ai_tier_models_tier_type"),)

    tier: Mapped[str] = mapped_column(String(32))
    type: Mapped[str] = mapped_column(String(16))
    model_id: Mapped[str] = mapped_column(ForeignKey("ai_models.id"))


class FallbackConfig(IdMixin, TimestampMixin, Base):
    __tablename__ = "ai_fallback_configs"

    tier: Mapped[str] = mapped_column(String(32), index=True)
    type: Mapped[str] = mapped_column(String(16), index=True)
    priority: Mapped[int] = mapped_column(Integer)
    model_id: Mapped[str] = mapped_column(ForeignKey("ai_models.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class GenerationLog(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """One metered AI generation and its outcome."""

    __tablename__ = "ai_generation_logs"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    project_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    generation_type: Mapped[str] = mapped_column(String(64), index=True)
    model_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    provider: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    prompt: Mapped[str] = mapped_column(Text)
    input_params: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    result_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    result_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    result_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    credit_cost: Mapped[int] = mapped_column(Integer, default=0)
    tokens_input: Mapped[int] = mapped_column(Integer, default=0)
    tokens_output: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(16), default="processing", index=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
