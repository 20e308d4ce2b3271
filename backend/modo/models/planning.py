"""Strategic plan, project team and project material ORM models."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modo.models.base import Base, IdMixin, TimestampMixin, _utcnow

# Business model canvas, in canvas reading order
CANVAS_SECTIONS = (
    "customer_segments",
    "value_propositions",
    "channels",
    "customer_relationships",
    "revenue_streams",
    "key_resources",
    "key_activities",
    "key_partnerships",
    "cost_structure",
)
PERFORMANCE_FACTORS = (
    "cast",
    "director",
    "producer",
    "executive_producer",
    "distributor",
    "publisher",
    "title_brand_positioning",
    "theme_stated",
    "unique_selling",
    "story_values",
    "fans_loyalty",
    "production_budget",
    "promotion_budget",
    "social_media_engagements",
    "teaser_trailer_engagements",
    "genre",
)
MATERIAL_TYPES = ("document", "image", "video", "audio", "other")


class StrategicPlan(IdMixin, TimestampMixin, Base):
    """Business canvas and performance analysis; one per project."""

    __tablename__ = "strategic_plans"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), unique=True, index=True)
    customer_segments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    value_propositions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    channels: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_relationships: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    revenue_streams: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_resources: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_activities: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_partnerships: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cost_structure: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    performance_factors: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    competitor_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    competitor_scores: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    project_scores: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    predicted_audience: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    ai_suggestions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ProjectTeamMember(IdMixin, TimestampMixin, Base):
    __tablename__ = "project_team"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    member_user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(64), default="member")
    responsibilities: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expertise: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_modo_token_holder: Mapped[bool] = mapped_column(Boolean, default=False)
    modo_token_address: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    modo_token_amount: Mapped[float] = mapped_column(Float, default=0.0)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ProjectMaterial(IdMixin, TimestampMixin, Base):
    __tablename__ = "project_materials"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), default="document")
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    uploaded_by: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
