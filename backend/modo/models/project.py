"""Project, story, character and universe ORM models."""

from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modo.models.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin

PROJECT_STATUSES = ("draft", "in_progress", "completed", "archived")
CHARACTER_ROLES = (
    "protagonist",
    "antagonist",
    "deuteragonist",
    "supporting",
    "mentor",
    "love_interest",
    "sidekick",
    "other",
)


class Project(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "projects"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sub_genre: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    studio_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ip_owner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="draft", index=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    storyboard_config: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)


class StoryVersion(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """One structured story draft; at most one active per project."""

    __tablename__ = "story_versions"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer, default=1)
    version_name: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    structure: Mapped[str] = mapped_column(String(32), default="save_the_cat")
    premise: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    synopsis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    global_synopsis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    format: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    theme: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    conflict: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_audience: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ending_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    beats: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    key_actions: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    tension_levels: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    want_need_matrix: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    beat_characters: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    character_ids: Mapped[List[str]] = mapped_column(JSON, default=list)


class Character(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "characters"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(32), default="supporting")
    age: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    cast_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    physiological: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    psychological: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    emotional: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    family: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    sociocultural: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    core_beliefs: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    educational: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    sociopolitics: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    swot: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    traits: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CharacterImageVersion(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "character_image_versions"

    character_id: Mapped[str] = mapped_column(ForeignKey("characters.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    version_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_url: Mapped[str] = mapped_column(Text)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    template: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    art_style: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    model_used: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    credit_cost: Mapped[int] = mapped_column(Integer, default=0)


class UniverseVersion(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "universe_versions"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    story_version_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    version_number: Mapped[int] = mapped_column(Integer, default=1)
    version_name: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    environment: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    society: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    government: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    economy: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    culture: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    history: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    lore: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
