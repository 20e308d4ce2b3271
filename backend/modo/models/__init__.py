"""
ORM Models / ORM 模型
SQLAlchemy declarative models for every persisted entity.
"""

from .base import Base, new_id
from .user import CreditTransaction, Payment, User
from .ai import AIModel, AIProvider, FallbackConfig, GenerationLog, PlatformApiKey, TierModel
from .project import Character, CharacterImageVersion, Project, StoryVersion, UniverseVersion
from .visual import (
    AnimationClip,
    AnimationVersion,
    ClipVideoVersion,
    Moodboard,
    MoodboardItem,
    MoodboardItemVersion,
    SceneImageVersion,
    ScenePlot,
    SceneScriptVersion,
    SceneShot,
)
from .commerce import (
    Campaign,
    Content,
    Investment,
    InvestmentTier,
    LicenseCartItem,
    LicenseOrder,
    LicenseOrderItem,
    LicenseProduct,
    LicenseProductVariant,
)
from .planning import ProjectMaterial, ProjectTeamMember, StrategicPlan

__all__ = [
    "Base",
    "new_id",
    "User",
    "CreditTransaction",
    "Payment",
    "AIProvider",
    "AIModel",
    "PlatformApiKey",
    "TierModel",
    "FallbackConfig",
    "GenerationLog",
    "Project",
    "StoryVersion",
    "Character",
    "CharacterImageVersion",
    "UniverseVersion",
    "StrategicPlan",
    "ProjectTeamMember",
    "ProjectMaterial",
    "Moodboard",
    "MoodboardItem",
    "MoodboardItemVersion",
    "ScenePlot",
    "SceneShot",
    "SceneScriptVersion",
    "SceneImageVersion",
    "AnimationVersion",
    "AnimationClip",
    "ClipVideoVersion",
    "LicenseProduct",
    "LicenseProductVariant",
    "LicenseCartItem",
    "LicenseOrder",
    "LicenseOrderItem",
    "Campaign",
    "InvestmentTier",
    "Investment",
    "Content",
]
