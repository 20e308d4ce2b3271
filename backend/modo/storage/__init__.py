"""
Storage Module / 存储模块
Database-backed storage for users, creative assets, commerce and the AI registry
基于数据库的存储（用户、创作资产、商业与 AI 注册表）
"""

from .base import BaseStorage
from .users import UserStorage
from .ai_registry import AIRegistryStorage
from .generation_logs import GenerationLogStorage
from .projects import ProjectStorage
from .stories import StoryStorage
from .characters import CharacterStorage
from .universes import UniverseStorage
from .moodboards import MoodboardStorage
from .scenes import SceneStorage
from .animations import AnimationStorage
from .licensing import LicensingStorage
from .investing import InvestingStorage
from .contents import ContentStorage
from .admin import AdminStorage

__all__ = [
    "BaseStorage",
    "UserStorage",
    "AIRegistryStorage",
    "GenerationLogStorage",
    "ProjectStorage",
    "StoryStorage",
    "CharacterStorage",
    "UniverseStorage",
    "MoodboardStorage",
    "SceneStorage",
    "AnimationStorage",
    "LicensingStorage",
    "InvestingStorage",
    "ContentStorage",
    "AdminStorage",
]
