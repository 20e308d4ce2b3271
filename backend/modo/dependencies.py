# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  依赖注入工厂 - FastAPI Depends() 工厂函数，统一管理存储实例创建
  Dependency Injection - FastAPI Depends() factories for storage instances.
  Storages resolve the database lazily, so cached instances follow the
  database installed by tests.
"""

from functools import lru_cache

from modo.storage.admin import AdminStorage
from modo.storage.ai_registry import AIRegistryStorage
from modo.storage.animations import AnimationStorage
from modo.storage.characters import CharacterStorage
from modo.storage.contents import ContentStorage
from modo.storage.investing import InvestingStorage
from modo.storage.licensing import LicensingStorage
from modo.storage.moodboards import MoodboardStorage
from modo.storage.projects import ProjectStorage
from modo.storage.scenes import SceneStorage
from modo.storage.stories import StoryStorage
from modo.storage.strategic_plans import StrategicPlanStorage
from modo.storage.team import TeamStorage
from modo.storage.universes import UniverseStorage
from modo.storage.users import UserStorage


@lru_cache(maxsize=1)
def get_user_storage() -> UserStorage:
    """
    获取或创建UserStorage的单例实例

    Get or create singleton UserStorage instance.
    """
    return UserStorage()


@lru_cache(maxsize=1)
def get_project_storage() -> ProjectStorage:
    """
    获取或创建ProjectStorage的单例实例

    Get or create singleton ProjectStorage instance.
    """
    return ProjectStorage()


@lru_cache(maxsize=1)
def get_story_storage() -> StoryStorage:
    return StoryStorage()


@lru_cache(maxsize=1)
def get_character_storage() -> CharacterStorage:
    return CharacterStorage()


@lru_cache(maxsize=1)
def get_universe_storage() -> UniverseStorage:
    return UniverseStorage()


@lru_cache(maxsize=1)
def get_moodboard_storage() -> MoodboardStorage:
    return MoodboardStorage()


@lru_cache(maxsize=1)
def get_scene_storage() -> SceneStorage:
    return SceneStorage()


@lru_cache(maxsize=1)
def get_animation_storage() -> AnimationStorage:
    return AnimationStorage()


@lru_cache(maxsize=1)
def get_licensing_storage() -> LicensingStorage:
    return LicensingStorage()


@lru_cache(maxsize=1)
def get_investing_storage() -> InvestingStorage:
    return InvestingStorage()


@lru_cache(maxsize=1)
def get_content_storage() -> ContentStorage:
    return ContentStorage()


@lru_cache(maxsize=1)
def get_ai_registry_storage() -> AIRegistryStorage:
    """
    获取或创建AIRegistryStorage的单例实例

    Get or create singleton AIRegistryStorage instance.
    """
    return AIRegistryStorage()


@lru_cache(maxsize=1)
def get_admin_storage() -> AdminStorage:
    return AdminStorage()


@lru_cache(maxsize=1)
def get_strategic_plan_storage() -> StrategicPlanStorage:
    return StrategicPlanStorage()


@lru_cache(maxsize=1)
def get_team_storage() -> TeamStorage:
    return TeamStorage()
