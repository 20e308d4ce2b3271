"""
Pydantic Data Models / Pydantic 数据模型
Request and response models for the HTTP API / HTTP API 的请求与响应模型
"""

from .user import User, UserCreate, CreditTransaction, Payment
from .project import Project, ProjectCreate, StoryVersion, Character, UniverseVersion
from .visual import Moodboard, MoodboardItem, ScenePlot, AnimationVersion, AnimationClip
from .commerce import Product, Order, Campaign, Investment, Content
from .ai import GenerateRequest, GenerationLog, Provider

__all__ = [
    "User",
    "UserCreate",
    "CreditTransaction",
    "Payment",
    "Project",
    "ProjectCreate",
    "StoryVersion",
    "Character",
    "UniverseVersion",
    "Moodboard",
    "MoodboardItem",
    "ScenePlot",
    "AnimationVersion",
    "AnimationClip",
    "Product",
    "Order",
    "Campaign",
    "Investment",
    "Content",
    "GenerateRequest",
    "GenerationLog",
    "Provider",
]
