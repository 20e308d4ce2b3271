"""
API Routers / API 路由
"""

from .users import router as users_router
from .ai import router as ai_router
from .admin_ai import router as admin_ai_router
from .admin import router as admin_router
from .projects import router as projects_router
from .stories import router as stories_router
from .characters import router as characters_router
from .universes import router as universes_router
from .moodboards import router as moodboards_router
from .scenes import router as scenes_router
from .animations import router as animations_router
from .licensing import router as licensing_router
from .investing import router as investing_router
from .watch import router as watch_router
from .strategic_plans import router as strategic_plans_router
from .team import router as team_router

__all__ = [
    "users_router",
    "ai_router",
    "admin_ai_router",
    "admin_router",
    "projects_router",
    "stories_router",
    "characters_router",
    "universes_router",
    "moodboards_router",
    "scenes_router",
    "animations_router",
    "licensing_router",
    "investing_router",
    "watch_router",
    "strategic_plans_router",
    "team_router",
]
