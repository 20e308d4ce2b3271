"""
AI Gateway / AI 网关
Provider adapters plus tier-aware fallback routing.
"""

from .errors import classify_error, is_rate_limit_error
from .gateway import AIGateway, AIResult, create_provider, get_gateway, set_gateway

__all__ = [
    "AIGateway",
    "AIResult",
    "classify_error",
    "create_provider",
    "get_gateway",
    "is_rate_limit_error",
    "set_gateway",
]
