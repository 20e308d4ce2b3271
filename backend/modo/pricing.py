# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  积分费率目录 - 各模型的 API 成本、积分价格与档位
  Credit rate catalog - per-model API cost, credit price and quality tier.

  1 credit = Rp 200 = ~$0.0125 USD. Per-generation-type costs come from
  config.yaml (`credits.costs`).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from modo.config import config
from modo.exceptions import ValidationError

MODEL_TIERS = ("economy", "standard", "quality", "premium", "ultra")
GENERATION_KINDS = ("text", "image", "video", "audio")


@dataclass(frozen=True)
class ModelRate:
    provider: str
    name: str
    api_cost_usd: float
    credits: int
    tier: str
    description: str = ""


TEXT_MODEL_RATES: Dict[str, ModelRate] = {
    # Economy
    "llama-3.3-70b-instruct:free": ModelRate("routeway", "Llama 3.3 70B (Free)", 0.0, 0, "economy", "Free via Routeway"),
    "deepseek-r1:free": ModelRate("routeway", "DeepSeek R1 (Free)", 0.0, 0, "economy", "Free reasoning model"),
    "glm-4-flash": ModelRate("zhipu", "GLM-4 Flash", 0.0, 0, "economy", "Free Zhipu model"),
    "deepseek-chat": ModelRate("deepseek", "DeepSeek V3", 0.001, 1, "economy", "Best value"),
    "deepseek-reasoner": ModelRate("deepseek", "DeepSeek R1 (Reasoning)", 0.004, 2, "economy", "Cheap reasoning"),
    "gemini-1.5-flash": ModelRate("google", "Gemini 1.5 Flash", 0.0008, 1, "economy", "Fast Gemini"),
    "gemini-2.0-flash-exp": ModelRate("google", "Gemini 2.0 Flash", 0.001, 1, "economy", "Latest fast Gemini"),
    # Standard
    "gpt-4o-mini": ModelRate("openai", "GPT-4o Mini", 0.0015, 3, "standard", "Balanced default"),
    "claude-3-5-haiku-20241022": ModelRate("anthropic", "Claude 3.5 Haiku", 0.01, 3, "standard", "Fast Claude"),
    "mistral-small-latest": ModelRate("mistral", "Mistral Small", 0.002, 3, "standard", "Efficient European model"),
    "gemini-1.5-pro": ModelRate("google", "Gemini 1.5 Pro", 0.012, 4, "standard", "Long context"),
    "grok-2-latest": ModelRate("xai", "Grok 2", 0.01, 4, "standard", "xAI model"),
    # Quality
    "gpt-4o": ModelRate("openai", "GPT-4o", 0.025, 6, "quality", "High quality writing"),
    "claude-3-5-sonnet-20241022": ModelRate("anthropic", "Claude 3.5 Sonnet", 0.035, 8, "quality", "Best creative writing"),
    "mistral-large-latest": ModelRate("mistral", "Mistral Large", 0.016, 6, "quality", "Large Mistral"),
    # Premium / ultra
    "gpt-4-turbo": ModelRate("openai", "GPT-4 Turbo", 0.08, 15, "premium", "Premium GPT-4"),
    "claude-3-opus-20240229": ModelRate("anthropic", "Claude 3 Opus", 0.18, 20, "premium", "Most capable Claude 3"),
    "o1-mini": ModelRate("openai", "o1 Mini (Reasoning)", 0.03, 12, "premium", "Reasoning"),
    "o1": ModelRate("openai", "o1 (Reasoning)", 0.15, 25, "ultra", "Top reasoning"),
}

IMAGE_MODEL_RATES: Dict[str, ModelRate] = {
    "getimg-lcm": ModelRate("getimg", "getimg LCM", 0.00031, 1, "economy", "Fast generation"),
    "getimg-sdxl": ModelRate("getimg", "getimg SDXL", 0.00157, 1, "economy", "Best value for bulk"),
    "fal-ai/flux/schnell": ModelRate("fal", "FLUX Schnell", 0.003, 2, "economy", "Fast FLUX model"),
    "nebius-sdxl": ModelRate("nebius", "Nebius SDXL", 0.003, 2, "economy", "Cheap cloud option"),
    "stable-diffusion-xl-1024-v1-0": ModelRate("stability", "SDXL 1.0", 0.009, 3, "economy", "Official Stability API"),
    "fal-ai/flux/dev": ModelRate("fal", "FLUX Dev", 0.015, 4, "standard", "Development quality"),
    "replicate-flux-dev": ModelRate("replicate", "Replicate FLUX Dev", 0.025, 5, "standard", "Replicate hosted FLUX"),
    "sd3.5-flash": ModelRate("stability", "SD 3.5 Flash", 0.025, 5, "standard", "Fast SD 3.5"),
    "imagen-3": ModelRate("google", "Imagen 3", 0.03, 6, "standard", "Google image model"),
    "fal-ai/flux-pro": ModelRate("fal", "FLUX Pro", 0.04, 8, "quality", "Production quality"),
    "fal-ai/flux-pro/v1.1": ModelRate("fal", "FLUX Pro 1.1", 0.04, 10, "quality", "Latest FLUX Pro"),
    "dall-e-3-standard": ModelRate("openai", "DALL-E 3", 0.04, 10, "quality", "OpenAI image generation"),
    "sd3.5-large": ModelRate("stability", "SD 3.5 Large", 0.065, 12, "quality", "Best Stability model"),
    "fal-ai/flux-pro/v1.1-ultra": ModelRate("fal", "FLUX Pro Ultra", 0.06, 15, "premium", "High-res FLUX"),
    "dall-e-3-hd": ModelRate("openai", "DALL-E 3 HD", 0.08, 18, "premium", "HD quality"),
    "stable-image-ultra": ModelRate("stability", "Stable Image Ultra", 0.08, 18, "premium", "Best Stability quality"),
    "dall-e-3-hd-wide": ModelRate("openai", "DALL-E 3 HD Wide", 0.12, 25, "ultra", "HD wide format"),
}

VIDEO_MODEL_RATES: Dict[str, ModelRate] = {
    "animatediff": ModelRate("replicate", "AnimateDiff", 0.01, 5, "economy", "2s video"),
    "stable-video-diffusion": ModelRate("replicate", "Stable Video", 0.013, 8, "economy", "4s video, budget option"),
    "hailuo-512p": ModelRate("minimax", "Hailuo 512p", 0.10, 15, "economy", "6s low-res"),
    "fal-ai/cogvideox-5b": ModelRate("fal", "CogVideoX", 0.15, 18, "economy", "Open source video"),
    "kling-v1.5-std": ModelRate("kling", "Kling 1.5 Standard", 0.14, 20, "standard", "5s good quality"),
    "hailuo-768p": ModelRate("minimax", "Hailuo 768p", 0.19, 25, "standard", "6s HD video"),
    "kling-v2.5": ModelRate("kling", "Kling 2.5", 0.28, 30, "standard", "Latest Kling"),
    "hailuo-1080p": ModelRate("minimax", "Hailuo 1080p", 0.33, 40, "quality", "6s Full HD"),
    "luma-ray2": ModelRate("luma", "Luma Ray2", 0.40, 45, "quality", "5s high quality"),
    "kling-v2.5-10s": ModelRate("kling", "Kling 2.5 10s", 0.56, 65, "premium", "10s Kling video"),
    "sora-2": ModelRate("openai", "Sora 2", 1.00, 100, "premium", "OpenAI video (10s)"),
    "sora-2-pro": ModelRate("openai", "Sora 2 Pro", 4.00, 350, "ultra", "Premium Sora (10s)"),
}

AUDIO_MODEL_RATES: Dict[str, ModelRate] = {
    "tts-1": ModelRate("openai", "OpenAI TTS", 0.003, 3, "standard", "Standard quality TTS"),
    "tts-1-hd": ModelRate("openai", "OpenAI TTS HD", 0.006, 5, "quality", "HD quality TTS"),
    "eleven_turbo_v2_5": ModelRate("elevenlabs", "ElevenLabs Turbo", 0.01, 5, "standard", "Fast voice generation"),
    "eleven_multilingual_v2": ModelRate("elevenlabs", "ElevenLabs Multilingual", 0.018, 8, "quality", "Multi-language support"),
    "suno-chirp-v3": ModelRate("suno", "Suno Music", 0.04, 15, "quality", "AI music generation"),
    "suno-chirp-v4": ModelRate("suno", "Suno V4", 0.06, 20, "premium", "Latest Suno model"),
}

_RATES_BY_KIND: Dict[str, Dict[str, ModelRate]] = {
    "text": TEXT_MODEL_RATES,
    "image": IMAGE_MODEL_RATES,
    "video": VIDEO_MODEL_RATES,
    "audio": AUDIO_MODEL_RATES,
}

# Generation type -> provider kind it is routed to
GENERATION_KIND: Dict[str, str] = {
    "character_image": "image",
    "moodboard_image": "image",
    "animation_preview": "video",
    "video": "video",
    "voice": "audio",
    "music": "audio",
}

DEFAULT_COST = 5

DEFAULT_GENERATION_COSTS: Dict[str, int] = {
    "synopsis": 3,
    "story_structure": 10,
    "character_profile": 8,
    "character_image": 12,
    "universe": 10,
    "moodboard_prompt": 3,
    "moodboard_image": 12,
    "key_actions": 3,
    "script": 25,
    "scene_script": 4,
    "scene_distribution": 3,
    "scene_shots": 3,
    "animation_prompt": 2,
    "animation_preview": 15,
    "video": 50,
    "voice": 20,
    "music": 30,
    "strategic_plan_section": 3,
}


DEFAULT_TIERS: Dict[str, Dict[str, int]] = {
    "trial": {"delay_seconds": 30, "monthly_credits": 50, "max_video_credits": 0},
    "creator": {"delay_seconds": 5, "monthly_credits": 500, "max_video_credits": 50},
    "studio": {"delay_seconds": 0, "monthly_credits": 2000, "max_video_credits": 200},
    "enterprise": {"delay_seconds": 0, "monthly_credits": 10000, "max_video_credits": 1000},
}


def _credit_settings() -> Dict:
    return config.get("credits", {})


def credit_value_usd() -> float:
    return float(_credit_settings().get("value_usd", 0.0125))


def credit_value_idr() -> float:
    return float(_credit_settings().get("value_idr", 200))


def get_rates_by_kind(kind: str) -> Dict[str, ModelRate]:
    if kind not in _RATES_BY_KIND:
        raise ValidationError(f"Unknown model kind: {kind}")
    return _RATES_BY_KIND[kind]


def get_model_rate(model_id: str) -> Optional[ModelRate]:
    for rates in _RATES_BY_KIND.values():
        if model_id in rates:
            return rates[model_id]
    return None


def calculate_credit_cost(model_id: str, kind: Optional[str] = None) -> int:
    """
    Credit cost of one call to `model_id`.

    With `kind` only that rate table is consulted, so a model id shared by
    two kinds resolves to the requested one. Unknown models cost DEFAULT_COST.
    """
    rate = get_rates_by_kind(kind).get(model_id) if kind else get_model_rate(model_id)
    return rate.credits if rate else DEFAULT_COST


def generation_costs() -> Dict[str, int]:
    """Credit cost per generation type (from config.yaml)."""
    costs = dict(DEFAULT_GENERATION_COSTS)
    costs.update({key: int(value) for key, value in (_credit_settings().get("costs") or {}).items()})
    return costs


def is_generation_type(generation_type: str) -> bool:
    return generation_type in generation_costs()


def get_generation_cost(generation_type: str) -> int:
    default_cost = int(_credit_settings().get("default_cost", DEFAULT_COST))
    return generation_costs().get(generation_type, default_cost)


def generation_kind(generation_type: str) -> str:
    """Map a generation type to the provider kind (text/image/video/audio)."""
    return GENERATION_KIND.get(generation_type, "text")


def get_models_by_tier(kind: str, tier: str) -> List[Dict]:
    """Models of one quality tier, cheapest first."""
    rates = get_rates_by_kind(kind)
    matched = [{"model_id": model_id, **rate.__dict__} for model_id, rate in rates.items() if rate.tier == tier]
    return sorted(matched, key=lambda item: item["credits"])


def get_recommended_models(kind: str) -> Dict[str, Dict]:
    """Cheapest model of every tier for one kind."""
    recommended = {}
    for tier in MODEL_TIERS:
        models = get_models_by_tier(kind, tier)
        if models:
            recommended[tier] = models[0]
    return recommended


def calculate_margin(api_cost_usd: float, credits: int) -> float:
    """
    计算利润率 / Gross margin percentage for one generation.

    Free models (0 credits) have no revenue and report a 0.0 margin.
    """
    revenue = credits * credit_value_usd()
    if revenue <= 0:
        return 0.0
    return round((revenue - api_cost_usd) / revenue * 100, 1)


def estimate_monthly_cost(usage: Dict[str, Dict]) -> Dict[str, float]:
    """
    估算月度成本 / Estimate monthly credits and money for a usage profile.

    Args:
        usage: {label: {"model_id": str, "count": int}}

    Returns:
        credits, USD price, IDR price, raw API cost and margin.
    """
    total_credits = 0
    total_api_cost = 0.0
    for item in usage.values():
        model_id = item.get("model_id", "")
        count = int(item.get("count", 0))
        rate = get_model_rate(model_id)
        if rate is None:
            total_credits += DEFAULT_COST * count
            continue
        total_credits += rate.credits * count
        total_api_cost += rate.api_cost_usd * count

    price_usd = total_credits * credit_value_usd()
    margin = round((price_usd - total_api_cost) / price_usd * 100, 1) if price_usd > 0 else 0.0
    return {
        "credits": total_credits,
        "price_usd": round(price_usd, 4),
        "price_idr": round(total_credits * credit_value_idr(), 2),
        "api_cost_usd": round(total_api_cost, 4),
        "margin_percent": margin,
    }


def _tier_settings(tier: str) -> Dict:
    if tier not in DEFAULT_TIERS:
        raise ValidationError(f"Unknown subscription tier: {tier}")
    plan = dict(DEFAULT_TIERS[tier])
    plan.update(config.get("tiers", {}).get(tier) or {})
    return plan


def get_plan_limits(tier: str) -> Dict[str, int]:
    plan = _tier_settings(tier)
    return {
        "monthly_credits": int(plan.get("monthly_credits", 0)),
        "max_video_credits": int(plan.get("max_video_credits", 0)),
    }


def get_tier_delay(tier: str) -> float:
    plan = _tier_settings(tier)
    return float(plan.get("delay_seconds", 0))
