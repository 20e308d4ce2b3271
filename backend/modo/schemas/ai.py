"""
AI generation and provider registry schema models.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Direct metered generation request."""

    user_id: str
    generation_type: str
    prompt: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    input_params: Dict[str, Any] = Field(default_factory=dict)


class GenerationLog(BaseModel):
    id: str
    user_id: str
    project_id: Optional[str] = None
    generation_type: str
    model_id: Optional[str] = None
    provider: Optional[str] = None
    prompt: str
    result_text: Optional[str] = None
    result_url: Optional[str] = None
    credit_cost: int
    tokens_input: int = 0
    tokens_output: int = 0
    status: str
    error_message: Optional[str] = None
    is_accepted: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProviderCreate(BaseModel):
    slug: str = Field(..., min_length=1)
    name: str
    type: str = "text"
    api_base_url: Optional[str] = None
    is_active: bool = True


class ProviderUpdate(BaseModel):
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    api_base_url: Optional[str] = None
    is_active: Optional[bool] = None


class Provider(BaseModel):
    id: str
    slug: str
    name: str
    type: str
    api_base_url: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class ModelCreate(BaseModel):
    provider_slug: str
    model_id: str
    name: str
    type: str = "text"
    credit_cost: int = Field(default=1, ge=0)
    is_default: bool = False
    sort_order: int = 0


class ApiKeyCreate(BaseModel):
    provider_slug: str
    api_key: str = Field(..., min_length=1)
    name: Optional[str] = None


class TierModelUpdate(BaseModel):
    tier: str
    type: str
    model_id: str = Field(..., description="AI model row id")


class FallbackUpdate(BaseModel):
    tier: str
    type: str
    model_ids: List[str] = Field(default_factory=list, description="AI model row ids in priority order")
