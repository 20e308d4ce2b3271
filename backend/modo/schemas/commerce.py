"""
Licensing, investing and watch schema models.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Licensing
# =============================================================================


class VariantIn(BaseModel):
    name: str
    sku: Optional[str] = None
    price: float = Field(..., ge=0, allow_inf_nan=False)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    project_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    variants: List[VariantIn] = Field(default_factory=list)


class ProductVariant(BaseModel):
    id: str
    product_id: str
    name: str
    sku: Optional[str] = None
    price: float

    class Config:
        from_attributes = True


class Product(BaseModel):
    id: str
    project_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    category: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class CartAdd(BaseModel):
    user_id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)


class CartUpdate(BaseModel):
    user_id: str
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    user_id: str
    shipping_address: Optional[str] = None
    payment_method: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    order_id: str
    status: str
    tracking_number: Optional[str] = None


class OrderItem(BaseModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int
    price: float

    class Config:
        from_attributes = True


class Order(BaseModel):
    id: str
    user_id: str
    status: str
    shipping_address: Optional[str] = None
    payment_method: str
    tracking_number: Optional[str] = None
    subtotal: float
    tax: float
    total: float
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Investing
# =============================================================================


class CampaignCreate(BaseModel):
    user_id: str
    project_id: str
    title: str = Field(..., min_length=1)
    funding_goal: float = Field(..., gt=0, allow_inf_nan=False)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    status: str = "draft"
    end_date: Optional[datetime] = None


class Campaign(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    funding_goal: float
    funding_raised: float
    status: str
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TierCreate(BaseModel):
    user_id: str
    name: str = Field(..., min_length=1)
    min_amount: float = Field(default=0, ge=0, allow_inf_nan=False)
    rewards: List[Any] = Field(default_factory=list)


class InvestmentTier(BaseModel):
    id: str
    campaign_id: str
    name: str
    min_amount: float
    rewards: List[Any] = Field(default_factory=list)

    class Config:
        from_attributes = True


class InvestRequest(BaseModel):
    user_id: str
    amount: float = Field(..., allow_inf_nan=False)
    tier_id: Optional[str] = None


class Investment(BaseModel):
    id: str
    user_id: str
    campaign_id: str
    tier_id: Optional[str] = None
    amount: float
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Watch
# =============================================================================


class ContentCreate(BaseModel):
    user_id: str
    project_id: str
    title: str = Field(..., min_length=1)
    type: str = "film"
    genre: Optional[str] = None
    rating: Optional[str] = None
    release_year: Optional[int] = None
    duration_minutes: Optional[int] = None
    synopsis: Optional[str] = None
    poster_url: Optional[str] = None
    banner_url: Optional[str] = None


class Content(BaseModel):
    id: str
    project_id: str
    title: str
    type: str
    genre: Optional[str] = None
    rating: Optional[str] = None
    release_year: Optional[int] = None
    duration_minutes: Optional[int] = None
    synopsis: Optional[str] = None
    poster_url: Optional[str] = None
    banner_url: Optional[str] = None
    status: str
    view_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
