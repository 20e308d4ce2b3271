"""
User and credit schema models.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Create user request."""

    email: str = Field(..., min_length=3, description="Unique email")
    name: str = Field(..., min_length=1, description="Display name")
    tier: str = Field(default="trial", description="Subscription tier")


class User(BaseModel):
    """User model (own AI key never exposed)."""

    id: str
    email: str
    name: str
    role: str
    subscription_tier: str
    credit_balance: int
    use_own_api_key: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Admin user update request."""

    role: Optional[str] = None
    subscription_tier: Optional[str] = None


class CreditTransaction(BaseModel):
    id: str
    type: str
    amount: int
    balance_after: int
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreditPurchase(BaseModel):
    """Credit purchase request; creates a pending payment."""

    credits: int = Field(..., gt=0)
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Price paid")
    package_id: Optional[str] = None


class CreditAdjustment(BaseModel):
    """Admin credit adjustment; negative amounts deduct."""

    amount: int
    description: Optional[str] = None


class Payment(BaseModel):
    id: str
    user_id: str
    amount: float
    credits: int
    package_id: Optional[str] = None
    status: str
    payment_method: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OwnAISettings(BaseModel):
    """Enterprise own-AI settings update."""

    use_own_api_key: bool = False
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None


class UsageEstimate(BaseModel):
    """Monthly usage: label -> {model_id, count}."""

    usage: Dict[str, Dict[str, object]] = Field(default_factory=dict)
