"""
Project, story, character and universe schema models.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Projects
# =============================================================================


class ProjectBase(BaseModel):
    description: Optional[str] = None
    genre: Optional[str] = None
    sub_genre: Optional[str] = None
    studio_name: Optional[str] = None
    ip_owner: Optional[str] = None
    is_public: Optional[bool] = None
    thumbnail_url: Optional[str] = None


class ProjectCreate(ProjectBase):
    """Create project request."""

    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., min_length=1, description="Project title")


class ProjectUpdate(ProjectBase):
    title: Optional[str] = None
    status: Optional[str] = None


class Project(ProjectBase):
    id: str
    user_id: str
    title: str
    status: str
    storyboard_config: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Stories
# =============================================================================


class StoryFields(BaseModel):
    premise: Optional[str] = None
    synopsis: Optional[str] = None
    global_synopsis: Optional[str] = None
    genre: Optional[str] = None
    format: Optional[str] = None
    duration: Optional[str] = None
    tone: Optional[str] = None
    theme: Optional[str] = None
    conflict: Optional[str] = None
    target_audience: Optional[str] = None
    ending_type: Optional[str] = None
    beats: Optional[Dict[str, Any]] = None
    key_actions: Optional[Dict[str, Any]] = None
    tension_levels: Optional[Dict[str, Any]] = None
    want_need_matrix: Optional[Dict[str, Any]] = None
    beat_characters: Optional[Dict[str, Any]] = None
    character_ids: Optional[List[str]] = None


class StoryVersionCreate(StoryFields):
    """Create story version request."""

    user_id: str
    structure: str = Field(default="save_the_cat")
    name: Optional[str] = None
    copy_from_version_id: Optional[str] = None
    is_duplicate: bool = False


class StoryVersionUpdate(StoryFields):
    version_name: Optional[str] = None


class StoryVersion(StoryFields):
    id: str
    project_id: str
    version_number: int
    version_name: str
    is_active: bool
    structure: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Characters
# =============================================================================


class CharacterFields(BaseModel):
    age: Optional[str] = None
    cast_reference: Optional[str] = None
    image_url: Optional[str] = None
    traits: Optional[str] = None
    physiological: Optional[Dict[str, Any]] = None
    psychological: Optional[Dict[str, Any]] = None
    emotional: Optional[Dict[str, Any]] = None
    family: Optional[Dict[str, Any]] = None
    sociocultural: Optional[Dict[str, Any]] = None
    core_beliefs: Optional[Dict[str, Any]] = None
    educational: Optional[Dict[str, Any]] = None
    sociopolitics: Optional[Dict[str, Any]] = None
    swot: Optional[Dict[str, Any]] = None


class CharacterCreate(CharacterFields):
    user_id: str
    name: str = Field(..., min_length=1)
    role: str = Field(default="supporting")


class CharacterUpdate(CharacterFields):
    name: Optional[str] = None
    role: Optional[str] = None


class Character(CharacterFields):
    id: str
    project_id: str
    name: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CharacterImageVersionCreate(BaseModel):
    user_id: str
    image_url: str
    prompt: Optional[str] = None
    template: Optional[str] = None
    art_style: Optional[str] = None
    version_name: Optional[str] = None


class CharacterImageGenerate(BaseModel):
    user_id: str
    art_style: Optional[str] = None
    template: Optional[str] = None


class CharacterImageVersion(BaseModel):
    id: str
    character_id: str
    version_number: int
    version_name: Optional[str] = None
    image_url: str
    prompt: Optional[str] = None
    template: Optional[str] = None
    art_style: Optional[str] = None
    is_active: bool
    model_used: Optional[str] = None
    credit_cost: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Universes
# =============================================================================


class UniverseSections(BaseModel):
    environment: Optional[Any] = None
    society: Optional[Any] = None
    government: Optional[Any] = None
    economy: Optional[Any] = None
    culture: Optional[Any] = None
    history: Optional[Any] = None
    lore: Optional[Any] = None


class UniverseVersionCreate(UniverseSections):
    user_id: str
    name: Optional[str] = None
    story_version_id: Optional[str] = None
    copy_from_version_id: Optional[str] = None


class UniverseVersionUpdate(UniverseSections):
    version_name: Optional[str] = None
    story_version_id: Optional[str] = None


class UniverseVersion(UniverseSections):
    id: str
    project_id: str
    story_version_id: Optional[str] = None
    version_number: int
    version_name: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OwnerRequest(BaseModel):
    """Body for actions that only need the acting user."""

    user_id: str


class GenerateProfileRequest(OwnerRequest):
    prompt_hint: Optional[str] = None


# =============================================================================
# Strategic plan / team / materials
# =============================================================================


class StrategicPlanFields(BaseModel):
    customer_segments: Optional[str] = None
    value_propositions: Optional[str] = None
    channels: Optional[str] = None
    customer_relationships: Optional[str] = None
    revenue_streams: Optional[str] = None
    key_resources: Optional[str] = None
    key_activities: Optional[str] = None
    key_partnerships: Optional[str] = None
    cost_structure: Optional[str] = None
    performance_factors: Optional[Dict[str, Any]] = None
    competitor_name: Optional[str] = None
    competitor_scores: Optional[Dict[str, Any]] = None
    project_scores: Optional[Dict[str, Any]] = None
    predicted_audience: Optional[Dict[str, Any]] = None
    ai_suggestions: Optional[str] = None


class StrategicPlanSave(StrategicPlanFields):
    user_id: str


class StrategicPlan(StrategicPlanFields):
    id: str
    project_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StrategicSectionGenerate(OwnerRequest):
    """Generate one canvas section; `section` accepts snake_case or camelCase."""

    section: str = Field(..., min_length=1)
    project_context: Optional[str] = None


class TeamMemberFields(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None
    responsibilities: Optional[str] = None
    expertise: Optional[str] = None
    is_modo_token_holder: Optional[bool] = None
    modo_token_address: Optional[str] = None
    modo_token_amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class TeamMemberCreate(TeamMemberFields):
    user_id: str = Field(..., description="Project owner")
    member_user_id: Optional[str] = Field(default=None, description="Platform user joining the team")
    name: Optional[str] = None


class TeamMemberUpdate(TeamMemberFields):
    name: Optional[str] = None


class TeamMember(TeamMemberFields):
    id: str
    project_id: str
    member_user_id: Optional[str] = None
    name: str
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MaterialFields(BaseModel):
    description: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None


class MaterialCreate(MaterialFields):
    user_id: str
    name: str = Field(..., min_length=1)
    type: str


class MaterialUpdate(MaterialFields):
    name: Optional[str] = None
    type: Optional[str] = None


class Material(MaterialFields):
    id: str
    project_id: str
    name: str
    type: str
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
