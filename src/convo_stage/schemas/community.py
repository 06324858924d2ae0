"""Community-related Pydantic schemas."""


from pydantic import BaseModel, ConfigDict, Field


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    username: str = Field(..., min_length=1, max_length=32, description="Unique handle")
    name: str = Field(..., min_length=1, max_length=80)
    image: str | None = None
    bio: str | None = Field(None, max_length=1000)


class CommunitySummary(BaseModel):
    """Community fields shown on convo cards."""

    id: str
    name: str
    username: str
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CommunityResponse(CommunitySummary):
    """Schema for community information returned by the API."""

    bio: str | None = None
    created_by_id: str | None = None
