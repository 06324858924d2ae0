"""User-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

_USERNAME_MAX = 32


class UserProfileUpdate(BaseModel):
    """Profile submitted from the onboarding or profile edit form."""

    username: str = Field(..., min_length=1, max_length=_USERNAME_MAX)
    name: str = Field(..., min_length=1, max_length=80)
    image: str | None = Field(None, description="Avatar URL")
    bio: str | None = Field(None, max_length=1000)
    path: str | None = Field(None, description="Page to revalidate after saving")

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str) -> str:
        username = value.strip().lower()
        if not username or any(ch.isspace() for ch in username):
            raise ValueError("Username must be a single word")
        return username


class AuthorSummary(BaseModel):
    """Author fields shown on convo cards."""

    id: str
    name: str
    username: str
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(AuthorSummary):
    """Schema for user profile information returned by the API."""

    bio: str | None = None
    onboarded: bool
