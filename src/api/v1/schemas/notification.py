"""Pydantic schemas for Notification API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NotificationResponse(BaseModel):
    """Single notification in the feed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    category: str
    title: str
    body_preview: str
    deep_link: str
    status: str
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Notification feed response."""

    data: list[NotificationResponse]


class UnreadCountResponse(BaseModel):
    """Unread notification count response."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Response for mark-all-read operation."""

    count: int  # Number of notifications marked


class ChannelPreferenceResponse(BaseModel):
    """Channel toggles for one category."""

    in_app: bool
    email: bool


class NotificationPreferencesResponse(BaseModel):
    """Effective preferences keyed by category."""

    data: dict[str, ChannelPreferenceResponse]


class NotificationPreferenceUpdateRequest(BaseModel):
    """Schema for updating one category's channel toggles."""

    in_app: bool | None = Field(None, description="Leave unset to keep the current value")
    email: bool | None = Field(None, description="Leave unset to keep the current value")

    @model_validator(mode="after")
    def require_a_channel(self) -> "NotificationPreferenceUpdateRequest":
        if self.in_app is None and self.email is None:
            raise ValueError("At least one of in_app or email is required")
        return self
