from typing import Any, Optional

from pydantic import BaseModel, Field

from app.schemas.filters import SortKey, ViewMode


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True
    sms: bool = False
    marketing: bool = False


class SearchPreferences(BaseModel):
    default_sort_by: SortKey = SortKey.newest
    default_view_mode: ViewMode = ViewMode.grid


class PrivacyPreferences(BaseModel):
    show_profile: bool = True
    show_activity: bool = False
    allow_contact: bool = True


class UserPreferences(BaseModel):
    theme: str = "light"
    language: str = "en"
    currency: str = "BWP"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    search_filters: SearchPreferences = Field(default_factory=SearchPreferences)
    privacy: PrivacyPreferences = Field(default_factory=PrivacyPreferences)


class PreferenceUpdate(BaseModel):
    """A single preference change.

    ``key`` is omitted for top-level scalars (``theme``, ``language``,
    ``currency``) and names the field inside a nested category otherwise.
    """

    category: str
    key: Optional[str] = None
    value: Any

    class Config:
        json_schema_extra = {
            "example": {"category": "search_filters", "key": "default_view_mode", "value": "map"}
        }
