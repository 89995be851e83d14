from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

WorkStatus = Literal["draft", "published", "removed"]
ReportStatus = Literal["pending", "finished", "rejected"]


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class _Decoded(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any, info) -> Any:
        # Row ids come back as ints from some tables; keep one string form.
        if info.field_name.endswith("_id") and isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Tag(_Decoded):
    tag_id: Optional[str] = Field(default=None, validation_alias=_aliases("tagId", "tag_id", "id"))
    name: str

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("tag name must not be blank")
        return value


class MediaItem(_Decoded):
    media_id: Optional[str] = Field(default=None, validation_alias=_aliases("id", "mediaId", "media_id"))
    file_url: str = Field(validation_alias=_aliases("fileurl", "fileUrl", "file_url"))
    file_type: Optional[str] = Field(default=None, validation_alias=_aliases("filetype", "fileType", "file_type"))
    alt_text: Optional[str] = Field(default=None, validation_alias=_aliases("alttext", "altText", "alt_text"))


class Profile(_Decoded):
    user_id: Optional[str] = Field(default=None, validation_alias=_aliases("userID", "userId", "user_id"))
    display_name: Optional[str] = Field(default=None, validation_alias=_aliases("displayName", "display_name"))
    bio: Optional[str] = None
    contact: Optional[str] = None
    avatar_url: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("avatarUrl", "avatarurl", "avatar_url"),
    )
    location: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("created_at", "createdAt"))


class Work(_Decoded):
    work_id: str = Field(validation_alias=_aliases("workId", "work_id", "id"))
    title: str
    description: Optional[str] = None
    status: WorkStatus = "draft"
    thumbnail: Optional[str] = None
    tags: List[Tag] = Field(default_factory=list)
    media: List[MediaItem] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("created_at", "createdAt"))
    updated_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("updatedAt", "updated_at"))
    published_at: Optional[datetime] = Field(
        default=None,
        validation_alias=_aliases("publishedAt", "published_at"),
    )
    saved_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("savedAt", "saved_at"))
    author_id: Optional[str] = Field(default=None, validation_alias=_aliases("authorId", "author_id"))
    save_count: int = Field(default=0, validation_alias=_aliases("saveCount", "save_count"))
    author_profile: Optional[Profile] = Field(
        default=None,
        validation_alias=_aliases("authorProfile", "author_profile"),
    )

    @field_validator("tags", "media", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("save_count", mode="before")
    @classmethod
    def _null_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @model_validator(mode="after")
    def _normalize(self) -> "Work":
        seen: set[str] = set()
        unique: list[Tag] = []
        for tag in self.tags:
            key = tag.name.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(tag)
        self.tags = unique
        if not self.thumbnail and self.media:
            self.thumbnail = self.media[0].file_url
        return self

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tags]


class AuthorWorks(_Decoded):
    profile: Optional[Profile] = None
    works: List[Work] = Field(default_factory=list)

    @field_validator("works", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SessionUser(_Decoded):
    user_id: str = Field(validation_alias=_aliases("id", "userID", "userId", "user_id"))
    email: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("created_at", "createdAt"))
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("user_metadata", mode="before")
    @classmethod
    def _null_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class SaveSummary(_Decoded):
    saved: bool
    save_count: int = Field(validation_alias=_aliases("saveCount", "save_count", "count", "total"))


class StoreConfigPayload(_Decoded):
    url: Optional[str] = None
    anon_key: Optional[str] = Field(default=None, validation_alias=_aliases("anonKey", "anon_key", "key"))


class AccountRow(_Decoded):
    user_id: str = Field(validation_alias=_aliases("id", "user_id"))
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class Report(_Decoded):
    report_id: str = Field(validation_alias=_aliases("reportId", "report_id", "id"))
    reporter_id: Optional[str] = Field(default=None, validation_alias=_aliases("reporterId", "reporter_id"))
    work_id: Optional[str] = Field(default=None, validation_alias=_aliases("workId", "work_id"))
    reason: str = ""
    detail: Optional[str] = None
    status: ReportStatus = "pending"
    created_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("created_at", "createdAt"))

    @field_validator("reason", mode="before")
    @classmethod
    def _null_reason(cls, value: Any) -> Any:
        return "" if value is None else value


class ReviewAction(_Decoded):
    action_id: Optional[str] = Field(default=None, validation_alias=_aliases("actionId", "action_id", "id"))
    report_id: str = Field(validation_alias=_aliases("reportId", "report_id"))
    actor_id: Optional[str] = Field(default=None, validation_alias=_aliases("actorId", "actor_id"))
    decision: str
    note: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, validation_alias=_aliases("created_at", "createdAt"))
