from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import re
from typing import Any, Callable
from urllib.parse import quote

from api import HubApi, RequestError
from auth import SessionContext
from domain import AccountRow, DecodeError, Profile, Tag, Work, decode_list
from store import StoreClient, StoreConfigError, eq_filter
from store.tables import ACCOUNT_TABLE

from .requests import RequestGeneration

logger = logging.getLogger(__name__)

DEFAULT_CREATOR_NAME = "KMUTT Creator"
DEFAULT_LOCATION = "KMUTT, Thailand"
DEFAULT_CREATOR_BIO = "This creator has not written a bio yet."

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE = re.compile(r"^\+?\d[\d\s-]+$")
_URL = re.compile(r"^https?://", re.IGNORECASE)


def avatar_fallback(display_name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(display_name)}&background=F59E0B&color=fff"


def contact_href(contact: str | None) -> str | None:
    label = (contact or "").strip()
    if not label:
        return None
    if _URL.match(label):
        return label
    if _EMAIL.match(label):
        return f"mailto:{label}"
    if _PHONE.match(label):
        return "tel:" + re.sub(r"[^\d+]", "", label)
    return None


def top_tags(works: list[Work], limit: int = 3) -> list[str]:
    freq: dict[str, int] = {}
    for work in works:
        for name in work.tag_names:
            freq[name] = freq.get(name, 0) + 1
    ranked = sorted(freq.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:limit]]


def format_saved_timestamp(value: datetime | None) -> str:
    if value is None:
        return "recently"
    return value.strftime("%b %d, %Y")


@dataclass
class DraftTag:
    name: str
    tag_id: str | None = None


@dataclass
class DraftMedia:
    preview_url: str
    media_id: str | None = None
    data_url: str | None = None
    alt_text: str = ""


@dataclass
class WorkDraft:
    title: str
    work_id: str | None = None
    description: str = ""
    status: str = "draft"
    tags: list[DraftTag] = field(default_factory=list)
    media: list[DraftMedia] = field(default_factory=list)

    @classmethod
    def from_work(cls, work: Work) -> "WorkDraft":
        return cls(
            work_id=work.work_id,
            title=work.title,
            description=work.description or "",
            status="published" if work.status == "published" else "draft",
            tags=[DraftTag(name=tag.name, tag_id=tag.tag_id) for tag in work.tags],
            media=[
                DraftMedia(preview_url=item.file_url, media_id=item.media_id, alt_text=item.alt_text or "")
                for item in work.media
            ],
        )

    def add_tag(self, name: str, suggestions: list[Tag] | None = None) -> bool:
        name = name.strip()
        if not name:
            return False
        lowered = name.lower()
        if any(tag.name.lower() == lowered for tag in self.tags):
            return False
        for suggestion in suggestions or []:
            if suggestion.name.lower() == lowered:
                self.tags.append(DraftTag(name=suggestion.name, tag_id=suggestion.tag_id))
                return True
        self.tags.append(DraftTag(name=name))
        return True

    def remove_tag(self, name: str) -> None:
        self.tags = [tag for tag in self.tags if tag.name != name]

    def add_media(self, data_url: str, alt_text: str = "") -> None:
        self.media.append(DraftMedia(preview_url=data_url, data_url=data_url, alt_text=alt_text))

    def remove_media(self, index: int) -> None:
        if 0 <= index < len(self.media):
            del self.media[index]

    def set_thumbnail(self, index: int) -> None:
        if 0 < index < len(self.media):
            self.media.insert(0, self.media.pop(index))

    def to_payload(self) -> dict[str, Any]:
        media: list[dict[str, Any]] = []
        for item in self.media:
            if item.data_url:
                media.append({"dataUrl": item.data_url, "alttext": item.alt_text})
            else:
                media.append({"id": item.media_id, "alttext": item.alt_text})
        return {
            "title": self.title.strip(),
            "description": self.description,
            "status": self.status,
            "tagIds": [tag.tag_id for tag in self.tags if tag.tag_id],
            "newTags": [tag.name for tag in self.tags if not tag.tag_id],
            "media": media,
        }


class ProfileView:
    """The signed-in owner's page: posts, saved works, and work editing."""

    def __init__(
        self,
        api: HubApi,
        session: SessionContext,
        on_auth_required: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.session = session
        self.on_auth_required = on_auth_required
        self.posts: list[Work] = []
        self.saved: list[Work] = []
        self.saved_loading = False
        self.saved_error: str | None = None
        self.error: str | None = None
        self.busy = False
        self.editing: WorkDraft | None = None
        self.tag_suggestions: list[Tag] = []
        self._posts_generation = RequestGeneration()
        self._saved_generation = RequestGeneration()
        self._suggest_generation = RequestGeneration()
        self._unsubscribe = session.subscribe(self._on_session_change)
        self._user_id = session.user_id

    def close(self) -> None:
        self._unsubscribe()
        self._posts_generation.invalidate()
        self._saved_generation.invalidate()
        self._suggest_generation.invalidate()

    def _on_session_change(self, session: SessionContext) -> None:
        if session.user_id != self._user_id:
            self._user_id = session.user_id
            self.posts = []
            self.saved = []
            self._posts_generation.invalidate()
            self._saved_generation.invalidate()

    async def load(self) -> None:
        await self.load_posts()
        await self.load_saved()

    async def load_posts(self) -> None:
        token = self._posts_generation.next()
        if not self.session.signed_in:
            self.posts = []
            return
        try:
            posts = await self.api.my_works()
        except (RequestError, DecodeError) as exc:
            if self._posts_generation.is_current(token):
                logger.info("profile.posts.failed error=%s", exc)
                self.error = str(exc) or "Unable to load posts"
            return
        if self._posts_generation.is_current(token):
            self.posts = posts

    async def load_saved(self) -> None:
        token = self._saved_generation.next()
        if not self.session.signed_in:
            self.saved = []
            return
        self.saved_loading = True
        self.saved_error = None
        try:
            saved = await self.api.saved_works()
        except (RequestError, DecodeError) as exc:
            if self._saved_generation.is_current(token):
                logger.info("profile.saved.failed error=%s", exc)
                self.saved = []
                self.saved_error = str(exc) or "Unable to load saved works"
                self.saved_loading = False
            return
        if self._saved_generation.is_current(token):
            self.saved = saved
            self.saved_loading = False

    async def delete_post(self, work_id: str) -> bool:
        self.busy = True
        self.error = None
        try:
            await self.api.delete_work(work_id)
        except RequestError as exc:
            return self._fail(exc, "Failed to delete")
        finally:
            self.busy = False
        self.posts = [post for post in self.posts if post.work_id != work_id]
        return True

    async def start_edit(self, work_id: str) -> bool:
        self.busy = True
        self.error = None
        try:
            detail = await self.api.get_work(work_id)
        except (RequestError, DecodeError) as exc:
            return self._fail(exc, "Failed to load work")
        finally:
            self.busy = False
        self.editing = WorkDraft.from_work(detail)
        self.tag_suggestions = []
        return True

    def cancel_edit(self) -> None:
        self.editing = None
        self.tag_suggestions = []

    async def suggest_tags(self, query: str) -> None:
        token = self._suggest_generation.next()
        if not query.strip():
            self.tag_suggestions = []
            return
        try:
            tags = await self.api.search_tags(query)
        except (RequestError, DecodeError) as exc:
            logger.debug("profile.suggest_tags.failed error=%s", exc)
            return
        if self._suggest_generation.is_current(token):
            self.tag_suggestions = tags

    def add_tag(self, name: str) -> bool:
        if self.editing is None:
            return False
        added = self.editing.add_tag(name, self.tag_suggestions)
        if added:
            self._suggest_generation.invalidate()
            self.tag_suggestions = []
        return added

    async def save_edit(self) -> bool:
        draft = self.editing
        if draft is None or draft.work_id is None:
            return False
        if not draft.title.strip():
            self.error = "Title is required"
            return False
        self.busy = True
        self.error = None
        try:
            await self.api.update_work(draft.work_id, draft.to_payload())
            fresh = await self.api.get_work(draft.work_id)
        except (RequestError, DecodeError) as exc:
            return self._fail(exc, "Failed to update")
        finally:
            self.busy = False
        self.posts = [fresh if post.work_id == fresh.work_id else post for post in self.posts]
        self.editing = None
        return True

    async def create_work(self, draft: WorkDraft) -> Work | None:
        if not draft.title.strip():
            self.error = "Title is required"
            return None
        self.busy = True
        self.error = None
        try:
            created = await self.api.create_work(draft.to_payload())
        except (RequestError, DecodeError) as exc:
            self._fail(exc, "Failed to create work")
            return None
        finally:
            self.busy = False
        self.posts = [created] + [post for post in self.posts if post.work_id != created.work_id]
        return created

    def _fail(self, exc: Exception, fallback: str) -> bool:
        if isinstance(exc, RequestError) and exc.is_unauthorized:
            if self.on_auth_required is not None:
                self.on_auth_required()
            return False
        logger.info("profile.action.failed error=%s", exc)
        self.error = str(exc) or fallback
        return False


class CreatorProfileView:
    """Public page for one creator: profile, works, and join date."""

    def __init__(self, api: HubApi, store: StoreClient) -> None:
        self.api = api
        self.store = store
        self.user_id: str | None = None
        self.profile: Profile | None = None
        self.works: list[Work] = []
        self.joined_at: datetime | None = None
        self.loading = False
        self.error: str | None = None
        self._generation = RequestGeneration()

    async def load(self, user_id: str) -> None:
        token = self._generation.next()
        self.user_id = user_id
        self.loading = True
        self.error = None
        try:
            result = await self.api.list_author_works(user_id)
        except (RequestError, DecodeError) as exc:
            if self._generation.is_current(token):
                logger.info("creator.load.failed user_id=%s error=%s", user_id, exc)
                self.profile = None
                self.works = []
                self.joined_at = None
                self.error = str(exc) or "Unable to load creator"
                self.loading = False
            return
        created_at = await self._account_created_at(user_id)
        if not self._generation.is_current(token):
            return
        self.profile = result.profile
        self.works = result.works
        self.joined_at = created_at or (result.profile.created_at if result.profile else None)
        self.loading = False

    async def _account_created_at(self, user_id: str) -> datetime | None:
        try:
            rows = await self.store.query(
                ACCOUNT_TABLE,
                select="id,created_at",
                filters={"id": eq_filter(user_id)},
            )
            accounts = decode_list(AccountRow, rows)
        except (RequestError, DecodeError, StoreConfigError) as exc:
            logger.warning("creator.created_at.failed user_id=%s error=%s", user_id, exc)
            return None
        return accounts[0].created_at if accounts else None

    def close(self) -> None:
        self._generation.invalidate()

    @property
    def display_name(self) -> str:
        return (self.profile.display_name if self.profile else None) or DEFAULT_CREATOR_NAME

    @property
    def location(self) -> str:
        return (self.profile.location if self.profile else None) or DEFAULT_LOCATION

    @property
    def bio(self) -> str:
        bio = (self.profile.bio if self.profile else None) or ""
        return bio.strip() or DEFAULT_CREATOR_BIO

    @property
    def avatar_url(self) -> str:
        return (self.profile.avatar_url if self.profile else None) or avatar_fallback(self.display_name)

    @property
    def contact_href(self) -> str | None:
        return contact_href(self.profile.contact if self.profile else None)

    @property
    def top_tags(self) -> list[str]:
        return top_tags(self.works)
