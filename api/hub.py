from __future__ import annotations

from typing import Any
from urllib.parse import quote

from domain import (
    AuthorWorks,
    Profile,
    SaveSummary,
    SessionUser,
    StoreConfigPayload,
    Tag,
    Work,
    decode_list,
    decode_one,
    decode_optional,
)

from .client import RestClient


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class HubApi:
    """Typed calls against the Creative Hub REST service."""

    def __init__(self, rest: RestClient | None = None) -> None:
        self.rest = rest or RestClient()

    async def list_works(self) -> list[Work]:
        return decode_list(Work, await self.rest.get("/works"))

    async def get_work(self, work_id: str) -> Work:
        return decode_one(Work, await self.rest.get(f"/works/{_segment(work_id)}"))

    async def list_author_works(self, user_id: str) -> AuthorWorks:
        return decode_one(AuthorWorks, await self.rest.get(f"/works/author/{_segment(user_id)}"))

    async def my_works(self) -> list[Work]:
        return decode_list(Work, await self.rest.get("/works/my"))

    async def saved_works(self) -> list[Work]:
        return decode_list(Work, await self.rest.get("/works/saved"))

    async def search_tags(self, query: str) -> list[Tag]:
        return decode_list(Tag, await self.rest.get(f"/works/meta/tags?q={quote(query)}"))

    async def create_work(self, payload: dict[str, Any]) -> Work:
        return decode_one(Work, await self.rest.post("/works", payload))

    async def update_work(self, work_id: str, payload: dict[str, Any]) -> None:
        await self.rest.put(f"/works/{_segment(work_id)}", payload)

    async def delete_work(self, work_id: str) -> None:
        await self.rest.delete(f"/works/{_segment(work_id)}")

    async def save_summary(self, work_id: str) -> SaveSummary:
        return decode_one(SaveSummary, await self.rest.get(f"/works/{_segment(work_id)}/save"))

    async def toggle_save(self, work_id: str) -> SaveSummary:
        return decode_one(SaveSummary, await self.rest.post(f"/works/{_segment(work_id)}/save", {}))

    async def current_user(self) -> SessionUser:
        return decode_one(SessionUser, await self.rest.get("/auth/me"))

    async def get_profile(self) -> Profile | None:
        return decode_optional(Profile, await self.rest.get("/auth/profile"))

    async def update_account(self, fields: dict[str, Any]) -> None:
        await self.rest.patch("/auth/me", fields)

    async def login_email(self, email: str, password: str) -> None:
        await self.rest.post("/auth/login/email", {"email": email, "password": password})

    async def store_config(self) -> StoreConfigPayload:
        return decode_one(StoreConfigPayload, await self.rest.get("/auth/supabase/config"))
