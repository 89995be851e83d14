from __future__ import annotations

import logging
from typing import Callable

from api import HubApi, RequestError
from auth import SessionContext
from domain import DecodeError, Work

from .requests import RequestGeneration
from .save import SaveToggle

logger = logging.getLogger(__name__)


class WorkDetailView:
    def __init__(
        self,
        api: HubApi,
        session: SessionContext,
        on_auth_required: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.session = session
        self.work_id: str | None = None
        self.work: Work | None = None
        self.loading = False
        self.error: str | None = None
        self.active_media = 0
        self.save = SaveToggle(api, session, on_auth_required=on_auth_required)
        self._generation = RequestGeneration()

    async def load(self, work_id: str) -> None:
        token = self._generation.next()
        self.work_id = work_id
        self.work = None
        self.error = None
        self.active_media = 0
        self.loading = True
        try:
            work = await self.api.get_work(work_id)
        except (RequestError, DecodeError) as exc:
            if self._generation.is_current(token):
                logger.info("work_detail.load.failed work_id=%s error=%s", work_id, exc)
                self.error = str(exc) or "Failed to load"
                self.loading = False
            return
        if not self._generation.is_current(token):
            return
        self.work = work
        self.loading = False
        await self.save.load(work_id, initial_count=work.save_count)

    def close(self) -> None:
        self._generation.invalidate()
        self.save.close()

    @property
    def hero(self) -> str:
        if self.work is None:
            return ""
        if self.work.media and 0 <= self.active_media < len(self.work.media):
            return self.work.media[self.active_media].file_url or self.work.thumbnail or ""
        return self.work.thumbnail or ""

    def select_media(self, index: int) -> None:
        if self.work is None or not self.work.media:
            return
        self.active_media = min(max(0, index), len(self.work.media) - 1)
