from __future__ import annotations

import logging
from typing import Callable, Literal

from api import HubApi, RequestError
from auth import SessionContext
from domain import DecodeError, SaveSummary

from .requests import RequestGeneration

logger = logging.getLogger(__name__)

SaveState = Literal["unknown", "not_saved", "saved"]


class SaveToggle:
    """Bookmark state for one (work, viewer) pair.

    State changes only on a confirmed server response; the count always comes
    from the server, never from a local +1/-1.
    """

    def __init__(
        self,
        api: HubApi,
        session: SessionContext,
        on_auth_required: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.session = session
        self.on_auth_required = on_auth_required
        self.work_id: str | None = None
        self.state: SaveState = "unknown"
        self.save_count = 0
        self.busy = False
        self.error: str | None = None
        self._generation = RequestGeneration()

    @property
    def saved(self) -> bool:
        return self.state == "saved"

    async def load(self, work_id: str, initial_count: int = 0) -> None:
        token = self._generation.next()
        self.work_id = work_id
        self.state = "unknown"
        self.save_count = initial_count
        self.busy = False
        self.error = None
        if not self.session.signed_in:
            self.state = "not_saved"
            return
        try:
            summary = await self.api.save_summary(work_id)
        except (RequestError, DecodeError) as exc:
            if not self._generation.is_current(token):
                return
            if isinstance(exc, RequestError) and exc.is_unauthorized:
                self.state = "not_saved"
                return
            logger.info("save.load.failed work_id=%s error=%s", work_id, exc)
            self.error = str(exc) or "Unable to load saved status"
            return
        if self._generation.is_current(token):
            self._apply(summary)

    async def toggle(self) -> bool:
        if self.work_id is None or self.busy:
            return False
        if not self.session.signed_in:
            self._require_auth()
            return False
        token = self._generation.next()
        work_id = self.work_id
        self.busy = True
        self.error = None
        try:
            summary = await self.api.toggle_save(work_id)
        except (RequestError, DecodeError) as exc:
            if not self._generation.is_current(token):
                return False
            self.busy = False
            if isinstance(exc, RequestError) and exc.is_unauthorized:
                self._require_auth()
                return False
            logger.info("save.toggle.failed work_id=%s error=%s", work_id, exc)
            self.error = str(exc) or "Unable to update saved status"
            return False
        if not self._generation.is_current(token):
            return False
        self.busy = False
        self._apply(summary)
        return True

    def close(self) -> None:
        self._generation.invalidate()

    def _apply(self, summary: SaveSummary) -> None:
        self.state = "saved" if summary.saved else "not_saved"
        self.save_count = summary.save_count

    def _require_auth(self) -> None:
        if self.on_auth_required is not None:
            self.on_auth_required()
