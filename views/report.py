from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Literal

from api import RequestError
from auth import SessionContext
from domain import DecodeError, Report, decode_first
from domain.catalog import REPORT_REASONS, reason_text
from store import StoreClient, StoreConfigError
from store.tables import REPORT_TABLE

logger = logging.getLogger(__name__)

REPORT_CLOSE_DELAY_S = 1.6
SUCCESS_MESSAGE = "Report submitted. Thank you for letting us know."
MISSING_REASON_MESSAGE = "Please select at least one reason."

ReportState = Literal["idle", "submitting", "success", "error"]


class ReportForm:
    """Abuse report modal: idle -> submitting -> success | error."""

    def __init__(
        self,
        store: StoreClient,
        session: SessionContext,
        *,
        on_close: Callable[[], None] | None = None,
        on_auth_required: Callable[[], None] | None = None,
        close_delay_s: float = REPORT_CLOSE_DELAY_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.session = session
        self.on_close = on_close
        self.on_auth_required = on_auth_required
        self.close_delay_s = close_delay_s
        self._sleep = sleep
        self.work_id: str | None = None
        self.reasons: list[str] = []
        self.detail = ""
        self.state: ReportState = "idle"
        self.message: str | None = None
        self.validation_error: str | None = None
        self.report: Report | None = None
        self.pending_close: asyncio.Task | None = None

    def open(self, work_id: str) -> None:
        if self.pending_close is not None and not self.pending_close.done():
            self.pending_close.cancel()
        self.pending_close = None
        self.work_id = work_id
        self.reasons = []
        self.detail = ""
        self.state = "idle"
        self.message = None
        self.validation_error = None
        self.report = None

    def toggle_reason(self, key: str) -> None:
        if key not in REPORT_REASONS:
            raise ValueError(f"Unknown report reason: {key}")
        if key in self.reasons:
            self.reasons.remove(key)
        else:
            self.reasons.append(key)
        self.validation_error = None

    async def submit(self) -> bool:
        if self.state in {"submitting", "success"} or self.work_id is None:
            return False
        if not self.reasons:
            self.validation_error = MISSING_REASON_MESSAGE
            return False
        if not self.session.signed_in:
            if self.on_auth_required is not None:
                self.on_auth_required()
            return False

        self.state = "submitting"
        self.message = None
        self.validation_error = None
        ordered = [key for key in REPORT_REASONS if key in self.reasons]
        row = {
            "reporterId": self.session.user_id,
            "workId": self.work_id,
            "reason": reason_text(ordered),
            "detail": self.detail.strip() or None,
            "status": "pending",
        }
        try:
            written = await self.store.insert(REPORT_TABLE, row)
            self.report = decode_first(Report, written)
        except (RequestError, DecodeError, StoreConfigError) as exc:
            logger.info("report.submit.failed work_id=%s error=%s", self.work_id, exc)
            self.state = "error"
            self.message = str(exc) or "Unable to submit report"
            return False

        self.state = "success"
        self.message = SUCCESS_MESSAGE
        self.pending_close = asyncio.ensure_future(self._close_later())
        return True

    async def _close_later(self) -> None:
        await self._sleep(self.close_delay_s)
        if self.state == "success" and self.on_close is not None:
            self.on_close()
