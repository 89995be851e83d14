from __future__ import annotations

import asyncio

import pytest

from api import RequestError
from auth import SessionContext
from domain import SessionUser
from views.report import MISSING_REASON_MESSAGE, REPORT_CLOSE_DELAY_S, SUCCESS_MESSAGE, ReportForm


class _FakeStore:
    def __init__(self, failures: list[Exception] | None = None) -> None:
        self.failures = list(failures or [])
        self.inserts: list[tuple[str, dict]] = []

    async def insert(self, table: str, row: dict) -> list[dict]:
        self.inserts.append((table, dict(row)))
        if self.failures:
            raise self.failures.pop(0)
        return [dict(row, reportId=len(self.inserts), created_at="2026-03-01T10:00:00+00:00")]


class _FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _session() -> SessionContext:
    session = SessionContext(api=None)
    session.user = SessionUser(user_id="reporter-1")
    return session


def test_zero_reasons_never_issues_request() -> None:
    store = _FakeStore()
    form = ReportForm(store, _session())
    form.open("w1")
    form.detail = "looks copied"

    assert asyncio.run(form.submit()) is False
    assert form.validation_error == MISSING_REASON_MESSAGE
    assert form.state == "idle"
    assert store.inserts == []


def test_successful_report_inserts_pending_row_and_closes_after_delay() -> None:
    store = _FakeStore()
    sleep = _FakeSleep()
    closed: list[bool] = []
    form = ReportForm(store, _session(), on_close=lambda: closed.append(True), sleep=sleep)
    form.open("w1")
    form.toggle_reason("copyright")
    form.toggle_reason("spam")

    async def _scenario():
        ok = await form.submit()
        await form.pending_close
        return ok

    assert asyncio.run(_scenario()) is True
    table, row = store.inserts[0]
    assert table == "Report"
    assert row == {
        "reporterId": "reporter-1",
        "workId": "w1",
        "reason": "สแปม / โฆษณาเกินจริง, ละเมิดลิขสิทธิ์",
        "detail": None,
        "status": "pending",
    }
    assert form.state == "success"
    assert form.message == SUCCESS_MESSAGE
    assert form.report is not None and form.report.created_at is not None
    assert sleep.delays == [REPORT_CLOSE_DELAY_S]
    assert closed == [True]


def test_failed_submission_can_be_retried() -> None:
    store = _FakeStore(failures=[RequestError(message="permission denied for table Report", status=403)])
    form = ReportForm(store, _session(), sleep=_FakeSleep())
    form.open("w1")
    form.toggle_reason("inappropriate")
    form.detail = "  offensive caption "

    async def _scenario():
        first = await form.submit()
        assert form.state == "error"
        assert form.message == "permission denied for table Report"
        second = await form.submit()
        await form.pending_close
        return first, second

    assert asyncio.run(_scenario()) == (False, True)
    assert len(store.inserts) == 2
    assert store.inserts[1][1]["detail"] == "offensive caption"
    assert form.state == "success"


def test_deselecting_reason_and_unknown_reason() -> None:
    form = ReportForm(_FakeStore(), _session())
    form.open("w1")
    form.toggle_reason("spam")
    form.toggle_reason("spam")
    assert form.reasons == []
    with pytest.raises(ValueError):
        form.toggle_reason("not-a-reason")


def test_report_requires_session() -> None:
    store = _FakeStore()
    redirects: list[str] = []
    form = ReportForm(store, SessionContext(api=None), on_auth_required=lambda: redirects.append("login"))
    form.open("w1")
    form.toggle_reason("other")

    assert asyncio.run(form.submit()) is False
    assert redirects == ["login"]
    assert store.inserts == []


class _GatedSleep:
    def __init__(self) -> None:
        self.gate = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        await self.gate.wait()


def test_reopening_cancels_previous_auto_close() -> None:
    store = _FakeStore()
    sleep = _GatedSleep()
    closed: list[str | None] = []
    form = ReportForm(store, _session(), on_close=lambda: closed.append(form.work_id), sleep=sleep)

    async def _scenario():
        form.open("w1")
        form.toggle_reason("spam")
        await form.submit()
        first = form.pending_close
        await asyncio.sleep(0)

        form.open("w2")
        await asyncio.sleep(0)
        form.toggle_reason("other")
        await form.submit()
        sleep.gate.set()
        await form.pending_close
        return first

    first = asyncio.run(_scenario())
    assert first.cancelled()
    assert closed == ["w2"]
