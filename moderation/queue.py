from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Callable, Literal, Sequence

from api import RequestError
from auth import SessionContext
from domain import AccountRow, DecodeError, Profile, Report, ReviewAction, Work, decode_list
from domain.catalog import DECISION_LABELS, UNKNOWN_USER, UNKNOWN_WORK
from store import StoreClient, StoreConfigError, eq_filter
from store.tables import ACCOUNT_TABLE, PROFILE_TABLE, REPORT_TABLE, REVIEW_ACTION_TABLE, WORK_TABLE
from views.requests import RequestGeneration

logger = logging.getLogger(__name__)

StatusFilter = Literal["all", "pending", "finished", "rejected"]
Decision = Literal["delete", "reject"]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ModerationError(Exception):
    pass


@dataclass(frozen=True)
class QueueEntry:
    report: Report
    work_title: str
    work_status: str | None
    reporter_name: str
    reporter_email: str | None
    latest_action: ReviewAction | None

    @property
    def report_id(self) -> str:
        return self.report.report_id

    @property
    def status(self) -> str:
        return self.report.status

    @property
    def reviewed(self) -> bool:
        return self.latest_action is not None


def _timestamp(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def latest_actions(actions: Sequence[ReviewAction]) -> dict[str, ReviewAction]:
    ordered = sorted(actions, key=lambda action: _timestamp(action.created_at), reverse=True)
    latest: dict[str, ReviewAction] = {}
    for action in ordered:
        latest.setdefault(action.report_id, action)
    return latest


def build_entries(
    reports: Sequence[Report],
    works: Sequence[Work],
    profiles: Sequence[Profile],
    accounts: Sequence[AccountRow],
    actions: Sequence[ReviewAction],
) -> list[QueueEntry]:
    works_by_id = {work.work_id: work for work in works}
    profiles_by_id = {profile.user_id: profile for profile in profiles if profile.user_id}
    accounts_by_id = {account.user_id: account for account in accounts}
    latest = latest_actions(actions)

    entries: list[QueueEntry] = []
    for report in reports:
        work = works_by_id.get(report.work_id or "")
        profile = profiles_by_id.get(report.reporter_id or "")
        account = accounts_by_id.get(report.reporter_id or "")
        email = account.email if account else None
        name = (profile.display_name if profile else None) or email or UNKNOWN_USER
        entries.append(
            QueueEntry(
                report=report,
                work_title=work.title if work else UNKNOWN_WORK,
                work_status=work.status if work else None,
                reporter_name=name,
                reporter_email=email,
                latest_action=latest.get(report.report_id),
            )
        )
    return entries


def filter_entries(entries: Sequence[QueueEntry], status: StatusFilter, query: str) -> list[QueueEntry]:
    needle = query.strip().lower()
    out: list[QueueEntry] = []
    for entry in entries:
        if status != "all" and entry.status != status:
            continue
        if needle:
            haystack = [entry.work_title, entry.report.reason, entry.reporter_name, entry.reporter_email or ""]
            if not any(needle in field.lower() for field in haystack):
                continue
        out.append(entry)
    return out


class ModerationQueue:
    """Admin report feed joined with works, reporters, and review history.

    Decisions never edit `entries` in place; call `refresh()` to see them.
    """

    def __init__(
        self,
        store: StoreClient,
        session: SessionContext,
        on_auth_required: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self.session = session
        self.on_auth_required = on_auth_required
        self.entries: list[QueueEntry] = []
        self.loading = False
        self.busy = False
        self.error: str | None = None
        self.last_action: str | None = None
        self.status_filter: StatusFilter = "all"
        self.query = ""
        self._generation = RequestGeneration()

    @property
    def visible(self) -> list[QueueEntry]:
        return filter_entries(self.entries, self.status_filter, self.query)

    def set_status_filter(self, status: StatusFilter) -> None:
        self.status_filter = status

    def set_query(self, query: str) -> None:
        self.query = query

    def close(self) -> None:
        self._generation.invalidate()

    async def refresh(self) -> None:
        token = self._generation.next()
        self.loading = True
        self.error = None
        try:
            entries = await self._load_entries()
        except (RequestError, DecodeError, StoreConfigError) as exc:
            if self._generation.is_current(token):
                logger.info("moderation.refresh.failed error=%s", exc)
                self.error = str(exc) or "Unable to load reports"
                self.loading = False
            return
        if not self._generation.is_current(token):
            return
        self.entries = entries
        self.loading = False

    async def _load_entries(self) -> list[QueueEntry]:
        reports = decode_list(Report, await self.store.query(REPORT_TABLE, select="*", order="created_at.desc"))
        if not reports:
            return []
        work_ids = [report.work_id for report in reports]
        reporter_ids = [report.reporter_id for report in reports]
        report_ids = [report.report_id for report in reports]

        works = decode_list(
            Work,
            await self.store.fetch_by_ids(WORK_TABLE, "workId", work_ids, select="workId,title,status"),
        )
        profiles = decode_list(
            Profile,
            await self.store.fetch_by_ids(PROFILE_TABLE, "userID", reporter_ids, select="userID,displayName"),
        )
        accounts = decode_list(
            AccountRow,
            await self.store.fetch_by_ids(ACCOUNT_TABLE, "id", reporter_ids, select="id,email"),
        )
        actions = decode_list(
            ReviewAction,
            await self.store.fetch_by_ids(
                REVIEW_ACTION_TABLE,
                "reportId",
                report_ids,
                select="*",
                key="actionId",
            ),
        )
        return build_entries(reports, works, profiles, accounts, actions)

    def _find(self, report_id: str) -> QueueEntry | None:
        for entry in self.entries:
            if entry.report_id == report_id:
                return entry
        return None

    async def resolve(self, report_id: str, action: Decision, note: str | None = None) -> bool:
        if action not in DECISION_LABELS:
            raise ValueError(f"Unsupported moderation action: {action}")
        if self.busy:
            return False
        actor_id = self.session.user_id
        if actor_id is None:
            self._require_auth()
            return False
        entry = self._find(report_id)
        if entry is None:
            self.error = f"Report not found: {report_id}"
            return False

        label = DECISION_LABELS[action]
        self.busy = True
        self.error = None
        try:
            if action == "delete":
                await self._delete_work(entry)
            else:
                await self._set_report_status(report_id, "rejected")
            await self._record_action(entry, action, actor_id, label, note)
        except (RequestError, ModerationError, StoreConfigError) as exc:
            if isinstance(exc, RequestError) and exc.is_unauthorized:
                logger.info("moderation.resolve.unauthorized report_id=%s action=%s", report_id, action)
                self._require_auth()
                return False
            logger.warning("moderation.resolve.failed report_id=%s action=%s error=%s", report_id, action, exc)
            self.error = str(exc) or "Unable to complete moderation decision"
            return False
        finally:
            self.busy = False

        logger.info("moderation.resolve report_id=%s action=%s actor_id=%s", report_id, action, actor_id)
        self.last_action = f"{label}: {entry.work_title}"
        return True

    def _require_auth(self) -> None:
        if self.on_auth_required is not None:
            self.on_auth_required()

    async def _set_report_status(self, report_id: str, status: str) -> None:
        await self.store.update(REPORT_TABLE, {"reportId": eq_filter(report_id)}, {"status": status})

    async def _delete_work(self, entry: QueueEntry) -> None:
        work_id = entry.report.work_id
        if not work_id:
            raise ModerationError(f"Report {entry.report_id} has no work to remove")
        await self._set_report_status(entry.report_id, "finished")
        try:
            await self.store.update(WORK_TABLE, {"workId": eq_filter(work_id)}, {"status": "removed"})
        except RequestError as exc:
            # An expired session cannot write the rollback either.
            if exc.is_unauthorized:
                raise
            await self._restore(REPORT_TABLE, "reportId", entry.report_id, entry.report.status)
            raise ModerationError(f"Work could not be removed: {exc}") from exc

    async def _record_action(
        self,
        entry: QueueEntry,
        action: Decision,
        actor_id: str,
        label: str,
        note: str | None,
    ) -> None:
        try:
            await self.store.insert(
                REVIEW_ACTION_TABLE,
                {
                    "reportId": entry.report_id,
                    "actorId": actor_id,
                    "decision": label,
                    "note": (note or "").strip() or None,
                    "created_at": _utc_now().isoformat(),
                },
            )
        except RequestError as exc:
            if exc.is_unauthorized:
                raise
            if action == "delete" and entry.report.work_id and entry.work_status:
                await self._restore(WORK_TABLE, "workId", entry.report.work_id, entry.work_status)
            await self._restore(REPORT_TABLE, "reportId", entry.report_id, entry.report.status)
            raise ModerationError(f"Review action could not be recorded: {exc}") from exc

    async def _restore(self, table: str, column: str, row_id: str, status: str) -> None:
        try:
            await self.store.update(table, {column: eq_filter(row_id)}, {"status": status})
        except RequestError as exc:
            logger.error("moderation.rollback.failed table=%s id=%s status=%s error=%s", table, row_id, status, exc)
