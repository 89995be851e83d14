#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
import asyncio
import logging

from api import HubApi
from auth import SessionContext
from moderation import ModerationQueue
from store import StoreClient, StoreConfigResolver


async def _run(args) -> int:
    api = HubApi()
    session = SessionContext(api)
    if args.email:
        if not await session.login_email(args.email, args.password or ""):
            print(f"[moderation] login failed: {session.error}")
            return 1

    store = StoreClient(StoreConfigResolver(api))
    queue = ModerationQueue(store, session, on_auth_required=lambda: print("[moderation] sign-in required"))
    await queue.refresh()
    if queue.error:
        print(f"[moderation] error={queue.error}")
        return 1

    if args.report_id:
        ok = await queue.resolve(args.report_id, args.action, args.note)
        if not ok:
            print(f"[moderation] decision failed: {queue.error}")
            return 1
        print(f"[moderation] {queue.last_action}")
        return 0

    queue.set_status_filter(args.status)
    queue.set_query(args.query)
    for entry in queue.visible:
        decision = entry.latest_action.decision if entry.latest_action else "-"
        print(
            f"[report] id={entry.report_id} status={entry.status} work={entry.work_title!r} "
            f"reporter={entry.reporter_name} reason={entry.report.reason!r} decision={decision}"
        )
    return 0


def main() -> None:
    parser = ArgumentParser(description="List or resolve reported works")
    parser.add_argument("--status", choices=["all", "pending", "finished", "rejected"], default="pending")
    parser.add_argument("--query", default="")
    parser.add_argument("--report-id", default=None)
    parser.add_argument("--action", choices=["delete", "reject"], default="reject")
    parser.add_argument("--note", default="")
    parser.add_argument("--email", default=None, help="Moderator email for /auth/login/email")
    parser.add_argument("--password", default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
