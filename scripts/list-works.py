#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
import asyncio
import logging

from api import HubApi
from views.gallery import GalleryView


async def _run(tag: str | None, query: str, page: int) -> int:
    gallery = GalleryView(HubApi())
    await gallery.load()
    if gallery.error:
        print(f"[works] error={gallery.error}")
        return 1
    if tag:
        gallery.select_tag(tag)
    gallery.set_query(query)
    gallery.go_to(page)

    current = gallery.page
    print(f"[works] tags={', '.join(gallery.tags)}")
    for card in gallery.cards:
        print(f"[work] id={card.work_id} title={card.title!r} tags={','.join(card.tags)}")
    print(f"[works] page {current.number} of {current.total_pages} ({current.total_items} matches)")
    return 0


def main() -> None:
    parser = ArgumentParser(description="Browse published works")
    parser.add_argument("--tag", default=None)
    parser.add_argument("--query", default="")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    raise SystemExit(asyncio.run(_run(args.tag, args.query, args.page)))


if __name__ == "__main__":
    main()
