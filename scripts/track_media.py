#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from media_tracker.db.supabase import create_supabase_admin_client
from media_tracker.errors import MediaTrackerError, PartialMoveError, user_message
from media_tracker.metadata.gateway import MetadataGateway
from media_tracker.models.media import Collection, MediaRecord, SearchResult
from media_tracker.services.lists import ListMutationService
from media_tracker.session import SearchSession
from media_tracker.utils.env import load_env


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="track_media",
        description="Search TMDb and manage a user's watched list and watchlist.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search movies and TV shows.")
    search.add_argument("query")

    add = sub.add_parser("add", help="Search, then add the picked results (1-based positions).")
    add.add_argument("query")
    add.add_argument("--owner", required=True, help="Owner user id (UUID).")
    add.add_argument("--collection", choices=[c.value for c in Collection], default=Collection.WATCHLIST.value)
    add.add_argument("--pick", type=int, nargs="+", required=True, help="Result positions to add.")

    list_cmd = sub.add_parser("list", help="List a collection.")
    list_cmd.add_argument("collection", choices=[c.value for c in Collection])
    list_cmd.add_argument("--owner", required=True, help="Owner user id (UUID).")

    remove = sub.add_parser("remove", help="Remove an item by id.")
    remove.add_argument("collection", choices=[c.value for c in Collection])
    remove.add_argument("item_id")
    remove.add_argument("--owner", required=True, help="Owner user id (UUID).")

    move = sub.add_parser("move", help="Move a watchlist item to watched.")
    move.add_argument("item_id")
    move.add_argument("--owner", required=True, help="Owner user id (UUID).")
    return parser.parse_args(argv)


def _format_result(index: int, result: SearchResult) -> str:
    kind = "TV Show" if result.media_kind.value == "tv" else "Movie"
    year = result.year if result.year is not None else "----"
    return f"{index:>3}. {result.title} ({year}) [{kind}] tmdb={result.external_id}"


def _format_record(record: MediaRecord) -> str:
    parts = [f"{record.title}"]
    if record.year:
        parts.append(f"({record.year})")
    if record.genres:
        parts.append(f"- {record.genres}")
    if record.media_type.value == "tv" and record.total_episodes:
        parts.append(f"- {record.total_episodes} episodes")
    return f"{record.id}  " + " ".join(parts)


async def _add(session: SearchSession, query: str, picks: list[int]) -> int:
    results = await session.search(query)
    if results is None:
        print(f"track_media: {session.error}", file=sys.stderr)
        return 1
    for pick in picks:
        if pick < 1 or pick > len(results):
            print(f"track_media: ignoring out-of-range pick {pick}", file=sys.stderr)
            continue
        session.select(results[pick - 1].external_id)

    report = await session.add_batch()
    for outcome in report.outcomes:
        note = "" if outcome.enriched or not outcome.ok else " (search fields only)"
        status = outcome.status if not outcome.message or outcome.ok else f"{outcome.status}: {outcome.message}"
        print(f"  {outcome.title}: {status}{note}")
    print(report.summary())
    return 0 if report.succeeded == report.attempted else 1


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv or sys.argv[1:])
    load_env()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    gateway = MetadataGateway()
    if args.command == "search":
        try:
            results = gateway.search(args.query)
        except MediaTrackerError as exc:
            print(f"track_media: {user_message(exc)}", file=sys.stderr)
            return 1
        for index, result in enumerate(results, start=1):
            print(_format_result(index, result))
        return 0

    lists = ListMutationService(create_supabase_admin_client(), args.owner)
    try:
        if args.command == "add":
            session = SearchSession(gateway, lists, Collection(args.collection))
            return asyncio.run(_add(session, args.query, args.pick))
        if args.command == "list":
            for record in lists.list_items(Collection(args.collection)):
                print(_format_record(record))
            return 0
        if args.command == "remove":
            lists.remove(args.item_id, Collection(args.collection))
            return 0
        if args.command == "move":
            record = lists.move_to_watched_by_id(args.item_id)
            print(f"Moved {record.title!r} to watched at {record.watched_at}")
            return 0
    except PartialMoveError as exc:
        print(f"track_media: {exc.user_message} ({exc.record.title})", file=sys.stderr)
        return 2
    except MediaTrackerError as exc:
        if args.verbose:
            print(f"track_media: {exc}", file=sys.stderr)
        print(f"track_media: {user_message(exc)}", file=sys.stderr)
        return 1
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
