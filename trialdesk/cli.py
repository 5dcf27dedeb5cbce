"""
Trialdesk command line

Usage:
    trialdesk submit --table drug_overview --record-id 42 --type UPDATE --data '{"name": "x"}'
    trialdesk approvals list [--page 1 --page-size 10]
    trialdesk approvals approve CHANGE_ID
    trialdesk approvals reject CHANGE_ID [--reason TEXT]
    trialdesk fallbacks list [--entity-type drug]
    trialdesk fallbacks discard ENTITY_TYPE RECORD_ID
    trialdesk sync                      (requires FALLBACK_SYNC_ENABLED=true)
    trialdesk import-legacy DUMP.json

The acting user comes from --user-id/--token or TRIALDESK_USER_ID/TRIALDESK_TOKEN.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .client import TrialdeskClient
from .config import CLI_TOKEN, CLI_USER_ID, FALLBACK_SYNC_ENABLED
from .errors import TrialdeskError
from .services.local_store import import_legacy_entries
from .session import UserSession
from .utils.logging import setup_structured_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trialdesk", description="Clinical trial reference data client")
    parser.add_argument("--base-url", type=str, help="Backend base URL (default: TRIALDESK_API_BASE_URL)")
    parser.add_argument("--user-id", type=str, default=CLI_USER_ID, help="Acting user id")
    parser.add_argument("--token", type=str, default=CLI_TOKEN, help="Bearer token")
    commands = parser.add_subparsers(dest="command", required=True)

    submit = commands.add_parser("submit", help="Submit a change request for review")
    submit.add_argument("--table", required=True, help="Target table (e.g., drug_overview)")
    submit.add_argument("--record-id", required=True)
    submit.add_argument("--type", required=True, choices=["CREATE", "UPDATE", "DELETE"], type=str.upper)
    submit.add_argument("--data", default="{}", help="Proposed data as JSON")

    approvals = commands.add_parser("approvals", help="Review queue")
    approval_commands = approvals.add_subparsers(dest="action", required=True)
    listing = approval_commands.add_parser("list")
    listing.add_argument("--page", type=int)
    listing.add_argument("--page-size", type=int)
    approve = approval_commands.add_parser("approve")
    approve.add_argument("change_id")
    reject = approval_commands.add_parser("reject")
    reject.add_argument("change_id")
    reject.add_argument("--reason", type=str)

    fallbacks = commands.add_parser("fallbacks", help="Locally held mutations")
    fallback_commands = fallbacks.add_subparsers(dest="action", required=True)
    held = fallback_commands.add_parser("list")
    held.add_argument("--entity-type", type=str)
    discard = fallback_commands.add_parser("discard")
    discard.add_argument("entity_type")
    discard.add_argument("record_id")

    commands.add_parser("sync", help="Replay held mutations once")

    legacy = commands.add_parser("import-legacy", help="Import a browser localStorage dump")
    legacy.add_argument("path", help="JSON object of localStorage key -> value")

    return parser


def _print(data) -> None:
    print(json.dumps(data, indent=2, default=str))


async def run(args: argparse.Namespace, desk: TrialdeskClient) -> int:
    session = UserSession(user_id=args.user_id, token=args.token)
    desk.review_queue.session = session

    if args.command == "submit":
        ack = await desk.submissions.submit_change(
            session, args.table, args.record_id, args.type, json.loads(args.data)
        )
        _print(ack.model_dump())
        return 0

    if args.command == "approvals":
        if args.action == "list":
            page = await desk.review_queue.list(page=args.page, page_size=args.page_size)
        elif args.action == "approve":
            page = await desk.review_queue.approve(args.change_id)
        else:
            page = await desk.review_queue.reject(args.change_id, args.reason)
        _print(page.model_dump())
        return 0

    if args.command == "fallbacks":
        if args.action == "list":
            records = await desk.reconciler.pending_fallbacks(args.entity_type)
            _print([r.model_dump(mode="json") for r in records])
            return 0
        removed = await desk.reconciler.discard(args.entity_type, args.record_id)
        _print({"discarded": removed})
        return 0 if removed else 1

    if args.command == "sync":
        if not FALLBACK_SYNC_ENABLED:
            print("Fallback sync is disabled. Set FALLBACK_SYNC_ENABLED=true to replay held mutations.")
            return 2
        report = await desk.reconciler.replay_once(session)
        _print(report.model_dump())
        return 0 if not report.failed else 1

    if args.command == "import-legacy":
        with open(args.path) as f:
            entries = json.load(f)
        _print(await import_legacy_entries(desk.store, entries))
        return 0

    return 2


async def _main(args: argparse.Namespace) -> int:
    async with TrialdeskClient(base_url=args.base_url) as desk:
        return await run(args, desk)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_structured_logging()
    try:
        return asyncio.run(_main(args))
    except TrialdeskError as e:
        logger.error(e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
