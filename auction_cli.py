#!/usr/bin/env python3
"""
Command-line front end for the auction API.

Lists auctions as a table, creates listings, places bids and deletes
items through :class:`auction_client.AuctionAPI`.  ``watch`` keeps the
table up to date by polling the server every few seconds.

A few checks run here before anything is sent, to give quick feedback;
the server repeats the checks that matter:

* the description must be at least 10 characters long,
* the end date must be at least 5 minutes in the future,
* a bid must be at least the current bid plus 0.01.

Usage:
    python auction_cli.py list
    python auction_cli.py add --name "Camera" --category Electronics \\
        --starting-bid 100 --end 2026-12-01T18:00 --description "35mm film camera"
    python auction_cli.py bid <auction-id> 150 --bidder Alice
    python auction_cli.py delete <auction-id> --yes
    python auction_cli.py watch --interval 5
"""

import argparse
import logging
import sys
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from auction_client import DEFAULT_BASE_URL, DEFAULT_POLL_INTERVAL, AuctionAPI


MIN_DESCRIPTION_LENGTH = 10
MIN_AUCTION_DURATION = timedelta(minutes=5)
MIN_BID_INCREMENT = 0.01
BANNER_DELAY = 5.0
NO_BIDS = "No bids yet"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_new_auction(
    *,
    item_name: str,
    item_category: str,
    starting_bid: float,
    auction_end_date: datetime,
    item_description: str,
    now: Optional[datetime] = None,
) -> List[str]:
    """Return the problems with a new listing; an empty list means valid."""
    now = now or datetime.now(timezone.utc)
    problems = []
    if not item_name.strip():
        problems.append("Item name is required")
    if not item_category.strip():
        problems.append("Item category is required")
    if starting_bid < 0:
        problems.append("Starting bid must be a positive number")
    if auction_end_date < now + MIN_AUCTION_DURATION:
        problems.append("Auction must end at least 5 minutes from now")
    if len(item_description.strip()) < MIN_DESCRIPTION_LENGTH:
        problems.append(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters")
    return problems


def min_next_bid(auction: Dict[str, Any]) -> float:
    return round(float(auction["currentBid"]) + MIN_BID_INCREMENT, 2)


def is_ended(auction: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return now > parse_timestamp(auction["auctionEndDate"])


def format_auction_table(auctions: Sequence[Dict[str, Any]], now: Optional[datetime] = None) -> str:
    """Render auctions as a fixed-width text table."""
    if not auctions:
        return "No auctions available. Create one to get started!"
    headers = ["ID", "Item", "Category", "Current Bid", "Bidder", "Ends", "Status"]
    rows = []
    for auction in auctions:
        rows.append(
            [
                auction["id"],
                auction["itemName"],
                auction["itemCategory"],
                f"${float(auction['currentBid']):.2f}",
                auction.get("bidderName") or NO_BIDS,
                parse_timestamp(auction["auctionEndDate"]).strftime("%b %d, %Y %H:%M"),
                "Ended" if is_ended(auction, now) else "Active",
            ]
        )
    widths = [max(len(str(cell)) for cell in column) for column in zip(headers, *rows)]
    lines = ["  ".join(str(cell).ljust(width) for cell, width in zip(row, widths)) for row in [headers] + rows]
    lines.insert(1, "  ".join("-" * width for width in widths))
    return "\n".join(lines)


class Banner:
    """A message that clears itself ``delay`` seconds after being set."""

    def __init__(self, delay: float = BANNER_DELAY, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = delay
        self.clock = clock
        self._message: Optional[str] = None
        self._set_at = 0.0

    def set(self, message: str) -> None:
        self._message = message
        self._set_at = self.clock()

    @property
    def message(self) -> Optional[str]:
        if self._message is not None and self.clock() - self._set_at >= self.delay:
            self._message = None
        return self._message


def _report(error: Dict[str, Any]) -> int:
    print(f"Error: {error['message']}", file=sys.stderr)
    return 1


def cmd_list(api: AuctionAPI, args: argparse.Namespace) -> int:
    auctions, error = api.list_auctions()
    if error:
        return _report(error)
    print(f"Active Auctions ({len(auctions)})")
    print(format_auction_table(auctions))
    return 0


def cmd_add(api: AuctionAPI, args: argparse.Namespace) -> int:
    try:
        end_date = parse_timestamp(args.end)
    except ValueError:
        print(f"Error: invalid end date {args.end!r}", file=sys.stderr)
        return 2
    problems = validate_new_auction(
        item_name=args.name,
        item_category=args.category,
        starting_bid=args.starting_bid,
        auction_end_date=end_date,
        item_description=args.description,
    )
    if problems:
        for problem in problems:
            print(f"Error: {problem}", file=sys.stderr)
        return 2
    auction, error = api.create_auction(
        item_name=args.name,
        item_category=args.category,
        starting_bid=args.starting_bid,
        auction_end_date=end_date,
        item_description=args.description,
    )
    if error:
        return _report(error)
    print(f"Auction created successfully: {auction['id']}")
    return 0


def cmd_bid(api: AuctionAPI, args: argparse.Namespace) -> int:
    if not args.bidder.strip():
        print("Error: bidder name is required", file=sys.stderr)
        return 2
    auction, error = api.get_auction(args.auction_id)
    if error:
        return _report(error)
    if is_ended(auction):
        print("Error: Auction has already ended", file=sys.stderr)
        return 2
    if args.amount < min_next_bid(auction):
        print(f"Error: Bid must be at least ${min_next_bid(auction):.2f}", file=sys.stderr)
        return 2
    auction, error = api.place_bid(args.auction_id, args.amount, args.bidder)
    if error:
        return _report(error)
    print(f"Bid placed successfully: ${float(auction['currentBid']):.2f} by {auction['bidderName']}")
    return 0


def confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def cmd_delete(api: AuctionAPI, args: argparse.Namespace) -> int:
    if not args.yes and not confirm(f"Are you sure you want to delete auction {args.auction_id}?"):
        print("Delete cancelled")
        return 1
    auction, error = api.delete_auction(args.auction_id)
    if error:
        return _report(error)
    print(f"Auction deleted successfully: {auction['itemName']}")
    return 0


def cmd_health(api: AuctionAPI, args: argparse.Namespace) -> int:
    payload, error = api.health()
    if error:
        return _report(error)
    print(payload.get("message", "ok"))
    return 0


def cmd_watch(api: AuctionAPI, args: argparse.Namespace, stop_event: Optional[threading.Event] = None) -> int:
    """Re-render the auction table on every poll until interrupted."""
    banner = Banner(delay=args.banner_delay)
    refreshes = 0
    try:
        for auctions, error in api.poll_auctions(interval=args.interval, stop_event=stop_event):
            if error:
                banner.set(error["message"])
            print("\033[2J\033[H", end="")
            if banner.message:
                print(f"[!] {banner.message}\n")
            print(f"Active Auctions ({len(auctions)})  refreshed {datetime.now():%H:%M:%S}")
            print(format_auction_table(auctions))
            refreshes += 1
            if args.count and refreshes >= args.count:
                break
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Auction API command-line client.")
    parser.add_argument("--url", default=DEFAULT_BASE_URL, help="Base URL of the auction server")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log HTTP requests")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all auctions").set_defaults(func=cmd_list)

    add = sub.add_parser("add", help="Create a new auction")
    add.add_argument("--name", required=True)
    add.add_argument("--category", required=True)
    add.add_argument("--starting-bid", type=float, required=True)
    add.add_argument("--end", required=True, help="End date (ISO 8601, UTC if no offset)")
    add.add_argument("--description", required=True)
    add.set_defaults(func=cmd_add)

    bid = sub.add_parser("bid", help="Place a bid")
    bid.add_argument("auction_id")
    bid.add_argument("amount", type=float)
    bid.add_argument("--bidder", required=True)
    bid.set_defaults(func=cmd_bid)

    delete = sub.add_parser("delete", help="Delete an auction")
    delete.add_argument("auction_id")
    delete.add_argument("-y", "--yes", action="store_true", help="Delete without asking for confirmation")
    delete.set_defaults(func=cmd_delete)

    watch = sub.add_parser("watch", help="Refresh the auction list periodically")
    watch.add_argument("--interval", type=float, default=DEFAULT_POLL_INTERVAL)
    watch.add_argument("--banner-delay", type=float, default=BANNER_DELAY)
    watch.add_argument("--count", type=int, default=0, help="Stop after this many refreshes (0 = forever)")
    watch.set_defaults(func=cmd_watch)

    sub.add_parser("health", help="Check the server health").set_defaults(func=cmd_health)
    return parser


def main(argv: Optional[Sequence[str]] = None, api: Optional[AuctionAPI] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    api = api or AuctionAPI(base_url=args.url)
    return args.func(api, args)


if __name__ == "__main__":
    sys.exit(main())
