"""
Business logic for auctions.

``AuctionService`` validates and applies the state transitions of an
auction record: creation, bid placement and deletion, plus listing and
lookup.  It works on an ``AuctionStore`` handed to it at construction
time and on an injectable clock, so tests can move time past an
auction's end date without sleeping.

Whether an auction has ended is derived on every read from the clock
and ``auction_end_date``; it is never written to the store.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from auction_api.app.core.db import AuctionStore
from auction_api.app.core.errors import (
    AuctionEndedError,
    BidTooLowError,
    NotFoundError,
    ValidationError,
)
from auction_api.app.schemas.auction import AuctionCreate, AuctionRead, BidCreate


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_amount(value: float) -> str:
    """Format a bid amount without trailing zeros (``150``, ``150.5``)."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


class AuctionService:
    """Service for creating, bidding on and deleting auctions."""

    def __init__(self, store: AuctionStore, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.store = store
        self.clock = clock or utcnow

    def now(self) -> datetime:
        return as_utc(self.clock())

    async def create_auction(self, data: AuctionCreate) -> AuctionRead:
        """Create a new auction and return it.

        The starting bid becomes the current bid and no bidder is set.
        The end date must lie in the future.
        """
        now = self.now()
        end_date = as_utc(data.auction_end_date)
        if end_date <= now:
            raise ValidationError("Auction end date must be in the future")
        row = self.store.insert_auction(
            item_name=data.item_name,
            item_category=data.item_category,
            starting_bid=data.starting_bid,
            auction_end_date=end_date,
            item_description=data.item_description,
            created_at=now,
        )
        logger.info(
            "Created auction %s for '%s' starting at %s", row["id"], data.item_name, format_amount(data.starting_bid)
        )
        return self._row_to_auction_read(row, now)

    async def list_auctions(self) -> List[AuctionRead]:
        """Return every auction, newest first."""
        now = self.now()
        return [self._row_to_auction_read(row, now) for row in self.store.list_auctions()]

    async def get_auction(self, auction_id: str) -> AuctionRead:
        row = self.store.get_auction(auction_id)
        if row is None:
            raise NotFoundError()
        return self._row_to_auction_read(row, self.now())

    async def place_bid(self, bid: BidCreate) -> AuctionRead:
        """Place a bid and return the updated auction.

        The bid must be positive, strictly greater than the current bid
        and placed no later than the auction end date.  The store applies
        the bid with a conditional update; if that update loses a race,
        the record is read again to report why.
        """
        if bid.bid_amount <= 0:
            raise ValidationError("Bid amount must be greater than 0")
        if not bid.bidder_name.strip():
            raise ValidationError("Bidder name is required", required=["bidderName"])
        now = self.now()
        row = self.store.get_auction(bid.auction_id)
        self._check_bid(row, bid, now)
        if not self.store.update_bid(bid.auction_id, bid.bid_amount, bid.bidder_name, now):
            row = self.store.get_auction(bid.auction_id)
            self._check_bid(row, bid, now)
            # a higher bid landed between the update and the re-read
            raise BidTooLowError(f"Bid amount must be greater than current bid of ${format_amount(row['current_bid'])}")
        logger.info(
            "Accepted bid of %s from '%s' on auction %s",
            format_amount(bid.bid_amount),
            bid.bidder_name,
            bid.auction_id,
        )
        return await self.get_auction(bid.auction_id)

    def _check_bid(self, row: Optional[Dict[str, Any]], bid: BidCreate, now: datetime) -> None:
        if row is None:
            raise NotFoundError()
        if now > as_utc(datetime.fromisoformat(row["auction_end_date"])):
            logger.info("Rejected bid on ended auction %s", bid.auction_id)
            raise AuctionEndedError()
        if bid.bid_amount <= row["current_bid"]:
            logger.info(
                "Rejected bid of %s on auction %s: current bid is %s",
                format_amount(bid.bid_amount),
                bid.auction_id,
                format_amount(row["current_bid"]),
            )
            raise BidTooLowError(
                f"Bid amount must be greater than current bid of ${format_amount(row['current_bid'])}"
            )

    async def delete_auction(self, auction_id: str) -> AuctionRead:
        """Delete an auction permanently and return the removed record."""
        row = self.store.delete_auction(auction_id)
        if row is None:
            raise NotFoundError()
        logger.info("Deleted auction %s", auction_id)
        return self._row_to_auction_read(row, self.now())

    @staticmethod
    def _row_to_auction_read(row: Dict[str, Any], now: datetime) -> AuctionRead:
        """Convert a store row to an ``AuctionRead`` and derive ``ended``."""
        end_date = as_utc(datetime.fromisoformat(row["auction_end_date"]))
        return AuctionRead(
            id=row["id"],
            item_name=row["item_name"],
            item_category=row["item_category"],
            starting_bid=row["starting_bid"],
            current_bid=row["current_bid"],
            bidder_name=row["bidder_name"],
            auction_end_date=end_date,
            item_description=row["item_description"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            ended=now > end_date,
        )
