import unittest
from datetime import timedelta
from unittest import mock

import pydantic

from auction_api.app.core.db import AuctionStore
from auction_api.app.core.errors import (
    AuctionEndedError,
    BidTooLowError,
    NotFoundError,
    ValidationError,
)
from auction_api.app.schemas.auction import AuctionCreate, BidCreate
from auction_api.app.services.auction_service import AuctionService, format_amount

from tests.support import START, FakeClock


def new_auction(starting_bid=100, ends_in=timedelta(hours=1), name="Camera") -> AuctionCreate:
    return AuctionCreate(
        item_name=name,
        item_category="Electronics",
        starting_bid=starting_bid,
        auction_end_date=START + ends_in,
        item_description="Working 35mm film camera",
    )


class AuctionServiceTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.store = AuctionStore(":memory:")
        self.store.open()
        self.addCleanup(self.store.close)
        self.service = AuctionService(self.store, clock=self.clock)

    async def bid(self, auction_id, amount, bidder="Alice"):
        return await self.service.place_bid(
            BidCreate(auction_id=auction_id, bid_amount=amount, bidder_name=bidder)
        )

    async def test_create_starts_at_starting_bid(self):
        auction = await self.service.create_auction(new_auction(starting_bid=0))
        self.assertEqual(auction.current_bid, 0)
        self.assertEqual(auction.starting_bid, 0)
        self.assertIsNone(auction.bidder_name)
        self.assertFalse(auction.ended)
        self.assertEqual(auction.created_at, START)

    async def test_create_trims_text(self):
        data = AuctionCreate(
            item_name="  Camera ",
            item_category=" Electronics",
            starting_bid=5,
            auction_end_date=START + timedelta(days=1),
            item_description=" Working camera  ",
        )
        auction = await self.service.create_auction(data)
        self.assertEqual(auction.item_name, "Camera")
        self.assertEqual(auction.item_category, "Electronics")
        self.assertEqual(auction.item_description, "Working camera")

    async def test_create_rejects_past_end_date(self):
        with self.assertRaises(ValidationError):
            await self.service.create_auction(new_auction(ends_in=timedelta(0)))
        with self.assertRaises(ValidationError):
            await self.service.create_auction(new_auction(ends_in=timedelta(hours=-1)))
        self.assertEqual(self.store.count(), 0)

    def test_create_schema_rejects_malformed_input(self):
        with self.assertRaises(pydantic.ValidationError):
            new_auction(starting_bid=-1)
        with self.assertRaises(pydantic.ValidationError):
            new_auction(name="   ")
        with self.assertRaises(pydantic.ValidationError):
            BidCreate(auction_id="x", bid_amount=0, bidder_name="Alice")
        with self.assertRaises(pydantic.ValidationError):
            BidCreate(auction_id="x", bid_amount=10, bidder_name=" ")
        with self.assertRaises(pydantic.ValidationError):
            BidCreate(auction_id="x", bid_amount=True, bidder_name="Alice")
        with self.assertRaises(pydantic.ValidationError):
            new_auction(starting_bid=False)
        with self.assertRaises(pydantic.ValidationError):
            AuctionCreate(
                item_name="Camera",
                item_category="Electronics",
                starting_bid=1,
                auction_end_date="9999-12-31T23:00:00-05:00",
                item_description="Working camera",
            )
        self.assertEqual(BidCreate(auction_id="x", bid_amount="12.5", bidder_name="Alice").bid_amount, 12.5)

    async def test_bidding_scenario(self):
        auction = await self.service.create_auction(new_auction(starting_bid=100))

        with self.assertRaises(BidTooLowError):
            await self.bid(auction.id, 50)
        with self.assertRaises(BidTooLowError) as ctx:
            await self.bid(auction.id, 100)
        self.assertEqual(ctx.exception.message, "Bid amount must be greater than current bid of $100")

        self.clock.advance(minutes=10)
        updated = await self.bid(auction.id, 150, bidder="Bob")
        self.assertEqual(updated.current_bid, 150)
        self.assertEqual(updated.bidder_name, "Bob")
        self.assertEqual(updated.starting_bid, 100)
        self.assertEqual(updated.updated_at, self.clock.now)

        with self.assertRaises(BidTooLowError):
            await self.bid(auction.id, 120)
        self.assertEqual((await self.service.get_auction(auction.id)).current_bid, 150)

        deleted = await self.service.delete_auction(auction.id)
        self.assertEqual(deleted.id, auction.id)
        self.assertEqual(await self.service.list_auctions(), [])

    async def test_bid_on_missing_auction(self):
        with self.assertRaises(NotFoundError):
            await self.bid("does-not-exist", 10)

    async def test_bid_accepted_at_end_date_rejected_after(self):
        auction = await self.service.create_auction(new_auction(ends_in=timedelta(hours=1)))
        self.clock.advance(hours=1)
        updated = await self.bid(auction.id, 101)
        self.assertEqual(updated.current_bid, 101)

        self.clock.advance(seconds=1)
        with self.assertRaises(AuctionEndedError):
            await self.bid(auction.id, 500)
        stored = await self.service.get_auction(auction.id)
        self.assertEqual(stored.current_bid, 101)
        self.assertEqual(stored.bidder_name, "Alice")
        self.assertTrue(stored.ended)

    async def test_ended_check_comes_before_amount_check(self):
        auction = await self.service.create_auction(new_auction())
        self.clock.advance(hours=2)
        with self.assertRaises(AuctionEndedError):
            await self.bid(auction.id, 1)

    async def test_lost_race_reports_bid_too_low(self):
        auction = await self.service.create_auction(new_auction(starting_bid=100))
        stale = self.store.get_auction(auction.id)
        await self.bid(auction.id, 200, bidder="Bob")

        real_get = self.store.get_auction
        with mock.patch.object(self.store, "get_auction", side_effect=[stale, real_get(auction.id)]):
            with self.assertRaises(BidTooLowError) as ctx:
                await self.bid(auction.id, 150)
        self.assertIn("$200", ctx.exception.message)
        stored = await self.service.get_auction(auction.id)
        self.assertEqual(stored.current_bid, 200)
        self.assertEqual(stored.bidder_name, "Bob")

    async def test_current_bid_never_decreases(self):
        auction = await self.service.create_auction(new_auction(starting_bid=10))
        accepted = []
        for amount in [5, 11, 11, 30, 12, 30.5, 100, 99.99]:
            try:
                accepted.append((await self.bid(auction.id, amount)).current_bid)
            except BidTooLowError:
                pass
        self.assertEqual(accepted, [11, 30, 30.5, 100])

    async def test_delete_missing_leaves_store_unchanged(self):
        await self.service.create_auction(new_auction())
        with self.assertRaises(NotFoundError):
            await self.service.delete_auction("does-not-exist")
        self.assertEqual(len(await self.service.list_auctions()), 1)

    async def test_list_after_creates_and_deletes(self):
        created = []
        for i in range(5):
            created.append(await self.service.create_auction(new_auction(name=f"item {i}", ends_in=timedelta(days=1))))
            self.clock.advance(minutes=1)
        await self.service.delete_auction(created[1].id)
        await self.service.delete_auction(created[3].id)

        listed = await self.service.list_auctions()
        self.assertEqual([a.item_name for a in listed], ["item 4", "item 2", "item 0"])

    async def test_get_missing_auction(self):
        with self.assertRaises(NotFoundError):
            await self.service.get_auction("nope")

    def test_format_amount(self):
        self.assertEqual(format_amount(100), "100")
        self.assertEqual(format_amount(150.5), "150.5")
        self.assertEqual(format_amount(0.01), "0.01")


if __name__ == '__main__':
    unittest.main()
