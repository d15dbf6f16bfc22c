import json
import threading
import unittest
from datetime import datetime
from unittest import mock

import requests

from auction_client import AuctionAPI


def make_response(status_code=200, payload=None, url="http://auction.test/api"):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response._content = json.dumps(payload).encode("utf-8") if payload is not None else b""
    return response


AUCTION = {
    "id": "abc",
    "itemName": "Camera",
    "itemCategory": "Electronics",
    "startingBid": 100,
    "currentBid": 100,
    "bidderName": None,
    "auctionEndDate": "2026-01-01T13:00:00Z",
    "itemDescription": "Working 35mm film camera",
    "ended": False,
}


class AuctionAPITestCase(unittest.TestCase):

    def setUp(self):
        self.session = mock.Mock(spec=requests.Session)
        self.api = AuctionAPI(base_url="http://auction.test/", session=self.session)

    def test_list_auctions(self):
        self.session.request.return_value = make_response(
            payload={"message": "Auctions retrieved successfully", "count": 1, "data": [AUCTION]}
        )
        auctions, error = self.api.list_auctions()
        self.assertIsNone(error)
        self.assertEqual(auctions, [AUCTION])
        self.session.request.assert_called_once_with(
            method="GET", url="http://auction.test/api/viewAll", json=None, timeout=15
        )

    def test_create_auction_sends_camel_case_body(self):
        self.session.request.return_value = make_response(201, {"message": "ok", "data": AUCTION})
        auction, error = self.api.create_auction(
            item_name="Camera",
            item_category="Electronics",
            starting_bid=100,
            auction_end_date=datetime(2026, 1, 1, 13, 0),
            item_description="Working 35mm film camera",
        )
        self.assertIsNone(error)
        self.assertEqual(auction, AUCTION)
        body = self.session.request.call_args.kwargs["json"]
        self.assertEqual(body["itemName"], "Camera")
        self.assertEqual(body["startingBid"], 100)
        self.assertEqual(body["auctionEndDate"], "2026-01-01T13:00:00+00:00")

    def test_place_bid_error_uses_server_message(self):
        self.session.request.return_value = make_response(
            400, {"error": "Bid amount must be greater than current bid of $100"}
        )
        auction, error = self.api.place_bid("abc", 50, "Alice")
        self.assertIsNone(auction)
        self.assertEqual(
            error, {"status_code": 400, "message": "Bid amount must be greater than current bid of $100"}
        )
        self.assertEqual(
            self.session.request.call_args.kwargs["json"],
            {"auctionId": "abc", "bidAmount": 50, "bidderName": "Alice"},
        )

    def test_delete_not_found(self):
        self.session.request.return_value = make_response(404, {"error": "Auction not found"})
        auction, error = self.api.delete_auction("missing")
        self.assertIsNone(auction)
        self.assertEqual(error["status_code"], 404)
        self.assertEqual(error["message"], "Auction not found")

    def test_connection_error(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        auctions, error = self.api.list_auctions()
        self.assertEqual(auctions, [])
        self.assertEqual(error, {"status_code": None, "message": "refused"})

    def test_get_auction(self):
        self.session.request.return_value = make_response(payload={"message": "ok", "data": AUCTION})
        auction, error = self.api.get_auction("abc")
        self.assertEqual(auction, AUCTION)
        self.assertEqual(self.session.request.call_args.kwargs["url"], "http://auction.test/api/auctions/abc")

    def test_poll_auctions_stops_on_event(self):
        self.session.request.return_value = make_response(payload={"message": "ok", "count": 0, "data": []})
        stop = threading.Event()
        results = []
        for auctions, error in self.api.poll_auctions(interval=0, stop_event=stop):
            results.append(auctions)
            if len(results) == 3:
                stop.set()
        self.assertEqual(results, [[], [], []])
        self.assertEqual(self.session.request.call_count, 3)


if __name__ == '__main__':
    unittest.main()
