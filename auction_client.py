"""Auction API client.

This module defines a thin client around the auction REST API.  It uses
the ``requests`` library internally and exposes one method per
endpoint:

* :meth:`list_auctions` – return every auction, newest first.
* :meth:`get_auction` – fetch a single auction by its identifier.
* :meth:`create_auction` – create a new listing.
* :meth:`place_bid` – bid on an auction.
* :meth:`delete_auction` – remove a listing.
* :meth:`health` – check that the server is up.

Every method returns a tuple ``(data, error)``.  On success ``error`` is
``None``; on failure ``data`` is ``None`` (or an empty list) and
``error`` is a dictionary with the keys ``status_code`` and ``message``.
The server's ``error`` text is used as the message so it can be shown
to the user unchanged.

The API offers no change notifications, so :meth:`poll_auctions` simply
re-reads the list at a fixed interval.
"""

from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("AUCTION_API_URL", "http://localhost:7000")
DEFAULT_POLL_INTERVAL = float(os.getenv("POLL_INTERVAL", "5"))

ApiError = Dict[str, Any]


class AuctionAPI:
    """Client for interacting with the auction API."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_prefix: str = "/api",
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:7000``.
            api_prefix: Path prefix of the auction routes.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Timeout in seconds for every request.
        """
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[ApiError]]:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET`` or ``POST``).
            path: Path relative to :attr:`base_url` (e.g. ``/api/viewAll``).
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(method=method, url=url, json=json_body, timeout=self.timeout)
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("error") or err_json.get("message") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def _api(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    @staticmethod
    def _data(payload: Any) -> Any:
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    # ------------------------------------------------------------------
    # Auction operations
    # ------------------------------------------------------------------
    def list_auctions(self) -> Tuple[List[Dict[str, Any]], Optional[ApiError]]:
        """Retrieve all auctions, newest first."""
        payload, error = self._request("GET", self._api("/viewAll"))
        if error:
            return [], error
        data = self._data(payload)
        return (data if isinstance(data, list) else []), None

    def get_auction(self, auction_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        payload, error = self._request("GET", self._api(f"/auctions/{auction_id}"))
        if error:
            return None, error
        return self._data(payload), None

    def create_auction(
        self,
        *,
        item_name: str,
        item_category: str,
        starting_bid: float,
        auction_end_date: datetime,
        item_description: str,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        """Create a new auction listing.

        Naive ``auction_end_date`` values are sent as UTC.
        """
        if auction_end_date.tzinfo is None:
            auction_end_date = auction_end_date.replace(tzinfo=timezone.utc)
        body = {
            "itemName": item_name,
            "itemCategory": item_category,
            "startingBid": starting_bid,
            "auctionEndDate": auction_end_date.isoformat(),
            "itemDescription": item_description,
        }
        payload, error = self._request("POST", self._api("/addNew"), json_body=body)
        if error:
            return None, error
        return self._data(payload), None

    def place_bid(
        self, auction_id: str, bid_amount: float, bidder_name: str
    ) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        body = {"auctionId": auction_id, "bidAmount": bid_amount, "bidderName": bidder_name}
        payload, error = self._request("POST", self._api("/placeBid"), json_body=body)
        if error:
            return None, error
        return self._data(payload), None

    def delete_auction(self, auction_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        payload, error = self._request("POST", self._api("/deleteItem"), json_body={"auctionId": auction_id})
        if error:
            return None, error
        return self._data(payload), None

    def health(self) -> Tuple[Optional[Dict[str, Any]], Optional[ApiError]]:
        return self._request("GET", self._api("/health"))

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def poll_auctions(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        stop_event: Optional[threading.Event] = None,
    ) -> Iterator[Tuple[List[Dict[str, Any]], Optional[ApiError]]]:
        """Yield ``list_auctions()`` results every ``interval`` seconds.

        The first result is yielded immediately.  Iteration ends once
        ``stop_event`` is set; waiting on the event means a stop request
        is honoured without sleeping out the rest of the interval.
        """
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            yield self.list_auctions()
            if stop_event.wait(interval):
                break
