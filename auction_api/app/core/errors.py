"""
Error taxonomy for the auction API.

Services raise these exceptions; the application converts them into
the JSON error envelope ``{"error": ..., "message": ...}`` with the
HTTP status carried by each class (see ``main.create_app``).
"""

from typing import Any, Dict, List, Optional


class AuctionError(Exception):
    """Base class for every error the API reports to clients."""

    status_code = 500

    def __init__(self, message: str, *, required: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.required = required

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.required:
            body["required"] = self.required
        return body


class ValidationError(AuctionError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(AuctionError):
    """No auction with the requested identifier."""

    status_code = 404

    def __init__(self, message: str = "Auction not found") -> None:
        super().__init__(message)


class BidTooLowError(AuctionError):
    """Bid amount does not exceed the current bid."""

    status_code = 400


class AuctionEndedError(AuctionError):
    """Bid placed after the auction end date."""

    status_code = 400

    def __init__(self, message: str = "Auction has already ended") -> None:
        super().__init__(message)


class StoreError(AuctionError):
    """The underlying database failed."""

    status_code = 500

    def __init__(self, message: str, *, operation: str = "accessing auctions") -> None:
        super().__init__(message)
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        return {"error": f"Error {self.operation}", "message": self.message}
