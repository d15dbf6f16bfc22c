"""
FastAPI dependencies shared by the endpoint modules.
"""

from fastapi import Request

from auction_api.app.services.auction_service import AuctionService


def get_auction_service(request: Request) -> AuctionService:
    """Return the service built for this application in ``create_app``."""
    return request.app.state.auction_service
