"""
Auction endpoints.

The paths and verbs (``GET /viewAll``, ``POST /addNew``, ``POST
/placeBid``, ``POST /deleteItem``) are kept from the first version of
the API so existing clients continue to work; identifiers travel in the
request body rather than the URL.  Handlers only translate between HTTP
and ``AuctionService``.  Errors raised by the service are rendered by
the exception handlers registered in ``main.create_app``.
"""

from typing import Dict, Type

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel

from auction_api.app.api.deps import get_auction_service
from auction_api.app.schemas.auction import (
    AuctionCreate,
    AuctionDelete,
    AuctionListResponse,
    AuctionResponse,
    BidCreate,
)
from auction_api.app.services.auction_service import AuctionService


router = APIRouter()

# Request body schema per route path; used to list the required fields
# when a body fails validation.
REQUEST_SCHEMAS: Dict[str, Type[BaseModel]] = {
    "/addNew": AuctionCreate,
    "/placeBid": BidCreate,
    "/deleteItem": AuctionDelete,
}


@router.get("/viewAll", response_model=AuctionListResponse)
async def view_all(service: AuctionService = Depends(get_auction_service)) -> AuctionListResponse:
    """Return every auction, newest first."""
    auctions = await service.list_auctions()
    message = "Auctions retrieved successfully" if auctions else "No auctions found"
    return AuctionListResponse(message=message, count=len(auctions), data=auctions)


@router.post("/addNew", response_model=AuctionResponse, status_code=status.HTTP_201_CREATED)
async def add_new(
    auction_in: AuctionCreate,
    service: AuctionService = Depends(get_auction_service),
) -> AuctionResponse:
    """Create a new auction.

    The current bid starts at ``startingBid`` and ``bidderName`` stays
    ``null`` until the first bid.  ``auctionEndDate`` must be in the
    future.
    """
    auction = await service.create_auction(auction_in)
    return AuctionResponse(message="Auction created successfully", data=auction)


@router.post("/placeBid", response_model=AuctionResponse)
async def place_bid(
    bid: BidCreate,
    service: AuctionService = Depends(get_auction_service),
) -> AuctionResponse:
    """Place a bid that must beat the current bid before the auction ends."""
    auction = await service.place_bid(bid)
    return AuctionResponse(message="Bid placed successfully", data=auction)


@router.post("/deleteItem", response_model=AuctionResponse)
async def delete_item(
    request_in: AuctionDelete,
    service: AuctionService = Depends(get_auction_service),
) -> AuctionResponse:
    """Delete an auction and return the removed record."""
    auction = await service.delete_auction(request_in.auction_id)
    return AuctionResponse(message="Auction deleted successfully", data=auction)


@router.get("/auctions/{auction_id}", response_model=AuctionResponse)
async def get_auction(
    auction_id: str = Path(..., description="ID of the auction"),
    service: AuctionService = Depends(get_auction_service),
) -> AuctionResponse:
    """Retrieve a single auction by its ID."""
    auction = await service.get_auction(auction_id)
    return AuctionResponse(message="Auction retrieved successfully", data=auction)
