"""
Pydantic schemas for auction records.

Request bodies and responses use camelCase field names (``itemName``,
``startingBid``...) to stay compatible with existing browser clients,
while Python code uses snake_case attributes.  ``populate_by_name``
allows either form when constructing models in code and tests.

Blank text fields are reported with the ``missing`` error type, the
same as absent ones, so the API answers both with "Missing required
fields".
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError("missing", "Field required")
    return value


def _reject_bool(value):
    # JSON true/false would otherwise be read as 1.0/0.0
    if isinstance(value, bool):
        raise PydanticCustomError("float_type", "Input should be a valid number")
    return value


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        raise PydanticCustomError(
            "datetime_out_of_range", "Date cannot be represented in UTC"
        ) from None


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }

    @classmethod
    def required_fields(cls) -> List[str]:
        """Return the public (camelCase) names of the required fields."""
        return list(cls.model_json_schema(by_alias=True).get("required", []))


class AuctionCreate(CamelModel):
    """Schema for creating a new auction."""

    item_name: str = Field(..., examples=["Vintage camera"])
    item_category: str = Field(..., examples=["Electronics"])
    starting_bid: float = Field(..., ge=0, allow_inf_nan=False, examples=[100])
    auction_end_date: datetime = Field(..., examples=["2026-12-01T18:00:00Z"])
    item_description: str = Field(..., examples=["Working 35mm film camera with original case"])

    @field_validator("item_name", "item_category", "item_description")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("starting_bid", mode="before")
    @classmethod
    def validate_starting_bid(cls, v):
        return _reject_bool(v)

    @field_validator("auction_end_date")
    @classmethod
    def validate_end_date(cls, v: datetime) -> datetime:
        return _to_utc(v)


class BidCreate(CamelModel):
    """Schema for placing a bid on an auction."""

    auction_id: str
    bid_amount: float = Field(..., gt=0, allow_inf_nan=False, examples=[150])
    bidder_name: str = Field(..., examples=["Alice"])

    @field_validator("auction_id", "bidder_name")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("bid_amount", mode="before")
    @classmethod
    def validate_bid_amount(cls, v):
        return _reject_bool(v)


class AuctionDelete(CamelModel):
    """Schema for deleting an auction."""

    auction_id: str

    @field_validator("auction_id")
    @classmethod
    def validate_auction_id(cls, v: str) -> str:
        return _required_text(v)


class AuctionRead(CamelModel):
    """Schema for returning an auction record.

    ``ended`` is computed when the record is read and is never stored.
    """

    id: str
    item_name: str
    item_category: str
    starting_bid: float
    current_bid: float
    bidder_name: Optional[str] = None
    auction_end_date: datetime
    item_description: str
    created_at: datetime
    updated_at: datetime
    ended: bool = False


class AuctionResponse(BaseModel):
    message: str
    data: AuctionRead


class AuctionListResponse(BaseModel):
    message: str
    count: int
    data: List[AuctionRead]


class MessageResponse(BaseModel):
    message: str
