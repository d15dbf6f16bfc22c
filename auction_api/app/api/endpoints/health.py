"""
Health check endpoint.
"""

from fastapi import APIRouter

from auction_api.app.schemas.auction import MessageResponse


router = APIRouter()


@router.get("/health", response_model=MessageResponse)
async def health() -> MessageResponse:
    return MessageResponse(message="Server is running")
