"""
Top‑level API router.

Aggregates the endpoint routers under the ``/api`` prefix used by the
browser client.  The health check is also exposed without the prefix
(``GET /health``) for load balancers; see ``main.create_app``.
"""

from fastapi import APIRouter

from .endpoints import auctions, health


API_PREFIX = "/api"

router = APIRouter()

router.include_router(auctions.router, tags=["auctions"])
router.include_router(health.router, tags=["health"])
