"""API v1 router configuration.

This module aggregates all API v1 endpoint routers into a single router
that is mounted at the /api/v1 prefix.
"""

from fastapi import APIRouter

from .endpoints import contacts, populations, transmission

router = APIRouter()

router.include_router(
    populations.router,
    prefix="/populations",
    tags=["Populations"],
)

router.include_router(
    contacts.router,
    prefix="/contacts",
    tags=["Contacts"],
)

router.include_router(
    transmission.router,
    prefix="/transmission",
    tags=["Transmission"],
)
