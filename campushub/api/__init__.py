"""FastAPI routers for the campushub API."""

from __future__ import annotations

from fastapi import APIRouter

from campushub.api import clubs, events, identities, members, registrations

router = APIRouter(prefix="/api/v1")

router.include_router(identities.router)
router.include_router(clubs.router)
router.include_router(members.router)
router.include_router(events.router)
router.include_router(registrations.router)

__all__ = ["router"]
