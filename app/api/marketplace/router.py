from __future__ import annotations

from fastapi import APIRouter

from . import routes_notifications, routes_offers, routes_shipments

router = APIRouter(prefix="/api")

router.include_router(routes_shipments.router)
router.include_router(routes_offers.router)
router.include_router(routes_notifications.router)

__all__ = ["router"]
