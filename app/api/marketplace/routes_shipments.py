from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.auth import require_auth
from app.domain.entities import AuthUser

from .common import StatusUpdateRequest, get_services

router = APIRouter(tags=["shipments"])


@router.get("/shipments")
async def list_shipments(user: AuthUser = Depends(require_auth)):
    shipments = await get_services().shipments.list(user)
    return {"shipments": [shipment.to_dict() for shipment in shipments]}


@router.post("/shipments", status_code=201)
async def create_shipment(
    payload: dict[str, Any] = Body(...),
    user: AuthUser = Depends(require_auth),
):
    shipment = await get_services().shipments.create(user, payload)
    return {"shipment": shipment.to_dict()}


@router.get("/shipments/{shipment_id}")
async def get_shipment(shipment_id: int, user: AuthUser = Depends(require_auth)):
    shipment, offers = await get_services().shipments.get(shipment_id, user)
    data = shipment.to_dict()
    data["offers"] = [offer.to_dict() for offer in offers]
    return {"shipment": data}


@router.delete("/shipments/{shipment_id}")
async def delete_shipment(shipment_id: int, user: AuthUser = Depends(require_auth)):
    await get_services().shipments.delete(shipment_id, user)
    return {"message": "Shipment deleted successfully"}


@router.patch("/shipments/{shipment_id}/status")
async def update_shipment_status(
    shipment_id: int,
    payload: StatusUpdateRequest,
    user: AuthUser = Depends(require_auth),
):
    shipment = await get_services().shipments.update_status(shipment_id, user, payload.status)
    return {"shipment": shipment.to_dict()}
