from fastapi import APIRouter, Depends, Request

from app.api.auth import require_auth
from app.api.rate_limit import OFFER_SUBMIT_LIMIT, limiter
from app.domain.entities import AuthUser

from .common import OfferCreateRequest, get_services

router = APIRouter(tags=["offers"])


@router.post("/offers", status_code=201)
@limiter.limit(OFFER_SUBMIT_LIMIT)
async def create_offer(
    request: Request,
    payload: OfferCreateRequest,
    user: AuthUser = Depends(require_auth),
):
    offer = await get_services().offers.create(
        user, payload.shipment_id, payload.price, payload.notes
    )
    return {"offer": offer.to_dict()}


@router.post("/offers/{offer_id}/accept")
async def accept_offer(offer_id: int, user: AuthUser = Depends(require_auth)):
    offer = await get_services().offers.accept(offer_id, user)
    return {"message": "Offer accepted successfully", "offer": offer.to_dict()}


@router.post("/offers/{offer_id}/reject")
async def reject_offer(offer_id: int, user: AuthUser = Depends(require_auth)):
    offer = await get_services().offers.reject(offer_id, user)
    return {"message": "Offer rejected successfully", "offer": offer.to_dict()}
