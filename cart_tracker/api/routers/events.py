# cart_tracker/api/routers/events.py
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from cart_tracker.api.dependencies import get_existing_session_id, get_service, get_session_id
from cart_tracker.domain.schemas import (
    CONVERTING_ORDER_STATUSES,
    CartAddEvent,
    CartAddIn,
    OrderCompletedIn,
)
from cart_tracker.services.tracker_service import TrackerService
from cart_tracker.utils.client_info import resolve_client_ip

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/cart-add", status_code=202)
def cart_add(
    payload: CartAddIn,
    request: Request,
    session_id: str = Depends(get_session_id),
    svc: TrackerService = Depends(get_service),
):
    """
    Produkt dodany do koszyka.
    Sesja z naglowka/cookie, user agent i IP z requestu.
    """
    remote_addr = request.client.host if request.client else None
    try:
        event = CartAddEvent(
            session_id=session_id,
            user_agent=request.headers.get("user-agent"),
            ip_address=resolve_client_ip(request.headers, remote_addr)[:45] or None,
            **payload.model_dump(),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        svc.record_cart_add(event)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Storage unavailable")
    return {"status": "recorded", "session_id": session_id}


@router.post("/order-completed", status_code=202)
def order_completed(
    payload: OrderCompletedIn,
    session_id: str | None = Depends(get_existing_session_id),
    svc: TrackerService = Depends(get_service),
):
    """
    Zamowienie oplacone/zrealizowane.
    Sesja tylko jesli request ja niesie, tutaj nie tworzymy nowej.
    """
    status = (payload.status or "completed").lower()
    if status not in CONVERTING_ORDER_STATUSES:
        return {"status": "ignored", "order_id": payload.order_id}

    try:
        converted = svc.record_order_completed(payload.order_id, session_id=session_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Storage unavailable")
    return {"status": "reconciled", "order_id": payload.order_id, "converted": converted}
