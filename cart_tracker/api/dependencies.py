# cart_tracker/api/dependencies.py
import secrets

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from cart_tracker.data.database import get_db
from cart_tracker.services.order_client import OrderClient
from cart_tracker.services.product_client import ProductClient
from cart_tracker.services.tracker_service import TrackerService

SESSION_HEADER = "X-Session-Id"
SESSION_COOKIE = "cart_session"
# tyle miesci kolumna abandoned_carts.session_id
SESSION_MAX_LENGTH = 255


def get_service(db: Session = Depends(get_db)) -> TrackerService:
    return TrackerService(
        db=db,
        product_client=ProductClient(),
        order_client=OrderClient(),
    )


def get_existing_session_id(request: Request) -> str | None:
    """
    Sesja z naglowka albo cookie, bez generowania nowej.
    Za dlugi identyfikator -> 422.
    """
    session_id = request.headers.get(SESSION_HEADER) or request.cookies.get(SESSION_COOKIE)
    if not session_id:
        return None

    if len(session_id) > SESSION_MAX_LENGTH:
        raise HTTPException(
            status_code=422,
            detail=f"Session id longer than {SESSION_MAX_LENGTH} characters",
        )
    return session_id


def get_session_id(
    response: Response,
    session_id: str | None = Depends(get_existing_session_id),
) -> str:
    """
    Anonimowa sesja z naglowka albo cookie.
    Jesli nie ma zadnej, generujemy nowy token i ustawiamy cookie.
    """
    if session_id:
        return session_id

    session_id = secrets.token_hex(16)
    response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return session_id
