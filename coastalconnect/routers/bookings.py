from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_session_store, require_permission
from ..schemas.booking import PendingBooking
from ..session import SessionStore

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("/pending")
def stash_pending_booking(
    booking: PendingBooking,
    redirect: str | None = None,
    store: SessionStore = Depends(get_session_store),
):
    """
    Keeps a booking started by a signed-out visitor until they have logged in.
    Answers with the login page to send them to.
    """
    if store.is_authenticated:
        raise HTTPException(status_code=409, detail="Already signed in, book directly")

    store.stash_pending_booking(booking)
    query = urlencode({"redirect": redirect or f"/{booking.type}s"})
    return {"success": True, "data": {"redirect": f"{store.settings.LOGIN_PATH}?{query}"}}


@router.get("/continue", dependencies=[Depends(require_permission("booking:create"))])
def continue_pending_booking(store: SessionStore = Depends(get_session_store)):
    """Hands the stashed booking back once, with the listing page to finish it on."""
    booking = store.consume_pending_booking()
    if booking is None:
        raise HTTPException(status_code=404, detail="No pending booking")
    return {"success": True, "data": {"booking": booking.model_dump(), "redirect": f"/{booking.type}s"}}
