from pydantic import BaseModel, Field


class PendingBooking(BaseModel):
    """
    A booking the user started while signed out, kept across the login redirect.
    'type' is the service type (homestay, driver, eatery...), 'item' the selection.
    """

    type: str = Field(..., min_length=1, max_length=50)
    item: dict = Field(default_factory=dict)
