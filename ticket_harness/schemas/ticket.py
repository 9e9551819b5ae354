"""
Pydantic schema for the ticket state returned by the target service.
"""

from pydantic import BaseModel, Field


class TicketSnapshot(BaseModel):
    """
    Inventory state of one ticket at a point in time.

    Only stock and reservation count are read; any other key the target
    returns is ignored.
    """

    # Not bounded below: a buggy target may report negative stock.
    stock: int
    reservation_count: int = Field(..., ge=0, alias="reservationCount")

    model_config = {"frozen": True, "populate_by_name": True}

    @classmethod
    def zero(cls) -> "TicketSnapshot":
        """Baseline used when the initial read fails."""
        return cls(stock=0, reservation_count=0)
