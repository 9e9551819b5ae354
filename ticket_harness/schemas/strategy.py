"""
Locking strategies under test and the request shape each one is reached by.
"""

from enum import Enum

from pydantic import BaseModel


class StrategyIdentifier(str, Enum):
    IN_PROCESS_LOCK = "in-process-lock"
    ROW_LOCK = "row-lock"
    OPTIMISTIC_LOCK = "optimistic-lock"
    DISTRIBUTED_LOCK = "distributed-lock"
    QUEUED_ASYNC = "queued-async"
    UNLOCKED = "unlocked"

    @property
    def is_asynchronous(self) -> bool:
        """Queue-backed targets accept first and update inventory later."""
        return self is StrategyIdentifier.QUEUED_ASYNC


class RequestTemplate(BaseModel):
    path: str
    method: str = "POST"
    query_params: tuple[str, ...] = ("userId",)

    model_config = {"frozen": True}

    def render(self, ticket_id: int, user_id: str) -> tuple[str, dict[str, str]]:
        """Concrete path and query string for one attempt."""
        params = {name: user_id for name in self.query_params}
        return self.path.format(ticket_id=ticket_id), params
