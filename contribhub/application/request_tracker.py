import logging
from collections import defaultdict
from typing import Dict, NamedTuple

from contribhub.domain.exceptions import SupersededRequestError

logger = logging.getLogger(__name__)


class Ticket(NamedTuple):
    resource: str
    sequence: int


class RequestTracker:
    """
    Latest-request-wins bookkeeping.

    Every fetch takes a ticket for its resource before it goes out. When the
    response comes back it is applied only if that ticket is still the newest
    one issued for the resource.
    """

    def __init__(self):
        self._latest: Dict[str, int] = defaultdict(int)

    def begin(self, resource: str) -> Ticket:
        self._latest[resource] += 1
        return Ticket(resource, self._latest[resource])

    def is_current(self, ticket: Ticket) -> bool:
        return self._latest[ticket.resource] == ticket.sequence

    def ensure_current(self, ticket: Ticket) -> None:
        if not self.is_current(ticket):
            logger.debug(f"Discarding stale response for '{ticket.resource}' (#{ticket.sequence}).")
            raise SupersededRequestError(ticket.resource)

    def supersede_all(self) -> None:
        """Invalidates every outstanding ticket, e.g. when the consuming view is torn down."""
        for resource in list(self._latest):
            self._latest[resource] += 1
