"""Abstract base class for ticket sources."""

from abc import ABC, abstractmethod

from jtl.models import TicketView


class TicketSource(ABC):
    @abstractmethod
    def get_ticket(self, ticket_key: str) -> TicketView: ...

    @abstractmethod
    def current_user(self) -> str:
        """Display name of the authenticated user; doubles as a connection check."""
