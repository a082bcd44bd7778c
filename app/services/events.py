"""
Domain events emitted by marketplace state changes.

Services collect these while mutating state and hand them to
``NotificationService.dispatch`` once the state change is committed.
Each event names the affected party through its ORM objects, which stay
loaded after commit (sessions use ``expire_on_commit=False``).
"""

from dataclasses import dataclass

from app.models.itinerary import Itinerary
from app.models.proposal import Proposal
from app.models.transport_request import TransportRequest


@dataclass(frozen=True)
class ProposalCreated:
    """Notifies the traveler."""
    proposal: Proposal


@dataclass(frozen=True)
class ProposalAccepted:
    """Notifies the client."""
    proposal: Proposal


@dataclass(frozen=True)
class ProposalRejected:
    """Notifies the client, with the traveler's message."""
    proposal: Proposal


@dataclass(frozen=True)
class ProposalAutoCancelled:
    """A sibling proposal lost because the request was fulfilled; notifies its traveler."""
    proposal: Proposal


@dataclass(frozen=True)
class RequestCancelled:
    """The client withdrew the request; notifies the traveler of each pending proposal."""
    request: TransportRequest
    proposal: Proposal


@dataclass(frozen=True)
class ItineraryCancelled:
    """The traveler withdrew the itinerary; notifies the client of each pending proposal."""
    itinerary: Itinerary
    proposal: Proposal


DomainEvent = (
    ProposalCreated
    | ProposalAccepted
    | ProposalRejected
    | ProposalAutoCancelled
    | RequestCancelled
    | ItineraryCancelled
)
