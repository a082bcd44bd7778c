"""SQLAlchemy ORM models for ColisLink."""

from app.models.user import MessagePermission, ProfileVisibility, User, UserSettings
from app.models.itinerary import Itinerary, ItineraryStatus
from app.models.transport_request import RequestStatus, TransportRequest
from app.models.proposal import Proposal, ProposalStatus
from app.models.notification import Notification
from app.models.address import Address

__all__ = [
    "User", "UserSettings", "ProfileVisibility", "MessagePermission",
    "Itinerary", "ItineraryStatus",
    "TransportRequest", "RequestStatus",
    "Proposal", "ProposalStatus",
    "Notification",
    "Address",
]
