"""
Visibility and privacy predicates.

Every read path that exposes a user, an itinerary or a request to a
third party goes through these functions.  A user's privacy choices are
read through ``VisibilitySettings``, which always exists: users without
a settings row get the default-constructed value (visible everywhere,
phone and email hidden).

The owner of a profile or listing always sees their own data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from app.models.user import MessagePermission, ProfileVisibility

if TYPE_CHECKING:
    from app.models.itinerary import Itinerary
    from app.models.transport_request import TransportRequest
    from app.models.user import User, UserSettings


@dataclass(frozen=True)
class VisibilitySettings:
    """Read-only snapshot of a user's privacy choices."""

    show_in_search_results: bool = True
    profile_visibility: ProfileVisibility = ProfileVisibility.PUBLIC
    message_permission: MessagePermission = MessagePermission.EVERYONE
    show_phone: bool = False
    show_email: bool = False
    show_stats: bool = True

    @classmethod
    def from_settings(cls, row: "UserSettings | None") -> "VisibilitySettings":
        if row is None:
            return cls()
        return cls(
            show_in_search_results=row.show_in_search_results,
            profile_visibility=ProfileVisibility(row.profile_visibility),
            message_permission=MessagePermission(row.message_permission),
            show_phone=row.show_phone,
            show_email=row.show_email,
            show_stats=row.show_stats,
        )

    @classmethod
    def of(cls, user: "User") -> "VisibilitySettings":
        return cls.from_settings(user.settings)


def _is_self(owner: "User", viewer: "User | None") -> bool:
    return viewer is not None and viewer.id == owner.id


# ---------------------------------------------------------------------------
# User-level predicates
# ---------------------------------------------------------------------------


def is_search_visible(user: "User") -> bool:
    """Whether *user* (and their listings) may appear in search results."""
    return VisibilitySettings.of(user).show_in_search_results


def is_profile_visible_for(owner: "User", viewer: "User | None") -> bool:
    """
    Profile visibility tiers:

    * public:         everyone, including anonymous visitors
    * verified_only:  logged-in viewers with email and phone verified
    * private:        the owner only
    """
    if _is_self(owner, viewer):
        return True

    tier = VisibilitySettings.of(owner).profile_visibility
    if tier == ProfileVisibility.PUBLIC:
        return True
    if viewer is None:
        return False
    if tier == ProfileVisibility.VERIFIED_ONLY:
        return viewer.is_verified
    return False


def can_receive_message_from(owner: "User", sender: "User") -> bool:
    """Whether *sender* may start a conversation with *owner*."""
    if _is_self(owner, sender):
        return True
    permission = VisibilitySettings.of(owner).message_permission
    if permission == MessagePermission.NO_ONE:
        return False
    if permission == MessagePermission.VERIFIED_ONLY:
        return sender.is_verified
    return True


def is_phone_visible_for(owner: "User", viewer: "User | None") -> bool:
    if _is_self(owner, viewer):
        return True
    return VisibilitySettings.of(owner).show_phone


def is_email_visible_for(owner: "User", viewer: "User | None") -> bool:
    if _is_self(owner, viewer):
        return True
    return VisibilitySettings.of(owner).show_email


def are_stats_visible_for(owner: "User", viewer: "User | None") -> bool:
    if _is_self(owner, viewer):
        return True
    return VisibilitySettings.of(owner).show_stats


# ---------------------------------------------------------------------------
# Listing predicates & filters
# ---------------------------------------------------------------------------


def _is_listing_visible_for(owner: "User", viewer: "User | None") -> bool:
    if _is_self(owner, viewer):
        return True
    if not is_search_visible(owner):
        return False
    return is_profile_visible_for(owner, viewer)


def is_itinerary_visible_for(itinerary: "Itinerary", viewer: "User | None") -> bool:
    return _is_listing_visible_for(itinerary.owner, viewer)


def is_request_visible_for(request: "TransportRequest", viewer: "User | None") -> bool:
    return _is_listing_visible_for(request.owner, viewer)


def filter_visible_itineraries(
    itineraries: Iterable["Itinerary"], viewer: "User | None",
) -> list["Itinerary"]:
    """Keep the itineraries *viewer* may see, preserving order."""
    return [i for i in itineraries if is_itinerary_visible_for(i, viewer)]


def filter_visible_requests(
    requests: Iterable["TransportRequest"], viewer: "User | None",
) -> list["TransportRequest"]:
    """Keep the requests *viewer* may see, preserving order."""
    return [r for r in requests if is_request_visible_for(r, viewer)]
