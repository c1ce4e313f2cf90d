from .enums import AssignmentStatus, EventStatus, NotificationType
from .church import Church
from .profile import Profile
from .ministry import Ministry, MinistryRole
from .ministry_member import MinistryMember, ministry_member_roles
from .event import Event
from .event_position import EventPosition
from .event_assignment import EventAssignment
from .volunteer_unavailability import VolunteerUnavailability
from .notification import Notification

__all__ = [
    "AssignmentStatus",
    "EventStatus",
    "NotificationType",
    "Church",
    "Profile",
    "Ministry",
    "MinistryRole",
    "MinistryMember",
    "ministry_member_roles",
    "Event",
    "EventPosition",
    "EventAssignment",
    "VolunteerUnavailability",
    "Notification",
]
