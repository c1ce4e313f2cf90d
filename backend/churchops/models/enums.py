import enum


class AssignmentStatus(str, enum.Enum):
    # NULL in the database means "assigned, not invited yet"
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class NotificationType(str, enum.Enum):
    POSITION_INVITATION = "position_invitation"
    INVITATION_RESPONSE = "invitation_response"
    UNFILLED_POSITIONS = "unfilled_positions"
