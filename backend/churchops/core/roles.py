from dataclasses import dataclass


@dataclass(frozen=True)
class FeatureDef:
    code: str
    roles: frozenset[str]
    description: str | None = None


ADMIN_ROLES = frozenset({"owner", "admin"})
MANAGE_ROLES = frozenset({"owner", "admin", "leader"})
VIEW_EVENT_ROLES = frozenset({"owner", "admin", "leader", "volunteer"})

# Added a new guarded feature -> add it here -> call check_feature() in the handler.
FEATURES: dict[str, FeatureDef] = {
    f.code: f
    for f in [
        FeatureDef("viewEvents", VIEW_EVENT_ROLES, "See events, positions and eligible volunteers"),
        FeatureDef("createEvent", MANAGE_ROLES, "Create events"),
        FeatureDef("editEvent", MANAGE_ROLES, "Edit event details"),
        FeatureDef("deleteEvent", ADMIN_ROLES, "Delete events"),
        FeatureDef("manageEventContent", MANAGE_ROLES, "Positions and assignments"),
        FeatureDef("sendInvitations", MANAGE_ROLES, "Send volunteer invitations"),
    ]
}


def has_feature(role: str | None, code: str) -> bool:
    feat = FEATURES.get(code)
    if feat is None or not role:
        return False
    return role in feat.roles
