from __future__ import annotations

from churchops.core.errors import Forbidden
from churchops.core.roles import FEATURES, has_feature
from churchops.models import Profile


def check_feature(profile: Profile, code: str) -> None:
    if not has_feature(profile.role, code):
        description = FEATURES[code].description or code
        raise Forbidden(f"You don't have permission to do this: {description.lower()}")
