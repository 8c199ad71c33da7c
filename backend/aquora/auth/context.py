import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from aquora.auth import repository
from aquora.auth.models import User
from aquora.auth.roles import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveContext:
    effective_role: UserRole
    effective_society_id: str | None


def resolve_effective_context(db: Session, user: User) -> EffectiveContext:
    """Role and society a user acts as.

    An active officer assignment (PRESIDENT/SECRETARY of one society) takes
    precedence over the account's static role and stored society. When more
    than one assignment is active the most recently assigned one is used.
    """
    assignments = repository.list_active_assignments_for_user(db, user.id)

    if len(assignments) > 1:
        logger.warning(
            "Integrity fault: user %s has %d active society role assignments; using %s",
            user.id,
            len(assignments),
            assignments[0].id,
        )

    if assignments:
        latest = assignments[0]
        return EffectiveContext(
            effective_role=UserRole(latest.role),
            effective_society_id=latest.society_id,
        )

    return EffectiveContext(
        effective_role=UserRole(user.role),
        effective_society_id=user.society_id,
    )
