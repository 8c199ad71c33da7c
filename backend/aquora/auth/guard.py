from aquora.auth.roles import UserRole
from aquora.core.errors import Forbidden


def ensure_society_access(
    effective_role: UserRole | str,
    effective_society_id: str | None,
    requested_society_id: str,
) -> None:
    """Raise Forbidden unless the caller may act on ``requested_society_id``.

    Super-admins are not tenant-scoped. Everyone else must carry the
    requested society as their effective society.
    """
    if effective_role == UserRole.SUPER_ADMIN:
        return

    if not effective_society_id or effective_society_id != requested_society_id:
        raise Forbidden("Forbidden")
