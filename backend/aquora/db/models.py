from aquora.auth.models import RefreshToken, User  # noqa: F401
from aquora.societies.models import Society, SocietyRoleAssignment  # noqa: F401
