from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from fleetlink.utils.security import Principal, RoleName, principal_from_token
from fleetlink.utils.exceptions import UnauthorizedException, ForbiddenException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current Principal ────────────────────────────────────────────────────
def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """
    Validate the JWT Bearer token and return the caller (user, tenant, role).
    The tenant id always comes from the token, never from the request body.
    Raises 401 if token is missing, invalid, or expired.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")
    return principal_from_token(credentials.credentials)


# ─── Role Guards ──────────────────────────────────────────────────────────────
def require_roles(*roles: RoleName):
    """
    Factory that returns a FastAPI dependency requiring one of the given roles.

    Usage:
        @router.delete("/{id}")
        def remove(principal = Depends(require_roles(RoleName.ADMIN))):
            ...
    """
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise ForbiddenException(
                f"This action requires one of these roles: {[r.value for r in roles]}"
            )
        return principal
    return dependency


# ─── Pre-built role dependencies ─────────────────────────────────────────────
get_any_member       = require_roles(RoleName.ADMIN, RoleName.MANAGER, RoleName.OPERATOR)
get_manager_or_admin = require_roles(RoleName.ADMIN, RoleName.MANAGER)
get_admin            = require_roles(RoleName.ADMIN)
