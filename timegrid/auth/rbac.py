from fastapi import Depends, HTTPException, status

from timegrid.auth.dependencies import get_current_user
from timegrid.auth.schemas import CurrentUser

SCHEDULER_ROLES = ("SUPER_ADMIN", "ADMIN", "SCHEDULER")


def require_roles(*roles: str):
    """
    Dependency factory to restrict a route to the given roles.

    Example:
        Depends(require_roles("ADMIN", "SCHEDULER"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker
