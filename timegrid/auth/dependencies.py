from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from timegrid.auth.schemas import CurrentUser
from timegrid.auth.security import decode_access_token


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
) -> CurrentUser:
    """Resolve the caller from the access token issued by the auth service."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("user_id") or payload.get("sub")
    role_name = payload.get("role")
    if not user_id_str or not role_name:
        raise credentials_exception

    tenant_id: Optional[UUID] = None
    try:
        user_id = UUID(user_id_str)
        tenant_id_str = payload.get("tenant_id")
        if tenant_id_str:
            tenant_id = UUID(tenant_id_str)
    except ValueError:
        raise credentials_exception

    return CurrentUser(id=user_id, tenant_id=tenant_id, role=role_name)
