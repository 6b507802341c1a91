from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core import config
from app.services.project_registry import ProjectRegistry

# Bearer token header
BEARER_SCHEME = HTTPBearer(auto_error=False)


class Auth:
    @staticmethod
    def create_access_token(tenant_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token whose subject is the tenant id.
        """
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode: Dict[str, Any] = {"sub": tenant_id, "exp": expire}
        return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Optional[str]:
        """
        Return the tenant id carried by a token, or None if the token is invalid.
        """
        try:
            payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
        except JWTError:
            return None
        tenant_id = payload.get("sub")
        return tenant_id if isinstance(tenant_id, str) and tenant_id else None


async def get_current_tenant(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(BEARER_SCHEME),
) -> str:
    """
    Resolve the tenant id of the request from its bearer token.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token is missing",
        )

    tenant_id = Auth.decode_access_token(credentials.credentials)
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token",
        )

    return tenant_id


async def get_registry(
    request: Request,
    tenant_id: str = Depends(get_current_tenant),
) -> ProjectRegistry:
    """
    Get the project registry of the current tenant's session.
    """
    return await request.app.state.sessions.open(tenant_id)
