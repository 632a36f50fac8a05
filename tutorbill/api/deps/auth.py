# tutorbill/api/deps/auth.py - Bearer token guard for admin routes
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Dict, Any

from tutorbill.core.config import settings
from tutorbill.core.security import decode_token

security = HTTPBearer()


def require_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    """
    Decode JWT and return the admin claims.
    Returns: {"email": str, "claims": dict}
    """
    claims = decode_token(credentials.credentials)

    subject = claims.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject"
        )

    if subject.lower() != str(settings.ADMIN_EMAIL).lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not an administrator"
        )

    return {"email": subject, "claims": claims}
