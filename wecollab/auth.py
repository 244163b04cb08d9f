# wecollab/auth.py
# Bearer token verification. Tokens are issued by the external identity
# provider; this service only decodes them and exposes the caller.

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from wecollab.config import settings
from wecollab.middleware.error_handler import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    id: UUID
    email: Optional[str] = None

    @property
    def normalized_email(self) -> Optional[str]:
        return self.email.strip().lower() if self.email else None


def decode_token(token: Optional[str]) -> AuthUser:
    """Verify signature, expiry and (when configured) audience; return the caller."""
    if not token:
        raise AuthenticationError("Not authenticated")

    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        raise AuthenticationError()

    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError()
    try:
        user_id = UUID(str(sub))
    except ValueError:
        raise AuthenticationError()
    return AuthUser(id=user_id, email=payload.get("email"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")
    return decode_token(credentials.credentials)
