import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from jose import JWTError, jwt

from config import settings
from exceptions import IdentityError
from messaging import MessagingService

logger = logging.getLogger(__name__)


def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    """Issue a bearer token for a user already verified by the auth service."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.token_expire_minutes
    )
    return jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.secret_key,
        algorithm=settings.token_algorithm,
    )


async def verify_user(
    authorization: Annotated[str | None, Header()] = None
) -> int:
    if not authorization:
        raise IdentityError("Missing authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise IdentityError("Invalid authorization header format")

    try:
        payload = jwt.decode(
            parts[1],
            settings.secret_key,
            algorithms=[settings.token_algorithm],
        )
    except JWTError as e:
        logger.warning("Invalid token: %s", e)
        raise IdentityError("Invalid or expired token")

    subject = str(payload.get("sub", ""))
    if not subject.isdigit() or int(subject) <= 0:
        raise IdentityError("Token does not identify a user")

    return int(subject)


def get_messaging_service(request: Request) -> MessagingService:
    return request.app.state.messaging


UserDep = Annotated[int, Depends(verify_user)]
ServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]
