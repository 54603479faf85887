from dataclasses import dataclass

from fastapi import Header, HTTPException, Request, status

from app.core.security import decode_access_token
from app.utils.logger import get_logger

logger = get_logger("auth.guard")


@dataclass(frozen=True)
class CurrentUser:
    """Staff member resolved from a verified access token."""

    id: int | None
    username: str
    role: str


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
) -> CurrentUser:
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization.split("Bearer ")[1].strip()
    payload = decode_access_token(token)

    username = payload.get("sub")
    role = payload.get("role")

    if not username or not role:
        logger.warning("Token without subject or role")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = CurrentUser(
        id=payload.get("user_id"),
        username=username,
        role=role,
    )

    request.state.user = user
    return user
