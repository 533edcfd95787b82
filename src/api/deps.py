"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.schemas.auth import UserContext
from src.services.profile_service import ProfileService


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Authenticate the request and make sure the user has a profile.

    This is the identity-establishment point of the API: the token is
    verified and ProfileService.ensure_profile runs here, so no other code
    path creates profiles as a side effect.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid authorization header format. Expected: Bearer <token>")

    try:
        user = decode_jwt(parts[1]).to_user_context()
    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise _unauthorized("Token has expired") from e
        raise _unauthorized(e.message) from e

    await ProfileService().ensure_profile(user.user_id, user.email)
    return user


CurrentUser = Annotated[UserContext, Depends(get_current_user)]
