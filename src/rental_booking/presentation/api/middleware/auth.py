"""
Authentication middleware for the rental booking API.

Tokens are issued by the identity service; this module only verifies the
bearer JWT on incoming requests and extracts the caller's user ID from its
``sub`` claim.
"""

from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt

from ..config import Settings, get_settings


# Security scheme for bearer token authentication
security = HTTPBearer(auto_error=False)


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


def decode_user_id(token: str, secret_key: str, algorithm: str) -> UUID:
    """
    Decode a bearer token and return the user ID it was issued for.

    Args:
        token: Encoded JWT
        secret_key: Key the token was signed with
        algorithm: Signing algorithm

    Returns:
        UUID: The authenticated user's ID

    Raises:
        AuthenticationError: if the token is expired, malformed or lacks a subject
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except JWTError as e:
        raise AuthenticationError(f"Invalid authentication token: {str(e)}") from e

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid token: missing subject")

    try:
        return UUID(str(subject))
    except ValueError as e:
        raise AuthenticationError("Invalid token: subject is not a user ID") from e


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings)
) -> UUID:
    """
    FastAPI dependency returning the ID of the authenticated caller.

    Raises:
        AuthenticationError: rendered as 401 by the application's exception handler
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing authentication token")

    return decode_user_id(credentials.credentials, settings.secret_key, settings.algorithm)
