"""Middleware module for rental booking API."""

from .auth import get_current_user_id, AuthenticationError
from .logging import RequestResponseLoggingMiddleware

__all__ = [
    "get_current_user_id",
    "AuthenticationError",
    "RequestResponseLoggingMiddleware"
]
