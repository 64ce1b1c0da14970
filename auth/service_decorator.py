"""
Service injection for MCP tools.

require_google_service resolves an authenticated API service from the
process-scoped GoogleAuthContext and passes it to the tool as its first
argument. The service parameter is hidden from the tool's public signature.
"""

import asyncio
import functools
import inspect
import logging
from typing import Optional

from auth.google_auth import GoogleAuthContext, GoogleAuthenticationError, save_token_file
from core.config import SCOPE_GROUPS, get_oauth_settings

logger = logging.getLogger(__name__)

SERVICE_VERSIONS = {
    "docs": ("docs", "v1"),
    "drive": ("drive", "v3"),
}

_auth_context: Optional[GoogleAuthContext] = None


def set_auth_context(context: Optional[GoogleAuthContext]) -> None:
    """Install the auth context used by every decorated tool (None resets it)."""
    global _auth_context
    _auth_context = context


def get_auth_context() -> GoogleAuthContext:
    """Return the installed auth context, creating one from the environment on first use."""
    global _auth_context
    if _auth_context is None:
        settings = get_oauth_settings()
        _auth_context = GoogleAuthContext(
            settings, on_token_refresh=save_token_file(settings.token_file)
        )
    return _auth_context


def require_google_service(service_type: str, scope_group: str):
    """
    Decorator injecting an authenticated Google API service.

    Args:
        service_type: 'docs' or 'drive'
        scope_group: Key of SCOPE_GROUPS the credentials must satisfy
    """
    if service_type not in SERVICE_VERSIONS:
        raise ValueError(f"Unknown service type '{service_type}'")
    if scope_group not in SCOPE_GROUPS:
        raise ValueError(f"Unknown scope group '{scope_group}'")

    service_name, version = SERVICE_VERSIONS[service_type]

    def decorator(func):
        signature = inspect.signature(func)
        params = list(signature.parameters.values())
        if not params or params[0].name != "service":
            raise TypeError(f"{func.__name__} must take 'service' as its first parameter")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            context = get_auth_context()
            if not await asyncio.to_thread(context.has_scopes, SCOPE_GROUPS[scope_group]):
                raise GoogleAuthenticationError(
                    f"Credentials lack the '{scope_group}' scope required by {func.__name__}"
                )
            service = await asyncio.to_thread(context.get_service, service_name, version)
            return await func(service, *args, **kwargs)

        wrapper.__signature__ = signature.replace(parameters=params[1:])
        return wrapper

    return decorator
