"""
Google OAuth credentials and API services for a single authorised user.

A GoogleAuthContext is the one acquisition path for credentials: it builds
them lazily, refreshes them when they expire, and reports every rotation to
an explicit on_token_refresh callback so the caller decides how to persist it.
"""

import logging
import os
import threading
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from core.config import OAuthSettings

logger = logging.getLogger(__name__)

TokenRefreshCallback = Callable[[Credentials], None]


class GoogleAuthenticationError(Exception):
    """Credentials are missing, invalid, or could not be refreshed."""


def save_token_file(token_file: str) -> TokenRefreshCallback:
    """
    Build an on_token_refresh callback that writes credentials as JSON.

    Args:
        token_file: Path of the authorized-user JSON file

    Returns:
        Callback suitable for GoogleAuthContext(on_token_refresh=...)
    """

    def _save(credentials: Credentials) -> None:
        directory = os.path.dirname(token_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(token_file, "w") as f:
            f.write(credentials.to_json())
        logger.info(f"Token refreshed, saved credentials to {token_file}")

    return _save


class GoogleAuthContext:
    """
    Process-scoped holder of credentials and built API services.

    Services are built once per (name, version) and reused until invalidate()
    is called, avoiding a discovery handshake on every tool call.
    """

    def __init__(
        self,
        settings: OAuthSettings,
        on_token_refresh: Optional[TokenRefreshCallback] = None,
        credentials: Optional[Credentials] = None,
    ):
        self.settings = settings
        self.on_token_refresh = on_token_refresh
        self._credentials = credentials
        self._services: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def _load_credentials(self) -> Credentials:
        token_file = self.settings.token_file
        if token_file and os.path.exists(token_file) and os.path.getsize(token_file) > 0:
            logger.info(f"Loading credentials from {token_file}")
            try:
                return Credentials.from_authorized_user_file(token_file)
            except ValueError as e:
                raise GoogleAuthenticationError(
                    f"Token file '{token_file}' is not a valid authorized-user file: {e}"
                ) from e

        if self.settings.is_configured():
            logger.info("Building credentials from GOOGLE_OAUTH_* environment variables")
            return Credentials(
                token=self.settings.access_token,
                refresh_token=self.settings.refresh_token,
                token_uri=self.settings.token_uri,
                client_id=self.settings.client_id,
                client_secret=self.settings.client_secret,
            )

        raise GoogleAuthenticationError(
            "No Google credentials configured. Set GOOGLE_OAUTH_CLIENT_ID, "
            "GOOGLE_OAUTH_CLIENT_SECRET and GOOGLE_OAUTH_REFRESH_TOKEN, "
            f"or provide an authorized-user token file at '{token_file}'."
        )

    def get_credentials(self) -> Credentials:
        """Return valid credentials, refreshing them if they have expired."""
        with self._lock:
            if self._credentials is None:
                self._credentials = self._load_credentials()

            credentials = self._credentials
            if not credentials.valid:
                previous_token = credentials.token
                try:
                    credentials.refresh(Request())
                except RefreshError as e:
                    raise GoogleAuthenticationError(
                        f"Failed to refresh Google credentials: {e}"
                    ) from e
                if credentials.token != previous_token and self.on_token_refresh:
                    self.on_token_refresh(credentials)

            return credentials

    def has_scopes(self, acceptable_scopes: Iterable[str]) -> bool:
        """
        Check that the credentials carry at least one of the given scopes.

        Credentials built from a bare refresh token don't know their scopes;
        those are trusted and the API reports any missing permission.
        """
        granted = self.get_credentials().scopes
        if not granted:
            return True
        return any(scope in granted for scope in acceptable_scopes)

    def get_service(self, service_name: str, version: str) -> Any:
        """Return a cached API service built with current credentials."""
        credentials = self.get_credentials()
        key = (service_name, version)
        with self._lock:
            if key not in self._services:
                logger.info(f"Building {service_name} {version} service")
                self._services[key] = build(
                    service_name, version, credentials=credentials, cache_discovery=False
                )
            return self._services[key]

    def invalidate(self) -> None:
        """Drop cached credentials and services, e.g. after credentials rotate elsewhere."""
        with self._lock:
            self._credentials = None
            self._services.clear()
        logger.info("Google auth context invalidated")
