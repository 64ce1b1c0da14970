"""
Shared configuration for the Google Docs marked-text MCP server.

Values come from the environment, after loading a .env file from the project
root when one exists.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
load_dotenv(dotenv_path=dotenv_path)

DEFAULT_TOKEN_FILE = os.path.join(".credentials", "token.json")
VALID_TRANSPORTS = ("stdio", "streamable-http")

DOCS_READONLY_SCOPE = "https://www.googleapis.com/auth/documents.readonly"
DOCS_WRITE_SCOPE = "https://www.googleapis.com/auth/documents"
DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"
DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"

# Scope groups referenced by require_google_service; any listed scope satisfies the group
SCOPE_GROUPS = {
    "docs_read": (DOCS_READONLY_SCOPE, DOCS_WRITE_SCOPE, DRIVE_SCOPE),
    "docs_write": (DOCS_WRITE_SCOPE, DRIVE_SCOPE),
    "drive_read": (DRIVE_READONLY_SCOPE, DRIVE_SCOPE),
}

WORKSPACE_MCP_PORT = int(os.getenv("PORT", os.getenv("WORKSPACE_MCP_PORT", 8000)))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_current_transport_mode = os.getenv("WORKSPACE_MCP_TRANSPORT", "stdio")


@dataclass(frozen=True)
class OAuthSettings:
    """OAuth client and refresh-token settings for the single authorised user."""

    client_id: Optional[str]
    client_secret: Optional[str]
    refresh_token: Optional[str]
    access_token: Optional[str]
    token_file: str
    token_uri: str = "https://oauth2.googleapis.com/token"

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)


def get_oauth_settings() -> OAuthSettings:
    """Read OAuth settings from the environment."""
    return OAuthSettings(
        client_id=os.getenv("GOOGLE_OAUTH_CLIENT_ID"),
        client_secret=os.getenv("GOOGLE_OAUTH_CLIENT_SECRET"),
        refresh_token=os.getenv("GOOGLE_OAUTH_REFRESH_TOKEN"),
        access_token=os.getenv("GOOGLE_OAUTH_ACCESS_TOKEN"),
        token_file=os.getenv("GOOGLE_TOKEN_FILE", DEFAULT_TOKEN_FILE),
    )


def set_transport_mode(mode: str):
    """Set the current transport mode."""
    global _current_transport_mode
    if mode not in VALID_TRANSPORTS:
        raise ValueError(
            f"Invalid transport '{mode}'. Valid transports: {', '.join(VALID_TRANSPORTS)}"
        )
    _current_transport_mode = mode


def get_transport_mode() -> str:
    """Get the current transport mode."""
    return _current_transport_mode
