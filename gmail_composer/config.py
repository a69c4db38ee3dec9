"""
Configuration module for the Gmail composer client.
Handles environment variables and constants.
"""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# LOGGING
# =============================================================================

logger = logging.getLogger(__name__)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =============================================================================
# ENVIRONMENT
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
load_dotenv(ENV_FILE)

CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

# 0 lets the local consent server pick any free port
OAUTH_REDIRECT_PORT = int(os.getenv("OAUTH_REDIRECT_PORT", "0"))

# =============================================================================
# OAUTH CONFIGURATION
# =============================================================================

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
REVOKE_URI = "https://oauth2.googleapis.com/revoke"
USERINFO_ENDPOINT = "https://www.googleapis.com/oauth2/v3/userinfo"

SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
]

# Renew this many seconds before the access token expires
RENEWAL_MARGIN_SECONDS = 300

# Used when the provider omits expires_in
DEFAULT_EXPIRES_IN = 3600

# =============================================================================
# SESSION PERSISTENCE
# =============================================================================

SESSION_FILE = Path(
    os.getenv("GMAIL_COMPOSER_SESSION_FILE", str(PROJECT_ROOT / "session.json"))
)
SESSION_KEY = "google_session"

# =============================================================================
# API CONFIGURATION
# =============================================================================

GMAIL_ENDPOINT = "https://gmail.googleapis.com/gmail/v1/users/me"

# Request timeout in seconds
REQUEST_TIMEOUT = 30

# Max concurrent requests (respect rate limits)
MAX_PARALLEL_REQUESTS = 5

# Drafts fetched per listing
DRAFTS_PAGE_SIZE = 20
