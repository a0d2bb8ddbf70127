"""
Token handling for the Cues CLI.
Access tokens live for an hour; the expiry is kept in config.json and the
refresh token is traded for a new access token once it has passed.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from config.settings import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, TOKEN_LIFETIME_HOURS
from modules.api import CuesClient
from modules.errors import ApiError, NotLoggedIn
from modules.store import CuesConfig, TokenStore, save_config

logger = logging.getLogger(__name__)


def token_expired(expires_at: str, now: Optional[datetime] = None) -> bool:
    """True if the RFC 3339 expiry has passed or can't be parsed."""
    if not expires_at:
        return True
    try:
        expiry = datetime.fromisoformat(expires_at.strip().replace("Z", "+00:00"))
    except ValueError:
        return True
    if expiry.tzinfo is None:
        return True

    now = now or datetime.now().astimezone()
    return expiry < now


def expiry_from_now(hours: int = TOKEN_LIFETIME_HOURS, now: Optional[datetime] = None) -> str:
    """RFC 3339 local timestamp `hours` from now."""
    now = now or datetime.now().astimezone()
    return (now + timedelta(hours=hours)).isoformat()


def refresh_access_token(client: CuesClient, refresh_token: str) -> str:
    """Trade a refresh token for a new access token."""
    res = client.refresh(refresh_token)
    token = res.get("accessToken")
    if not token:
        message = res.get("message") or res.get("error") or "Token refresh failed"
        raise ApiError(message)
    return token


def get_access_token(client: CuesClient, tokens: TokenStore, config: CuesConfig) -> str:
    """
    Return a usable access token, refreshing it first if it has expired.

    The refreshed token and its new expiry are written back to the token
    store and config.json.

    Raises:
        NotLoggedIn: if the access or refresh token is missing
        ApiError: if the refresh call fails
    """
    token = tokens.get(ACCESS_TOKEN_KEY)
    if not token:
        raise NotLoggedIn("You may not be logged in.")

    if not token_expired(config.expires_at):
        return token

    refresh_token = tokens.get(REFRESH_TOKEN_KEY)
    if not refresh_token:
        raise NotLoggedIn("Refresh token couldn't be found. Log in again.")

    logger.info("Access token expired, refreshing")
    token = refresh_access_token(client, refresh_token)
    tokens.set(ACCESS_TOKEN_KEY, token)
    config.expires_at = expiry_from_now()
    save_config(config)
    return token
