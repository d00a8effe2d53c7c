import time
from typing import Optional

import requests
import structlog

from sync_guesty.config import SyncConfig
from sync_guesty.errors import AuthError
from sync_guesty.metrics import api_latency, api_requests

logger = structlog.get_logger(__name__)


def create_access_token(
    session: requests.Session,
    token_url: str,
    client_id: str,
    client_secret: str,
    scope: str = "open-api",
    timeout: float = 30.0,
) -> str:
    """
    Exchange client ID and secret for a Guesty access token.

    Args:
        session: HTTP session used for the request
        token_url: Guesty OAuth2 token endpoint
        client_id: Guesty client ID
        client_secret: Guesty client secret
        scope: OAuth2 scope to request
        timeout: Request timeout in seconds

    Returns:
        str: Bearer access token

    Raises:
        AuthError: On transport failure, non-2xx status or a body without access_token
    """
    logger.info("guesty_token_requested", client_id=client_id)

    payload = {
        "grant_type": "client_credentials",
        "client_id": client_id,
        "client_secret": client_secret,
        "scope": scope,
    }

    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "Accept": "application/json",
        "Cache-Control": "no-cache",
    }

    start_time = time.time()
    try:
        response = session.post(token_url, data=payload, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        logger.error("guesty_token_request_failed", error=str(e))
        raise AuthError(f"Token request failed: {e}") from e
    api_latency.labels(endpoint="token").observe(time.time() - start_time)
    api_requests.labels(endpoint="token", status_code=str(response.status_code)).inc()

    if not 200 <= response.status_code < 300:
        logger.error(
            "guesty_token_rejected",
            status_code=response.status_code,
            response_text=response.text,
        )
        raise AuthError(
            f"Failed to get Guesty token: HTTP {response.status_code}",
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except ValueError as e:
        raise AuthError("Guesty token response is not valid JSON") from e

    token = body.get("access_token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token:
        logger.error("guesty_token_missing", response_text=response.text)
        raise AuthError("No access_token in Guesty response")

    return token


class TokenProvider:
    """
    Obtains a fresh Guesty bearer token for one sync run.

    Tokens are not cached: every run authenticates again and a failed exchange is
    fatal for that run.

    Example:
        >>> provider = TokenProvider(load_sync_config())
        >>> token = provider.get_token()
    """

    def __init__(self, config: SyncConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session if session is not None else requests.Session()

    def get_token(self) -> str:
        client_id = self.config.client_id
        client_secret = self.config.client_secret
        if not client_id or not client_secret:
            logger.error("guesty_credentials_missing")
            raise AuthError("Missing Guesty credentials")

        return create_access_token(
            self.session,
            self.config.token_url,
            client_id,
            client_secret,
            scope=self.config.scope,
            timeout=self.config.request_timeout,
        )
