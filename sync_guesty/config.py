import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")

SYNC_SERVICE = "guesty"
SYNC_TYPE = "listings"

DEFAULT_TOKEN_URL = "https://open-api.guesty.com/oauth2/token"
DEFAULT_API_URL = "https://open-api.guesty.com/v1/"


@dataclass(frozen=True)
class SyncConfig:
    """
    Immutable run parameters for a listing sync.

    Built once from the environment and handed to the orchestrator, so tests can
    construct their own instance instead of patching module globals.
    """

    client_id: Optional[str]
    client_secret: Optional[str]
    token_url: str = DEFAULT_TOKEN_URL
    api_url: str = DEFAULT_API_URL
    scope: str = "open-api"
    batch_size: int = 100
    max_retries: int = 3
    backoff_base: float = 1.0
    backoff_cap: float = 15.0
    request_timeout: float = 30.0
    low_remaining_threshold: int = 10
    low_remaining_delay: float = 1.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


def load_sync_config() -> SyncConfig:
    """
    Build a SyncConfig from environment variables.

    Missing Guesty credentials are not rejected here; the token exchange raises
    AuthError so the failed run still lands in the sync log.
    """
    return SyncConfig(
        client_id=os.getenv("GUESTY_CLIENT_ID"),
        client_secret=os.getenv("GUESTY_CLIENT_SECRET"),
        token_url=os.getenv("GUESTY_TOKEN_URL", DEFAULT_TOKEN_URL),
        # urljoin drops the last path segment unless the base ends with a slash
        api_url=os.getenv("GUESTY_API_URL", DEFAULT_API_URL).rstrip("/") + "/",
        scope=os.getenv("GUESTY_SCOPE", "open-api"),
        batch_size=int(os.getenv("GUESTY_BATCH_SIZE", "100")),
        max_retries=int(os.getenv("GUESTY_MAX_RETRIES", "3")),
        request_timeout=float(os.getenv("GUESTY_REQUEST_TIMEOUT", "30")),
    )
