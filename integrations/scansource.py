"""
ScanSource product API integration.

TokenCache holds the OAuth client-credentials token; ScanSourceClient issues
authenticated calls to the /scsc/product/v2 search, detail and pricing
endpoints with retry on 429/5xx.
"""

import json
import random
import time
from typing import Any, Callable, Optional

import requests
import structlog

from config.settings import Settings
from exceptions import SupplierAPIError, TokenFetchError
from utils.text_utils import truncate

logger = structlog.get_logger(__name__)


API_PREFIX = "/scsc/product/v2"

# Retry config
MAX_RETRIES = 3
RETRY_STATUSES = {429, 500, 502, 503, 504}
BASE_BACKOFF_SECONDS = 0.5
MAX_JITTER_SECONDS = 0.25

TOKEN_REFRESH_MARGIN_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
REQUEST_TIMEOUT_SECONDS = 30


class TokenCache:
    """
    OAuth client-credentials token with expiry.

    A new token is requested only when none is cached or the cached one
    expires within TOKEN_REFRESH_MARGIN_SECONDS. Two threads may both refresh
    at the same time; the grant is idempotent so the last write wins.
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: str = "",
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.session = session or requests.Session()
        self.clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    @property
    def is_fresh(self) -> bool:
        return bool(self._token) and self._expires_at > self.clock() + TOKEN_REFRESH_MARGIN_SECONDS

    def get_token(self) -> str:
        """
        Return the cached token, refreshing it if missing or about to expire.

        Raises:
            TokenFetchError: Token endpoint returned non-2xx or no access_token
        """
        if self.is_fresh:
            return self._token

        logger.info("scansource_token_refresh", token_url=self.token_url)

        try:
            response = self.session.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "scope": self.scope,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.exceptions.RequestException as e:
            logger.error("scansource_token_request_failed", error=str(e))
            raise TokenFetchError(None, str(e)) from e

        if not response.ok:
            logger.error("scansource_token_rejected", status=response.status_code)
            raise TokenFetchError(response.status_code, truncate(response.text))

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise TokenFetchError(response.status_code, truncate(response.text))

        lifetime = payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS
        self._token = token
        self._expires_at = self.clock() + float(lifetime)

        logger.info("scansource_token_cached", expires_in=lifetime)
        return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0


class ScanSourceClient:
    """
    Thin wrapper over the ScanSource product API.

    Usage:
        client = ScanSourceClient.from_settings(settings)
        page = client.search(page=1, page_size=50, filters={"searchText": "zebra"})
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        customer_number: str,
        token_cache: TokenCache,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.customer_number = customer_number
        self.token_cache = token_cache
        self.session = session or requests.Session()
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScanSourceClient":
        session = requests.Session()
        token_cache = TokenCache(
            token_url=settings.oauth_token_url,
            client_id=settings.oauth_client_id,
            client_secret=settings.oauth_client_secret,
            scope=settings.oauth_scope,
            session=session,
        )
        return cls(
            base_url=settings.scansource_base,
            api_key=settings.scansource_api_key,
            customer_number=settings.customer_number,
            token_cache=token_cache,
            session=session,
        )

    # ===================
    # TRANSPORT
    # ===================

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number `attempt` (1-based)."""
        return BASE_BACKOFF_SECONDS * (2 ** attempt) + random.uniform(0, MAX_JITTER_SECONDS)

    def call(
        self,
        path: str,
        method: str = "GET",
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> Any:
        """
        Issue an authenticated request and parse the JSON body.

        Args:
            path: Endpoint path below /scsc/product/v2, e.g. "/search"
            method: HTTP method
            params: Query string parameters
            json_body: JSON request body (POST)

        Returns:
            Parsed JSON, or {} for an empty body

        Raises:
            SupplierAPIError: Non-retryable status, retries exhausted, or bad JSON
            TokenFetchError: OAuth token could not be obtained
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        attempt = 0

        while True:
            headers = {
                "Accept": "application/json",
                "Authorization": f"Bearer {self.token_cache.get_token()}",
                "Ocp-Apim-Subscription-Key": self.api_key,
            }
            if json_body is not None:
                headers["Content-Type"] = "application/json"

            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    timeout=REQUEST_TIMEOUT_SECONDS,
                )
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if attempt >= MAX_RETRIES:
                    logger.error("scansource_request_failed", path=path, error=str(e))
                    raise SupplierAPIError(f"API request failed: {e}") from e
                attempt += 1
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "scansource_request_retry",
                    path=path,
                    error=str(e),
                    attempt=attempt,
                    delay=round(delay, 2)
                )
                self.sleep(delay)
                continue

            if response.ok:
                return self._parse_body(response)

            if response.status_code in RETRY_STATUSES and attempt < MAX_RETRIES:
                attempt += 1
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "scansource_status_retry",
                    path=path,
                    status=response.status_code,
                    attempt=attempt,
                    delay=round(delay, 2)
                )
                self.sleep(delay)
                continue

            body = truncate(response.text)
            logger.error("scansource_api_error", path=path, status=response.status_code, body=body)
            raise SupplierAPIError(
                f"API error {response.status_code}: {body}",
                status=response.status_code,
                body=body,
            )

    def _parse_body(self, response: requests.Response) -> Any:
        text = response.text
        if not text or not text.strip():
            return {}
        try:
            return json.loads(text)
        except ValueError as e:
            raise SupplierAPIError(f"JSON parse error: {truncate(text)}", body=truncate(text)) from e

    # ===================
    # ENDPOINTS
    # ===================

    def search(self, page: int, page_size: int, filters: Optional[dict] = None) -> list[dict]:
        """One page of product search results."""
        params = {
            "customerNumber": self.customer_number,
            "region": "0",
            "includeObsolete": "false",
            "pageSize": str(page_size),
            "page": str(page),
            **(filters or {}),
        }
        data = self.call("/search", params=params)
        items = normalize_search(data)
        logger.info("scansource_search_page", page=page, items=len(items))
        return items

    def detail(self, item_number: str, part_number_type: int = 1) -> Any:
        """Product detail for an identifier of the given part number type."""
        params = {
            "customerNumber": self.customer_number,
            "itemNumber": item_number,
            "partNumberType": str(part_number_type),
            "region": "0",
        }
        return self.call("/detail", params=params)

    def pricing(self, body: dict) -> Any:
        """Price quote request (one POST per context candidate)."""
        return self.call(
            "/pricing",
            method="POST",
            params={"customerNumber": self.customer_number},
            json_body=body,
        )


def normalize_search(data: Any) -> list[dict]:
    """Search responses come back as a bare list or as {"items": [...]}."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    return []
