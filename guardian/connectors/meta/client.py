"""Guardian - Meta API Client.

Handles authentication, retry logic, rate limiting, and pagination for the
daily campaign insight rows the analyzer consumes.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx

from guardian.config import Settings, get_settings
from guardian.core.logging import get_logger

logger = get_logger("meta.client")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds

DAILY_INSIGHT_FIELDS = (
    "campaign_id,campaign_name,date_start,date_stop,"
    "spend,impressions,clicks,frequency,ctr,cpc,cpm,"
    "actions,action_values"
)


class MetaAPIError(Exception):
    """Raised when Meta API returns an error."""

    def __init__(self, message: str, status_code: int = 0, error_code: int = 0):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class MetaClient:
    """Async HTTP client for Meta Marketing API."""

    def __init__(
        self,
        settings: Settings | None = None,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.access_token = access_token or self.settings.meta_access_token
        self.base_url = f"{self.settings.meta_base_url}/{self.settings.meta_api_version}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    @staticmethod
    def _retry_delay(attempt: int) -> int:
        return RETRY_BASE_DELAY * (2 ** (attempt - 1))

    @staticmethod
    def _error_from(resp: httpx.Response) -> MetaAPIError:
        """Graph API error envelope → MetaAPIError."""
        error: Dict[str, Any] = {}
        if resp.headers.get("content-type", "").startswith("application/json"):
            error = resp.json().get("error", {})
        return MetaAPIError(
            error.get("message", f"HTTP {resp.status_code}"),
            resp.status_code,
            error.get("code", 0),
        )

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Request with retry on 429, 5xx and connection errors."""
        params = {**(params or {}), "access_token": self.access_token}
        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            wait = self._retry_delay(attempt)
            last_attempt = attempt == MAX_RETRIES
            try:
                resp = await client.request(method, url, params=params)
            except httpx.RequestError as e:
                if last_attempt:
                    raise MetaAPIError(
                        f"Connection failed after {MAX_RETRIES} attempts: {e}"
                    ) from e
                logger.warning(f"Request error: {e}. Retrying in {wait}s")
                await asyncio.sleep(wait)
                continue

            retryable = resp.status_code == 429 or resp.status_code >= 500
            if retryable and not last_attempt:
                logger.warning(
                    f"Meta returned {resp.status_code}. Retrying in {wait}s "
                    f"(attempt {attempt}/{MAX_RETRIES})"
                )
                await asyncio.sleep(wait)
                continue
            if resp.status_code >= 400:
                raise self._error_from(resp)
            return resp.json()

        raise MetaAPIError("Max retries exhausted")

    # ── Pagination ──

    async def _paginated_get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        max_pages: int = 50,
    ) -> List[Dict[str, Any]]:
        """Fetch all pages of a paginated endpoint."""
        all_data: List[Dict[str, Any]] = []
        current_url = url

        for page in range(max_pages):
            result = await self._request(
                "GET", current_url, params if page == 0 else None
            )
            all_data.extend(result.get("data", []))

            next_url = result.get("paging", {}).get("next")
            if not next_url:
                break
            current_url = next_url

        logger.info(f"Fetched {len(all_data)} records from {url}")
        return all_data

    # ── Insights ──

    async def fetch_daily_insights(
        self, campaign_id: str, since: str, until: str
    ) -> List[Dict[str, Any]]:
        """One raw insight row per day for a campaign (YYYY-MM-DD bounds)."""
        url = f"{self.base_url}/{campaign_id}/insights"
        params = {
            "fields": DAILY_INSIGHT_FIELDS,
            "time_range": json.dumps({"since": since, "until": until}),
            "time_increment": 1,
            "level": "campaign",
        }
        return await self._paginated_get(url, params)
