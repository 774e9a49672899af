"""Guardian - Google Apps Script Proxy Client.

The proposal sheet is reached through an Apps Script web app:
- GET  ?action=read&sheet=NAME       → {"success": true, "data": [{...}, ...]}
- POST {"action": "append", ...}     → {"success": true, "data": {...}}
- POST {"action": "update", ...}

Apps Script answers through a redirect, so redirects are followed.
"""

from typing import Any, Dict, List, Optional

import httpx

from guardian.config import Settings, get_settings
from guardian.core.logging import get_logger

logger = get_logger("sheets.client")


class SheetsProxyError(Exception):
    """Raised when the proxy is unreachable or reports a failure."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class SheetsProxyClient:
    """Async client for the Apps Script sheet proxy."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.url = self.settings.sheets_proxy_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=30.0, follow_redirects=True, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _unwrap(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            raise SheetsProxyError(
                f"Proxy returned HTTP {resp.status_code}", resp.status_code
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise SheetsProxyError("Proxy returned a non-JSON body") from e
        if not body.get("success", False):
            raise SheetsProxyError(body.get("error") or "Proxy reported failure")
        return body.get("data")

    async def _call(self, method: str, **kwargs: Any) -> Any:
        if not self.url:
            raise SheetsProxyError("sheets_proxy_url is not configured")
        client = await self._get_client()
        try:
            resp = await client.request(method, self.url, **kwargs)
        except httpx.RequestError as e:
            raise SheetsProxyError(f"Proxy request failed: {e}") from e
        return self._unwrap(resp)

    def _auth(self) -> Dict[str, str]:
        secret = self.settings.sheets_proxy_secret
        return {"secret": secret} if secret else {}

    # ── Operations ──

    async def read(self, sheet: str) -> List[Dict[str, Any]]:
        """All data rows of a sheet, keyed by header."""
        data = await self._call(
            "GET", params={"action": "read", "sheet": sheet, **self._auth()}
        )
        rows = data or []
        logger.info(f"Read {len(rows)} rows from {sheet}")
        return rows

    async def append(self, sheet: str, rows: List[Dict[str, Any]]) -> None:
        await self._call(
            "POST",
            json={"action": "append", "sheet": sheet, "rows": rows, **self._auth()},
        )
        logger.info(f"Appended {len(rows)} rows to {sheet}")

    async def update(
        self, sheet: str, key: str, key_value: str, fields: Dict[str, Any]
    ) -> None:
        """Update the row whose ``key`` column equals ``key_value``."""
        await self._call(
            "POST",
            json={
                "action": "update",
                "sheet": sheet,
                "key": key,
                "value": key_value,
                "fields": fields,
                **self._auth(),
            },
        )
