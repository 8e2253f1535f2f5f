import base64
import logging
import httpx
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from stock_sync.core.config import StockApiConfig
from stock_sync.core.exceptions import ConfigurationError, RemoteFetchError, ValidationError
from stock_sync.services.stock_api.responses import decode_page

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000
MAX_OFFSET = 100_000
HEALTH_CHECK_TIMEOUT = 10.0
MOMENT_FORMAT = "%Y-%m-%d %H:%M:%S"
RETROSPECTIVE_TIME = "07:00:00"


class StockApiClient:
    """
    Asynchronous client for the stock report endpoint of the commerce API.

    Fetches one warehouse's snapshot page by page (PAGE_SIZE rows per request)
    with either Bearer token or Basic (login:password) authorization. The
    snapshot can be pinned to a moment; otherwise the configured default moment
    or "now" is used.
    """

    def __init__(self, config: StockApiConfig):
        self.config = config
        self._auth_header: Optional[str] = None
        logger.info(f"Initializing StockApiClient for {config.url} (auth: {config.auth_method or 'none'})")

    def get_auth_header(self) -> str:
        """
        Resolve the Authorization header once per client.

        Raises:
            ConfigurationError: If neither a token nor login+password is configured
        """
        if self._auth_header is None:
            if self.config.token:
                self._auth_header = f"Bearer {self.config.token}"
            elif self.config.login and self.config.password:
                credentials = f"{self.config.login}:{self.config.password}".encode("utf-8")
                self._auth_header = f"Basic {base64.b64encode(credentials).decode('ascii')}"
            else:
                raise ConfigurationError(
                    "No API credentials configured. Set STOCK_API_TOKEN or STOCK_API_LOGIN and STOCK_API_PASSWORD"
                )
        return self._auth_header

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.get_auth_header(),
            "Content-Type": "application/json",
            "Accept-Encoding": "gzip",
        }

    def warehouse_href(self, warehouse_id: str) -> str:
        return f"{self.config.entity_base_url}/entity/store/{warehouse_id}"

    def build_filter(self, warehouse_id: str, moment: Optional[str] = None) -> str:
        """
        Build the server-side filter for one warehouse.

        Includes archived and non-archived goods and pins the snapshot to
        `moment`, the configured default moment, or the current UTC time.
        """
        moment_value = moment or self.config.default_moment or datetime.now(timezone.utc).strftime(MOMENT_FORMAT)
        filters = [
            f"moment={moment_value}",
            "archived=false",
            "archived=true",
            f"store={self.warehouse_href(warehouse_id)}",
        ]
        return ";".join(filters)

    async def _make_request(self, params: Dict[str, Any], timeout: Optional[float] = None) -> Any:
        """
        GET the report endpoint and return the decoded JSON body.

        Raises:
            ConfigurationError: If no credentials are configured
            RemoteFetchError: On network errors, timeouts or non-2xx responses
        """
        headers = self._get_headers()
        timeout = timeout if timeout is not None else self.config.timeout

        logger.debug(f"GET {self.config.url} params={params}")

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(self.config.url, headers=headers, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout error: {str(e)}")
            raise RemoteFetchError(f"Request timed out: {str(e)}", retryable=True) from e
        except httpx.RequestError as e:
            logger.error(f"Network error: {str(e)}")
            raise RemoteFetchError(f"Network error: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Stock API error {response.status_code}: {response.text[:500]}")
            raise RemoteFetchError(
                f"Request failed with status {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteFetchError(
                f"Invalid JSON in response: {str(e)}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def _fetch_all_pages(self, warehouse_id: str, moment: Optional[str]) -> List[Dict[str, Any]]:
        stock_filter = self.build_filter(warehouse_id, moment)
        logger.info(f"Requesting stock for warehouse {warehouse_id} with filter: {stock_filter}")

        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            payload = await self._make_request({"filter": stock_filter, "offset": offset, "limit": PAGE_SIZE})
            page = decode_page(payload)
            if not page.recognized:
                logger.warning(f"Unrecognized response shape for warehouse {warehouse_id} at offset {offset}")
                break

            rows.extend(page.rows)
            offset += PAGE_SIZE

            if len(page.rows) < PAGE_SIZE:
                break

            # Guard against a backend that never returns a short page
            if offset > MAX_OFFSET:
                logger.warning(f"Reached the {MAX_OFFSET} row limit for warehouse {warehouse_id}, keeping partial result")
                break

        logger.info(f"Received {len(rows)} rows for warehouse {warehouse_id}")
        return rows

    async def fetch_snapshot(self, warehouse_id: str, moment: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Fetch all stock rows for a warehouse.

        Args:
            warehouse_id: Warehouse UUID
            moment: Optional "YYYY-MM-DD HH:MM:SS" to pin the snapshot to

        Returns:
            List of raw stock rows (possibly partial if MAX_OFFSET was hit)
        """
        return await self._fetch_all_pages(warehouse_id, moment)

    async def fetch_snapshot_at(self, warehouse_id: str, date_time: str) -> List[Dict[str, Any]]:
        """
        Fetch a warehouse snapshot as of a past date.

        A bare date gets the retrospective start-of-business time (07:00:00).
        """
        return await self._fetch_all_pages(warehouse_id, normalize_moment(date_time))

    async def health_check(self) -> bool:
        """Single cheap request; False on any error."""
        try:
            await self._make_request({"limit": 1}, timeout=HEALTH_CHECK_TIMEOUT)
            return True
        except Exception as e:
            logger.error(f"Stock API unavailable: {str(e)}")
            return False


def normalize_moment(date_time: str) -> str:
    """
    Normalize a caller supplied date or date-time to "YYYY-MM-DD HH:MM:SS".

        "2025-10-01"          -> "2025-10-01 07:00:00"
        "2025-10-01 09:30"    -> "2025-10-01 09:30:00"
        "2025-10-01 09:30:15" -> unchanged
    """
    value = date_time.strip()
    for fmt in (MOMENT_FORMAT, "%Y-%m-%d %H:%M"):
        try:
            return datetime.strptime(value, fmt).strftime(MOMENT_FORMAT)
        except ValueError:
            continue
    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Invalid date '{date_time}', expected YYYY-MM-DD[ HH:MM[:SS]]")
    return f"{day.strftime('%Y-%m-%d')} {RETROSPECTIVE_TIME}"
