"""HTTP client for the historical movement API."""

import time
from datetime import date

import httpx
from pydantic import ValidationError as PydanticValidationError

from src.config import CutoverSettings
from src.core.models import RawMovement
from src.observability import metrics
from src.observability.logger import get_logger

logger = get_logger(__name__)


class HistoricalFetchError(Exception):
    """Fetching one date from the historical API failed."""

    def __init__(self, fetch_date: date, message: str):
        self.fetch_date = fetch_date
        super().__init__(f"Failed to fetch historical data for date {fetch_date.isoformat()}: {message}")


class HistoricalMovementClient:
    """
    Fetches the movements of a single day.

    GET {base_url}/movements/by-date/{YYYY-MM-DD} returns a JSON array of
    movements with camelCase keys; a null body means "no data".

    The underlying httpx.Client is shared across the orchestrator's fetch
    workers.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Historical API base URL is not configured.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: CutoverSettings) -> "HistoricalMovementClient":
        return cls(settings.base_url, timeout=settings.request_timeout_seconds)

    def url_for(self, fetch_date: date) -> str:
        return f"{self.base_url}/movements/by-date/{fetch_date.isoformat()}"

    def fetch(self, fetch_date: date) -> list[RawMovement]:
        """
        Fetch all movements recorded on one date.

        Raises:
            HistoricalFetchError: On transport errors, non-2xx responses or an unparseable body
        """
        url = self.url_for(fetch_date)
        start = time.monotonic()
        try:
            movements = self._fetch(url, fetch_date)
        except HistoricalFetchError:
            metrics.record_historical_fetch(success=False, duration_seconds=time.monotonic() - start)
            raise

        metrics.record_historical_fetch(
            success=True,
            record_count=len(movements),
            duration_seconds=time.monotonic() - start,
        )
        logger.debug(f"Fetched {len(movements)} records for date {fetch_date}")
        return movements

    def _fetch(self, url: str, fetch_date: date) -> list[RawMovement]:
        logger.debug(f"Calling historical API: {url}")
        try:
            response = self._client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise HistoricalFetchError(
                fetch_date, f"HTTP {e.response.status_code} from {url}"
            ) from e
        except httpx.HTTPError as e:
            raise HistoricalFetchError(fetch_date, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise HistoricalFetchError(fetch_date, f"Invalid JSON body: {e}") from e

        if data is None:
            logger.warning(f"No data returned for date {fetch_date}")
            return []

        if not isinstance(data, list):
            raise HistoricalFetchError(fetch_date, f"Expected a JSON array, got {type(data).__name__}")

        try:
            return [RawMovement.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise HistoricalFetchError(fetch_date, f"Unparseable movement: {e}") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
