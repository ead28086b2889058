"""
Metrics Sender.

Sends single metric updates to the metrics server. Handles retries
and error recovery; transport failures are returned, never raised.
"""

import asyncio
import gzip
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote
import aiohttp

from ..metrics import Metric, MetricJSON

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Result of a send operation."""
    success: bool
    status_code: int = 0
    error: Optional[str] = None
    attempts: int = 0


class MetricsSender:
    """
    Sends metrics to the server.

    Features:
    - One shared aiohttp session with connection pooling
    - Retries on network errors and 5xx, never on 4xx
    - Path-style text updates, or gzip-compressed JSON updates
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        max_retries: int = 2,
        retry_delay: float = 0.1,
    ):
        """Initialize the sender."""
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def update_url(self, metric: Metric) -> str:
        """URL of the path-style update for ``metric``."""
        name = quote(metric.name, safe="")
        return f"{self.base_url}/update/{metric.type.value}/{name}/{metric.wire_value}"

    async def send_metric(self, metric: Metric) -> SendResult:
        """Send one metric as ``POST /update/<type>/<name>/<value>`` with no body."""
        return await self._send_with_retry(
            self.update_url(metric),
            data=None,
            headers={'Content-Type': 'text/plain'},
        )

    async def send_metric_json(self, metric: Metric) -> SendResult:
        """Send one metric as gzip-compressed JSON to ``POST /update``."""
        payload = MetricJSON.from_metric(metric).model_dump_json(exclude_none=True)
        return await self._send_with_retry(
            f"{self.base_url}/update",
            data=gzip.compress(payload.encode()),
            headers={
                'Content-Type': 'application/json',
                'Content-Encoding': 'gzip',
                'Accept-Encoding': 'gzip',
            },
        )

    async def _send_with_retry(self, url: str, data: Optional[bytes], headers: dict) -> SendResult:
        """Send with a fixed delay between attempts."""
        result = SendResult(success=False)

        for attempt in range(1, self.max_retries + 1):
            result = await self._send_once(url, data, headers)
            result.attempts = attempt

            if result.success:
                return result

            # Client errors are final
            if 400 <= result.status_code < 500:
                return result

            if attempt < self.max_retries:
                logger.debug(f"Send attempt {attempt} to {url} failed: {result.error}")
                await asyncio.sleep(self.retry_delay)

        result.error = f"All {self.max_retries} attempts failed: {result.error}"
        return result

    async def _send_once(self, url: str, data: Optional[bytes], headers: dict) -> SendResult:
        """Send a single request."""
        try:
            session = await self._get_session()
            async with session.post(url, data=data, headers=headers) as response:
                if response.status == 200:
                    return SendResult(success=True, status_code=response.status)

                error_text = await response.text()
                return SendResult(
                    success=False,
                    status_code=response.status,
                    error=f"status {response.status}: {error_text[:500]}",
                )

        except asyncio.TimeoutError:
            return SendResult(success=False, error="Request timeout")
        except aiohttp.ClientError as e:
            return SendResult(success=False, error=str(e) or type(e).__name__)

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
