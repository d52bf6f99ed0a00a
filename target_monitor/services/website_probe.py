import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Optional

import httpx

from .website_error_classifier import WebsiteErrorClassifier
from ..models import CheckStatus, WebsiteCheckResult, WebsiteTarget


class WebsiteProbe:
    """
    One bounded GET against a website.

    Any response below 500 counts as up (reachability, not correctness).
    ``probe`` never raises.
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        user_agent: str = "Target-Monitor/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        error_classifier: Optional[WebsiteErrorClassifier] = None,
    ):
        self._timeout = timeout_seconds
        self._user_agent = user_agent
        self._transport = transport
        self._error_classifier = error_classifier or WebsiteErrorClassifier()

    async def probe(self, target: WebsiteTarget) -> WebsiteCheckResult:
        start_time = perf_counter()

        try:
            # httpx timeouts are per phase; wait_for bounds the whole attempt
            response = await asyncio.wait_for(
                self._get(target.url), timeout=self._timeout
            )
        except Exception as e:
            response_time = self._elapsed_millis(start_time)
            message = self._error_classifier.classify(e)
            logging.warning(f"Website {target.url} is down: {message}")
            return self._result(target, CheckStatus.DOWN, 0, response_time, message)

        response_time = self._elapsed_millis(start_time)
        status_code = response.status_code

        if status_code >= 500:
            message = f"HTTP {status_code} - {response.reason_phrase}"
            logging.warning(f"Website {target.url} is down: {message}")
            return self._result(
                target, CheckStatus.DOWN, status_code, response_time, message
            )

        logging.debug(f"Website {target.url} is up: {status_code} in {response_time}ms")
        return self._result(
            target, CheckStatus.UP, status_code, response_time, f"OK - {status_code}"
        )

    async def _get(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            headers={"User-Agent": self._user_agent},
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            return await client.get(url)

    @staticmethod
    def _elapsed_millis(start_time: float) -> int:
        return max(0, round((perf_counter() - start_time) * 1000))

    @staticmethod
    def _result(
        target: WebsiteTarget,
        status: CheckStatus,
        status_code: int,
        response_time: int,
        message: str,
    ) -> WebsiteCheckResult:
        return WebsiteCheckResult(
            url=target.url,
            name=target.display_name,
            status=status,
            status_code=status_code,
            response_time_millis=response_time,
            timestamp=datetime.now(timezone.utc),
            message=message,
        )
