"""HTTP session shared by every request a driver sends to the bank."""
import time
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional
from urllib.parse import urlsplit

import httpx

from connector.config import settings
from connector.logging import TimedOperation, get_logger
from connector import metrics

logger = get_logger(__name__)


def default_headers() -> dict[str, str]:
    """Headers the BBVA mobile API expects on every request."""
    return {
        "User-Agent": settings.user_agent,
        "BBVA-User-Agent": settings.user_agent,
        "Accept-Language": "spa",
        "Content-Language": "spa",
        "Accept": "application/json",
        "Accept-Charset": "UTF-8",
        "Connection": "Keep-Alive",
        "Host": settings.bank_host_header,
        "Cookie2": "$Version=1",
    }


class BankSession:
    """
    Cookie-keeping HTTP session with stacked header overrides.

    Headers are resolved per request as the defaults given at construction,
    updated by every active with_headers() frame from the outermost to the
    innermost. Frames are popped on every exit path, including errors, so an
    override never leaks into a later request.
    """

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the session.

        Args:
            headers: Default headers. Defaults to default_headers().
            client: Preconfigured httpx client. Defaults to a new client using
                settings.request_timeout_seconds.
        """
        self.default_headers = dict(headers if headers is not None else default_headers())
        self._client = client or httpx.Client(timeout=settings.request_timeout_seconds)
        self._header_stack: list[dict[str, str]] = []

    @property
    def headers(self) -> dict[str, str]:
        """Headers the next request will carry."""
        merged = dict(self.default_headers)
        for frame in self._header_stack:
            merged.update(frame)
        return merged

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    @contextmanager
    def with_headers(self, headers: Mapping[str, str]) -> Iterator["BankSession"]:
        """Apply header overrides for the requests issued inside the block."""
        self._header_stack.append(dict(headers))
        try:
            yield self
        finally:
            self._header_stack.pop()

    def post(
        self,
        url: str,
        fields: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        operation: str = "request",
    ) -> str:
        """
        Submit a POST request and return the response body.

        Args:
            url: Absolute URL, query string included
            fields: Form fields, sent url-encoded when given
            headers: Overrides applied to this request only
            operation: Logical operation name used in logs and metrics

        Returns:
            The response body as text

        Raises:
            httpx.HTTPStatusError: If the bank answers with a non-2xx status
            httpx.RequestError: If the request cannot be completed
        """
        with self.with_headers(headers or {}):
            return self._send(url, fields, operation)

    def _send(self, url: str, fields: Optional[Mapping[str, str]], operation: str) -> str:
        start_time = time.perf_counter()

        try:
            with TimedOperation("bank_request", logger, operation=operation, path=urlsplit(url).path):
                response = self._client.post(
                    url,
                    data=dict(fields) if fields is not None else None,
                    headers=self.headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError:
            metrics.record_bank_request(
                operation, success=False,
                latency_seconds=time.perf_counter() - start_time,
                error_type="http_error",
            )
            raise
        except httpx.RequestError as e:
            error_type = "timeout" if isinstance(e, httpx.TimeoutException) else "connection_error"
            metrics.record_bank_request(
                operation, success=False,
                latency_seconds=time.perf_counter() - start_time,
                error_type=error_type,
            )
            raise

        metrics.record_bank_request(
            operation, success=True,
            latency_seconds=time.perf_counter() - start_time,
        )
        return response.text

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BankSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
