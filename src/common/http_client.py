"""Shared async HTTP helpers used across registry and publish clients.

Encapsulates retries, timeout handling and status-code mapping so the
individual clients avoid duplicating try/except blocks. 404 responses are
raised as ``NotFoundError`` because several callers treat "not found" as an
expected outcome rather than a failure.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.errors import HttpError, NotFoundError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class HttpClient:
    """Thin aiohttp wrapper with retries and consistent error mapping."""

    def __init__(
        self,
        *,
        timeout: int = Constants.REQUEST_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        retries: int = Constants.HTTP_RETRY_MAX,
        retry_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            timeout: Total request timeout in seconds.
            headers: Default headers sent with every request.
            retries: Attempts per request for connection errors and 5xx responses.
            retry_delay: Base delay in seconds; doubled on every retry.
            session: Pre-built session, mainly for tests.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = {"User-Agent": Constants.USER_AGENT}
        if headers:
            self._headers.update(headers)
        self._retries = max(1, retries)
        self._retry_delay = retry_delay
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def request(
        self,
        method: str,
        url: str,
        *,
        context: str = "http",
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
        idempotent: Optional[bool] = None,
        **kwargs: Any,
    ) -> Tuple[int, Dict[str, str], bytes]:
        """Perform a request and return ``(status, headers, body)``.

        Connection errors and 5xx responses are retried for idempotent
        requests only; ``idempotent`` defaults to True for every method but
        POST, which gets a single attempt.

        Raises:
            NotFoundError: On HTTP 404.
            HttpError: On any other status >= 400, or when every attempt failed.
        """
        if self._session is None:
            await self.start()
        if self._session is None:
            raise HttpError(f"{context}: HTTP session is not available", url=url)

        request_headers = dict(self._headers)
        if headers:
            request_headers.update(headers)
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)
        target = safe_url(url)
        last_error = ""
        last_status: Optional[int] = None
        if idempotent is None:
            idempotent = method.upper() != "POST"
        attempts = self._retries if idempotent else 1

        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(self._retry_delay * (2 ** (attempt - 1)))
            with Timer() as t:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action=method,
                            target=target,
                            context=context,
                            attempt=attempt + 1,
                        ),
                    )
                try:
                    async with self._session.request(
                        method, url, headers=request_headers, **kwargs
                    ) as response:
                        status = response.status
                        response_headers = {k: str(v) for k, v in response.headers.items()}
                        body = await response.read()
                except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    last_error = str(exc) or exc.__class__.__name__
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action=method,
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=target,
                        ),
                    )
                    continue

            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action=method,
                        status_code=status,
                        duration_ms=t.duration_ms(),
                        target=target,
                        context=context,
                    ),
                )

            if status == 404:
                raise NotFoundError(f"{context}: {target} was not found", status=status, url=url)
            if status >= 500:
                last_error = f"HTTP {status}"
                last_status = status
                continue
            if status >= 400:
                message = body.decode("utf-8", errors="replace")[:200]
                raise HttpError(
                    f"{context}: {method} {target} failed with HTTP {status}: {message}",
                    status=status,
                    url=url,
                )
            return status, response_headers, body

        logger.error("%s request to %s failed after %s attempts: %s", context, target, attempts, last_error)
        raise HttpError(
            f"{context}: {method} {target} failed after {attempts} attempts: {last_error}",
            status=last_status,
            url=url,
        )

    async def get_bytes(self, url: str, *, context: str = "http", **kwargs: Any) -> bytes:
        """GET ``url`` and return the raw body."""
        _, _, body = await self.request("GET", url, context=context, **kwargs)
        return body

    async def get_json(self, url: str, *, context: str = "http", **kwargs: Any) -> Any:
        """GET ``url`` and decode a JSON body.

        Raises:
            HttpError: If the body is not valid JSON.
        """
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})
        body = await self.get_bytes(url, context=context, headers=headers, **kwargs)
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise HttpError(f"{context}: invalid JSON from {safe_url(url)}: {exc}", url=url) from exc
