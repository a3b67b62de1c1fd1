"""HTTP client for calling AI provider backends.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on rate limits, gateway errors and connection errors.
Anything that still fails surfaces as a TransportError so the orchestrator
can fail over to the next provider.
"""

import logging
from dataclasses import dataclass, field

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ai_extraction.config import settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 502, 503, 504}


class TransportError(Exception):
    """A provider call failed at the network or HTTP level."""


class ProviderUnavailable(TransportError):
    """Provider is temporarily unavailable (retryable: 429/5xx gateway, connection error, timeout)."""


class ProviderError(TransportError):
    """Provider returned a non-retryable error or an unreadable body."""


@dataclass(frozen=True)
class ProviderRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict = field(default_factory=dict)

    @property
    def safe_url(self) -> str:
        """URL without its query string (which may carry an API key)."""
        return self.url.split("?", 1)[0]


class ProviderClient:
    """Shared HTTP client for provider requests with retry and backoff."""

    def __init__(
        self,
        timeout: int | None = None,
        connect_timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.PROVIDER_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.PROVIDER_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.PROVIDER_RETRY_BACKOFF

        read_timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.PROVIDER_CONNECT_TIMEOUT

        self._client = httpx.Client(
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    def close(self):
        self._client.close()

    def send(self, request: ProviderRequest) -> dict:
        """Send one adapter-built request and return the provider's JSON object.

        Only ProviderUnavailable is retried, so rate limits and gateway errors
        get another chance at the same provider while 4xx/500 responses fail
        over at once. Raises ProviderUnavailable (after retries) or ProviderError.
        """

        @retry(
            retry=retry_if_exception_type(ProviderUnavailable),
            stop=stop_after_attempt(max(self._retry_attempts, 1)),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                exp_base=self._retry_backoff,
                max=30,
            ),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "Provider unavailable at %s, retrying in %.1fs (attempt %d/%d)",
                request.safe_url,
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        )
        def _do_send() -> dict:
            return self._send_once(request)

        return _do_send()

    def _send_once(self, request: ProviderRequest) -> dict:
        """Send a single request to the provider."""
        try:
            resp = self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                json=request.body,
            )
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("Provider connection failed (%s): %s", request.safe_url, e)
            raise ProviderUnavailable(f"Cannot connect to provider: {e}") from e
        except httpx.TimeoutException as e:
            logger.warning("Provider timeout (%s): %s", request.safe_url, e)
            raise ProviderUnavailable(f"Provider timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Provider HTTP error (%s): %s", request.safe_url, e)
            raise ProviderError(f"Provider HTTP error: {e}") from e

        if resp.status_code in RETRYABLE_STATUS:
            logger.warning("Provider returned %d (%s)", resp.status_code, request.safe_url)
            raise ProviderUnavailable(f"HTTP {resp.status_code}: {resp.text[:200]}")

        if not resp.is_success:
            logger.error("Provider error %d (%s): %s", resp.status_code, request.safe_url, resp.text[:200])
            raise ProviderError(f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(f"Provider returned a non-JSON body: {e}") from e

        if not isinstance(data, dict):
            raise ProviderError("Provider returned a non-object JSON body")
        return data
