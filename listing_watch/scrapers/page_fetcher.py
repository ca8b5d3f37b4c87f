# listing_watch/scrapers/page_fetcher.py

"""HTML page fetching with per-attempt timeout, retries and backoff."""

import logging
import random
import time
from collections.abc import Callable

from curl_cffi import requests as curl_requests

from listing_watch.config.settings import Settings


class FetchError(Exception):
    """Raised once every attempt to fetch a page has failed."""

    def __init__(
        self,
        url: str,
        attempts: int,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        self.status_code = status_code
        super().__init__(
            f"Failed to fetch {url} after {attempts} attempt(s): {reason}"
        )


class _HTTPStatusError(Exception):
    """A non-success response, treated as a failed attempt."""

    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} {reason}".rstrip())


def backoff_delay(
    attempt: int,
    base: float = 2.0,
    cap: float = 15.0,
    max_jitter: float = 0.5,
    rand: Callable[[], float] = random.random,
) -> float:
    """Seconds to wait after failed attempt number *attempt* (1-based).

    ``min(base * 2**(attempt-1), cap)`` plus up to *max_jitter* seconds.
    """
    exponent = max(attempt - 1, 0)
    return min(base * 2 ** exponent, cap) + rand() * max_jitter


class PageFetcher:
    """GET pages through a browser-impersonating curl_cffi session."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger(
            "listing_watch.fetcher"
        )
        self.session = curl_requests.Session(
            impersonate=settings.IMPERSONATE_BROWSER
        )

    def _headers(self, user_agent: str) -> dict[str, str]:
        return {
            **self.settings.DEFAULT_HEADERS,
            "User-Agent": user_agent,
        }

    def _delay_for(self, attempt: int) -> float:
        return backoff_delay(
            attempt,
            base=self.settings.BACKOFF_BASE_SECONDS,
            cap=self.settings.BACKOFF_MAX_SECONDS,
            max_jitter=self.settings.BACKOFF_JITTER_SECONDS,
        )

    def fetch(
        self,
        url: str,
        retries: int | None = None,
        timeout_ms: int | None = None,
        user_agent: str | None = None,
    ) -> str:
        """Return the body of *url*, retrying failed attempts.

        Timeouts, connection errors and non-2xx statuses all count as
        failed attempts. At most *retries* attempts are made; the last
        error is raised as :class:`FetchError`.
        """
        budget = max(
            1, retries if retries is not None else self.settings.FETCH_RETRIES
        )
        timeout = (
            timeout_ms if timeout_ms is not None else self.settings.TIMEOUT_MS
        ) / 1000
        headers = self._headers(user_agent or self.settings.USER_AGENT)

        last_error: Exception | None = None
        attempt = 0
        while attempt < budget:
            attempt += 1
            try:
                resp = self.session.get(
                    url,
                    headers=headers,
                    timeout=timeout,
                    allow_redirects=True,
                )
                if 200 <= resp.status_code < 300:
                    self.logger.debug(
                        "Fetched %s (HTTP %d) on attempt %d",
                        url,
                        resp.status_code,
                        attempt,
                    )
                    return str(resp.text)
                raise _HTTPStatusError(
                    resp.status_code, str(getattr(resp, "reason", "") or "")
                )
            except Exception as exc:
                last_error = exc
                self.logger.warning(
                    "Fetch %s failed on attempt %d/%d: %s",
                    url,
                    attempt,
                    budget,
                    exc,
                )
                if (
                    isinstance(exc, _HTTPStatusError)
                    and 400 <= exc.status_code < 500
                    and not self.settings.RETRY_CLIENT_ERRORS
                ):
                    break
                if attempt >= budget:
                    break
                delay = self._delay_for(attempt)
                self.logger.info(
                    "Retrying %s in %.2fs", url, delay
                )
                time.sleep(delay)

        status_code = (
            last_error.status_code
            if isinstance(last_error, _HTTPStatusError)
            else None
        )
        reason = str(last_error) if last_error else "Failed to fetch"
        raise FetchError(
            url, attempt, reason, status_code
        ) from last_error

    def close(self) -> None:
        """Release the underlying session."""
        self.session.close()
