"""Discogs API client with rate limiting, throttle handling and backoff."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import Any

import httpx

from core.cancellation import CancellationToken, cancellable_sleep
from core.exceptions import PermanentClientError, TransientAPIError
from core.sentry import add_discogs_breadcrumb
from discogs.models import ArtistDetails, ArtistReleasesPage, MasterVersionsPage
from discogs.ratelimit import get_rate_limiter

logger = logging.getLogger(__name__)

DISCOGS_API_BASE = "https://api.discogs.com"
DEFAULT_USER_AGENT = "DiscogsCreditScanner/0.3 (+https://github.com/discogs-credit-scanner)"

NON_RETRYABLE_STATUSES = frozenset({401, 403, 404})
MAX_THROTTLE_WAIT_S = 60.0
MAX_BACKOFF_S = 30.0

ThrottleCallback = Callable[[float], None]


def _describe(path: str, params: dict | None) -> str:
    """Short request label for log lines."""
    if not params:
        return path
    query = "&".join(f"{k}={v}" for k, v in params.items())
    return f"{path}?{query}"[:120]


def _snippet(response: httpx.Response, limit: int = 200) -> str:
    text = response.text
    return text if len(text) <= limit else text[:limit] + "..."


class DiscogsClient:
    """Thin async client for the Discogs endpoints a credit scan needs.

    Every call goes through :meth:`fetch_json`, which:

    - waits out 429 responses (``Retry-After`` or a computed backoff) without
      spending an attempt, reporting each wait to ``on_throttle``
    - fails fast on 401/403/404
    - retries network errors, other bad statuses and malformed bodies with
      exponential backoff plus jitter, up to ``max_attempts``
    - polls the cancellation token before each request, after each response
      and around every wait
    """

    def __init__(
        self,
        token: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        max_attempts: int = 3,
        base_url: str = DISCOGS_API_BASE,
    ):
        """Initialize the client.

        Args:
            token: Optional Discogs personal access token
            user_agent: Descriptive client identifier sent with every request
            timeout: Per-request timeout in seconds
            max_attempts: Default attempt budget for transient failures
            base_url: API root
        """
        self.token = token.strip() if token and token.strip() else None
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_url = base_url
        self._client: httpx.AsyncClient | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Discogs token={self.token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def check_api(self) -> bool:
        """Check Discogs API connectivity."""
        try:
            client = await self._get_client()
            resp = await client.get("/")
            return bool(resp.status_code == 200)
        except Exception:
            return False

    def _throttle_wait(self, response: httpx.Response, attempt: int) -> float:
        """Seconds to wait after a 429, honoring ``Retry-After`` when present."""
        wait: float | None = None
        header = response.headers.get("Retry-After")
        if header:
            try:
                wait = float(header)
            except ValueError:
                logger.debug(f"Ignoring non-numeric Retry-After header: {header!r}")
        if wait is None:
            wait = 2**attempt * 5 + random.randint(0, 5)
        return min(MAX_THROTTLE_WAIT_S, max(wait, 0.0))

    def _backoff_seconds(self, attempt: int) -> float:
        """Exponential backoff with up to one second of jitter."""
        return min(MAX_BACKOFF_S, 2**attempt * 2) + random.uniform(0, 1)

    async def fetch_json(
        self,
        path: str,
        params: dict | None = None,
        *,
        cancel: CancellationToken | None = None,
        max_attempts: int | None = None,
        on_throttle: ThrottleCallback | None = None,
    ) -> Any:
        """GET a Discogs endpoint and return the decoded JSON body.

        Args:
            path: API path (e.g., "/releases/123")
            params: Optional query parameters
            cancel: Cancellation token of the calling scan session
            max_attempts: Attempt budget for transient failures (defaults to the client's)
            on_throttle: Called with the wait in seconds whenever a 429 is received

        Returns:
            The decoded JSON body

        Raises:
            PermanentClientError: On 401/403/404
            TransientAPIError: When transient failures exhaust the attempt budget
            ScanCancelledError: When the cancellation token is set
        """
        attempts_allowed = max_attempts or self.max_attempts
        client = await self._get_client()
        limiter = get_rate_limiter()
        label = _describe(path, params)

        attempt = 0
        last_error: TransientAPIError | None = None

        while attempt < attempts_allowed:
            if cancel is not None:
                cancel.raise_if_cancelled(f"before request {label}")
            if attempt > 0:
                logger.info(f"Retry attempt {attempt + 1}/{attempts_allowed} for {label}")

            await limiter.acquire()

            try:
                response = await client.get(path, params=params)
            except httpx.RequestError as e:
                last_error = TransientAPIError(f"Request failed: {e}", url=label)
            else:
                if cancel is not None:
                    cancel.raise_if_cancelled(f"after response for {label}")

                remaining = response.headers.get("X-Discogs-Ratelimit-Remaining")
                if remaining:
                    logger.debug(f"Discogs rate limit remaining: {remaining}")

                status = response.status_code
                if status == 429:
                    wait = self._throttle_wait(response, attempt)
                    logger.warning(f"Rate limited (429). Waiting {wait:g}s before retrying {label}")
                    add_discogs_breadcrumb(
                        "throttled", {"url": label, "wait_s": wait}, level="warning"
                    )
                    if on_throttle is not None:
                        on_throttle(wait)
                    await cancellable_sleep(wait, cancel, f"after 429 for {label}")
                    continue

                if status in NON_RETRYABLE_STATUSES:
                    message = f"HTTP error {status}: {_snippet(response)}"
                    logger.error(f"Unrecoverable client error for {label}: {message}. Not retrying.")
                    add_discogs_breadcrumb(
                        "client_error", {"url": label, "status": status}, level="error"
                    )
                    raise PermanentClientError(message, status_code=status, url=label)

                if response.is_success:
                    try:
                        return response.json()
                    except ValueError as e:
                        last_error = TransientAPIError(
                            f"Malformed JSON body: {e}", status_code=status, url=label
                        )
                else:
                    last_error = TransientAPIError(
                        f"HTTP error {status}: {_snippet(response)}", status_code=status, url=label
                    )

            attempt += 1
            if attempt < attempts_allowed:
                backoff = self._backoff_seconds(attempt - 1)
                logger.warning(
                    f"Fetch error for {label}: {str(last_error)[:100]}. "
                    f"Retrying in {backoff:.1f}s"
                )
                await cancellable_sleep(backoff, cancel, f"backing off {label}")

        assert last_error is not None
        logger.error(
            f"Failed to fetch {label} after {attempts_allowed} attempts. Last error: {last_error}"
        )
        add_discogs_breadcrumb(
            "fetch_failed", {"url": label, "attempts": attempts_allowed}, level="error"
        )
        raise last_error

    async def get_artist(
        self, artist_id: int | str, *, cancel: CancellationToken | None = None
    ) -> ArtistDetails:
        """Fetch an artist's profile (used to learn the display name)."""
        data = await self.fetch_json(f"/artists/{artist_id}", cancel=cancel, max_attempts=2)
        return ArtistDetails.model_validate(data)

    async def list_artist_releases(
        self,
        artist_id: int | str,
        page: int = 1,
        per_page: int = 100,
        *,
        cancel: CancellationToken | None = None,
        on_throttle: ThrottleCallback | None = None,
    ) -> ArtistReleasesPage:
        """Fetch one page of an artist's releases and masters."""
        data = await self.fetch_json(
            f"/artists/{artist_id}/releases",
            params={"per_page": per_page, "page": page},
            cancel=cancel,
            on_throttle=on_throttle,
        )
        return ArtistReleasesPage.model_validate(data)

    async def get_master(
        self,
        master_id: int,
        *,
        cancel: CancellationToken | None = None,
        on_throttle: ThrottleCallback | None = None,
    ) -> dict:
        """Fetch a master (grouping) record."""
        return await self.fetch_json(  # type: ignore[no-any-return]
            f"/masters/{master_id}", cancel=cancel, on_throttle=on_throttle
        )

    async def list_master_versions(
        self,
        master_id: int,
        per_page: int,
        sort: str = "released",
        sort_order: str = "desc",
        *,
        cancel: CancellationToken | None = None,
        on_throttle: ThrottleCallback | None = None,
    ) -> MasterVersionsPage:
        """Fetch the first page of a master's versions, newest release first."""
        data = await self.fetch_json(
            f"/masters/{master_id}/versions",
            params={"per_page": per_page, "sort": sort, "sort_order": sort_order},
            cancel=cancel,
            on_throttle=on_throttle,
        )
        return MasterVersionsPage.model_validate(data)

    async def get_release(
        self,
        release_id: int,
        *,
        cancel: CancellationToken | None = None,
        on_throttle: ThrottleCallback | None = None,
    ) -> dict:
        """Fetch a release (edition) record including its credits."""
        return await self.fetch_json(  # type: ignore[no-any-return]
            f"/releases/{release_id}", cancel=cancel, on_throttle=on_throttle
        )
