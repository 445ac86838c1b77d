"""
Shared HTTP client: retry with backoff, default timeout, per-host spacing.

eBird throttles heavy clients without documenting a limit, and ORS's free
tier allows roughly 40 directions requests a minute. Both are plain GETs or
POSTs through one ``requests.Session``, so spacing is enforced at the
session's ``send`` and callers never sleep themselves.

Usage::

    from traveling_birder.services.http import session

    resp = session.get("https://api.ebird.org/v2/ref/hotspot/geo")
    resp.raise_for_status()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

#: Retry idempotent requests on throttling and gateway errors.
DEFAULT_RETRY = Retry(
    total=3,
    backoff_factor=1,  # 0s, 1s, 2s between retries
    status_forcelist=[429, 502, 503, 504],
    allowed_methods=["GET", "HEAD", "OPTIONS"],
    respect_retry_after_header=True,
    raise_on_status=False,  # callers decide via resp.raise_for_status()
)

DEFAULT_TIMEOUT = 20  # seconds

USER_AGENT = "traveling-birder/0.1"

#: Minimum seconds between requests to the same host.
HOST_INTERVALS: dict[str, float] = {
    "api.ebird.org": 0.5,
    "api.openrouteservice.org": 1.5,
}


class ThrottledSession(requests.Session):
    """
    ``requests.Session`` that spaces requests per host.

    Every prepared request passes through ``send``, so spacing also covers
    retries the adapter does not make (redirect follow-ups, manual resends).
    A lock keeps the spacing honest when fetchers run in worker threads.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        intervals: Mapping[str, float] | None = None,
    ) -> None:
        super().__init__()
        self.timeout = timeout
        self.intervals = dict(HOST_INTERVALS if intervals is None else intervals)
        self._last_sent: dict[str, float] = {}
        self._lock = threading.Lock()

    def wait_for_slot(self, host: str) -> float:
        """Block until ``host`` may be contacted again; return seconds slept."""
        interval = self.intervals.get(host, 0.0)
        if interval <= 0:
            return 0.0
        with self._lock:
            now = time.monotonic()
            last = self._last_sent.get(host)
            delay = 0.0 if last is None else max(0.0, interval - (now - last))
            if delay:
                logger.debug("Spacing request to %s by %.2fs", host, delay)
                time.sleep(delay)
            self._last_sent[host] = time.monotonic()
        return delay

    def send(  # type: ignore[override]
        self, request: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        host = urlsplit(request.url or "").hostname or ""
        self.wait_for_slot(host)
        return super().send(request, **kwargs)  # type: ignore[arg-type]


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    intervals: Mapping[str, float] | None = None,
) -> ThrottledSession:
    """
    Build a ``ThrottledSession`` with the retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``DEFAULT_RETRY``).
        timeout: Default timeout applied to every request.
        intervals: Per-host spacing in seconds (defaults to ``HOST_INTERVALS``).
    """
    s = ThrottledSession(timeout=timeout, intervals=intervals)
    adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = USER_AGENT
    return s


#: Module-level session, import and use directly.
session: ThrottledSession = create_session()
