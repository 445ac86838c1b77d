"""
eBird API 2.0 client.

Low-level HTTP client: request building and the token header. Request
spacing for api.ebird.org lives in the shared session
(``services.http.HOST_INTERVALS``).

API docs: https://documenter.getpostman.com/view/664302/S1ENwy59
Limits: undocumented; heavy clients get throttled.
"""

from __future__ import annotations

from typing import Any

from traveling_birder.services.http import session

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
API_BASE = "https://api.ebird.org/v2"
TOKEN_HEADER = "X-eBirdApiToken"
MAX_REGION_RESULTS = 10_000

CHECKLIST_URL = "https://ebird.org/checklist/{sub_id}"
HOTSPOT_URL = "https://ebird.org/hotspot/{loc_id}"


class MissingAPIKeyError(RuntimeError):
    """Raised when an eBird call is attempted without a token."""


def get(endpoint: str, api_key: str | None, params: dict[str, Any] | None = None) -> Any:
    """Make an authenticated GET request to the eBird API."""
    if not api_key:
        msg = "eBird API key not configured (set BIRDER_EBIRD_API_KEY)"
        raise MissingAPIKeyError(msg)
    url = f"{API_BASE}/{endpoint}"
    resp = session.get(url, params=params or {}, headers={TOKEN_HEADER: api_key})
    resp.raise_for_status()
    return resp.json()
