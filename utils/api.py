# utils/api.py
from __future__ import annotations

import os
import time
import requests
import logging
import random
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from urllib.parse import urljoin

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]


def load_env_if_opted_in() -> None:
    """
    only load .env files when explicitly opted in
    - Set PYTHON_DOTENV_LOAD=1 to enable
    - PYTHON_DOTENV_DISABLE=1 always disables
    """
    if os.getenv("PYTHON_DOTENV_DISABLE") == "1":
        return
    if os.getenv("PYTHON_DOTENV_LOAD") != "1":
        return

    # Load env files (repo defaults, then local overrides)
    load_dotenv(str(REPO_ROOT / ".env"))
    load_dotenv(str(REPO_ROOT / ".env.local"), override=True)


# --- Tunables ---------------------------------------------------------------
DEFAULT_TIMEOUT: tuple[float, float] = (5, 30)  # (connect, read) seconds
DEFAULT_PER_PAGE = 100
USER_AGENT = "MediaLinkIcons/1.0 (+https://example.org)"  # customize
MAX_ATTEMPTS = 4


def timeout_from_env() -> tuple[float, float]:
    """Read CONTENT_HTTP_TIMEOUT="connect,read"; fall back to DEFAULT_TIMEOUT."""
    raw = os.getenv("CONTENT_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        parts = [float(p.strip()) for p in raw.split(",")]
    except ValueError:
        return DEFAULT_TIMEOUT
    if len(parts) != 2:
        return DEFAULT_TIMEOUT
    return (parts[0], parts[1])


log = logging.getLogger(__name__)


class ContentAPI:
    def __init__(self, base_url: str | None, token: str | None,
                 timeout: tuple[float, float] | None = None) -> None:
        if not base_url or not token:
            raise ValueError("ContentAPI base_url and token are required (check your .env)")

        self.api_root = base_url.rstrip("/") + "/"
        self.timeout = timeout or timeout_from_env()

        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "User-Agent": USER_AGENT,
        })

    def _full_url(self, endpoint: str) -> str:
        ep = (endpoint or "").strip()
        if ep.startswith("http://") or ep.startswith("https://"):
            return ep
        return urljoin(self.api_root, ep.lstrip("/"))

    # Basic retry/backoff for 429/5xx + timeouts
    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        delay = 1.0
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)

                if resp.status_code == 429 and attempt < MAX_ATTEMPTS:
                    retry_after = float(resp.headers.get("Retry-After", delay))
                    jitter = random.uniform(0, 0.25 * retry_after)
                    wait_time = retry_after + jitter
                    log.warning(
                        "Rate limited: 429 received. Retrying after %.2fs (attempt %s/%s)",
                        wait_time, attempt, MAX_ATTEMPTS,
                        extra={"url": url, "retry_after": retry_after},
                    )
                    time.sleep(wait_time)
                    continue

                resp.raise_for_status()
                return resp

            except requests.HTTPError as e:
                status = getattr(e.response, "status_code", None)
                if status and status >= 500 and attempt < MAX_ATTEMPTS:
                    jitter = random.uniform(0, 0.25 * delay)
                    wait_time = delay + jitter
                    log.warning(
                        "Server error %s. Retrying after %.2fs (attempt %s/%s)",
                        status, wait_time, attempt, MAX_ATTEMPTS,
                        extra={"url": url},
                    )
                    time.sleep(wait_time)
                    delay *= 2
                    continue
                raise

            except (requests.ConnectionError, requests.Timeout):
                if attempt < MAX_ATTEMPTS:
                    jitter = random.uniform(0, 0.25 * delay)
                    wait_time = delay + jitter
                    log.warning(
                        "Connection/timeout error. Retrying after %.2fs (attempt %s/%s)",
                        wait_time, attempt, MAX_ATTEMPTS,
                        extra={"url": url},
                    )
                    time.sleep(wait_time)
                    delay *= 2
                    continue
                raise

        raise requests.HTTPError(f"{method} {url} failed after {MAX_ATTEMPTS} attempts")

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """
        GET with transparent pagination.
        - If the endpoint returns a list, we return a combined list across pages.
        - If it returns a single object, we return that dict.
        """
        url: Optional[str] = self._full_url(endpoint)

        params = dict(params or {})
        params.setdefault("per_page", DEFAULT_PER_PAGE)

        results: List[Dict[str, Any]] = []
        first = True
        while url:
            # Only send params on the first request; follow-ups use absolute next URLs.
            r = self._request("GET", url, params=params if first else None)
            first = False
            data = r.json()

            if isinstance(data, list):
                results.extend(data)
            else:
                return data  # single object; no pagination

            url = self._next_link(r.headers)

        return results

    def put(self, endpoint: str, *, json: Optional[Dict[str, Any]] = None,
            params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Raw PUT; returns Response."""
        url = self._full_url(endpoint)
        return self._request("PUT", url, json=json, params=params)

    def _next_link(self, headers: Dict[str, Any]) -> Optional[str]:
        """
        Extract the 'next' URL from an RFC5988 Link header.
        Accepts rel=next and rel="next". Returns None if not present.
        """
        link_hdr = headers.get("Link") or headers.get("link")
        if not link_hdr:
            return None
        for raw in link_hdr.split(","):
            parts = [p.strip() for p in raw.split(";")]
            if not parts or not (parts[0].startswith("<") and ">" in parts[0]):
                continue
            url_part = parts[0]
            rel_parts = [p.lower() for p in parts[1:]]
            if any(r == "rel=next" or r == 'rel="next"' for r in rel_parts):
                return url_part[url_part.find("<") + 1 : url_part.find(">")]
        return None


def api_from_env(url_env: str = "CONTENT_API_URL", token_env: str = "CONTENT_API_TOKEN") -> ContentAPI:
    """Build a ContentAPI from the environment; raises ValueError when unset."""
    load_env_if_opted_in()
    return ContentAPI(os.getenv(url_env), os.getenv(token_env))


__all__ = [
    "ContentAPI",
    "DEFAULT_TIMEOUT",
    "DEFAULT_PER_PAGE",
    "USER_AGENT",
    "api_from_env",
    "load_env_if_opted_in",
    "timeout_from_env",
]
