from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import requests

from .exceptions import (
    GitHubApiError,
    GitHubAuthError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
)
from .utils import (
    is_absolute_url,
    is_rate_limited,
    parse_link_header,
    req_id,
    safe_json,
    sleep_backoff,
    try_get_rate_limit_reset,
)

log = logging.getLogger(__name__)

RETRYABLE_STATUSES = (500, 502, 503, 504)
# Only wait out a rate limit inline when the window resets this soon.
MAX_INLINE_RATE_LIMIT_WAIT_S = 15


@dataclass
class GitHubRestClient:
    token: str
    base_url: str = "https://api.github.com"
    api_version: str = "2022-11-28"
    timeout_s: int = 30

    # Retry controls
    max_retries: int = 4
    backoff_base_s: float = 0.8
    max_backoff_s: float = 10.0

    user_agent: str = "gh-branch-protection/1.0"

    def __post_init__(self) -> None:
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": self.api_version,
            "User-Agent": self.user_agent,
        })

    def _build_url(self, path_or_url: str) -> str:
        if is_absolute_url(path_or_url):
            return path_or_url
        return self.base_url.rstrip("/") + path_or_url

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        url = self._build_url(path)
        last_err: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                resp = self.session.request(
                    method=method.upper(),
                    url=url,
                    params=params,
                    json=json_body,
                    timeout=self.timeout_s,
                )
                if resp.status_code >= 400:
                    self._raise_for_status(resp)
                return resp

            except GitHubRateLimitError as e:
                if e.reset_epoch is not None and attempt < self.max_retries:
                    sleep_s = max(0, e.reset_epoch - int(time.time()))
                    if sleep_s <= MAX_INLINE_RATE_LIMIT_WAIT_S:
                        log.warning("Rate limited on %s %s; waiting %ds", method.upper(), path, sleep_s + 1)
                        time.sleep(sleep_s + 1)
                        continue
                raise

            except (requests.Timeout, requests.ConnectionError) as e:
                last_err = e
                if attempt >= self.max_retries:
                    raise
                log.debug("Transport error on %s %s (attempt %d): %s", method.upper(), path, attempt + 1, e)
                sleep_backoff(attempt, self.backoff_base_s, self.max_backoff_s)
                continue

            except GitHubApiError as e:
                last_err = e
                if e.status in RETRYABLE_STATUSES and attempt < self.max_retries:
                    log.debug("Server error %d on %s %s; retrying", e.status, method.upper(), path)
                    sleep_backoff(attempt, self.backoff_base_s, self.max_backoff_s)
                    continue
                raise

        if last_err:
            raise last_err
        raise RuntimeError("Unexpected request() control flow.")

    def paginate(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Iterator[Any]:
        """
        Yields items from list endpoints, following Link: rel="next".
        """
        next_url: Optional[str] = path
        params_local: Optional[Dict[str, Any]] = {"per_page": 100, **(params or {})}

        while next_url:
            resp = self.request("GET", next_url, params=params_local)
            data = resp.json()

            if not isinstance(data, list):
                raise GitHubApiError(
                    resp.status_code,
                    "Expected list response for paginated endpoint.",
                    response_json=data,
                    request_id=req_id(resp),
                )

            yield from data

            next_url = parse_link_header(resp.headers.get("Link", "")).get("next")
            # The next URL already carries the query string
            params_local = None

    def _raise_for_status(self, resp: requests.Response) -> None:
        payload = safe_json(resp)
        if isinstance(payload, dict) and "message" in payload:
            msg = str(payload.get("message", ""))
        else:
            msg = resp.text[:200]

        request_id = req_id(resp)
        status = resp.status_code

        if status == 429 or (status == 403 and is_rate_limited(resp)):
            raise GitHubRateLimitError(
                status,
                msg or "Rate limit exceeded",
                reset_epoch=try_get_rate_limit_reset(resp),
                response_json=payload,
                request_id=request_id,
            )
        if status == 401:
            raise GitHubAuthError(status, msg or "Unauthorized", response_json=payload, request_id=request_id)
        if status == 403:
            raise GitHubPermissionError(status, msg or "Forbidden", response_json=payload, request_id=request_id)
        if status == 404:
            raise GitHubNotFoundError(status, msg or "Not Found", response_json=payload, request_id=request_id)

        raise GitHubApiError(status, msg or "Request failed", response_json=payload, request_id=request_id)
