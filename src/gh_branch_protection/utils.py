from __future__ import annotations

import re
import time
from typing import Any, Dict, Iterable, List, Optional
import requests

_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="([^"]+)"')


def is_absolute_url(s: str) -> bool:
    return s.startswith("https://") or s.startswith("http://")


def parse_link_header(link: str) -> Dict[str, str]:
    """
    Parses GitHub Link headers:
      <https://api.github.com/...page=2>; rel="next", <...>; rel="last"
    Returns mapping rel -> url.
    """
    out: Dict[str, str] = {}
    for part in (link or "").split(","):
        m = _LINK_RE.match(part.strip())
        if m:
            out[m.group(2)] = m.group(1)
    return out


def safe_json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def req_id(resp: requests.Response) -> Optional[str]:
    return resp.headers.get("X-GitHub-Request-Id")


def is_rate_limited(resp: requests.Response) -> bool:
    remaining = resp.headers.get("X-RateLimit-Remaining")
    if remaining is not None and remaining.isdigit() and int(remaining) == 0:
        return True

    payload = safe_json(resp)
    if isinstance(payload, dict):
        return "rate limit" in str(payload.get("message", "")).lower()
    return False


def try_get_rate_limit_reset(resp: requests.Response) -> Optional[int]:
    reset = resp.headers.get("X-RateLimit-Reset")
    if reset and reset.isdigit():
        return int(reset)
    return None


def sleep_backoff(attempt: int, base_s: float, max_s: float) -> None:
    time.sleep(min(max_s, base_s * (2 ** attempt)))


def dedupe_preserve_order(items: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
