"""Shared fixtures: an in-memory stand-in for GitHubRestClient."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest
from gh_branch_protection.config import ProtectionConfig, RunSettings


class FakeResponse:
    def __init__(self, payload: Any = None) -> None:
        self._payload = payload if payload is not None else {}

    def json(self) -> Any:
        return self._payload


class FakeRest:
    """Records calls; list endpoints and failures are keyed by (METHOD, path)."""

    def __init__(self) -> None:
        self.lists: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []

    def request(self, method: str, path: str, *, params=None, json_body=None) -> FakeResponse:
        self.calls.append((method, path, json_body))
        err = self.failures.get((method, path))
        if err is not None:
            raise err
        if method == "POST" and path.endswith("/labels") and json_body:
            self.lists.setdefault(path, []).append({"name": json_body["name"]})
        return FakeResponse(json_body)

    def paginate(self, path: str, *, params=None):
        self.calls.append(("GET", path, None))
        err = self.failures.get(("GET", path))
        if err is not None:
            raise err
        yield from list(self.lists.get(path, []))

    def writes(self) -> List[Tuple[str, str, Optional[Dict[str, Any]]]]:
        return [c for c in self.calls if c[0] != "GET"]


@pytest.fixture
def fake_rest() -> FakeRest:
    rest = FakeRest()
    rest.lists["/repos/acme/widgets/branches"] = [
        {"name": "main"},
        {"name": "release-1"},
        {"name": "release-2"},
        {"name": "dev"},
    ]
    return rest


@pytest.fixture
def make_settings():
    def _make(**overrides: Any) -> RunSettings:
        return RunSettings(
            token="t0ken",
            owner="acme",
            repo="widgets",
            config=ProtectionConfig(**overrides),
        )

    return _make
