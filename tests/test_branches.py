from __future__ import annotations

import pytest
from gh_branch_protection.branches import (
    BranchProtectionClient,
    ProtectionSettings,
    pattern_to_regex,
    resolve_protected_branches,
)
from gh_branch_protection.config import ProtectionConfig

EXISTING = ["main", "release-1", "release-2", "dev"]


def test_exact_pattern_resolves_only_when_branch_exists() -> None:
    assert resolve_protected_branches(["main"], EXISTING) == ["main"]
    assert resolve_protected_branches(["master"], EXISTING) == []


def test_wildcard_pattern_matches_in_existing_order() -> None:
    assert resolve_protected_branches(["release-*"], EXISTING) == ["release-1", "release-2"]


def test_resolution_is_ordered_by_pattern_and_deduplicated() -> None:
    patterns = ["release-*", "main", "release-1", "*"]

    assert resolve_protected_branches(patterns, EXISTING) == ["release-1", "release-2", "main", "dev"]


def test_wildcard_is_anchored_and_literal_otherwise() -> None:
    rx = pattern_to_regex("release.*")

    assert rx.match("release.1")
    assert not rx.match("releaseX1")
    assert not pattern_to_regex("rel*").match("prerelease")
    assert pattern_to_regex("feature/*").match("feature/")


@pytest.mark.parametrize("patterns", [[], ["nope"], ["hotfix-*"]])
def test_resolution_can_be_empty(patterns) -> None:
    assert resolve_protected_branches(patterns, EXISTING) == []


def test_payload_defaults() -> None:
    payload = ProtectionSettings.from_config(ProtectionConfig()).to_payload()

    assert payload == {
        "required_status_checks": None,
        "enforce_admins": False,
        "required_pull_request_reviews": {
            "dismissal_restrictions": {},
            "dismiss_stale_reviews": True,
            "require_code_owner_reviews": False,
            "required_approving_review_count": 1,
        },
        "restrictions": None,
        "allow_force_pushes": False,
        "allow_deletions": False,
    }


def test_payload_includes_status_checks_only_when_enabled_and_listed() -> None:
    listed_but_disabled = ProtectionConfig(required_status_checks=["build"])
    enabled_but_empty = ProtectionConfig(require_status_checks=True)
    enabled = ProtectionConfig(require_status_checks=True, required_status_checks=["build", "test", "build"])

    assert ProtectionSettings.from_config(listed_but_disabled).to_payload()["required_status_checks"] is None
    assert ProtectionSettings.from_config(enabled_but_empty).to_payload()["required_status_checks"] is None
    assert ProtectionSettings.from_config(enabled).to_payload()["required_status_checks"] == {
        "strict": True,
        "contexts": ["build", "test"],
    }


def test_payload_overrides() -> None:
    config = ProtectionConfig(
        required_approvals=0,
        dismiss_stale_reviews=False,
        require_status_checks=True,
        required_status_checks=["ci"],
        require_up_to_date_branches=False,
        require_linear_history=True,
        allow_force_pushes=True,
        allow_deletions=True,
    )

    payload = ProtectionSettings.from_config(config).to_payload()

    assert payload["required_pull_request_reviews"]["required_approving_review_count"] == 0
    assert payload["required_pull_request_reviews"]["dismiss_stale_reviews"] is False
    assert payload["required_status_checks"]["strict"] is False
    assert payload["required_linear_history"] is True
    assert payload["allow_force_pushes"] is True
    assert payload["allow_deletions"] is True
    assert payload["enforce_admins"] is False
    assert payload["restrictions"] is None


def test_client_lists_branches_and_puts_protection(fake_rest) -> None:
    client = BranchProtectionClient(fake_rest)

    assert client.list_branch_names("acme", "widgets") == EXISTING

    client.update_protection("acme", "widgets", "release/1.0", ProtectionSettings())
    method, path, body = fake_rest.calls[-1]
    assert method == "PUT"
    assert path == "/repos/acme/widgets/branches/release%2F1.0/protection"
    assert body == ProtectionSettings().to_payload()
