from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from .config import ProtectionConfig
from .rest import GitHubRestClient
from .utils import dedupe_preserve_order


def pattern_to_regex(pattern: str) -> "re.Pattern[str]":
    """
    "release-*" matches "release-1" and "release-"; "*" is any run of characters.
    """
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(f"^{body}$")


def resolve_protected_branches(patterns: Sequence[str], existing: Sequence[str]) -> List[str]:
    """
    Returns the existing branches matched by `patterns`.

    Order follows the patterns; within a wildcard pattern it follows `existing`.
    A branch matched by more than one pattern is listed once.
    """
    existing_set = set(existing)
    matched: List[str] = []
    for pattern in patterns:
        if "*" not in pattern:
            if pattern in existing_set:
                matched.append(pattern)
            continue
        rx = pattern_to_regex(pattern)
        matched.extend(b for b in existing if rx.match(b))
    return dedupe_preserve_order(matched)


@dataclass(frozen=True)
class ProtectionSettings:
    required_approvals: int = 1
    dismiss_stale_reviews: bool = True
    status_checks: Tuple[str, ...] = field(default_factory=tuple)
    strict_status_checks: bool = True
    require_linear_history: bool = False
    allow_force_pushes: bool = False
    allow_deletions: bool = False

    @classmethod
    def from_config(cls, config: ProtectionConfig) -> "ProtectionSettings":
        checks: Tuple[str, ...] = ()
        if config.require_status_checks:
            checks = tuple(dedupe_preserve_order(config.required_status_checks))
        return cls(
            required_approvals=config.required_approvals,
            dismiss_stale_reviews=config.dismiss_stale_reviews,
            status_checks=checks,
            strict_status_checks=config.require_up_to_date_branches,
            require_linear_history=config.require_linear_history,
            allow_force_pushes=config.allow_force_pushes,
            allow_deletions=config.allow_deletions,
        )

    def to_payload(self) -> Dict[str, Any]:
        """
        Body for PUT /repos/{owner}/{repo}/branches/{branch}/protection.

        Admins are never enforced and pushes are never restricted so the
        automation token can always merge.
        """
        required_status_checks: Optional[Dict[str, Any]] = None
        if self.status_checks:
            required_status_checks = {
                "strict": self.strict_status_checks,
                "contexts": list(self.status_checks),
            }

        payload: Dict[str, Any] = {
            "required_status_checks": required_status_checks,
            "enforce_admins": False,
            "required_pull_request_reviews": {
                "dismissal_restrictions": {},
                "dismiss_stale_reviews": self.dismiss_stale_reviews,
                "require_code_owner_reviews": False,
                "required_approving_review_count": self.required_approvals,
            },
            "restrictions": None,
            "allow_force_pushes": self.allow_force_pushes,
            "allow_deletions": self.allow_deletions,
        }
        if self.require_linear_history:
            payload["required_linear_history"] = True
        return payload


@dataclass
class BranchProtectionClient:
    gh: GitHubRestClient

    def list_branch_names(self, owner: str, repo: str) -> List[str]:
        path = f"/repos/{owner}/{repo}/branches"
        return [b["name"] for b in self.gh.paginate(path) if b.get("name")]

    def update_protection(
        self,
        owner: str,
        repo: str,
        branch: str,
        settings: ProtectionSettings,
    ) -> Dict[str, Any]:
        path = f"/repos/{owner}/{repo}/branches/{quote(branch, safe='')}/protection"
        return self.gh.request("PUT", path, json_body=settings.to_payload()).json()

