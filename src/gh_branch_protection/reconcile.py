"""Drives one reconciliation run: branches, then repo settings, then labels.

Every write is an idempotent "set" or "create if missing", so a partial run is
recovered by running again. Per-item failures are collected into the report
instead of aborting the run.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests

from .branches import BranchProtectionClient, ProtectionSettings, resolve_protected_branches
from .config import RunSettings
from .exceptions import (
    GitHubApiError,
    GitHubAuthError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
)
from .labels import LabelsClient, plan_labels
from .repo_settings import RepoSettingsClient, merge_settings_payload
from .types import FailureKind, ItemStatus

log = logging.getLogger(__name__)

_HINTS: Dict[str, str] = {
    "not_found": "not found, or the token cannot see it",
    "permission_denied": "permission denied; the token needs admin rights on the repository",
    "auth": "authentication failed; check the token",
    "rate_limited": "rate limited; re-run later",
    "error": "request failed",
}


@dataclass
class ItemResult:
    name: str
    status: ItemStatus
    kind: Optional[FailureKind] = None
    detail: str = ""


@dataclass
class ReconcileReport:
    repository: str
    branches: List[ItemResult] = field(default_factory=list)
    repo_settings: Optional[ItemResult] = None
    labels: List[ItemResult] = field(default_factory=list)
    nothing_to_protect: bool = False

    def all_results(self) -> List[Tuple[str, ItemResult]]:
        out: List[Tuple[str, ItemResult]] = [("branch", r) for r in self.branches]
        if self.repo_settings is not None:
            out.append(("settings", self.repo_settings))
        out.extend(("label", r) for r in self.labels)
        return out

    def failures(self) -> List[Tuple[str, ItemResult]]:
        return [(section, r) for section, r in self.all_results() if r.status == "failed"]

    def counts(self) -> Dict[str, int]:
        return dict(Counter(r.status for _, r in self.all_results()))


def classify_failure(exc: Exception) -> Tuple[FailureKind, str]:
    """Maps an API/transport exception to a failure kind and a log hint."""
    kind: FailureKind
    if isinstance(exc, GitHubRateLimitError):
        kind = "rate_limited"
    elif isinstance(exc, GitHubNotFoundError):
        kind = "not_found"
    elif isinstance(exc, GitHubPermissionError):
        kind = "permission_denied"
    elif isinstance(exc, GitHubAuthError):
        kind = "auth"
    else:
        kind = "error"
    return kind, _HINTS[kind]


def _failed(name: str, exc: Exception) -> ItemResult:
    kind, hint = classify_failure(exc)
    return ItemResult(name, "failed", kind, f"{hint}: {exc}")


@dataclass
class Reconciler:
    settings: RunSettings
    branches: BranchProtectionClient
    repo_settings: RepoSettingsClient
    labels: LabelsClient
    dry_run: bool = False

    @property
    def owner(self) -> str:
        return self.settings.owner

    @property
    def repo(self) -> str:
        return self.settings.repo

    def run(self) -> ReconcileReport:
        """
        Raises GitHubApiError only when the branch list cannot be fetched;
        everything after that is recorded per item.
        """
        report = ReconcileReport(repository=self.settings.full_name)
        cfg = self.settings.config

        existing = self.branches.list_branch_names(self.owner, self.repo)
        log.info("Found %d branches in %s", len(existing), report.repository)

        resolved = resolve_protected_branches(cfg.protected_branches, existing)
        if not resolved:
            log.warning(
                "No existing branch matches protected_branches=%s; nothing to protect",
                cfg.protected_branches,
            )
            report.nothing_to_protect = True
            return report

        report.branches = self.apply_branch_protection(resolved)
        report.repo_settings = self.update_repo_settings()
        report.labels = self.reconcile_labels()
        return report

    def apply_branch_protection(self, branches: List[str]) -> List[ItemResult]:
        protection = ProtectionSettings.from_config(self.settings.config)
        results: List[ItemResult] = []

        for branch in branches:
            if self.dry_run:
                log.info("dry-run: would PUT protection %s@%s payload=%s", self.settings.full_name, branch, protection.to_payload())
                results.append(ItemResult(branch, "dry_run"))
                continue
            try:
                self.branches.update_protection(self.owner, self.repo, branch, protection)
            except (GitHubApiError, requests.RequestException) as e:
                result = _failed(branch, e)
                log.warning("Protection failed for %s: %s", branch, result.detail)
                results.append(result)
                continue
            log.info(
                "Protection set: %s@%s (approvals=%d, dismiss_stale=%s, force_push=%s, deletions=%s, checks=%s, strict=%s)",
                self.settings.full_name,
                branch,
                protection.required_approvals,
                protection.dismiss_stale_reviews,
                protection.allow_force_pushes,
                protection.allow_deletions,
                list(protection.status_checks),
                protection.strict_status_checks if protection.status_checks else None,
            )
            results.append(ItemResult(branch, "ok"))

        return results

    def update_repo_settings(self) -> ItemResult:
        name = "merge settings"
        delete_on_merge = self.settings.config.delete_branch_after_merge

        if self.dry_run:
            payload: Dict[str, Any] = merge_settings_payload(delete_branch_on_merge=delete_on_merge)
            log.info("dry-run: would PATCH repo settings %s payload=%s", self.settings.full_name, payload)
            return ItemResult(name, "dry_run")

        try:
            self.repo_settings.update_merge_settings(
                self.owner,
                self.repo,
                delete_branch_on_merge=delete_on_merge,
            )
        except (GitHubApiError, requests.RequestException) as e:
            result = _failed(name, e)
            log.warning("Repository settings not updated: %s", result.detail)
            return result

        log.info("Repo settings updated: %s (delete_branch_on_merge=%s)", self.settings.full_name, delete_on_merge)
        return ItemResult(name, "ok")

    def reconcile_labels(self) -> List[ItemResult]:
        wanted = plan_labels(self.settings.config)
        if not wanted:
            log.info("No labels configured")
            return []

        try:
            existing = self.labels.list_label_names(self.owner, self.repo)
        except (GitHubApiError, requests.RequestException) as e:
            result = _failed("labels", e)
            log.warning("Cannot list labels: %s", result.detail)
            return [result]

        # GitHub label names are case-insensitive
        existing_lower = {n.lower() for n in existing}
        results: List[ItemResult] = []

        for spec in wanted:
            if spec.name.lower() in existing_lower:
                log.info("Label already exists: %s", spec.name)
                results.append(ItemResult(spec.name, "unchanged"))
                continue
            if self.dry_run:
                log.info("dry-run: would create label %s (color=%s)", spec.name, spec.color)
                results.append(ItemResult(spec.name, "dry_run"))
                continue
            try:
                self.labels.create_label(
                    self.owner,
                    self.repo,
                    name=spec.name,
                    color=spec.color,
                    description=spec.description,
                )
            except (GitHubApiError, requests.RequestException) as e:
                result = _failed(spec.name, e)
                log.warning("Label %s not created: %s", spec.name, result.detail)
                results.append(result)
                continue
            log.info("Label created: %s (%s)", spec.name, spec.category)
            existing_lower.add(spec.name.lower())
            results.append(ItemResult(spec.name, "ok"))

        return results
