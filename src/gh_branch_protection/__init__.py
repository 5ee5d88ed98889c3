from __future__ import annotations

from .branches import BranchProtectionClient, ProtectionSettings, resolve_protected_branches
from .config import ProtectionConfig, RunSettings, load_config, load_settings
from .exceptions import (
    ConfigurationError,
    GitHubApiError,
    GitHubAuthError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
)
from .labels import LabelsClient, plan_labels
from .reconcile import ItemResult, Reconciler, ReconcileReport
from .repo_settings import RepoSettingsClient
from .rest import GitHubRestClient

def create_reconciler(settings: RunSettings, *, dry_run: bool = False) -> Reconciler:
    """
    Builds one REST session for the run and wires the per-endpoint clients to it.
    """
    rest = GitHubRestClient(token=settings.token, base_url=settings.api_url)
    return Reconciler(
        settings=settings,
        branches=BranchProtectionClient(rest),
        repo_settings=RepoSettingsClient(rest),
        labels=LabelsClient(rest),
        dry_run=dry_run,
    )

__all__ = [
    "BranchProtectionClient",
    "ConfigurationError",
    "GitHubApiError",
    "GitHubAuthError",
    "GitHubNotFoundError",
    "GitHubPermissionError",
    "GitHubRateLimitError",
    "GitHubRestClient",
    "ItemResult",
    "LabelsClient",
    "ProtectionConfig",
    "ProtectionSettings",
    "ReconcileReport",
    "Reconciler",
    "RepoSettingsClient",
    "RunSettings",
    "create_reconciler",
    "load_config",
    "load_settings",
    "plan_labels",
    "resolve_protected_branches",
]
