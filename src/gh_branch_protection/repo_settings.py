from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .rest import GitHubRestClient


def merge_settings_payload(*, delete_branch_on_merge: bool) -> Dict[str, Any]:
    # All three merge strategies stay enabled; auto-merge picks per PR.
    return {
        "allow_squash_merge": True,
        "allow_merge_commit": True,
        "allow_rebase_merge": True,
        "delete_branch_on_merge": delete_branch_on_merge,
    }


@dataclass
class RepoSettingsClient:
    gh: GitHubRestClient

    def update_merge_settings(
        self,
        owner: str,
        repo: str,
        *,
        delete_branch_on_merge: bool = True,
    ) -> Dict[str, Any]:
        path = f"/repos/{owner}/{repo}"
        body = merge_settings_payload(delete_branch_on_merge=delete_branch_on_merge)
        return self.gh.request("PATCH", path, json_body=body).json()
