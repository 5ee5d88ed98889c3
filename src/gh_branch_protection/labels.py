from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Set

from .config import ProtectionConfig
from .rest import GitHubRestClient
from .types import LabelCategory

SKIP_LABEL_COLOR = "d93f0b"
AUTO_MERGE_LABEL_COLOR = "0e8a16"

LABEL_DESCRIPTIONS: Dict[str, str] = {
    "auto_merge": "Automatically merge this pull request once requirements pass",
    "skip": "Skip automatic merging for this pull request",
}


@dataclass(frozen=True)
class LabelSpec:
    name: str
    category: LabelCategory

    @property
    def color(self) -> str:
        return SKIP_LABEL_COLOR if self.category == "skip" else AUTO_MERGE_LABEL_COLOR

    @property
    def description(self) -> str:
        return LABEL_DESCRIPTIONS[self.category]


def plan_labels(config: ProtectionConfig) -> List[LabelSpec]:
    """
    Union of auto_merge_labels then skip_labels, first occurrence wins.
    """
    seen: Set[str] = set()
    out: List[LabelSpec] = []
    sources = (("auto_merge", config.auto_merge_labels), ("skip", config.skip_labels))
    for category, names in sources:
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            out.append(LabelSpec(name=name, category=category))  # type: ignore[arg-type]
    return out


@dataclass
class LabelsClient:
    gh: GitHubRestClient

    def list_label_names(self, owner: str, repo: str) -> List[str]:
        path = f"/repos/{owner}/{repo}/labels"
        return [lbl["name"] for lbl in self.gh.paginate(path) if lbl.get("name")]

    def create_label(
        self,
        owner: str,
        repo: str,
        *,
        name: str,
        color: str,
        description: str = "",
    ) -> Dict[str, Any]:
        path = f"/repos/{owner}/{repo}/labels"
        body: Dict[str, Any] = {"name": name, "color": color}
        if description:
            body["description"] = description
        return self.gh.request("POST", path, json_body=body).json()
