"""Desired-state configuration for a single repository.

The YAML file looks like::

    branch_protection:
      protected_branches: [main, "release-*"]
      required_approvals: 1
      require_status_checks: true
      required_status_checks: [build, test]
      auto_merge_labels: [automerge]
      skip_labels: [do-not-merge]

Everything is validated once in :func:`load_config`; the rest of the package
only sees a :class:`ProtectionConfig`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .auth import get_repository_from_env, get_token_from_env, split_repository
from .exceptions import ConfigurationError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".github/auto-merge.yml"
CONFIG_SECTION = "branch_protection"
DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class ProtectionConfig:
    protected_branches: List[str] = field(default_factory=lambda: ["main"])
    required_approvals: int = 1
    dismiss_stale_reviews: bool = True
    require_status_checks: bool = False
    required_status_checks: List[str] = field(default_factory=list)
    require_up_to_date_branches: bool = True
    require_linear_history: bool = False
    allow_force_pushes: bool = False
    allow_deletions: bool = False
    delete_branch_after_merge: bool = True
    auto_merge_labels: List[str] = field(default_factory=list)
    skip_labels: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "ProtectionConfig":
        known = {f.name: f for f in fields(cls)}
        for key in section:
            if key not in known:
                log.debug("Ignoring unknown %s key %r", CONFIG_SECTION, key)

        kwargs: Dict[str, Any] = {}
        for name, f in known.items():
            if name not in section or section[name] is None:
                continue
            value = section[name]
            if f.type in ("bool", bool):
                kwargs[name] = _as_bool(name, value)
            elif f.type in ("int", int):
                kwargs[name] = _as_non_negative_int(name, value)
            else:
                kwargs[name] = _as_str_list(name, value)
        return cls(**kwargs)


@dataclass(frozen=True)
class RunSettings:
    token: str
    owner: str
    repo: str
    config: ProtectionConfig
    api_url: str = DEFAULT_API_URL

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def _as_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{CONFIG_SECTION}.{name} must be true or false, got {value!r}")
    return value


def _as_non_negative_int(name: str, value: Any) -> int:
    # bool is an int subclass; `required_approvals: yes` is a mistake, not 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"{CONFIG_SECTION}.{name} must be a non-negative integer, got {value!r}")
    return value


def _as_str_list(name: str, value: Any) -> List[str]:
    if not isinstance(value, list):
        raise ConfigurationError(f"{CONFIG_SECTION}.{name} must be a list, got {type(value).__name__}")
    out: List[str] = []
    for item in value:
        # YAML turns unquoted 1.10 into the float 1.1; the original text is gone by now
        if not isinstance(item, str):
            raise ConfigurationError(
                f"{CONFIG_SECTION}.{name} entries must be strings, got {item!r} "
                "(quote numeric names, e.g. \"1.10\")"
            )
        text = item.strip()
        if text:
            out.append(text)
    return out


def load_config(path: Union[str, Path]) -> ProtectionConfig:
    p = Path(path)
    if not p.is_file():
        raise ConfigurationError(f"Configuration file not found: {p}")

    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {p}: {e}") from e

    if not isinstance(doc, dict):
        raise ConfigurationError(f"{p} must contain a YAML mapping")

    section = doc.get(CONFIG_SECTION)
    if section is None:
        raise ConfigurationError(f"{p} has no '{CONFIG_SECTION}' section")
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{CONFIG_SECTION}' in {p} must be a mapping")

    return ProtectionConfig.from_mapping(section)


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
) -> RunSettings:
    """
    Validates, in order: token, repository, config file, config section.
    Raises ConfigurationError on the first problem.
    """
    env = os.environ if environ is None else environ

    token = get_token_from_env(env)
    if not token:
        raise ConfigurationError("GITHUB_TOKEN is not set (GH_TOKEN is also accepted).")

    full_name = get_repository_from_env(env)
    if not full_name:
        raise ConfigurationError("GITHUB_REPOSITORY is not set (expected 'owner/repo').")
    owner, repo = split_repository(full_name)

    config = load_config(config_path)

    api_url = (env.get("GITHUB_API_URL") or "").strip() or DEFAULT_API_URL
    return RunSettings(token=token, owner=owner, repo=repo, config=config, api_url=api_url)
