from __future__ import annotations

import os
from typing import Mapping, Optional, Tuple

from .exceptions import ConfigurationError


def get_token_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_TOKEN") or env.get("GH_TOKEN") or None


def get_repository_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    return (env.get("GITHUB_REPOSITORY") or "").strip() or None


def split_repository(full_name: str) -> Tuple[str, str]:
    """
    "octo-org/widgets" -> ("octo-org", "widgets")
    """
    owner, sep, repo = full_name.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ConfigurationError(
            f"GITHUB_REPOSITORY must look like 'owner/repo', got {full_name!r}"
        )
    return owner, repo
