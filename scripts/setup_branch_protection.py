#!/usr/bin/env python3
"""Configure branch protection, merge settings and labels for $GITHUB_REPOSITORY.

Usage:
  GITHUB_TOKEN=... GITHUB_REPOSITORY=owner/repo \
    python scripts/setup_branch_protection.py [--config .github/auto-merge.yml] [--dry-run]
"""
from __future__ import annotations

from gh_branch_protection.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
