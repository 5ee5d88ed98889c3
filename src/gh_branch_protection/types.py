from __future__ import annotations
from typing import Literal

ItemStatus = Literal["ok", "failed", "unchanged", "skipped", "dry_run"]
FailureKind = Literal["not_found", "permission_denied", "auth", "rate_limited", "error"]
LabelCategory = Literal["auto_merge", "skip"]
