from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import requests

from . import create_reconciler
from .config import DEFAULT_CONFIG_PATH, load_settings
from .exceptions import ConfigurationError, GitHubApiError
from .reconcile import ReconcileReport

log = logging.getLogger("gh_branch_protection")

EXIT_OK = 0
EXIT_REMOTE_ERROR = 1
EXIT_CONFIG_ERROR = 2


def render_summary(report: ReconcileReport, *, dry_run: bool = False) -> str:
    lines: List[str] = []
    title = f"Branch protection summary for {report.repository}"
    if dry_run:
        title += " (dry run)"
    lines.append(title)
    lines.append("=" * len(title))

    if report.nothing_to_protect:
        lines.append("No configured branch exists yet; nothing was changed.")
        return "\n".join(lines)

    for section, r in report.all_results():
        suffix = f" - {r.detail}" if r.detail else ""
        lines.append(f"  [{r.status}] {section}: {r.name}{suffix}")

    counts = report.counts()
    lines.append("")
    lines.append("Totals: " + ", ".join(f"{k}={counts[k]}" for k in sorted(counts)))

    lines.append("")
    lines.append("Next steps:")
    if report.failures():
        lines.append("  - Fix the failures above (usually token permissions) and re-run; every step is safe to repeat.")
    if dry_run:
        lines.append("  - Re-run without --dry-run to apply these changes.")
    lines.append("  - Add an auto-merge label to a pull request to opt it in; add a skip label to keep it out.")
    lines.append("  - Make sure 'Allow auto-merge' is enabled if pull requests should merge on their own.")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Apply branch protection, merge settings and auto-merge labels from a YAML file.",
    )
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH, help=f"Path to YAML config (default: {DEFAULT_CONFIG_PATH})")
    ap.add_argument("--dry-run", action="store_true", help="Read remote state and log intended writes only")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        settings = load_settings(config_path=args.config)
    except ConfigurationError as e:
        log.error("%s", e)
        return EXIT_CONFIG_ERROR

    log.info("Reconciling %s from %s", settings.full_name, args.config)
    reconciler = create_reconciler(settings, dry_run=args.dry_run)

    try:
        report = reconciler.run()
    except (GitHubApiError, requests.RequestException) as e:
        log.error("Cannot list branches of %s: %s", settings.full_name, e)
        return EXIT_REMOTE_ERROR

    print(render_summary(report, dry_run=args.dry_run))
    if report.failures():
        log.warning("%d item(s) failed; re-run after fixing them", len(report.failures()))
    else:
        log.info("Done.")
    return EXIT_OK
