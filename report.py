#!/usr/bin/env python3
"""
Git history report - snapshot bookkeeping and CLI.

Usage:
    python report.py            # last 3 weeks
    python report.py 6          # last 6 weeks
    python report.py all        # full history
    python report.py 6 ./site   # write reports/ under ./site

Each run writes reports/snapshots/<date>.html, updates the snapshot
manifest and the reports/git-history.html index, and leaves a local copy
git-report-<YYYYMMDD>.html in the current directory.
"""

import json
import os
import sys
import webbrowser
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from lanes import assign_layout
from visualize import (
    COLORS,
    MAX_COLUMNS,
    ReportError,
    generate_main_page,
    generate_snapshot_html,
    load_commits,
    repo_name,
    report_stats,
)

load_dotenv()

DEFAULT_WEEKS = 3
MANIFEST_KEYS = ("date", "commits", "authors")


@dataclass
class ReportResult:
    snapshot_file: Path
    manifest_file: Path
    main_page_file: Path
    local_file: Path
    stats: dict


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------


def parse_period(arg: Optional[str]) -> Optional[int]:
    """'all' -> None (full history), '6' -> 6 weeks."""
    if arg is None or arg == "":
        return DEFAULT_WEEKS
    if arg == "all":
        return None
    try:
        weeks = int(arg)
    except ValueError:
        raise ReportError(f"Period must be a number of weeks or 'all', got {arg!r}") from None
    if weeks < 1:
        raise ReportError(f"Period must be at least one week, got {weeks}")
    return weeks


def period_label(weeks: Optional[int]) -> str:
    if weeks is None:
        return "full history"
    return f"{weeks} week" if weeks == 1 else f"{weeks} weeks"


def max_columns_setting() -> int:
    raw = os.getenv("GIT_REPORT_MAX_COLUMNS", str(MAX_COLUMNS))
    try:
        value = int(raw)
    except ValueError:
        raise ReportError(f"GIT_REPORT_MAX_COLUMNS must be an integer, got {raw!r}") from None
    if value < 1:
        raise ReportError(f"GIT_REPORT_MAX_COLUMNS must be >= 1, got {value}")
    return value


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


def load_manifest(path: Path) -> list:
    """Snapshot summaries stored next to the snapshots; [] if none yet."""
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ReportError(f"Corrupt manifest {path}: {e}") from e
    if not isinstance(data, list):
        raise ReportError(f"Corrupt manifest {path}: expected a list")
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ReportError(f"Corrupt manifest {path}: entry {i} is not an object")
        missing = [key for key in MANIFEST_KEYS if key not in entry]
        if missing:
            raise ReportError(f"Corrupt manifest {path}: entry {i} lacks {', '.join(missing)}")
        if not isinstance(entry["date"], str):
            raise ReportError(f"Corrupt manifest {path}: entry {i} has a non-string date")
    return data


def save_manifest(path: Path, manifest: list):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")


def update_manifest(manifest: list, entry: dict) -> list:
    """Replace the entry for the same date (or add it), newest date first."""
    updated = [m for m in manifest if m["date"] != entry["date"]]
    updated.append(entry)
    updated.sort(key=lambda m: m["date"], reverse=True)
    return updated


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def render_report(repo_path: str, weeks: Optional[int], today: str,
                  max_columns: Optional[int] = None) -> tuple:
    """Render one snapshot page. Returns (html, stats, repo name)."""
    commits = load_commits(repo_path, weeks)
    print(f"📊 Found {len(commits)} commits")
    layouts = assign_layout(commits, max_columns or max_columns_setting(), len(COLORS))
    name = repo_name(repo_path)
    page = generate_snapshot_html(commits, layouts, name, today, period_label(weeks))
    return page, report_stats(commits), name


def build_report(repo_path: str, weeks: Optional[int], output_dir: str = ".",
                 today: Optional[str] = None, max_columns: Optional[int] = None,
                 local_dir: str = ".") -> ReportResult:
    today = today or date.today().isoformat()
    scope = "full history" if weeks is None else f"last {weeks} weeks"
    print(f"🔍 Collecting git data ({scope})...")

    page, stats, name = render_report(repo_path, weeks, today, max_columns)

    reports_dir = Path(output_dir) / "reports"
    snapshots_dir = reports_dir / "snapshots"
    snapshots_dir.mkdir(parents=True, exist_ok=True)

    snapshot_file = snapshots_dir / f"{today}.html"
    snapshot_file.write_text(page, encoding="utf-8")
    print(f"✅ Snapshot saved: {snapshot_file}")

    manifest_file = snapshots_dir / "manifest.json"
    entry = {"date": today, "commits": stats["total"], "authors": stats["authors"], "prs": stats["prs"]}
    manifest = update_manifest(load_manifest(manifest_file), entry)
    save_manifest(manifest_file, manifest)
    print(f"✅ Manifest updated: {len(manifest)} snapshots")

    main_page_file = reports_dir / "git-history.html"
    main_page_file.write_text(generate_main_page(manifest, name), encoding="utf-8")
    print(f"✅ Main page updated: {main_page_file}")

    local_file = Path(local_dir) / f"git-report-{today.replace('-', '')}.html"
    local_file.write_text(page, encoding="utf-8")
    print(f"✅ Local copy: {local_file}")

    return ReportResult(snapshot_file, manifest_file, main_page_file, local_file, stats)


def open_in_browser(path: Path) -> bool:
    url = path.resolve().as_uri()
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error:
        opened = False
    if not opened:
        print(f"📁 Open manually: {path}")
    return opened


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def cli(argv: Optional[list] = None):
    args = sys.argv[1:] if argv is None else argv
    if args and args[0] in ("-h", "--help"):
        print(__doc__.strip())
        return 0

    repo_path = os.getenv("GIT_REPORT_REPO_PATH", ".")
    try:
        weeks = parse_period(args[0] if args else None)
        output_dir = args[1] if len(args) > 1 else os.getenv("GIT_REPORT_OUTPUT_DIR", ".")
        result = build_report(repo_path, weeks, output_dir)
    except ReportError as e:
        print(f"❌ {e}")
        return 1

    open_in_browser(result.local_file)
    return 0


if __name__ == "__main__":
    sys.exit(cli())
