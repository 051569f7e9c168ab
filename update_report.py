#!/usr/bin/env python3
"""Regenerate the git history report and publish it into the docs site.

Usage: python update_report.py [weeks|all]

GIT_REPORT_REPO_PATH  repository to report on
GIT_REPORT_SITE_DIR   docs site root (default: this script's directory)
"""

import os
import re
import shutil
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from report import build_report, parse_period, period_label
from visualize import ReportError, open_repo

load_dotenv()

SCRIPT_DIR = Path(__file__).resolve().parent


def update_site_index(index_file: Path, commit_count: int, today: Optional[date] = None) -> bool:
    """Refresh "(N commits)" and "Last updated: ..." in the site index."""
    if not index_file.exists():
        return False
    today = today or date.today()
    text = index_file.read_text(encoding="utf-8")
    text = re.sub(r"\(\d* commits\)", f"({commit_count} commits)", text)
    text = re.sub(r"Last updated: .*", f"Last updated: {today.strftime('%B %d, %Y')}</p>", text)
    index_file.write_text(text, encoding="utf-8")
    return True


def publish(repo_path: str, site_dir: Path, weeks: Optional[int]) -> Path:
    """Generate inside the repository, copy into the site, clean up."""
    open_repo(repo_path)

    print("📊 Updating Git History Report...")
    print(f"   Repo:   {repo_path}")
    print(f"   Period: {period_label(weeks)}")

    result = build_report(repo_path, weeks, output_dir=repo_path, local_dir=repo_path)
    if not result.local_file.exists():
        raise ReportError("Report file not generated")

    target = site_dir / "reports" / "git-history.html"
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(result.local_file, target)
    print(f"✅ Report copied to {target}")

    if update_site_index(site_dir / "index.html", result.stats["total"]):
        print(f"✅ Updated commit count in index.html: {result.stats['total']}")

    result.local_file.unlink()
    return target


def main(argv: Optional[list] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    repo_path = os.getenv("GIT_REPORT_REPO_PATH", ".")
    site_dir = Path(os.getenv("GIT_REPORT_SITE_DIR", str(SCRIPT_DIR)))

    try:
        open_repo(repo_path)
    except ReportError as e:
        print(f"❌ {e}")
        print("   Set GIT_REPORT_REPO_PATH or run from inside the repository")
        return 1

    try:
        weeks = parse_period(args[0] if args else None)
        publish(repo_path, site_dir, weeks)
    except ReportError as e:
        print(f"❌ {e}")
        return 1

    print("")
    print("📋 Next steps:")
    print(f"   cd {site_dir}")
    print("   git add . && git commit -m 'docs: update report' && git push")
    return 0


if __name__ == "__main__":
    sys.exit(main())
