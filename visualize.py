#!/usr/bin/env python3
"""
Read commit history from a git repository and render it as a static HTML
branch graph: one row per commit, an SVG lane cell on the left, filter
buttons and a search box on top.
"""

import html
import re
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Optional

from dateutil.relativedelta import relativedelta
from git import Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError
from git.refs import RemoteReference, TagReference

from lanes import Commit, graph_segments, graph_width_columns


class ReportError(Exception):
    """Raised when a report cannot be produced from the given inputs."""


COLORS = [
    "#fb6428", "#005CCD", "#8FCD00", "#1ca693",
    "#eaa000", "#cc0505", "#0069d1", "#8b5cf6",
]
AUTHOR_CLASSES = 10

MAX_COLUMNS = 50
COLUMN_WIDTH = 14
ROW_HEIGHT = 28
GRAPH_OFFSET = 10

COMMIT_TYPES = ["feat", "fix", "refactor", "docs", "chore"]


# ---------------------------------------------------------------------------
# Reading the repository
# ---------------------------------------------------------------------------


def open_repo(repo_path: str) -> Repo:
    try:
        return Repo(repo_path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise ReportError(f"Not a git repository: {repo_path}") from e


def repo_name(repo_path: str) -> str:
    """Basename of the working tree root, like `basename $(git rev-parse --show-toplevel)`."""
    repo = open_repo(repo_path)
    return Path(repo.working_tree_dir or repo.git_dir).name


def _ref_labels(repo: Repo) -> dict:
    """Map commit sha -> decoration labels, in `git log --decorate` spelling."""
    labels = defaultdict(list)
    active = None
    if repo.head.is_valid():
        if repo.head.is_detached:
            labels[repo.head.commit.hexsha].append("HEAD")
        else:
            active = repo.active_branch.name
            labels[repo.head.commit.hexsha].append(f"HEAD -> {active}")

    for ref in repo.references:
        if isinstance(ref, RemoteReference) and ref.remote_head == "HEAD":
            continue
        try:
            sha = ref.commit.hexsha
        except ValueError:
            # tag pointing at a tree or blob
            continue
        if isinstance(ref, TagReference):
            labels[sha].append(f"tag: {ref.name}")
        elif ref.name != active:
            labels[sha].append(ref.name)
    return labels


def load_commits(repo_path: str, weeks: Optional[int] = None) -> list:
    """All commits reachable from any ref, newest first in topological order.

    With `weeks`, only commits from the last `weeks` weeks are read; parents
    outside that window are simply not part of the list.
    """
    repo = open_repo(repo_path)
    if not repo.head.is_valid() and not repo.references:
        return []

    kwargs = {"topo_order": True}
    if weeks is not None:
        since = datetime.now() - relativedelta(weeks=weeks)
        kwargs["since"] = since.isoformat(timespec="seconds")

    labels = _ref_labels(repo)
    commits = []
    for c in repo.iter_commits("--all", **kwargs):
        commits.append(Commit(
            hash=c.hexsha,
            parents=tuple(p.hexsha for p in c.parents),
            message=c.summary if isinstance(c.summary, str) else c.summary.decode("utf-8", "replace"),
            author=c.author.name or "",
            date=c.authored_datetime.strftime("%Y-%m-%d"),
            refs=tuple(labels.get(c.hexsha, ())),
        ))
    return commits


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def commit_type(message: str) -> str:
    for kind in COMMIT_TYPES:
        if re.match(kind, message, re.IGNORECASE):
            return kind
    if re.search("merge", message, re.IGNORECASE):
        return "merge"
    return "other"


def escape(text: str) -> str:
    return html.escape(text, quote=True)


def branch_tags(refs) -> str:
    """HEAD badge plus up to two remote branch badges."""
    if not refs:
        return ""
    out = ""
    if any("HEAD" in label for label in refs):
        out += '<span class="tag tag-head">HEAD</span>'
    remotes = [label for label in refs if label.startswith("origin/")]
    for label in remotes[:2]:
        out += f'<span class="tag tag-remote">{escape(label[len("origin/"):])}</span>'
    return out


def report_stats(commits: list) -> dict:
    return {
        "total": len(commits),
        "authors": len({c.author for c in commits}),
        "prs": sum(1 for c in commits if "Merge pull request" in c.message),
    }


def author_classes(commits: list) -> dict:
    """Author -> badge color class, in order of first appearance."""
    classes = {}
    for c in commits:
        if c.author not in classes:
            classes[c.author] = len(classes) % AUTHOR_CLASSES
    return classes


def column_x(column: int) -> int:
    return GRAPH_OFFSET + column * COLUMN_WIDTH


def graph_width(layouts: list) -> int:
    return (max(graph_width_columns(layouts), 1) + 1) * COLUMN_WIDTH + 20


def _line(x1, y1, x2, y2, color_idx: int) -> str:
    color = COLORS[color_idx % len(COLORS)]
    return f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" stroke="{color}" stroke-width="2"/>'


def render_graph_svg(layout) -> str:
    """SVG lines for the graph cell of one row."""
    mid = ROW_HEIGHT // 2
    my_x = column_x(layout.column)
    lines = []
    for seg in graph_segments(layout):
        x = column_x(seg.column)
        if seg.kind == "pass":
            lines.append(_line(x, 0, x, ROW_HEIGHT, seg.color))
        elif seg.kind == "end":
            lines.append(_line(x, 0, x, mid, seg.color))
        elif seg.kind == "start":
            lines.append(_line(x, mid, x, ROW_HEIGHT, seg.color))
        else:
            lines.append(_line(min(x, my_x), mid, max(x, my_x), mid, seg.color))
    return "".join(lines)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


def _commit_row(commit: Commit, layout, author_class: int) -> str:
    dot_x = column_x(layout.column)
    merge_icon = '<span class="merge-icon">⎇</span>' if commit.is_merge else ""
    search_text = escape(f"{commit.message} {commit.author}".lower())
    return f"""<div class="commit-row" data-type="{commit_type(commit.message)}" data-hash="{commit.short_hash}" data-search="{search_text}">
            <div class="graph-cell"><svg class="graph-svg">{render_graph_svg(layout)}</svg><div class="commit-dot" style="left:{dot_x - 4}px;background:{COLORS[layout.color % len(COLORS)]};"></div></div>
            <div class="commit-info">
                <span class="commit-hash">{commit.short_hash}</span>{branch_tags(commit.refs)}{merge_icon}
                <span class="commit-message">{escape(commit.message)}</span>
                <span class="commit-author a{author_class}">{escape(commit.author)}</span>
                <span class="commit-date">{escape(commit.date)}</span>
            </div>
        </div>
"""


def generate_snapshot_html(commits: list, layouts: list, repo_name: str,
                           today: str, period_label: str) -> str:
    """Standalone report page for one snapshot."""
    stats = report_stats(commits)
    authors = author_classes(commits)
    width = graph_width(layouts)
    rows = "".join(
        _commit_row(c, layout, authors.get(c.author, 0))
        for c, layout in zip(commits, layouts)
    )
    name = escape(repo_name)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Git History - {name} - {today}</title>
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
    <style>
        :root {{ --primary: #fb6428; --text-primary: #121212; --text-secondary: rgba(18,18,18,0.5); --text-tertiary: rgba(18,18,18,0.35); --bg-primary: #fff; --bg-secondary: #f6f8fa; --bg-tertiary: rgba(18,18,18,0.05); --border-primary: rgba(18,18,18,0.1); --border-secondary: rgba(18,18,18,0.05); --success: #1ca693; --info: #0069d1; }}
        * {{ box-sizing: border-box; margin: 0; padding: 0; }}
        body {{ font-family: 'Inter', -apple-system, sans-serif; background: var(--bg-secondary); color: var(--text-primary); min-height: 100vh; }}
        .header {{ background: linear-gradient(135deg, #fb6428 0%, #e55a20 100%); padding: 24px 32px; color: white; }}
        .header h1 {{ font-size: 24px; font-weight: 700; margin-bottom: 4px; }}
        .header p {{ opacity: 0.9; font-size: 14px; }}
        .stats {{ display: flex; gap: 32px; margin-top: 16px; }}
        .stat {{ text-align: center; }}
        .stat .number {{ font-size: 32px; font-weight: 700; }}
        .stat .label {{ font-size: 12px; opacity: 0.8; text-transform: uppercase; }}
        .filters {{ padding: 12px 24px; background: var(--bg-primary); display: flex; gap: 8px; align-items: center; border-bottom: 1px solid var(--border-primary); position: sticky; top: 0; z-index: 100; }}
        .filter-btn {{ padding: 6px 16px; border: 1px solid var(--border-primary); border-radius: 6px; background: transparent; cursor: pointer; font-size: 13px; font-weight: 500; transition: all 0.15s; }}
        .filter-btn:hover {{ background: var(--bg-tertiary); }}
        .filter-btn.active {{ background: var(--primary); border-color: var(--primary); color: white; }}
        .search-input {{ padding: 8px 16px; border: 1px solid var(--border-primary); border-radius: 6px; width: 240px; font-size: 13px; margin-left: auto; }}
        .search-input:focus {{ outline: none; border-color: var(--primary); }}
        .git-graph {{ font-family: 'SF Mono', Monaco, monospace; font-size: 12px; background: var(--bg-primary); }}
        .commit-row {{ display: flex; align-items: center; height: {ROW_HEIGHT}px; border-bottom: 1px solid var(--border-secondary); }}
        .commit-row:hover {{ background: var(--bg-tertiary); }}
        .graph-cell {{ width: {width}px; min-width: {width}px; height: {ROW_HEIGHT}px; position: relative; background: var(--bg-secondary); border-right: 1px solid var(--border-secondary); }}
        .graph-svg {{ position: absolute; top: 0; left: 0; width: 100%; height: 100%; }}
        .commit-dot {{ position: absolute; width: 8px; height: 8px; border-radius: 50%; top: 10px; border: 2px solid var(--bg-secondary); z-index: 2; }}
        .commit-info {{ flex: 1; display: flex; align-items: center; padding: 0 16px; gap: 12px; min-width: 0; }}
        .commit-hash {{ color: var(--primary); font-size: 11px; font-weight: 600; width: 60px; }}
        .commit-message {{ flex: 1; white-space: nowrap; overflow: hidden; text-overflow: ellipsis; }}
        .commit-author {{ padding: 2px 10px; border-radius: 12px; font-size: 11px; font-weight: 500; max-width: 130px; overflow: hidden; text-overflow: ellipsis; }}
        .commit-date {{ color: var(--text-tertiary); font-size: 11px; width: 75px; }}
        .tag {{ padding: 2px 8px; border-radius: 4px; font-size: 10px; font-weight: 600; margin-right: 6px; }}
        .tag-head {{ background: var(--info); color: white; }}
        .tag-remote {{ background: var(--success); color: white; }}
        .merge-icon {{ color: var(--text-tertiary); margin-right: 6px; }}
        .a0 {{ background: rgba(251,100,40,0.15); color: #c04d1a; }}
        .a1 {{ background: rgba(0,92,205,0.15); color: #004a9e; }}
        .a2 {{ background: rgba(143,205,0,0.15); color: #5a8200; }}
        .a3 {{ background: rgba(28,166,147,0.15); color: #148577; }}
        .a4 {{ background: rgba(234,160,0,0.15); color: #b37b00; }}
        .a5 {{ background: rgba(204,5,5,0.15); color: #a00404; }}
        .a6 {{ background: rgba(0,105,209,0.15); color: #0054a8; }}
        .a7 {{ background: rgba(139,92,246,0.15); color: #6d3bd4; }}
        .a8 {{ background: rgba(18,18,18,0.08); color: var(--text-secondary); }}
        .a9 {{ background: rgba(251,100,40,0.1); color: #c04d1a; }}
        .back-link {{ display: inline-block; margin-bottom: 8px; color: white; opacity: 0.8; text-decoration: none; font-size: 13px; }}
        .back-link:hover {{ opacity: 1; }}
    </style>
</head>
<body>
    <div class="header">
        <a href="../git-history.html" class="back-link">&larr; All snapshots</a>
        <h1>📊 {name}</h1>
        <p>Snapshot: {today} &bull; {escape(period_label)} &bull; {stats['total']} commits</p>
        <div class="stats">
            <div class="stat"><div class="number">{stats['total']}</div><div class="label">commits</div></div>
            <div class="stat"><div class="number">{stats['authors']}</div><div class="label">authors</div></div>
            <div class="stat"><div class="number">{stats['prs']}</div><div class="label">PRs</div></div>
        </div>
    </div>
    <div class="filters">
        <button class="filter-btn active" onclick="filter('all', this)">All</button>
        <button class="filter-btn" onclick="filter('feat', this)">Features</button>
        <button class="filter-btn" onclick="filter('fix', this)">Fixes</button>
        <button class="filter-btn" onclick="filter('merge', this)">Merges</button>
        <input type="text" class="search-input" placeholder="Search..." oninput="search(this.value)">
    </div>
    <div class="git-graph">
{rows}    </div>
    <script>
        function filter(type, button) {{
            document.querySelectorAll('.filter-btn').forEach(b => b.classList.remove('active'));
            button.classList.add('active');
            document.querySelectorAll('.commit-row').forEach(row => {{
                row.style.display = (type === 'all' || row.dataset.type === type) ? '' : 'none';
            }});
        }}
        function search(q) {{
            const query = q.toLowerCase();
            document.querySelectorAll('.commit-row').forEach(row => {{
                row.style.display = row.dataset.search.includes(query) ? '' : 'none';
            }});
        }}
    </script>
</body>
</html>"""


def generate_main_page(manifest: list, repo_name: str) -> str:
    """Index page listing every stored snapshot, newest first."""
    name = escape(repo_name)
    items = []
    for i, s in enumerate(manifest):
        badge = '<span class="latest-badge">latest</span>' if i == 0 else ""
        items.append(f"""                <li class="snapshot-item">
                    <div>
                        <span class="snapshot-date">{escape(s['date'])}</span>{badge}
                        <div class="snapshot-stats">{s['commits']} commits &bull; {s['authors']} authors &bull; {s.get('prs', 0)} PRs</div>
                    </div>
                    <a href="snapshots/{escape(s['date'])}.html" class="snapshot-link">Open</a>
                </li>""")
    listing = "\n".join(items) if items else '                <li class="snapshot-empty">No snapshots yet</li>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Git History - {name}</title>
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
    <style>
        :root {{ --primary: #fb6428; --text-primary: #121212; --bg-primary: #fff; --bg-secondary: #f6f8fa; --border-primary: rgba(18,18,18,0.1); --success: #1ca693; }}
        * {{ box-sizing: border-box; margin: 0; padding: 0; }}
        body {{ font-family: 'Inter', -apple-system, sans-serif; background: var(--bg-secondary); min-height: 100vh; }}
        .header {{ background: linear-gradient(135deg, #fb6428 0%, #e55a20 100%); padding: 32px; color: white; text-align: center; }}
        .header h1 {{ font-size: 28px; margin-bottom: 8px; }}
        .header p {{ opacity: 0.9; }}
        .container {{ max-width: 800px; margin: 0 auto; padding: 32px; }}
        .card {{ background: var(--bg-primary); border-radius: 12px; padding: 24px; margin-bottom: 16px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }}
        .card h2 {{ font-size: 18px; margin-bottom: 16px; color: var(--text-primary); }}
        .snapshot-list {{ list-style: none; }}
        .snapshot-item {{ display: flex; align-items: center; justify-content: space-between; padding: 12px 16px; border: 1px solid var(--border-primary); border-radius: 8px; margin-bottom: 8px; transition: all 0.15s; }}
        .snapshot-item:hover {{ border-color: var(--primary); background: rgba(251,100,40,0.05); }}
        .snapshot-date {{ font-weight: 600; color: var(--text-primary); }}
        .snapshot-stats {{ font-size: 13px; color: rgba(18,18,18,0.5); }}
        .snapshot-link {{ padding: 8px 16px; background: var(--primary); color: white; text-decoration: none; border-radius: 6px; font-size: 13px; font-weight: 500; }}
        .snapshot-link:hover {{ background: #e55a20; }}
        .latest-badge {{ background: var(--success); color: white; padding: 2px 8px; border-radius: 4px; font-size: 11px; margin-left: 8px; }}
    </style>
</head>
<body>
    <div class="header">
        <h1>📊 Git History</h1>
        <p>{name} &bull; commit history snapshots</p>
    </div>
    <div class="container">
        <div class="card">
            <h2>Available snapshots</h2>
            <ul class="snapshot-list">
{listing}
            </ul>
        </div>
    </div>
</body>
</html>"""
