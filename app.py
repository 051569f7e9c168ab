#!/usr/bin/env python3
"""
Git History Report - preview server
Serves the stored snapshots and renders a live report of the repository.
"""

import os
from datetime import date
from pathlib import Path

from dateutil.parser import isoparse
from dotenv import load_dotenv
from flask import Flask, jsonify, request, send_file

from lanes import assign_layout, graph_segments
from report import load_manifest, max_columns_setting, parse_period, render_report
from visualize import COLORS, ReportError, generate_main_page, load_commits, repo_name

# Load environment variables
load_dotenv()

app = Flask(__name__)
app.config["REPORTS_DIR"] = Path(os.getenv("GIT_REPORT_OUTPUT_DIR", ".")) / "reports"
app.config["REPO_PATH"] = os.getenv("GIT_REPORT_REPO_PATH", ".")


def _snapshots_dir() -> Path:
    return Path(app.config["REPORTS_DIR"]) / "snapshots"


def _period_arg():
    return parse_period(request.args.get("weeks"))


@app.route('/')
@app.route('/git-history.html')
def index():
    """Snapshot index, rebuilt from the manifest on every request"""
    try:
        manifest = load_manifest(_snapshots_dir() / "manifest.json")
        name = repo_name(app.config["REPO_PATH"])
    except ReportError as e:
        return jsonify({'error': str(e)}), 500
    return generate_main_page(manifest, name)


@app.route('/snapshots/<snapshot_date>.html')
def snapshot(snapshot_date):
    """Serve a stored snapshot page"""
    try:
        isoparse(snapshot_date)
    except ValueError:
        return jsonify({'error': f'Invalid snapshot date: {snapshot_date}'}), 404

    path = _snapshots_dir() / f"{snapshot_date}.html"
    if not path.exists():
        return jsonify({'error': 'Snapshot not found'}), 404
    return send_file(path.resolve(), mimetype='text/html')


@app.route('/live')
def live():
    """Render the current state of the repository without storing it"""
    try:
        weeks = _period_arg()
        page, _, _ = render_report(app.config["REPO_PATH"], weeks, date.today().isoformat())
    except ReportError as e:
        return jsonify({'error': str(e)}), 400
    return page


@app.route('/api/graph')
def graph():
    """Per-commit lane layout as JSON"""
    try:
        weeks = _period_arg()
        commits = load_commits(app.config["REPO_PATH"], weeks)
        layouts = assign_layout(commits, max_columns_setting(), len(COLORS))
    except ReportError as e:
        return jsonify({'error': str(e)}), 400

    rows = []
    for commit, layout in zip(commits, layouts):
        rows.append({
            'hash': commit.short_hash,
            'message': commit.message,
            'column': layout.column,
            'color': COLORS[layout.color],
            'is_new_branch_tip': layout.is_new_branch_tip,
            'merging_from_columns': list(layout.merging_from_columns),
            'segments': [
                {'kind': s.kind, 'column': s.column, 'to_column': s.to_column, 'color': COLORS[s.color]}
                for s in graph_segments(layout)
            ],
        })
    return jsonify({'commits': rows, 'num_commits': len(rows)})


if __name__ == '__main__':
    app.run(debug=os.getenv("FLASK_DEBUG") == "1", port=int(os.getenv("PORT", "5000")))
