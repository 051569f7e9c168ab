"""Tests for reading commits and rendering report pages."""

import pytest

from lanes import Commit, assign_layout
from visualize import (
    COLORS,
    COLUMN_WIDTH,
    ReportError,
    author_classes,
    branch_tags,
    commit_type,
    generate_main_page,
    generate_snapshot_html,
    graph_width,
    load_commits,
    render_graph_svg,
    repo_name,
    report_stats,
)


class TestCommitType:

    @pytest.mark.parametrize("message, expected", [
        ("feat: add login", "feat"),
        ("Feature flags everywhere", "feat"),
        ("FIX crash on start", "fix"),
        ("refactor(core): split module", "refactor"),
        ("docs: readme", "docs"),
        ("chore: bump deps", "chore"),
        ("Merge pull request #12 from org/branch", "merge"),
        ("Auto-merge of remote-tracking branch", "merge"),
        ("Update README", "other"),
        ("", "other"),
    ])
    def test_classification(self, message, expected):
        assert commit_type(message) == expected


class TestBranchTags:

    def test_no_refs(self):
        assert branch_tags(()) == ""

    def test_head_and_remotes(self):
        out = branch_tags(("HEAD -> main", "origin/main", "origin/dev", "origin/old", "tag: v1"))
        assert out.count("tag-head") == 1
        assert '<span class="tag tag-remote">main</span>' in out
        assert '<span class="tag tag-remote">dev</span>' in out
        assert "old" not in out
        assert "v1" not in out

    def test_local_branches_have_no_badge(self):
        assert branch_tags(("feature",)) == ""

    def test_escapes_names(self):
        assert "&lt;b&gt;" in branch_tags(("origin/<b>",))


class TestStats:

    def test_report_stats(self):
        commits = [
            Commit("a", message="Merge pull request #1 from x", author="ann"),
            Commit("b", message="fix", author="bob"),
            Commit("c", message="Merge branch 'x'", author="ann"),
        ]
        assert report_stats(commits) == {"total": 3, "authors": 2, "prs": 1}

    def test_author_classes_first_seen_order(self):
        commits = [Commit(str(i), author=f"dev{i % 12}") for i in range(24)]
        classes = author_classes(commits)
        assert classes["dev0"] == 0
        assert classes["dev9"] == 9
        assert classes["dev10"] == 0
        assert len(classes) == 12


class TestSvg:

    def test_merge_row_lines(self):
        layout = assign_layout([Commit("M", ("P1", "P2"))], 50, len(COLORS))[0]
        svg = render_graph_svg(layout)
        assert f'<line x1="10" y1="14" x2="10" y2="28" stroke="{COLORS[0]}" stroke-width="2"/>' in svg
        assert f'<line x1="24" y1="14" x2="24" y2="28" stroke="{COLORS[1]}" stroke-width="2"/>' in svg
        assert f'<line x1="10" y1="14" x2="24" y2="14" stroke="{COLORS[1]}" stroke-width="2"/>' in svg

    def test_pass_through_is_full_height(self):
        layouts = assign_layout([Commit("A", ("B",)), Commit("B", ("C",))], 50, len(COLORS))
        assert 'y1="0"' in render_graph_svg(layouts[1])
        assert 'y2="28"' in render_graph_svg(layouts[1])

    def test_graph_width_has_room_for_one_column(self):
        assert graph_width([]) == 2 * COLUMN_WIDTH + 20


class TestPages:

    @pytest.fixture
    def commits(self):
        return [
            Commit("a" * 40, ("b" * 40,), "feat: <script>alert(1)</script>", "Ann", "2026-01-02", ("HEAD -> main",)),
            Commit("b" * 40, (), "Initial commit", "Bob", "2026-01-01"),
        ]

    def test_snapshot_page(self, commits):
        layouts = assign_layout(commits, 50, len(COLORS))
        page = generate_snapshot_html(commits, layouts, "demo", "2026-01-02", "3 weeks")
        assert page.count('class="commit-row"') == 2
        assert 'data-type="feat"' in page
        assert 'data-hash="aaaaaaa"' in page
        assert "<script>alert(1)</script>" not in page
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page
        assert "Git History - demo - 2026-01-02" in page
        assert 'class="tag tag-head"' in page
        assert "function search(q)" in page

    def test_empty_snapshot_page(self):
        page = generate_snapshot_html([], [], "demo", "2026-01-02", "full history")
        assert 'class="commit-row"' not in page
        assert '<div class="number">0</div>' in page

    def test_main_page(self):
        manifest = [
            {"date": "2026-02-01", "commits": 10, "authors": 2, "prs": 1},
            {"date": "2026-01-01", "commits": 8, "authors": 2, "prs": 0},
        ]
        page = generate_main_page(manifest, "demo")
        assert page.count("latest-badge\">latest") == 1
        assert page.index("2026-02-01") < page.index("2026-01-01")
        assert 'href="snapshots/2026-01-01.html"' in page

    def test_main_page_without_snapshots(self):
        assert "No snapshots yet" in generate_main_page([], "demo")


class TestLoadCommits:

    def test_full_history(self, sample_repo):
        commits = load_commits(sample_repo.path)
        shas = sample_repo.shas
        assert len(commits) == 5
        assert commits[0].hash == shas["merge"]
        assert commits[-1].hash == shas["c1"]
        assert commits[0].parents == (shas["c3"], shas["f1"])

    def test_topological_order(self, sample_repo):
        commits = load_commits(sample_repo.path)
        position = {c.hash: i for i, c in enumerate(commits)}
        for c in commits:
            for parent in c.parents:
                assert position[parent] > position[c.hash]

    def test_fields(self, sample_repo):
        commits = {c.hash: c for c in load_commits(sample_repo.path)}
        shas = sample_repo.shas
        merge = commits[shas["merge"]]
        assert merge.message == "Merge pull request #1 from feature"
        assert merge.author == "Test Author"
        assert "HEAD -> main" in merge.refs
        assert "origin/main" in merge.refs
        assert commits[shas["f1"]].author == "Other Dev"
        assert "feature" in commits[shas["f1"]].refs
        assert "tag: v0.1" in commits[shas["c1"]].refs
        assert commits[shas["c1"]].date == "2020-01-01"

    def test_time_window_excludes_old_commits(self, sample_repo):
        commits = load_commits(sample_repo.path, weeks=1)
        hashes = [c.hash for c in commits]
        assert sample_repo.shas["c1"] not in hashes
        assert len(commits) == 4

    def test_window_leaves_dangling_lane(self, sample_repo):
        commits = load_commits(sample_repo.path, weeks=1)
        layouts = assign_layout(commits, 50, len(COLORS))
        targets = [lane.target for lane in layouts[-1].lanes_after]
        assert sample_repo.shas["c1"] in targets

    def test_layout_of_sample(self, sample_repo):
        commits = load_commits(sample_repo.path)
        layouts = {l.hash: l for l in assign_layout(commits, 50, len(COLORS))}
        shas = sample_repo.shas
        assert layouts[shas["merge"]].column == 0
        assert layouts[shas["merge"]].is_new_branch_tip
        assert {layouts[shas["f1"]].column, layouts[shas["c3"]].column} == {0, 1}
        assert len(layouts[shas["c2"]].merging_from_columns) == 1
        assert layouts[shas["c1"]].lanes_after == ()

    def test_empty_repository(self, tmp_path):
        from git import Repo
        Repo.init(str(tmp_path / "empty"))
        assert load_commits(str(tmp_path / "empty")) == []

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(ReportError):
            load_commits(str(tmp_path / "missing"))

    def test_repo_name(self, sample_repo):
        assert repo_name(sample_repo.path) == "sample"
