"""Shared fixtures: a small repository with a merged feature branch."""

from pathlib import Path
from types import SimpleNamespace

import pytest
from git import Repo

OLD_DATE = "2020-01-01T12:00:00+00:00"


def _commit(repo, filename, message, author=None, env=None):
    (Path(repo.working_tree_dir) / filename).write_text(message + "\n")
    repo.git.add(filename)
    args = ["-m", message]
    if author:
        args.append(f"--author={author}")
    repo.git.commit(*args, env=env)
    return repo.head.commit.hexsha


@pytest.fixture
def sample_repo(tmp_path):
    """
    main:    c1 (2020, tag v0.1) - c2 - c3 - merge
    feature:                  \\- f1 -/
    """
    repo = Repo.init(str(tmp_path / "sample"))
    repo.git.symbolic_ref("HEAD", "refs/heads/main")
    repo.config_writer().set_value("user", "name", "Test Author").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()
    repo.config_writer().set_value("commit", "gpgsign", "false").release()

    shas = {}
    shas["c1"] = _commit(repo, "README.md", "Initial commit",
                         env={"GIT_AUTHOR_DATE": OLD_DATE, "GIT_COMMITTER_DATE": OLD_DATE})
    repo.create_tag("v0.1")
    shas["c2"] = _commit(repo, "parser.py", "feat: add parser")

    repo.git.checkout("-b", "feature")
    shas["f1"] = _commit(repo, "empty.py", "fix: handle empty input",
                         author="Other Dev <other@example.com>")

    repo.git.checkout("main")
    shas["c3"] = _commit(repo, "USAGE.md", "docs: describe usage")
    repo.git.merge("feature", "--no-ff", m="Merge pull request #1 from feature")
    shas["merge"] = repo.head.commit.hexsha
    repo.git.update_ref("refs/remotes/origin/main", "HEAD")

    return SimpleNamespace(repo=repo, path=repo.working_tree_dir, shas=shas)
