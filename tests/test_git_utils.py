"""Tests for the local git helpers, against a real throwaway repository."""

from datetime import date

import pytest

from workcheck import git_utils
from workcheck.git_utils import GitCommandError

from conftest import requires_git, _git


# ---------- pure helpers ----------
@pytest.mark.parametrize(
    "url, expected",
    [
        ("git@github.com:org/repo.git", "https://github.com/org/repo.git"),
        ("git@github.com:org/repo", "https://github.com/org/repo.git"),
        ("https://gitlab.com/org/repo.git", "https://gitlab.com/org/repo.git"),
        ("https://gitlab.com/org/repo", "https://gitlab.com/org/repo"),
    ],
)
def test_normalize_remote_url(url, expected):
    assert git_utils.normalize_remote_url(url) == expected


def test_month_range():
    assert git_utils.month_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert git_utils.month_range("2023-12") == (date(2023, 12, 1), date(2023, 12, 31))


@pytest.mark.parametrize("month", ["2024-13", "2024-5", "May 2024", "", "2024-05-01"])
def test_month_range_rejects_bad_input(month):
    with pytest.raises(ValueError):
        git_utils.month_range(month)


def test_is_repository(tmp_path):
    assert not git_utils.is_repository(str(tmp_path))
    assert not git_utils.is_repository("")
    assert not git_utils.is_repository(None)
    (tmp_path / ".git").mkdir()
    assert git_utils.is_repository(str(tmp_path))


# ---------- fallbacks, with the git runner stubbed out ----------
def _fake_runner(responses):
    """responses: maps the first two git args to stdout or an exception."""
    calls = []

    def run(repo_path, *args):
        calls.append(args)
        for key, value in responses.items():
            if args[: len(key)] == key:
                if isinstance(value, Exception):
                    raise value
                return value
        raise GitCommandError(args, "not stubbed", returncode=1)

    run.calls = calls
    return run


def test_default_branch_from_symbolic_ref(monkeypatch):
    runner = _fake_runner({("symbolic-ref",): "refs/remotes/origin/develop\n"})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    assert git_utils.default_branch("/repo") == "develop"


def test_default_branch_probes_main_then_master(monkeypatch):
    runner = _fake_runner({("show-ref", "--verify", "refs/remotes/origin/master"): "abc refs/remotes/origin/master\n"})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    assert git_utils.default_branch("/repo") == "master"
    assert [c[0] for c in runner.calls] == ["symbolic-ref", "show-ref", "show-ref"]
    assert runner.calls[1][-1] == "refs/remotes/origin/main"


def test_default_branch_prefers_main_when_present(monkeypatch):
    runner = _fake_runner({("show-ref", "--verify", "refs/remotes/origin/main"): "abc refs/remotes/origin/main\n"})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    assert git_utils.default_branch("/repo") == "main"
    assert len(runner.calls) == 2


def test_default_branch_falls_back_to_main(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({}))

    assert git_utils.default_branch("/repo") == "main"


def test_remote_url_failure_is_none(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({}))

    assert git_utils.remote_url("/repo") is None


def test_remote_url_is_normalized(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({("remote",): "git@example.com:team/app\n"}))

    assert git_utils.remote_url("/repo") == "https://example.com/team/app.git"


def test_commits_degrade_to_empty_on_git_failure(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({}))

    assert git_utils.commits_in_range("/repo", "alice", "2024-05-01", "2024-05-31") == []


def test_commits_degrade_to_empty_on_unparseable_output(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({("log",): "abc|only-two\n"}))

    assert git_utils.commits_in_range("/repo") == []


def test_commits_log_arguments(monkeypatch):
    runner = _fake_runner({("log",): ""})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    git_utils.commits_for_month("/repo", "alice", "2024-05")

    assert runner.calls[0] == (
        "log",
        "--since=2024-05-01",
        "--until=2024-05-31",
        "--pretty=format:%H|%an|%ad|%s",
        "--date=short",
        "--name-only",
        "--author=alice",
    )


def test_commits_for_period_prefers_explicit_range(monkeypatch):
    runner = _fake_runner({("log",): ""})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    git_utils.commits_for_period("/repo", None, month="2024-05", start_date="2024-01-01", end_date="2024-01-15")
    git_utils.commits_for_period("/repo", None, month="2024-05", start_date="2024-01-01")
    git_utils.commits_for_period("/repo", None)

    assert runner.calls[0][1:3] == ("--since=2024-01-01", "--until=2024-01-15")
    assert runner.calls[1][1:3] == ("--since=2024-05-01", "--until=2024-05-31")
    assert runner.calls[2][1] == "--pretty=format:%H|%an|%ad|%s"


def test_commits_without_path_do_not_run_git(monkeypatch):
    runner = _fake_runner({})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    assert git_utils.commits_in_range(None) == []
    assert runner.calls == []


def test_diff_placeholder_when_git_cannot_start(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({("diff",): GitCommandError(("diff",), "No such file")}))

    assert git_utils.diff_for_file("/repo", "abc", "a.txt") == "Failed to read file content: No such file"


def test_diff_placeholder_when_file_unreadable(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({}))

    assert git_utils.diff_for_file("/repo", "abc", "a.txt") == git_utils.UNREADABLE_FILE_TEXT


def test_diff_of_empty_new_file(monkeypatch):
    monkeypatch.setattr(git_utils, "_run_git", _fake_runner({("diff",): "", ("show",): ""}))

    assert git_utils.diff_for_file("/repo", "abc", "a.txt") == git_utils.EMPTY_NEW_FILE_TEXT


def test_missing_git_binary_degrades(monkeypatch, tmp_path):
    monkeypatch.setattr(git_utils.settings, "GIT_BINARY", "definitely-not-a-git-binary")

    assert git_utils.commits_in_range(str(tmp_path)) == []
    assert git_utils.remote_url(str(tmp_path)) is None
    assert git_utils.default_branch(str(tmp_path)) == "main"
    assert git_utils.diff_for_file(str(tmp_path), "abc", "x").startswith("Failed to read file content:")


# ---------- real repository ----------
@requires_git
def test_commits_for_month_filters_author_and_dates(git_repo):
    commits = git_utils.commits_for_month(str(git_repo), "Alice", "2024-05")

    assert [c.message for c in commits] == ["Update user service", "Add user service"]
    assert commits[0].date == date(2024, 5, 21)
    assert commits[1].files == ("docs/notes.txt", "src/main/UserService.java")
    assert all(c.author == "Alice" for c in commits)


@requires_git
def test_commits_keep_pipes_in_subject(git_repo):
    commits = git_utils.commits_for_month(str(git_repo), None, "2024-05")

    assert [c.message for c in commits] == ["Update user service", "Fix id | helper", "Add user service"]
    assert commits[1].author == "Bob"


@requires_git
def test_commits_in_empty_month(git_repo):
    assert git_utils.commits_for_month(str(git_repo), None, "2023-01") == []


@requires_git
def test_diff_for_modified_file(git_repo):
    head = git_utils.commits_for_month(str(git_repo), None, "2024-05")[0]

    diff = git_utils.diff_for_file(str(git_repo), head.hash, "src/main/UserService.java")

    assert diff.startswith("diff --git")
    assert "+class UserService { void find() {} }" in diff


@requires_git
def test_diff_for_root_commit_falls_back_to_content(git_repo):
    root = git_utils.commits_in_range(str(git_repo))[-1]

    content = git_utils.diff_for_file(str(git_repo), root.hash, "README.md")

    assert content == git_utils.NEW_FILE_MARKER + "# demo\n"


@requires_git
def test_file_content_at_commit(git_repo):
    root = git_utils.commits_in_range(str(git_repo))[-1]

    assert git_utils.file_content_at_commit(str(git_repo), root.hash, "README.md") == "# demo\n"
    assert git_utils.file_content_at_commit(str(git_repo), root.hash, "nope.txt") == git_utils.UNREADABLE_FILE_TEXT


@requires_git
def test_remote_url_and_default_branch_of_local_repo(git_repo):
    assert git_utils.remote_url(str(git_repo)) is None
    assert git_utils.default_branch(str(git_repo)) == "main"

    _git(git_repo, "remote", "add", "origin", "git@github.com:org/demo.git")
    assert git_utils.remote_url(str(git_repo)) == "https://github.com/org/demo.git"


def test_option_like_commit_hash_never_reaches_git(monkeypatch):
    runner = _fake_runner({("diff",): "diff text", ("show",): "content"})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    assert git_utils.diff_for_file("/repo", "--output=/tmp/x", "a.txt") == git_utils.UNREADABLE_FILE_TEXT
    assert git_utils.file_content_at_commit("/repo", "-p", "a.txt") == git_utils.UNREADABLE_FILE_TEXT
    assert git_utils.diff_for_file("/repo", "", "a.txt") == git_utils.UNREADABLE_FILE_TEXT
    assert runner.calls == []


@requires_git
def test_option_like_commit_hash_writes_no_file(git_repo, tmp_path):
    target = tmp_path / "written-by-git.txt"

    diff = git_utils.diff_for_file(str(git_repo), f"--output={target}", "README.md")
    content = git_utils.file_content_at_commit(str(git_repo), f"--output={target}", "README.md")

    assert diff == git_utils.UNREADABLE_FILE_TEXT
    assert content == git_utils.UNREADABLE_FILE_TEXT
    assert not target.exists()


def test_diff_fallback_shares_show_with_file_content(monkeypatch):
    runner = _fake_runner({("diff",): "", ("show",): "body\n"})
    monkeypatch.setattr(git_utils, "_run_git", runner)

    assert git_utils.diff_for_file("/repo", "abc", "a.txt") == git_utils.NEW_FILE_MARKER + "body\n"
    assert git_utils.file_content_at_commit("/repo", "abc", "a.txt") == "body\n"
    assert runner.calls[1] == runner.calls[2] == ("show", "abc:a.txt")
