"""
Local git helper utilities for WorkCheck
- Detect working copies
- List commits for an author / month / date range
- Read file content and per-file diffs at a commit
- Resolve the origin remote URL and default branch

Every git call goes through _run_git(). Failures never escape this module:
a missing repository, a broken remote or a missing git binary are normal
conditions and degrade to [], None or a placeholder string.
"""

import calendar
import logging
import os
import subprocess
from datetime import date
from typing import List, Optional, Sequence, Tuple

from .git_log import LOG_PRETTY_FORMAT, CommitLogParseError, CommitRecord, parse_commit_log
from .settings import settings

logger = logging.getLogger(__name__)

REMOTE_HEAD_REF = "refs/remotes/origin/HEAD"
REMOTE_BRANCH_PREFIX = "refs/remotes/origin/"
FALLBACK_BRANCHES = ("main", "master")
DEFAULT_BRANCH = "main"

NEW_FILE_MARKER = "+++ newly created file content +++\n"
EMPTY_NEW_FILE_TEXT = "File was created in this commit but is empty"
UNREADABLE_FILE_TEXT = "Unable to read file content"


class GitCommandError(Exception):
    """A git invocation that could not start, timed out or exited non-zero."""

    def __init__(self, args: Sequence[str], message: str, returncode: Optional[int] = None):
        self.args_list = list(args)
        self.returncode = returncode
        super().__init__(message)


# ---------------------------------------------------------------------
# Process runner
# ---------------------------------------------------------------------
def _run_git(repo_path: str, *args: str) -> str:
    """
    Run ``git <args>`` inside ``repo_path`` and return its stdout.

    subprocess.run drains both pipes and reaps the child on every path,
    including the timeout path where the child is killed first.
    """
    cmd = [settings.GIT_BINARY, *args]
    logger.debug("Running %s in %s", cmd, repo_path)
    try:
        result = subprocess.run(
            cmd,
            cwd=repo_path,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=settings.GIT_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        raise GitCommandError(cmd, f"git timed out after {settings.GIT_TIMEOUT}s")
    except OSError as e:
        raise GitCommandError(cmd, str(e))

    if result.returncode != 0:
        raise GitCommandError(
            cmd,
            f"git exited with {result.returncode}: {result.stderr.strip()}",
            returncode=result.returncode,
        )
    return result.stdout


# ---------------------------------------------------------------------
# Repository detection
# ---------------------------------------------------------------------
def is_repository(repo_path: Optional[str]) -> bool:
    """True if ``repo_path`` has a .git directory."""
    if not repo_path:
        return False
    return os.path.isdir(os.path.join(repo_path, ".git"))


# ---------------------------------------------------------------------
# Commit queries
# ---------------------------------------------------------------------
def month_range(month: str) -> Tuple[date, date]:
    """First and last day of a 'YYYY-MM' month. Raises ValueError if malformed."""
    try:
        year_text, month_text = month.split("-")
        if len(year_text) != 4 or len(month_text) != 2:
            raise ValueError
        year, month_number = int(year_text), int(month_text)
        last_day = calendar.monthrange(year, month_number)[1]
    except (ValueError, calendar.IllegalMonthError):
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM")
    return date(year, month_number, 1), date(year, month_number, last_day)


def commits_in_range(
    repo_path: Optional[str],
    author: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
) -> List[CommitRecord]:
    """Commits (newest first) with their changed files, optionally filtered."""
    if not repo_path:
        return []

    args = ["log"]
    if since:
        args.append(f"--since={since}")
    if until:
        args.append(f"--until={until}")
    args += [LOG_PRETTY_FORMAT, "--date=short", "--name-only"]
    if author:
        args.append(f"--author={author}")

    try:
        output = _run_git(repo_path, *args)
    except GitCommandError as e:
        logger.warning("git log failed in %s: %s", repo_path, e)
        return []

    try:
        commits = parse_commit_log(output)
    except CommitLogParseError as e:
        logger.warning("Unparseable git log output in %s: %s", repo_path, e)
        return []

    logger.info("Found %s commits in %s (author=%s, %s..%s)", len(commits), repo_path, author, since, until)
    return commits


def commits_for_month(repo_path: Optional[str], author: Optional[str], month: str) -> List[CommitRecord]:
    start, end = month_range(month)
    return commits_in_range(repo_path, author, start.isoformat(), end.isoformat())


def commits_for_period(
    repo_path: Optional[str],
    author: Optional[str],
    month: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[CommitRecord]:
    """
    An explicit start+end range wins over ``month``; with neither given the
    whole history is searched.
    """
    if start_date and end_date:
        return commits_in_range(repo_path, author, start_date, end_date)
    if month:
        return commits_for_month(repo_path, author, month)
    return commits_in_range(repo_path, author)


# ---------------------------------------------------------------------
# File content / diff
# ---------------------------------------------------------------------
def _is_revision(commit_hash: str) -> bool:
    # a leading '-' would be parsed by git as an option such as --output=<path>
    return bool(commit_hash) and not commit_hash.startswith("-")


def _show_file(repo_path: str, commit_hash: str, file_path: str) -> str:
    return _run_git(repo_path, "show", f"{commit_hash}:{file_path}")


def file_content_at_commit(repo_path: str, commit_hash: str, file_path: str) -> str:
    if not _is_revision(commit_hash):
        logger.warning("Rejected commit hash %r", commit_hash)
        return UNREADABLE_FILE_TEXT
    try:
        return _show_file(repo_path, commit_hash, file_path)
    except GitCommandError as e:
        logger.warning("git show %s:%s failed: %s", commit_hash, file_path, e)
        return UNREADABLE_FILE_TEXT


def diff_for_file(repo_path: str, commit_hash: str, file_path: str) -> str:
    """
    Diff of ``file_path`` between ``commit_hash`` and its parent.

    If there is no diff (root commit, newly added file) the full content at
    that commit is returned behind NEW_FILE_MARKER instead.
    """
    if not _is_revision(commit_hash):
        logger.warning("Rejected commit hash %r", commit_hash)
        return UNREADABLE_FILE_TEXT

    try:
        diff = _run_git(repo_path, "diff", "--unified=3", f"{commit_hash}^", commit_hash, "--", file_path)
        if diff.strip():
            return diff
    except GitCommandError as e:
        if e.returncode is None:
            return f"Failed to read file content: {e}"
        logger.debug("No parent diff for %s at %s: %s", file_path, commit_hash, e)

    try:
        content = _show_file(repo_path, commit_hash, file_path)
    except GitCommandError as e:
        logger.warning("git show %s:%s failed: %s", commit_hash, file_path, e)
        if e.returncode is None:
            return f"Failed to read file content: {e}"
        return UNREADABLE_FILE_TEXT

    if content.strip():
        return NEW_FILE_MARKER + content
    return EMPTY_NEW_FILE_TEXT


# ---------------------------------------------------------------------
# Remote metadata
# ---------------------------------------------------------------------
def normalize_remote_url(url: str) -> str:
    """git@host:org/repo(.git) -> https://host/org/repo.git; other URLs untouched."""
    if not url.startswith("git@"):
        return url
    url = url.replace(":", "/").replace("git@", "https://")
    if not url.endswith(".git"):
        url += ".git"
    return url.replace(".git.git", ".git")


def remote_url(repo_path: str) -> Optional[str]:
    try:
        output = _run_git(repo_path, "remote", "get-url", "origin")
    except GitCommandError as e:
        logger.info("No origin remote for %s: %s", repo_path, e)
        return None
    url = "".join(line.strip() for line in output.splitlines())
    return normalize_remote_url(url)


def default_branch(repo_path: str) -> str:
    """
    Branch that origin/HEAD points at; otherwise the first of main/master
    that exists on origin; otherwise "main".
    """
    try:
        ref = "".join(line.strip() for line in _run_git(repo_path, "symbolic-ref", REMOTE_HEAD_REF).splitlines())
        if ref.startswith(REMOTE_BRANCH_PREFIX):
            return ref[len(REMOTE_BRANCH_PREFIX):]
    except GitCommandError as e:
        logger.debug("symbolic-ref lookup failed for %s: %s", repo_path, e)

    for branch in FALLBACK_BRANCHES:
        try:
            _run_git(repo_path, "show-ref", "--verify", f"{REMOTE_BRANCH_PREFIX}{branch}")
            return branch
        except GitCommandError:
            continue

    return DEFAULT_BRANCH
