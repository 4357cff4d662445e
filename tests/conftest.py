"""Shared fixtures: a throwaway SQLite database and a throwaway git repository."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path

# must happen before workcheck.settings is imported anywhere
_DB_DIR = tempfile.mkdtemp(prefix="workcheck-tests-")
os.environ["DB_PATH"] = os.path.join(_DB_DIR, "test.sqlite")

import pytest
from sqlmodel import SQLModel

from workcheck.db import engine

GIT = shutil.which("git")
requires_git = pytest.mark.skipif(GIT is None, reason="git binary not installed")


@pytest.fixture(autouse=True)
def fresh_db():
    """Recreate every table for each test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


def _git(repo: Path, *args, env=None):
    subprocess.run([GIT, *args], cwd=repo, check=True, capture_output=True, env=env)


def _commit(repo: Path, files: dict, message: str, author: str, day: str):
    for name, content in files.items():
        path = repo / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        _git(repo, "add", name)
    env = dict(os.environ)
    stamp = f"{day}T12:00:00+00:00"
    env.update({
        "GIT_AUTHOR_NAME": author,
        "GIT_AUTHOR_EMAIL": f"{author.lower()}@example.com",
        "GIT_COMMITTER_NAME": author,
        "GIT_COMMITTER_EMAIL": f"{author.lower()}@example.com",
        "GIT_AUTHOR_DATE": stamp,
        "GIT_COMMITTER_DATE": stamp,
    })
    _git(repo, "commit", "-q", "-m", message, env=env)


@pytest.fixture
def git_repo(tmp_path):
    """
    Repository with four commits:
      2024-04-20 alice  Initial commit          README.md
      2024-05-03 alice  Add user service        src/main/UserService.java, docs/notes.txt
      2024-05-10 bob    Fix id | helper         src/id_helper.go
      2024-05-21 alice  Update user service     src/main/UserService.java
    """
    if GIT is None:
        pytest.skip("git binary not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _commit(repo, {"README.md": "# demo\n"}, "Initial commit", "Alice", "2024-04-20")
    _commit(
        repo,
        {"src/main/UserService.java": "class UserService {}\n", "docs/notes.txt": "notes\n"},
        "Add user service",
        "Alice",
        "2024-05-03",
    )
    _commit(repo, {"src/id_helper.go": "package src\n"}, "Fix id | helper", "Bob", "2024-05-10")
    _commit(
        repo,
        {"src/main/UserService.java": "class UserService { void find() {} }\n"},
        "Update user service",
        "Alice",
        "2024-05-21",
    )
    return repo
