# workcheck/git_log.py
"""
Parser for the line-oriented output of

    git log --pretty=format:%H|%an|%ad|%s --date=short --name-only

Each commit is one header line ``hash|author|date|subject`` followed by zero
or more changed-file lines. Records are returned in the order they appear
(newest first, as git prints them).
"""

import logging
import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

logger = logging.getLogger(__name__)

LOG_FIELD_SEPARATOR = "|"
LOG_PRETTY_FORMAT = "--pretty=format:%H|%an|%ad|%s"
SHORT_HASH_LENGTH = 7


class CommitLogParseError(ValueError):
    """Raised when a header line cannot be split into hash/author/date/subject."""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}: {line!r}")


class CommitRecord(BaseModel):
    """One commit from the queried range."""

    model_config = ConfigDict(frozen=True)

    hash: str = Field(..., description="Full commit SHA hash")
    author: str = Field(..., description="Author display name")
    date: datetime.date = Field(..., description="Author date (YYYY-MM-DD)")
    message: str = Field(..., description="Single-line subject")
    files: Tuple[str, ...] = Field(default=(), description="Changed paths, repo-relative")

    @computed_field(alias="shortHash")
    @property
    def short_hash(self) -> str:
        return self.hash[:SHORT_HASH_LENGTH]

    def to_dict(self) -> dict:
        """JSON-ready dict with camelCase keys, as served by the API."""
        return {
            "hash": self.hash,
            "shortHash": self.short_hash,
            "author": self.author,
            "date": self.date.isoformat(),
            "message": self.message,
            "files": list(self.files),
        }


def _parse_header(line_number: int, line: str) -> Tuple[str, str, datetime.date, str]:
    parts = line.split(LOG_FIELD_SEPARATOR, 3)
    if len(parts) < 4:
        raise CommitLogParseError(line_number, line, f"expected 4 fields, got {len(parts)}")
    commit_hash, author, date_text, subject = parts
    try:
        commit_date = datetime.date.fromisoformat(date_text.strip())
    except ValueError:
        raise CommitLogParseError(line_number, line, f"invalid date {date_text!r}")
    return commit_hash.strip(), author, commit_date, subject


def parse_commit_log(text: str) -> List[CommitRecord]:
    """
    Turn raw ``git log`` stdout into CommitRecords.

    A line containing '|' starts a new commit; the split is capped at four
    fields so a subject with '|' in it survives intact. Non-empty lines
    without '|' are file paths of the current commit. Blank lines, and file
    lines seen before any header, are skipped.

    Raises CommitLogParseError on a malformed header.
    """
    commits: List[CommitRecord] = []
    if not text:
        return commits

    header: Optional[Tuple[str, str, datetime.date, str]] = None
    files: List[str] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        if LOG_FIELD_SEPARATOR in line:
            if header is not None:
                commits.append(_build(header, files))
            header = _parse_header(line_number, line)
            files = []
        elif line.strip():
            if header is None:
                logger.debug("Skipping file line before first commit header: %r", line)
                continue
            files.append(line.strip())

    if header is not None:
        commits.append(_build(header, files))

    logger.debug("Parsed %s commits from git log output", len(commits))
    return commits


def _build(header: Tuple[str, str, datetime.date, str], files: List[str]) -> CommitRecord:
    commit_hash, author, commit_date, subject = header
    return CommitRecord(
        hash=commit_hash,
        author=author,
        date=commit_date,
        message=subject,
        files=tuple(files),
    )
