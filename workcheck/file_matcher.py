# workcheck/file_matcher.py
"""
Heuristic matching of a file name recorded on a task against the paths git
reports for a commit. Recorded names may be bare file names, relative or
absolute paths, or names from before a rename, so recall wins over precision.
"""

import re
from typing import Iterable, List

from .git_log import CommitRecord

SOURCE_EXTENSIONS = (
    "java", "js", "ts", "py", "go", "rs", "cpp", "c", "h", "hpp",
    "css", "html", "xml", "yaml", "yml", "json", "sql", "md", "txt",
)
_EXTENSION_RE = re.compile(r"\.(?:%s)$" % "|".join(SOURCE_EXTENSIONS))

# stripped names this short would match nearly every path
MIN_FUZZY_LENGTH = 4


def strip_source_extension(name: str) -> str:
    return _EXTENSION_RE.sub("", name)


def matches(query_name: str, candidate_path: str) -> bool:
    """
    Return True if ``query_name`` refers to the same file as ``candidate_path``.

    Rules are tried in order: exact match, bare name against the candidate's
    last path segment, plain substring, then substring after dropping a common
    source extension from both sides. The substring rule runs before the
    length guard, so short names like "id" still match "src/id_helper.go".
    """
    if query_name == candidate_path:
        return True

    if "/" not in query_name and "/" in candidate_path:
        if query_name == candidate_path.rsplit("/", 1)[-1]:
            return True

    if query_name in candidate_path:
        return True

    query_base = strip_source_extension(query_name)
    candidate_base = strip_source_extension(candidate_path)
    return len(query_base) >= MIN_FUZZY_LENGTH and query_base in candidate_base


def filter_commits_by_file(file_name: str, commits: Iterable[CommitRecord]) -> List[CommitRecord]:
    """Commits touching at least one path that matches ``file_name``, order kept."""
    return [c for c in commits if any(matches(file_name, path) for path in c.files)]
