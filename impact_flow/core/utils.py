"""
Path filtering helpers for source scanning.

.gitignore patterns are collected from the scanned directory and its parents
and matched gitignore-style against each candidate file.
"""

import fnmatch
from pathlib import Path
from typing import Iterable, List, Tuple


def read_gitignore(path: Path) -> List[Tuple[str, Path]]:
    """Patterns of one .gitignore file, each paired with the directory that owns it."""
    patterns: List[Tuple[str, Path]] = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        entry = raw.strip()
        if entry and not entry.startswith("#"):
            patterns.append((entry, path.parent))
    return patterns


def get_gitignore_patterns(directory: Path) -> List[Tuple[str, Path]]:
    """.gitignore patterns from ``directory`` and every parent up to the filesystem root."""
    patterns: List[Tuple[str, Path]] = []
    for current in (directory, *directory.parents):
        gitignore = current / ".gitignore"
        if gitignore.is_file():
            patterns.extend(read_gitignore(gitignore))
    return patterns


def _normalize(path_str: str) -> str:
    normalized = path_str.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def match_file_against_pattern(file_path: Path, pattern: str, gitignore_dir: Path, root_directory: Path) -> bool:
    """
    Match a file against one gitignore pattern.

    Args:
        file_path: Path of the file to check
        pattern: Gitignore pattern to match against
        gitignore_dir: Directory where the .gitignore file was found
        root_directory: Root directory of the scan

    Returns:
        True if the file should be ignored
    """
    pattern = pattern.strip().replace("\\", "/")
    if not pattern or pattern.startswith("!"):
        return False

    is_root_relative = pattern.startswith("/")
    if is_root_relative:
        pattern = pattern[1:]

    try:
        rel_gitignore = _normalize(str(file_path.relative_to(gitignore_dir)))
    except ValueError:
        # Outside the directory that owns this .gitignore
        return False
    try:
        rel_root = _normalize(str(file_path.relative_to(root_directory)))
    except ValueError:
        rel_root = rel_gitignore

    if pattern.endswith("/"):
        dir_pattern = _normalize(pattern[:-1])
        if not dir_pattern:
            return False
        if is_root_relative:
            return rel_root.startswith(dir_pattern + "/")
        if "/" not in dir_pattern:
            return any(fnmatch.fnmatch(part, dir_pattern) for part in rel_gitignore.split("/")[:-1])
        return rel_gitignore.startswith(dir_pattern + "/")

    if is_root_relative:
        return fnmatch.fnmatch(rel_root, pattern) or rel_root.startswith(pattern + "/")

    if fnmatch.fnmatch(rel_gitignore, pattern):
        return True
    if "/" not in pattern:
        # A bare name matches any path segment
        return any(fnmatch.fnmatch(part, pattern) for part in rel_gitignore.split("/"))
    return fnmatch.fnmatch(rel_root, pattern)


def is_ignored(
    file_path: Path,
    root_directory: Path,
    ignored_patterns: Iterable[str] = (),
    gitignore_patterns: Iterable[Tuple[str, Path]] = (),
) -> bool:
    """True if a configured pattern or a collected .gitignore pattern excludes ``file_path``."""
    try:
        parts = file_path.relative_to(root_directory).parts
    except ValueError:
        parts = file_path.parts
    rel = "/".join(parts)
    for pattern in ignored_patterns:
        if fnmatch.fnmatch(rel, pattern) or any(fnmatch.fnmatch(part, pattern) for part in parts):
            return True
    return any(
        match_file_against_pattern(file_path, pattern, gitignore_dir, root_directory)
        for pattern, gitignore_dir in gitignore_patterns
    )
