"""
Code Navigator - Filesystem access to cloned repositories.

Provides the small set of read-only helpers the ingestor and the
evidence gatherer need:
- read_text_file: read a file as text (raises on failure)
- resolve_in_root: map a repository-relative path to an absolute one
- list_files_recursive: depth-limited listing of relative file paths
- iter_repository_files: every indexable file under a root
"""

import os
from pathlib import Path
from typing import Iterator, List, Optional


# Directories to always skip during traversal
SKIP_DIRS = {
    ".git", "node_modules", "__pycache__", ".venv", "venv",
    "dist", "build", ".next", "target", ".tox", ".mypy_cache",
    ".pytest_cache", ".ruff_cache", "vendor", "bower_components",
    ".gradle", ".idea", ".vs", ".vscode", "coverage", ".nyc_output",
    "env", ".eggs",
}


def _should_skip(name: str) -> bool:
    """Check if a directory should be skipped."""
    if name in SKIP_DIRS:
        return True
    if name.startswith(".") and name != ".":
        return True
    if name.endswith(".egg-info"):
        return True
    return False


def _to_relative(path: str, root: str) -> str:
    return os.path.relpath(path, root).replace(os.sep, "/")


def resolve_in_root(root: str, relative_path: str) -> Path:
    """
    Resolve a repository-relative path to an absolute path.

    Raises:
        ValueError: If the path escapes the repository root.
    """
    base = Path(root).resolve()
    target = (base / relative_path.lstrip("/")).resolve()
    if target != base and base not in target.parents:
        raise ValueError(f"Path escapes repository root: {relative_path}")
    return target


def read_text_file(path: str, max_chars: Optional[int] = None) -> str:
    """
    Read a file as UTF-8 text.

    Args:
        path: Absolute file path.
        max_chars: Truncate the content to this many characters.

    Raises:
        FileNotFoundError, IsADirectoryError, PermissionError,
        UnicodeDecodeError: Whatever the read raised.
    """
    content = Path(path).read_text(encoding="utf-8")
    if max_chars is not None and len(content) > max_chars:
        content = content[:max_chars] + "\n... [truncated]"
    return content


def list_files_recursive(root: str, max_depth: int = 3) -> List[str]:
    """
    List files under root, up to max_depth directory levels.

    Depth 1 lists only the files directly under root. Skipped
    directories (.git, node_modules, hidden dirs, ...) are not entered.

    Returns:
        Sorted repository-relative paths using forward slashes.
    """
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        return []

    results: List[str] = []

    def _walk(dir_path: str, depth: int) -> None:
        try:
            names = sorted(os.listdir(dir_path))
        except OSError:
            return

        for name in names:
            full_path = os.path.join(dir_path, name)
            if os.path.isdir(full_path):
                if depth < max_depth and not _should_skip(name):
                    _walk(full_path, depth + 1)
            elif os.path.isfile(full_path):
                results.append(_to_relative(full_path, root))

    _walk(root, 1)
    return results


def iter_repository_files(
    root: str,
    subpath: str = "",
    max_file_size_kb: Optional[int] = None,
) -> Iterator[str]:
    """
    Yield every indexable file under root (or root/subpath).

    Yields:
        Repository-relative paths (relative to root, not to subpath).
    """
    root = os.path.abspath(root)
    start = str(resolve_in_root(root, subpath)) if subpath else root
    if not os.path.isdir(start):
        return

    limit = max_file_size_kb * 1024 if max_file_size_kb else None

    for dir_path, dir_names, file_names in os.walk(start):
        dir_names[:] = sorted(d for d in dir_names if not _should_skip(d))
        for file_name in sorted(file_names):
            full_path = os.path.join(dir_path, file_name)
            if limit is not None:
                try:
                    if os.path.getsize(full_path) > limit:
                        continue
                except OSError:
                    continue
            yield _to_relative(full_path, root)
