"""JS/TS source discovery using git ls-files with fallback to os.walk."""

from __future__ import annotations

import fnmatch
import logging
import os
import subprocess
from pathlib import Path

from onion_tears.index.parser import detect_language

log = logging.getLogger(__name__)

# Directories to skip during os.walk fallback (and in git output)
SKIP_DIRS = frozenset({
    ".git", ".hg", ".svn", "node_modules",
    "dist", "build", "out", "coverage",
    ".next", ".nuxt", ".output", ".turbo",
    "onion-tears",
})

# Test files are only analyzed with --include-tests
TEST_FILE_PATTERNS = ("*.test.*", "*.spec.*")

DEFAULT_EXCLUDES = ("node_modules", "dist", ".git")

MAX_FILE_SIZE = 1_000_000  # 1MB


def is_test_file(rel_path: str) -> bool:
    name = os.path.basename(rel_path)
    return any(fnmatch.fnmatch(name, pat) for pat in TEST_FILE_PATTERNS)


def _matches_exclude(rel_path: str, patterns: tuple[str, ...]) -> bool:
    """Match against the whole path, the basename, or any directory segment."""
    parts = rel_path.split("/")
    for pat in patterns:
        if fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(parts[-1], pat):
            return True
        if any(fnmatch.fnmatch(part, pat) for part in parts[:-1]):
            return True
    return False


def _git_ls_files(root: Path) -> list[str] | None:
    """Try to list files using git ls-files. Returns None if git unavailable."""
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard"],
            cwd=str(root),
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            return None
        return [p.strip() for p in result.stdout.splitlines() if p.strip()]
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None


def _walk_files(root: Path) -> list[str]:
    """Fallback file discovery using os.walk, respecting common ignore dirs."""
    result = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")]
        for fname in filenames:
            full = os.path.join(dirpath, fname)
            try:
                rel = os.path.relpath(full, root).replace("\\", "/")
            except (ValueError, OSError):
                continue
            result.append(rel)
    return result


def _filter_files(
    paths: list[str], root: Path, excludes: tuple[str, ...], include_tests: bool
) -> list[str]:
    """Keep analyzable JS/TS sources only."""
    kept = []
    for rel_path in paths:
        parts = rel_path.split("/")
        if any(part in SKIP_DIRS for part in parts[:-1]):
            continue
        if detect_language(rel_path) is None:
            continue
        if not include_tests and is_test_file(rel_path):
            continue
        if excludes and _matches_exclude(rel_path, excludes):
            continue
        try:
            if (root / rel_path).stat().st_size > MAX_FILE_SIZE:
                log.info("Skipping %s: larger than %d bytes", rel_path, MAX_FILE_SIZE)
                continue
        except OSError:
            continue
        kept.append(rel_path)
    return kept


def discover_files(
    root: str | Path, excludes: tuple[str, ...] = DEFAULT_EXCLUDES, include_tests: bool = False
) -> list[str]:
    """Discover JS/TS source files in a project directory.

    Uses git ls-files when available, falls back to os.walk.  Declaration
    files, test files (unless *include_tests*) and paths matching any
    *excludes* glob are dropped.  Returns a sorted list of relative paths
    using forward slashes.
    """
    root = Path(root).resolve()
    raw = _git_ls_files(root)
    if raw is None:
        log.debug("git ls-files unavailable in %s; walking the tree", root)
        raw = _walk_files(root)

    raw = [p.replace("\\", "/") for p in raw]
    filtered = _filter_files(raw, root, tuple(excludes), include_tests)
    filtered.sort()
    return filtered
