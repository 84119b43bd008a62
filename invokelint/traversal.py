"""
File system traversal: walk directories and collect C# source files.

Build output, package caches, IDE folders and version control directories
are skipped by default. Test projects are *not* skipped: delegate
invocations in tests are as unsafe as anywhere else.

Typical usage:
    from pathlib import Path
    from invokelint.traversal import find_cs_files

    sources = find_cs_files(Path("./src"))
    sources = find_cs_files(Path("./src"), ignore_dirs={"bin", "obj", "Migrations"})
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # MSBuild output
    "bin",
    "obj",
    "out",
    "artifacts",
    "TestResults",

    # Package caches
    "packages",
    "node_modules",
    ".nuget",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vs",
    ".vscode",
    ".idea",
}


def is_csharp_file(path: Path) -> bool:
    """
    Check if a file is a C# source file (.cs extension, case-insensitive).

    Examples:
        >>> is_csharp_file(Path("Program.cs"))
        True
        >>> is_csharp_file(Path("Page.cshtml"))
        False
    """
    return path.suffix.lower() == ".cs"


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """Only the directory name is compared, case-sensitively."""
    return dir_path.name in ignore_dirs


def find_cs_files(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all .cs files under root.

    Args:
        root: Directory to start from.
        ignore_dirs: Directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: If False (default), symlinks are skipped.
        filter_fn: Optional predicate; only files for which it returns True are kept.

    Returns:
        Sorted list of absolute paths.

    Raises:
        FileNotFoundError: If root does not exist.
        NotADirectoryError: If root is not a directory.

    Permission errors on subdirectories are logged and do not stop traversal.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug("Traversal config: follow_symlinks=%s, ignore_dirs=%s", follow_symlinks, ignore_dirs)

    collected: list[Path] = []
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            entries = list(current.iterdir())
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current, e)
            continue

        for entry in entries:
            if entry.is_symlink() and not follow_symlinks:
                logger.debug("Skipping symlink: %s", entry)
                continue
            if entry.is_dir():
                if should_ignore_directory(entry, ignore_dirs):
                    logger.debug("Ignoring directory: %s", entry)
                    continue
                pending.append(entry)
            elif entry.is_file() and is_csharp_file(entry):
                if filter_fn is not None and not filter_fn(entry):
                    logger.debug("Filtered out by custom filter: %s", entry)
                    continue
                collected.append(entry)

    collected.sort()
    logger.info("Traversal complete: found %d C# file(s) in %s", len(collected), root)
    return collected
