"""
File system traversal: walk directories and collect Java source files.

This module provides utilities for recursively traversing directories to find
Java source files (.java) for static analysis. It includes configurable
filtering to exclude build output, dependency caches and test folders.

Typical usage:
    from pathlib import Path
    from queryleak.traversal import find_java_files, find_source_files

    java_files = find_java_files(Path("./my_service"))

    # Custom ignore patterns
    sources = find_source_files(
        Path("./my_service"),
        ignore_dirs={"build", "generated"}
    )
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Build and distribution directories
    "build",
    "target",
    "out",
    "bin",
    "dist",
    ".gradle",
    ".mvn",

    # Test directories (production code is what leaks connections)
    "test",
    "tests",
    "testFixtures",
    "integrationTest",

    # Dependency directories
    "node_modules",
    "vendor",
    "third_party",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".idea",
    ".vscode",
    ".settings",

    # Cache directories
    "__pycache__",
    ".cache",
}


def is_java_file(path: Path) -> bool:
    """
    Check if a file is a Java source file (.java extension).

    Examples:
        >>> is_java_file(Path("Main.java"))
        True
        >>> is_java_file(Path("Main.class"))
        False
    """
    return path.suffix.lower() == ".java"


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """
    Check if a directory should be ignored during traversal.

    Only the directory name is compared (case-sensitive), not the full path.

    Examples:
        >>> should_ignore_directory(Path("build"), {"build", "test"})
        True
        >>> should_ignore_directory(Path("src"), {"build", "test"})
        False
    """
    return dir_path.name in ignore_dirs


def find_source_files(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all Java source files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        ignore_dirs: Set of directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: If True, follow symbolic links during traversal.
                         If False (default), symlinks are skipped.
        filter_fn: Optional additional filter function. If provided, only files
                   for which filter_fn(path) returns True are included.

    Returns:
        Sorted list of Path objects for all matching source files found.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If the root path is not a directory.

    Notes:
        - Permission errors on subdirectories are logged but do not stop traversal.
        - The root path is resolved to an absolute path before traversal.
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
    logger.debug(
        "Traversal config: follow_symlinks=%s, ignore_dirs=%s",
        follow_symlinks,
        ignore_dirs,
    )

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        """Recursive helper to walk directory tree."""
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)

                elif entry.is_file() and is_java_file(entry):
                    if filter_fn is not None and not filter_fn(entry):
                        logger.debug("Filtered out by custom filter: %s", entry)
                        continue
                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)

    collected_files.sort()

    logger.info(
        "Traversal complete: found %d source file(s) in %s",
        len(collected_files),
        root,
    )

    return collected_files


def find_java_files(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
) -> list[Path]:
    """
    Recursively find all .java files in a directory tree.

    Convenience wrapper around find_source_files() without a custom filter.
    Module descriptors (module-info.java) and package-info.java files carry no
    method bodies and are skipped.
    """
    return find_source_files(
        root=root,
        ignore_dirs=ignore_dirs,
        follow_symlinks=follow_symlinks,
        filter_fn=lambda p: p.name not in ("module-info.java", "package-info.java"),
    )
