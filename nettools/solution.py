"""
Solution discovery.

Finds the solution file to work on and lists the C# projects it references.
Project lines in a .sln file look like:

    Project("{FAE04EC0-...}") = "App", "src\\App\\App.csproj", "{GUID}"

The project path is the second quoted value after the '=' sign.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from .errors import SolutionNotFoundError
from .xml_service import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

SOLUTION_PATTERN = "*.sln"

# Picks one solution file name among several candidates
SolutionChooser = Callable[[list[str]], "str | None"]


def find_solution_files(directory: str, fs: FileSystem | None = None) -> list[str]:
    """List the solution files directly inside a directory."""
    fs = fs or LocalFileSystem()
    return fs.list_files(directory, SOLUTION_PATTERN)


def resolve_solution_file(
    solution_file: str | None,
    directory: str,
    chooser: SolutionChooser | None = None,
    fs: FileSystem | None = None,
) -> str | None:
    """
    Work out which solution file to use.

    Args:
        solution_file: Path given by the user, if any
        directory: Directory searched when no path is given
        chooser: Picks one file name when several solutions are found
        fs: File system to search

    Returns:
        Path to the solution file, or None if none could be determined
    """
    if solution_file and solution_file.strip():
        return solution_file

    candidates = find_solution_files(directory, fs)
    if not candidates:
        return None

    if len(candidates) == 1:
        logger.info("Found solution: %s", os.path.basename(candidates[0]))
        return candidates[0]

    if chooser is None:
        return None

    chosen = chooser([os.path.basename(c) for c in candidates])
    if not chosen or not chosen.strip():
        return None
    return os.path.join(directory, chosen)


def _is_project_line(line: str) -> bool:
    return line.strip().lower().startswith("project(") and ".csproj" in line


def _normalize_separators(path: str) -> str:
    # Solution files written on Windows use backslashes
    return path.replace("\\", os.sep)


def discover_project_paths(
    solution_file: str,
    predicate: Callable[[str], bool] | None = None,
    fs: FileSystem | None = None,
) -> list[str]:
    """
    List project paths referenced by a solution file.

    Args:
        solution_file: Path to the .sln file
        predicate: Optional filter, called with each project's full path
        fs: File system to read from

    Returns:
        Project paths relative to the solution directory, in file order

    Raises:
        SolutionNotFoundError: If the solution path is blank or missing
    """
    fs = fs or LocalFileSystem()

    if not solution_file or not solution_file.strip() or not fs.exists(solution_file):
        raise SolutionNotFoundError(solution_file)

    solution_dir = os.path.dirname(solution_file)
    project_paths: list[str] = []

    for line in fs.read_text(solution_file).splitlines():
        if not _is_project_line(line):
            continue

        parts = line.split('"')
        if len(parts) <= 5:
            continue

        relative_path = _normalize_separators(parts[5])
        if predicate is not None and not predicate(os.path.join(solution_dir, relative_path)):
            continue

        project_paths.append(relative_path)

    logger.debug("Discovered %d project(s) in %s", len(project_paths), solution_file)
    return project_paths
