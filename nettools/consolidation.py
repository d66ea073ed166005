"""
Consolidation of package versions across projects.

- consolidate: highest installed version per package id
- find_divergent: package ids installed at more than one version
- get_outdated: installed packages with a newer version on the registry
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Mapping

from .csproj import scan_project
from .models import OutdatedEntry, Package
from .versioning import get_greater_version, is_prerelease, pick_greater
from .xml_service import XmlService

logger = logging.getLogger(__name__)


def consolidate(project_packages: Mapping[str, Iterable[Package]]) -> dict[str, str]:
    """
    Reduce per-project packages to one version per package id.

    The greatest version wins, so the result does not depend on the
    order in which projects or packages are visited.
    """
    all_packages: dict[str, str] = {}

    for packages in project_packages.values():
        for pkg in packages:
            current = all_packages.get(pkg.id)
            all_packages[pkg.id] = pkg.version if current is None else pick_greater(current, pkg.version)

    return all_packages


def find_divergent(
    project_paths: Iterable[str],
    solution_dir: str,
    xml: XmlService | None = None,
) -> tuple[dict[str, set[str]], dict[str, dict[str, str]]]:
    """
    Find packages installed at different versions across projects.

    Args:
        project_paths: Project paths relative to the solution directory
        solution_dir: Directory the relative paths are resolved against
        xml: XML service used to read the project files

    Returns:
        Tuple of (divergent, project_package_map) where divergent maps a
        package id to its distinct versions (only ids with two or more) and
        project_package_map maps each scanned project path to its packages
    """
    package_versions: dict[str, set[str]] = {}
    project_package_map: dict[str, dict[str, str]] = {}

    for relative_path in project_paths:
        csproj_path = os.path.join(solution_dir, relative_path)
        packages = scan_project(csproj_path, xml)
        project_package_map[csproj_path] = packages

        for package_id, version in packages.items():
            package_versions.setdefault(package_id, set()).add(version)

    divergent = {
        package_id: versions
        for package_id, versions in package_versions.items()
        if len(versions) > 1
    }
    logger.debug("Found %d divergent package(s) in %d project(s)", len(divergent), len(project_package_map))

    return divergent, project_package_map


def get_outdated(
    installed: Mapping[str, str],
    latest: Mapping[str, str | None],
    include_prerelease: bool = False,
) -> list[OutdatedEntry]:
    """
    List installed packages that have a newer version available.

    Args:
        installed: Package id to installed (consolidated) version
        latest: Package id to latest registry version, None if unknown
        include_prerelease: Also consider packages installed at a prerelease

    Returns:
        OutdatedEntry list in the iteration order of installed
    """
    outdated: list[OutdatedEntry] = []

    for package_id, installed_version in installed.items():
        if is_prerelease(installed_version) and not include_prerelease:
            continue

        latest_version = latest.get(package_id)
        if not latest_version:
            continue

        # Ties return the installed string, so equal versions are never outdated
        greater = get_greater_version(latest_version, installed_version)
        if greater != installed_version:
            outdated.append(OutdatedEntry(package_id, installed_version, greater))

    return outdated
