"""
Package reconciliation workflows.

Ties the scanner, consolidation and mutation steps together for the three
commands NetTools offers:

- standardize_versions: align divergent versions to the highest one
- remove_package_from_projects: drop a package from selected projects
- update_packages: check NuGet for newer versions and apply them

Workflows never touch the process working directory; every path is resolved
against the solution file's directory. Interactive choices go through a
Selector so the same code runs from the CLI, from scripts and from tests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .consolidation import consolidate, find_divergent, get_outdated
from .csproj import remove_package, scan_projects, set_version
from .dotnet import DotnetCommandRunner
from .errors import SolutionNotFoundError
from .models import Package, ProjectChange, ReconcileReport
from .nuget import NuGetClient, fetch_latest_versions
from .versioning import max_version, sort_versions
from .xml_service import XmlService

logger = logging.getLogger(__name__)

# Given a prompt title and candidate labels, returns the chosen labels
Selector = Callable[[str, list[str]], list[str]]

UNKNOWN_VERSION = "Unknown"


def select_all(title: str, choices: list[str]) -> list[str]:
    """Selector that picks every candidate."""
    return list(choices)


@dataclass
class PipelineOptions:
    """Which dotnet steps to run after a mutation pass."""
    clean: bool = False
    restore: bool = False
    build: bool = False
    verbose: bool = False

    @property
    def any_step(self) -> bool:
        return self.clean or self.restore or self.build


def _solution_dir(solution_file: str | None) -> str:
    if not solution_file or not solution_file.strip():
        raise SolutionNotFoundError(solution_file)
    return os.path.dirname(solution_file)


def _run_pipeline(
    solution_file: str,
    dotnet: DotnetCommandRunner | None,
    options: PipelineOptions | None,
) -> bool | None:
    if options is None or not options.any_step:
        return None
    dotnet = dotnet or DotnetCommandRunner()
    # dirname of a bare file name is empty
    return dotnet.run_sequential(
        os.path.dirname(os.path.abspath(solution_file)),
        os.path.basename(solution_file),
        verbose=options.verbose,
        clean=options.clean,
        restore=options.restore,
        build=options.build,
    )


def apply_selected_updates(
    project_packages: Mapping[str, Iterable[Package]],
    latest_versions: Mapping[str, str | None],
    selected: Iterable[tuple[str, str]],
    xml: XmlService | None = None,
    report: ReconcileReport | None = None,
) -> ReconcileReport:
    """
    Update every project that references one of the selected packages.

    Args:
        project_packages: Project path to the packages it references
        latest_versions: Package id to the version to install
        selected: (display name, package id) pairs chosen by the user
        xml: XML service used to rewrite project files
        report: Report to add to; a new one is created if omitted

    A package without a known latest version is reported once per project
    and skipped; the remaining packages and projects are still processed.
    """
    report = report or ReconcileReport()

    for _, package_id in selected:
        for project_path, packages in project_packages.items():
            if not any(p.id == package_id for p in packages):
                continue

            new_version = latest_versions.get(package_id)
            if not new_version:
                warning = f"No latest version found for package '{package_id}' in project '{project_path}'."
                logger.warning(warning)
                report.warnings.append(warning)
                continue

            if set_version(project_path, package_id, new_version, xml):
                report.changes.append(ProjectChange(project_path, package_id, new_version))

    return report


def apply_standardization(
    divergent: Mapping[str, Iterable[str]],
    project_package_map: Mapping[str, Mapping[str, str]],
    selected_display_names: Iterable[str],
    xml: XmlService | None = None,
    report: ReconcileReport | None = None,
) -> ReconcileReport:
    """
    Rewrite each selected package to its highest installed version.

    The package id is the first whitespace-separated token of the display
    name. Projects already at the target version are not touched.
    """
    report = report or ReconcileReport()

    for display_name in selected_display_names:
        tokens = display_name.split()
        if not tokens:
            continue
        package_id = tokens[0]

        versions = [
            v for v in divergent.get(package_id, ())
            if v.casefold() != UNKNOWN_VERSION.casefold()
        ]
        if not versions:
            logger.warning("No usable version to standardize %s to", package_id)
            continue
        target = max_version(versions)

        for csproj_path, packages in project_package_map.items():
            current = packages.get(package_id)
            if current is None or current == target:
                continue

            if set_version(csproj_path, package_id, target, xml):
                report.changes.append(ProjectChange(csproj_path, package_id, target))
                report.messages.append(
                    f"Updated » {package_id} in {os.path.basename(csproj_path)} to version {target}."
                )

    return report


def standardize_versions(
    solution_file: str | None,
    project_paths: Iterable[str],
    selector: Selector = select_all,
    xml: XmlService | None = None,
    dotnet: DotnetCommandRunner | None = None,
    options: PipelineOptions | None = None,
) -> ReconcileReport:
    """
    Standardize divergent package versions across the given projects.

    Args:
        solution_file: Path to the .sln file
        project_paths: Project paths relative to the solution directory
        selector: Chooses which divergent packages to standardize
        xml: XML service used to read and write project files
        dotnet: Runner for the optional build pipeline
        options: Build pipeline steps to run afterwards

    Raises:
        SolutionNotFoundError: If solution_file is blank
    """
    solution_dir = _solution_dir(solution_file)
    report = ReconcileReport()

    divergent, project_package_map = find_divergent(project_paths, solution_dir, xml)
    if not divergent:
        report.messages.append("No packages with multiple versions found.")
        return report

    choices = sorted(
        f"{package_id} ({', '.join(sort_versions(versions))})"
        for package_id, versions in divergent.items()
    )
    selected = selector("Select the packages with multiple versions to standardize:", choices)
    if not selected:
        report.messages.append("No package selected.")
        return report

    apply_standardization(divergent, project_package_map, selected, xml, report)
    report.build_succeeded = _run_pipeline(solution_file, dotnet, options)
    return report


def remove_package_from_projects(
    solution_file: str | None,
    project_paths: Iterable[str],
    package_id: str,
    xml: XmlService | None = None,
    dotnet: DotnetCommandRunner | None = None,
    options: PipelineOptions | None = None,
) -> ReconcileReport:
    """
    Remove a package from each of the given projects.

    Raises:
        SolutionNotFoundError: If solution_file is blank
    """
    solution_dir = _solution_dir(solution_file)
    report = ReconcileReport()

    for relative_path in project_paths:
        csproj_path = os.path.join(solution_dir, relative_path)
        if remove_package(csproj_path, package_id, xml):
            report.changes.append(ProjectChange(csproj_path, package_id))
            report.messages.append(f"Removed '{package_id}' from {relative_path}.")

    report.build_succeeded = _run_pipeline(solution_file, dotnet, options)
    return report


def update_packages(
    solution_file: str | None,
    project_paths: Iterable[str],
    client: NuGetClient,
    selector: Selector = select_all,
    include_prerelease: bool = False,
    xml: XmlService | None = None,
    dotnet: DotnetCommandRunner | None = None,
    options: PipelineOptions | None = None,
    progress_callback: Callable[[int, int, str], None] | None = None,
) -> ReconcileReport:
    """
    Check the given projects for outdated packages and apply selected updates.

    Args:
        solution_file: Path to the .sln file
        project_paths: Project paths relative to the solution directory
        client: NuGet client used to look up latest versions
        selector: Chooses which outdated packages to update
        include_prerelease: Consider prerelease versions, both installed and latest
        xml: XML service used to read and write project files
        dotnet: Runner for the optional build pipeline
        options: Build pipeline steps to run afterwards
        progress_callback: Called as (current, total, package_id) during lookups

    Raises:
        SolutionNotFoundError: If solution_file is blank
    """
    solution_dir = _solution_dir(solution_file)
    report = ReconcileReport()

    project_packages = scan_projects(
        [os.path.join(solution_dir, p) for p in project_paths], xml
    )
    installed = consolidate(project_packages)
    latest_versions = fetch_latest_versions(
        client, installed.keys(), include_prerelease, progress_callback
    )
    outdated = get_outdated(installed, latest_versions, include_prerelease)

    if not outdated:
        report.messages.append("All packages are up to date.")
        return report

    chosen = set(selector("Select the packages to update:", [e.display_name for e in outdated]))
    selected = [(e.display_name, e.package_id) for e in outdated if e.display_name in chosen]
    if not selected:
        report.messages.append("No packages selected for update.")
        return report

    apply_selected_updates(project_packages, latest_versions, selected, xml, report)
    report.build_succeeded = _run_pipeline(solution_file, dotnet, options)
    return report
