"""
NetTools CLI - Reconcile NuGet package versions across a .NET solution.

Commands:
    standardize (st)  - Align divergent package versions to the highest one
    remove (rm)       - Remove a package from selected projects
    update (upd)      - Check NuGet for newer versions and apply them
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

# Load .env file from current directory
load_dotenv()

from . import __version__
from .config import NetToolsConfig
from .csproj import has_package
from .dotnet import DotnetCommandRunner
from .errors import NetToolsError, SolutionNotFoundError
from .models import ReconcileReport
from .nuget import NuGetClient
from .reconcile import (
    PipelineOptions,
    Selector,
    remove_package_from_projects,
    select_all,
    standardize_versions,
    update_packages,
)
from .solution import discover_project_paths, resolve_solution_file


def parse_selection(answer: str, count: int) -> list[int]:
    """
    Parse a selection like "1,3-5" into zero-based indexes.

    "all" (or "*") selects everything, an empty answer selects nothing.

    Raises:
        ValueError: If the answer contains an unknown or out-of-range entry
    """
    answer = answer.strip().lower()
    if not answer:
        return []
    if answer in ("all", "*"):
        return list(range(count))

    indexes: list[int] = []
    for part in answer.replace(" ", ",").split(","):
        if not part:
            continue
        if "-" in part:
            start_str, end_str = part.split("-", 1)
            start, end = int(start_str), int(end_str)
        else:
            start = end = int(part)
        if start < 1 or end > count or start > end:
            raise ValueError(f"Out of range: {part}")
        for number in range(start, end + 1):
            if number - 1 not in indexes:
                indexes.append(number - 1)
    return indexes


def prompt_multi_select(title: str, choices: list[str]) -> list[str]:
    """Ask the user to pick any number of choices from a numbered list."""
    click.echo(click.style(title, fg="green"))
    for number, choice in enumerate(choices, start=1):
        click.echo(f"  {number:>3}. {choice}")

    while True:
        answer = click.prompt(
            "Select (e.g. 1,3-5 or 'all', empty for none)",
            default="",
            show_default=False,
        )
        try:
            return [choices[i] for i in parse_selection(answer, len(choices))]
        except ValueError as e:
            click.echo(f"  Invalid selection: {e}", err=True)


def prompt_single_select(choices: list[str]) -> str | None:
    """Ask the user to pick one solution file."""
    click.echo(click.style("Select the solution file:", fg="yellow"))
    for number, choice in enumerate(choices, start=1):
        click.echo(f"  {number:>3}. {choice}")
    index = click.prompt("Solution", type=click.IntRange(1, len(choices)))
    return choices[index - 1]


def _selector(yes: bool) -> Selector:
    return select_all if yes else prompt_multi_select


def _print_report(report: ReconcileReport) -> None:
    for message in report.messages:
        click.echo(message)
    for warning in report.warnings:
        click.secho(warning, fg="red", err=True)


def _pipeline(config: NetToolsConfig, clean: bool, restore: bool, build: bool, verbose: bool) -> PipelineOptions:
    return PipelineOptions(
        clean=clean or config.dotnet.clean,
        restore=restore or config.dotnet.restore,
        build=build or config.dotnet.build,
        verbose=verbose or config.dotnet.verbose,
    )


def _dotnet_runner(config: NetToolsConfig) -> DotnetCommandRunner:
    return DotnetCommandRunner(executable=config.dotnet.executable, echo=click.echo)


def _select_projects(
    solution_file: str | None,
    yes: bool,
    title: str,
    not_found_message: str,
    predicate=None,
) -> tuple[str | None, list[str]]:
    """Resolve the solution file and let the user pick projects from it."""
    solution = resolve_solution_file(solution_file, os.getcwd(), chooser=prompt_single_select)

    try:
        project_paths = discover_project_paths(solution, predicate)
    except SolutionNotFoundError as e:
        click.secho(str(e), fg="red", err=True)
        return None, []
    except NetToolsError as e:
        raise click.ClickException(str(e))

    if not solution_file:
        click.echo(f"Found solution: {os.path.basename(solution)}")

    if not project_paths:
        click.secho(not_found_message, fg="yellow")
        return solution, []

    return solution, _selector(yes)(title, sorted(project_paths))


def _finish(report: ReconcileReport, success_message: str) -> None:
    _print_report(report)
    if report.build_succeeded is False:
        sys.exit(1)
    if report.changes:
        count = len(report.changed_projects)
        click.echo(f"{count} project file{'' if count == 1 else 's'} changed.")
        click.secho(success_message, fg="green")


def pipeline_options(func):
    """Shared --clean/--restore/--build/--verbose/--yes flags."""
    options = [
        click.option("--clean", "-c", is_flag=True, help="Clean the solution afterwards"),
        click.option("--restore", "-r", is_flag=True, help="Restore the solution afterwards"),
        click.option("--build", "-b", is_flag=True, help="Build the solution afterwards"),
        click.option("--verbose", "-v", is_flag=True, help="Show detailed output of dotnet commands"),
        click.option("--yes", "-y", is_flag=True, help="Select every candidate without prompting"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level",
)
def main(log_level: str):
    """NetTools - Reconcile NuGet package versions across a .NET solution."""
    logging.basicConfig(level=getattr(logging, log_level.upper()), format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("solution_file", required=False)
@pipeline_options
def standardize(solution_file: str | None, clean: bool, restore: bool, build: bool, verbose: bool, yes: bool):
    """Standardize NuGet package versions in a solution.

    Every selected package is rewritten to the highest version found
    across the selected projects.
    """
    solution, projects = _select_projects(
        solution_file,
        yes,
        "Select the projects to standardize:",
        "No .csproj files found in the solution file.",
    )
    if not projects:
        return

    config = NetToolsConfig.load(Path(solution).parent, Path.cwd())
    try:
        report = standardize_versions(
            solution,
            projects,
            selector=_selector(yes),
            dotnet=_dotnet_runner(config),
            options=_pipeline(config, clean, restore, build, verbose),
        )
    except NetToolsError as e:
        raise click.ClickException(str(e))

    _finish(report, "NuGet package versions standardized successfully.")


@main.command()
@click.argument("package_id")
@click.argument("solution_file", required=False)
@pipeline_options
def remove(package_id: str, solution_file: str | None, clean: bool, restore: bool, build: bool, verbose: bool, yes: bool):
    """Remove a NuGet package from selected projects in a solution."""
    solution, projects = _select_projects(
        solution_file,
        yes,
        f"Select the projects to remove package » {package_id}:",
        "No .csproj files found in the solution file with the specified package.",
        predicate=lambda csproj: has_package(csproj, package_id),
    )
    if not projects:
        return

    config = NetToolsConfig.load(Path(solution).parent, Path.cwd())
    try:
        report = remove_package_from_projects(
            solution,
            projects,
            package_id,
            dotnet=_dotnet_runner(config),
            options=_pipeline(config, clean, restore, build, verbose),
        )
    except NetToolsError as e:
        raise click.ClickException(str(e))

    _finish(report, f"Package '{package_id}' removed successfully.")


@main.command()
@click.argument("solution_file", required=False)
@click.option("--include-prerelease", "-p", is_flag=True, help="Include prerelease versions when checking for updates")
@pipeline_options
def update(
    solution_file: str | None,
    include_prerelease: bool,
    clean: bool,
    restore: bool,
    build: bool,
    verbose: bool,
    yes: bool,
):
    """Check for NuGet package updates in selected projects."""
    solution, projects = _select_projects(
        solution_file,
        yes,
        "Select the projects to check for updates:",
        "No .csproj files found in the solution file.",
    )
    if not projects:
        return

    config = NetToolsConfig.load(Path(solution).parent, Path.cwd())
    client = NuGetClient(base_url=config.nuget.source, timeout=config.nuget.timeout)

    def progress(current: int, total: int, package_id: str):
        pct = int(current / total * 100) if total > 0 else 0
        bar = "█" * (pct // 5) + "░" * (20 - pct // 5)
        click.echo(f"\r  [{bar}] {current}/{total} Checking {package_id}...\033[K", nl=False)
        if current == total:
            click.echo()

    click.echo("Querying NuGet for latest versions...")
    try:
        report = update_packages(
            solution,
            projects,
            client,
            selector=_selector(yes),
            include_prerelease=include_prerelease or config.nuget.include_prerelease,
            dotnet=_dotnet_runner(config),
            options=_pipeline(config, clean, restore, build, verbose),
            progress_callback=progress,
        )
    except NetToolsError as e:
        raise click.ClickException(str(e))

    _finish(report, "Selected packages updated successfully.")


main.add_command(standardize, name="st")
main.add_command(remove, name="rm")
main.add_command(update, name="upd")


if __name__ == "__main__":
    main()
