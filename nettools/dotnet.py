"""
Build pipeline for NetTools.

Runs `dotnet clean`, `dotnet restore` and `dotnet build` against a solution
after its project files were rewritten. Steps run in that fixed order and
the pipeline stops at the first failing step.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable

logger = logging.getLogger(__name__)

PIPELINE_STEPS = ("clean", "restore", "build")


class ProcessRunner:
    """Runs external processes."""

    def run(
        self,
        args: list[str],
        cwd: str,
        on_output: Callable[[str], None] | None = None,
    ) -> int:
        """
        Run a command and wait for it to finish.

        Args:
            args: Command and arguments
            cwd: Working directory
            on_output: Called with each non-blank output line

        Returns:
            Process exit code (127 if the executable was not found)
        """
        try:
            result = subprocess.run(
                args,
                cwd=cwd or None,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            if cwd and e.filename == cwd:
                logger.error("Working directory not found: %s", cwd)
            else:
                logger.error("Executable not found: %s", args[0])
            return 127

        if on_output:
            for line in (result.stdout + result.stderr).splitlines():
                if line.strip():
                    on_output(line)

        return result.returncode


class DotnetCommandRunner:
    """Runs dotnet CLI commands in the context of a solution."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        executable: str = "dotnet",
        echo: Callable[[str], None] | None = None,
    ):
        self.runner = runner or ProcessRunner()
        self.executable = executable
        self.echo = echo or (lambda message: None)

    def run_command(
        self,
        command: str,
        solution_dir: str,
        solution_name: str | None = None,
        verbose: bool = False,
    ) -> bool:
        """Run a single dotnet command. Returns True on exit code 0."""
        args = [self.executable, command]
        if solution_name:
            args.append(solution_name)

        logger.debug("Running %s in %s", " ".join(args), solution_dir)
        exit_code = self.runner.run(args, cwd=solution_dir, on_output=self.echo if verbose else None)
        return exit_code == 0

    def run_sequential(
        self,
        solution_dir: str,
        solution_name: str | None = None,
        verbose: bool = False,
        clean: bool = False,
        restore: bool = False,
        build: bool = False,
    ) -> bool:
        """
        Run the selected pipeline steps in order: clean, restore, build.

        Returns:
            False as soon as a step fails, True otherwise
        """
        selected = {"clean": clean, "restore": restore, "build": build}
        labels = {"clean": "Cleaning", "restore": "Restoring", "build": "Building"}

        for step in PIPELINE_STEPS:
            if not selected[step]:
                continue

            self.echo(f"{labels[step]} the solution...")
            if not self.run_command(step, solution_dir, solution_name, verbose):
                self.echo(f"Failed to {step} the solution.")
                logger.warning("dotnet %s failed for %s", step, solution_name or solution_dir)
                return False

        return True
