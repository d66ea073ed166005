"""Exception types raised by NetTools."""

from __future__ import annotations


class NetToolsError(Exception):
    """Base error for NetTools."""


class InvalidVersionError(NetToolsError, ValueError):
    """A version string could not be parsed."""
    def __init__(self, version: str):
        super().__init__(f"Invalid version string: '{version}'")
        self.version = version


class SolutionNotFoundError(NetToolsError):
    """Solution file path is missing, blank or does not exist."""
    def __init__(self, solution_file: str | None = None):
        super().__init__("Solution file not found or invalid.")
        self.solution_file = solution_file


class ProjectFileError(NetToolsError):
    """A project file could not be loaded or parsed."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read project file {path}: {reason}")
        self.path = path
        self.reason = reason
