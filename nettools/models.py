"""Data models shared by the scanner, consolidation and mutation steps."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Package:
    """A package reference found in a project file."""
    id: str
    version: str


@dataclass(frozen=True)
class OutdatedEntry:
    """An installed package with a newer version on the registry."""
    package_id: str
    installed: str
    latest: str

    @property
    def display_name(self) -> str:
        return f"{self.package_id} ({self.installed} » {self.latest})"


@dataclass
class ProjectChange:
    """A single rewrite applied to a project file."""
    project: str
    package_id: str
    version: str | None = None  # None for removals


@dataclass
class ReconcileReport:
    """Outcome of a standardize, remove or update pass."""
    changes: list[ProjectChange] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    build_succeeded: bool | None = None  # None when no build step ran

    @property
    def changed_projects(self) -> list[str]:
        seen: list[str] = []
        for change in self.changes:
            if change.project not in seen:
                seen.append(change.project)
        return seen
