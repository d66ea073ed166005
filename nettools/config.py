"""
Configuration management for NetTools.

Loads nettools.yml from the solution directory (falling back to the current
directory). Every setting is optional; command-line flags are combined with
the file so a flag can switch a step on but never off.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .nuget import DEFAULT_TIMEOUT

CONFIG_FILE_NAME = "nettools.yml"


@dataclass
class NuGetConfig:
    """NuGet feed settings."""
    source: str | None = None  # Falls back to NETTOOLS_NUGET_SOURCE, then nuget.org
    timeout: float = DEFAULT_TIMEOUT
    include_prerelease: bool = False


@dataclass
class DotnetConfig:
    """Build pipeline defaults."""
    executable: str = "dotnet"
    clean: bool = False
    restore: bool = False
    build: bool = False
    verbose: bool = False


@dataclass
class NetToolsConfig:
    """Complete NetTools configuration."""
    nuget: NuGetConfig = field(default_factory=NuGetConfig)
    dotnet: DotnetConfig = field(default_factory=DotnetConfig)
    path: Path | None = None  # File the settings were read from

    @classmethod
    def load(cls, *directories: Path | str | None) -> "NetToolsConfig":
        """Load configuration from the first directory holding nettools.yml."""
        for directory in directories:
            if directory is None:
                continue
            config_path = Path(directory) / CONFIG_FILE_NAME
            if config_path.exists():
                with open(config_path) as f:
                    data = yaml.safe_load(f) or {}
                config = cls._parse(data)
                config.path = config_path
                return config

        return cls()

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> "NetToolsConfig":
        """Parse configuration dictionary."""
        config = cls()

        nuget_data = data.get("nuget") or {}
        config.nuget = NuGetConfig(
            source=nuget_data.get("source"),
            timeout=float(nuget_data.get("timeout", DEFAULT_TIMEOUT)),
            include_prerelease=bool(nuget_data.get("include_prerelease", False)),
        )

        dotnet_data = data.get("dotnet") or {}
        config.dotnet = DotnetConfig(
            executable=dotnet_data.get("executable", "dotnet"),
            clean=bool(dotnet_data.get("clean", False)),
            restore=bool(dotnet_data.get("restore", False)),
            build=bool(dotnet_data.get("build", False)),
            verbose=bool(dotnet_data.get("verbose", False)),
        )

        return config
