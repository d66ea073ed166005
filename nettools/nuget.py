"""
NuGet API client for NetTools.

Looks up the latest published version of a package through the NuGet v3
flat container endpoint:

    GET {source}{package-id-lowercase}/index.json  ->  {"versions": [...]}

A lookup is a single best-effort request. Any failure (network error,
non-2xx status, unexpected payload) yields None rather than an exception.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterable

import requests

from . import __version__
from .errors import InvalidVersionError
from .versioning import is_prerelease, max_version

logger = logging.getLogger(__name__)

NUGET_V3_URL = "https://api.nuget.org/v3-flatcontainer/"
DEFAULT_TIMEOUT = 30.0


def _is_stable(version: str) -> bool:
    try:
        return not is_prerelease(version)
    except InvalidVersionError:
        return "-" not in version.split("+", 1)[0]


class NuGetClient:
    """NuGet flat container client."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        base_url = base_url or os.environ.get("NETTOOLS_NUGET_SOURCE") or NUGET_V3_URL
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/json"
        self.session.headers["User-Agent"] = f"nettools/{__version__}"

    def get_versions(self, package_id: str) -> list[str] | None:
        """
        Fetch every published version of a package.

        Returns:
            List of version strings as published, or None on any failure
        """
        if not package_id or not package_id.strip():
            return None

        url = f"{self.base_url}{package_id.lower()}/index.json"

        try:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code >= 400:
                logger.debug("NuGet lookup for %s returned %s", package_id, response.status_code)
                return None
            data: Any = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug("NuGet lookup for %s failed: %s", package_id, e)
            return None

        versions = data.get("versions") if isinstance(data, dict) else None
        if not isinstance(versions, list):
            return None

        return [v for v in versions if isinstance(v, str) and v]

    def get_latest_version(self, package_id: str, include_prerelease: bool = False) -> str | None:
        """
        Get the latest version of a package.

        Args:
            package_id: NuGet package id (case-insensitive)
            include_prerelease: Consider versions with a prerelease label

        Returns:
            Latest version string, or None if it cannot be determined
        """
        versions = self.get_versions(package_id)
        if not versions:
            return None

        candidates = [v for v in versions if include_prerelease or _is_stable(v)]
        if not candidates:
            return None

        try:
            return max_version(candidates)
        except InvalidVersionError as e:
            # The feed lists versions in ascending order
            logger.debug("Unparseable version for %s (%s), using the last listed", package_id, e)
            return candidates[-1]


def fetch_latest_versions(
    client: NuGetClient,
    package_ids: Iterable[str],
    include_prerelease: bool = False,
    progress_callback: Callable[[int, int, str], None] | None = None,
) -> dict[str, str | None]:
    """
    Look up the latest version of several packages.

    One request is made per distinct package id. The result is complete
    when the function returns.

    Args:
        client: NuGet API client
        package_ids: Package ids to look up
        include_prerelease: Consider prerelease versions
        progress_callback: Called as (current, total, package_id) after each lookup

    Returns:
        Dict mapping package id to latest version (None when unknown)
    """
    unique_ids = list(dict.fromkeys(package_ids))
    total = len(unique_ids)
    latest_versions: dict[str, str | None] = {}

    for index, package_id in enumerate(unique_ids, start=1):
        latest_versions[package_id] = client.get_latest_version(package_id, include_prerelease)
        if progress_callback:
            progress_callback(index, total, package_id)

    return latest_versions
