"""
Project file scanning and rewriting.

Reads PackageReference entries from SDK-style and legacy project files and
applies version changes or removals in place. A PackageReference carries the
package id in its Include attribute and the version either as a Version
attribute or as a nested <Version> element; both forms are read and written.

Matching rules:
- has_package / remove_package compare Include case-insensitively
- set_version compares Include exactly
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, Iterator

from .models import Package
from .xml_service import XmlService, local_name

logger = logging.getLogger(__name__)

PACKAGE_REFERENCE = "PackageReference"

_default_xml = XmlService()


def _service(xml: XmlService | None) -> XmlService:
    return xml or _default_xml


def iter_package_references(root: ET.Element) -> Iterator[ET.Element]:
    """Yield every PackageReference element, whatever its namespace."""
    for element in root.iter():
        if local_name(element.tag) == PACKAGE_REFERENCE:
            yield element


def _version_child(element: ET.Element) -> ET.Element | None:
    for child in element:
        if local_name(child.tag) == "Version":
            return child
    return None


def read_version(element: ET.Element) -> str | None:
    """Version from the attribute form, else the child element form."""
    version = element.get("Version")
    if version is None:
        child = _version_child(element)
        if child is not None:
            version = child.text
    return version


def scan_project(path: str, xml: XmlService | None = None) -> dict[str, str]:
    """
    Read the package references of a single project file.

    Returns:
        Dict mapping package id to version; empty if the file does not exist.
        A package listed twice keeps the later version.

    Raises:
        ProjectFileError: If the file is not well-formed XML
    """
    xml = _service(xml)
    packages: dict[str, str] = {}

    if not xml.exists(path):
        return packages

    document = xml.load(path)
    for element in iter_package_references(document.root):
        package_id = element.get("Include")
        version = read_version(element)
        if package_id and package_id.strip() and version and version.strip():
            packages[package_id] = version

    return packages


def scan_projects(paths: Iterable[str], xml: XmlService | None = None) -> dict[str, list[Package]]:
    """
    Read package references from several project files.

    Missing files and projects without package references are left out
    of the result.
    """
    result: dict[str, list[Package]] = {}

    for path in paths:
        for package_id, version in scan_project(path, xml).items():
            result.setdefault(path, []).append(Package(package_id, version))

    return result


def _matches_ignore_case(element: ET.Element, package_id: str) -> bool:
    include = element.get("Include")
    return include is not None and include.casefold() == package_id.casefold()


def has_package(path: str, package_id: str, xml: XmlService | None = None) -> bool:
    """Check whether a project references a package (case-insensitive)."""
    xml = _service(xml)
    if not xml.exists(path):
        return False
    document = xml.load(path)
    return any(_matches_ignore_case(e, package_id) for e in iter_package_references(document.root))


def set_version(path: str, package_id: str, new_version: str, xml: XmlService | None = None) -> bool:
    """
    Set the version of a package in a project file.

    Every PackageReference whose Include equals package_id exactly is
    updated through whichever version form it uses. References with
    neither form are left alone.

    Returns:
        True if the file was written
    """
    xml = _service(xml)
    document = xml.load(path)
    updated = False

    for element in iter_package_references(document.root):
        if element.get("Include") != package_id:
            continue

        if element.get("Version") is not None:
            element.set("Version", new_version)
            updated = True
            continue

        child = _version_child(element)
        if child is None:
            continue

        child.text = new_version
        updated = True

    if updated:
        xml.save(document)
        logger.info("Set %s to %s in %s", package_id, new_version, path)

    return updated


def _remove_child(parent: ET.Element, child: ET.Element) -> None:
    """Remove an element, keeping the indentation of what follows it."""
    children = list(parent)
    index = children.index(child)
    if index == len(children) - 1:
        # The removed tail holds the indentation of the parent's closing tag
        if index > 0:
            children[index - 1].tail = child.tail
        else:
            parent.text = child.tail
    parent.remove(child)


def remove_package(path: str, package_id: str, xml: XmlService | None = None) -> bool:
    """
    Remove every reference to a package from a project file (case-insensitive).

    Returns:
        True if the file was written
    """
    xml = _service(xml)
    document = xml.load(path)

    parents = {child: parent for parent in document.root.iter() for child in parent}
    matches = [e for e in iter_package_references(document.root) if _matches_ignore_case(e, package_id)]

    removed = False
    for element in matches:
        parent = parents.get(element)
        if parent is not None:
            _remove_child(parent, element)
            removed = True

    if removed:
        xml.save(document)
        logger.info("Removed %s from %s", package_id, path)

    return removed
