"""
File system and XML access for project files.

Project files are read and written through two narrow interfaces so the
reconciliation code can run against the local disk or an in-memory store:

- FileSystem: existence checks, text read/write, directory listing
- XmlService: load a project file into an ElementTree and write it back

Writes keep the original whitespace, comments and line endings, omit the
XML declaration and encode as UTF-8 without a byte-order mark.
"""

from __future__ import annotations

import fnmatch
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import ProjectFileError

logger = logging.getLogger(__name__)


@runtime_checkable
class FileSystem(Protocol):
    """Interface for the file operations NetTools needs."""

    def exists(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def list_files(self, directory: str, pattern: str) -> list[str]: ...


class LocalFileSystem:
    """FileSystem backed by the real disk."""

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read_text(self, path: str) -> str:
        # utf-8-sig drops a leading BOM; newline="" keeps CRLF intact
        with open(path, encoding="utf-8-sig", newline="") as f:
            return f.read()

    def write_text(self, path: str, content: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def list_files(self, directory: str, pattern: str) -> list[str]:
        return sorted(str(p) for p in Path(directory).glob(pattern) if p.is_file())


class MemoryFileSystem:
    """In-memory FileSystem, mainly for tests. Records every write."""

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[str, str] = {
            self._key(path): content for path, content in (files or {}).items()
        }
        self.writes: list[str] = []

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(Path(path))

    def exists(self, path: str) -> bool:
        return self._key(path) in self.files

    def read_text(self, path: str) -> str:
        key = self._key(path)
        if key not in self.files:
            raise FileNotFoundError(path)
        return self.files[key].removeprefix("\ufeff")

    def write_text(self, path: str, content: str) -> None:
        key = self._key(path)
        self.files[key] = content
        self.writes.append(key)

    def list_files(self, directory: str, pattern: str) -> list[str]:
        directory_path = Path(directory)
        return sorted(
            key for key in self.files
            if Path(key).parent == directory_path and fnmatch.fnmatch(Path(key).name, pattern)
        )


@dataclass
class ProjectDocument:
    """A loaded project file."""
    path: str
    root: ET.Element
    newline: str = "\n"
    trailing_newline: bool = False


def local_name(tag: object) -> str:
    """Strip the '{namespace}' prefix from an element tag."""
    if not isinstance(tag, str):
        # Comments and processing instructions
        return ""
    return tag.rsplit("}", 1)[-1]


def _namespace_of(tag: str) -> str | None:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None


class XmlService:
    """Loads and writes project XML through a FileSystem."""

    def __init__(self, fs: FileSystem | None = None):
        self.fs = fs or LocalFileSystem()

    def exists(self, path: str) -> bool:
        return self.fs.exists(path)

    def load(self, path: str) -> ProjectDocument:
        """
        Load a project file.

        Raises:
            ProjectFileError: If the file is missing, is not UTF-8 or is not well-formed XML
        """
        if not self.fs.exists(path):
            raise ProjectFileError(path, "file does not exist")

        try:
            content = self.fs.read_text(path)
        except UnicodeDecodeError as e:
            raise ProjectFileError(path, f"not valid UTF-8 ({e.reason})") from e

        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            parser.feed(content)
            root = parser.close()
        except ET.ParseError as e:
            raise ProjectFileError(path, str(e)) from e

        return ProjectDocument(
            path=path,
            root=root,
            newline="\r\n" if "\r\n" in content else "\n",
            trailing_newline=content.endswith("\n"),
        )

    def save(self, document: ProjectDocument) -> None:
        """Write a project document back to its path."""
        namespace = _namespace_of(document.root.tag)
        if namespace:
            text = ET.tostring(document.root, encoding="unicode", default_namespace=namespace)
        else:
            text = ET.tostring(document.root, encoding="unicode")

        # The parser normalizes line endings to \n
        if document.newline != "\n":
            text = text.replace("\n", document.newline)
        if document.trailing_newline:
            text += document.newline

        self.fs.write_text(document.path, text)
        logger.debug("Wrote %s", document.path)
