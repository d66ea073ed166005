from __future__ import annotations

import os

import pytest

from nettools.errors import SolutionNotFoundError
from nettools.solution import discover_project_paths, find_solution_files, resolve_solution_file
from nettools.xml_service import MemoryFileSystem

SOLUTION = """
Microsoft Visual Studio Solution File, Format Version 12.00
# Visual Studio Version 17
Project("{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}") = "App", "src\\App\\App.csproj", "{11111111-1111-1111-1111-111111111111}"
EndProject
Project("{2150E333-8FDC-42A3-9474-1A3956D46DE8}") = "Solution Items", "Solution Items", "{22222222-2222-2222-2222-222222222222}"
EndProject
Project("{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}") = "Lib", "src\\Lib\\Lib.csproj", "{33333333-3333-3333-3333-333333333333}"
EndProject
Project("{F2A71F9B-5D33-465A-A702-920D77279786}") = "Tool", "tools\\Tool.fsproj", "{44444444-4444-4444-4444-444444444444}"
EndProject
Global
EndGlobal
"""


def test_discover_project_paths_reads_csproj_lines():
    fs = MemoryFileSystem({"/repo/App.sln": SOLUTION})

    paths = discover_project_paths("/repo/App.sln", fs=fs)

    assert paths == [
        os.path.join("src", "App", "App.csproj"),
        os.path.join("src", "Lib", "Lib.csproj"),
    ]


def test_discover_project_paths_predicate_gets_full_path():
    fs = MemoryFileSystem({"/repo/App.sln": SOLUTION})
    seen: list[str] = []

    def only_lib(path: str) -> bool:
        seen.append(path)
        return path.endswith("Lib.csproj")

    paths = discover_project_paths("/repo/App.sln", only_lib, fs=fs)

    assert paths == [os.path.join("src", "Lib", "Lib.csproj")]
    assert seen[0] == os.path.join("/repo", "src", "App", "App.csproj")


@pytest.mark.parametrize("solution_file", ["", "   ", "/repo/Missing.sln"])
def test_discover_project_paths_invalid_solution_raises(solution_file):
    fs = MemoryFileSystem({"/repo/App.sln": SOLUTION})

    with pytest.raises(SolutionNotFoundError) as exc_info:
        discover_project_paths(solution_file, fs=fs)

    assert str(exc_info.value) == "Solution file not found or invalid."


def test_find_solution_files_top_level_only():
    fs = MemoryFileSystem({
        "/repo/B.sln": "",
        "/repo/A.sln": "",
        "/repo/nested/C.sln": "",
        "/repo/readme.md": "",
    })

    assert find_solution_files("/repo", fs) == ["/repo/A.sln", "/repo/B.sln"]


def test_resolve_solution_file_prefers_given_path():
    fs = MemoryFileSystem({"/repo/A.sln": ""})

    assert resolve_solution_file("Other.sln", "/repo", fs=fs) == "Other.sln"


def test_resolve_solution_file_single_candidate():
    fs = MemoryFileSystem({"/repo/A.sln": ""})

    assert resolve_solution_file(None, "/repo", fs=fs) == "/repo/A.sln"


def test_resolve_solution_file_none_found():
    assert resolve_solution_file("", "/repo", fs=MemoryFileSystem()) is None


def test_resolve_solution_file_uses_chooser_for_several():
    fs = MemoryFileSystem({"/repo/A.sln": "", "/repo/B.sln": ""})
    offered: list[list[str]] = []

    def chooser(names: list[str]) -> str:
        offered.append(names)
        return "B.sln"

    assert resolve_solution_file(None, "/repo", chooser, fs) == os.path.join("/repo", "B.sln")
    assert offered == [["A.sln", "B.sln"]]


def test_resolve_solution_file_several_without_chooser():
    fs = MemoryFileSystem({"/repo/A.sln": "", "/repo/B.sln": ""})

    assert resolve_solution_file(None, "/repo", fs=fs) is None


def test_resolve_solution_file_with_local_files(tmp_path):
    (tmp_path / "App.sln").write_text(SOLUTION)
    (tmp_path / "notes.txt").write_text("")

    assert resolve_solution_file(None, str(tmp_path)) == str(tmp_path / "App.sln")
