from __future__ import annotations

import pytest

from nettools.csproj import has_package, remove_package, scan_project, scan_projects, set_version
from nettools.errors import ProjectFileError
from nettools.models import Package
from nettools.xml_service import MemoryFileSystem, XmlService

SDK_PROJECT = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
  </PropertyGroup>
  <!-- dependencies -->
  <ItemGroup>
    <PackageReference Include="PkgA" Version="1.0.0" />
    <PackageReference Include="PkgB">
      <Version>2.0.0</Version>
    </PackageReference>
  </ItemGroup>
</Project>
"""

LEGACY_PROJECT = """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <ItemGroup>
    <PackageReference Include="Legacy.Pkg">
      <Version>1.0.0</Version>
    </PackageReference>
  </ItemGroup>
</Project>
"""


def make_xml(files: dict[str, str]) -> tuple[XmlService, MemoryFileSystem]:
    fs = MemoryFileSystem(files)
    return XmlService(fs), fs


def test_scan_project_reads_attribute_and_child_forms():
    xml, _ = make_xml({"/sln/App/App.csproj": SDK_PROJECT})

    assert scan_project("/sln/App/App.csproj", xml) == {"PkgA": "1.0.0", "PkgB": "2.0.0"}


def test_scan_project_missing_file_is_empty():
    xml, _ = make_xml({})

    assert scan_project("/sln/Missing.csproj", xml) == {}


def test_scan_project_later_duplicate_wins():
    xml, _ = make_xml({
        "/p.csproj": """<Project>
  <ItemGroup>
    <PackageReference Include="Dup" Version="1.0.0" />
    <PackageReference Include="Dup" Version="0.9.0" />
  </ItemGroup>
</Project>""",
    })

    assert scan_project("/p.csproj", xml) == {"Dup": "0.9.0"}


def test_scan_project_skips_blank_ids_and_versions():
    xml, _ = make_xml({
        "/p.csproj": """<Project>
  <ItemGroup>
    <PackageReference Include="" Version="1.0.0" />
    <PackageReference Include="NoVersion" />
    <PackageReference Include="Blank" Version="  " />
    <PackageReference Include="Ok" Version="3.1.0" />
  </ItemGroup>
</Project>""",
    })

    assert scan_project("/p.csproj", xml) == {"Ok": "3.1.0"}


def test_scan_project_ignores_msbuild_namespace():
    xml, _ = make_xml({"/legacy.csproj": LEGACY_PROJECT})

    assert scan_project("/legacy.csproj", xml) == {"Legacy.Pkg": "1.0.0"}


def test_scan_project_malformed_xml_raises():
    xml, _ = make_xml({"/broken.csproj": "<Project><ItemGroup></Project>"})

    with pytest.raises(ProjectFileError):
        scan_project("/broken.csproj", xml)


def test_scan_projects_leaves_out_missing_and_empty_projects():
    xml, _ = make_xml({
        "/sln/App/App.csproj": SDK_PROJECT,
        "/sln/Empty/Empty.csproj": "<Project Sdk=\"Microsoft.NET.Sdk\" />",
    })

    result = scan_projects(["/sln/App/App.csproj", "/sln/Empty/Empty.csproj", "/sln/Gone.csproj"], xml)

    assert result == {"/sln/App/App.csproj": [Package("PkgA", "1.0.0"), Package("PkgB", "2.0.0")]}


def test_has_package_is_case_insensitive():
    xml, _ = make_xml({"/p.csproj": SDK_PROJECT})

    assert has_package("/p.csproj", "pkga", xml)
    assert has_package("/p.csproj", "PKGB", xml)
    assert not has_package("/p.csproj", "PkgC", xml)


def test_has_package_missing_file_is_false():
    xml, _ = make_xml({})

    assert not has_package("/missing.csproj", "PkgA", xml)


def test_set_version_attribute_form_preserves_formatting():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert set_version("/p.csproj", "PkgA", "1.1.0", xml)

    assert fs.files["/p.csproj"] == SDK_PROJECT.replace(
        'Include="PkgA" Version="1.0.0"', 'Include="PkgA" Version="1.1.0"'
    )


def test_set_version_child_form():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert set_version("/p.csproj", "PkgB", "2.5.0", xml)

    assert fs.files["/p.csproj"] == SDK_PROJECT.replace(
        "<Version>2.0.0</Version>", "<Version>2.5.0</Version>"
    )


def test_set_version_is_case_sensitive():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert not set_version("/p.csproj", "pkga", "9.9.9", xml)
    assert fs.writes == []


def test_set_version_absent_id_does_not_write():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert not set_version("/p.csproj", "PkgZ", "1.0.0", xml)
    assert fs.writes == []
    assert fs.files["/p.csproj"] == SDK_PROJECT


def test_set_version_reference_without_version_is_left_alone():
    content = """<Project>
  <ItemGroup>
    <PackageReference Include="Floating" />
  </ItemGroup>
</Project>"""
    xml, fs = make_xml({"/p.csproj": content})

    assert not set_version("/p.csproj", "Floating", "1.0.0", xml)
    assert fs.writes == []


def test_set_version_missing_file_raises():
    xml, _ = make_xml({})

    with pytest.raises(ProjectFileError):
        set_version("/missing.csproj", "PkgA", "1.0.0", xml)


def test_set_version_keeps_crlf_and_drops_bom():
    crlf = "\ufeff" + SDK_PROJECT.replace("\n", "\r\n")
    xml, fs = make_xml({"/p.csproj": crlf})

    set_version("/p.csproj", "PkgA", "1.1.0", xml)

    written = fs.files["/p.csproj"]
    assert not written.startswith("\ufeff")
    assert written.endswith("</Project>\r\n")
    assert "\n" not in written.replace("\r\n", "")
    assert 'Version="1.1.0"' in written


def test_set_version_legacy_project_keeps_default_namespace():
    xml, fs = make_xml({"/legacy.csproj": LEGACY_PROJECT})

    assert set_version("/legacy.csproj", "Legacy.Pkg", "1.2.0", xml)

    written = fs.files["/legacy.csproj"]
    assert 'xmlns="http://schemas.microsoft.com/developer/msbuild/2003"' in written
    assert "ns0:" not in written
    assert "<?xml" not in written
    assert "<Version>1.2.0</Version>" in written


def test_remove_package_last_child_keeps_closing_indentation():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert remove_package("/p.csproj", "pkgb", xml)

    assert fs.files["/p.csproj"] == SDK_PROJECT.replace(
        """
    <PackageReference Include="PkgB">
      <Version>2.0.0</Version>
    </PackageReference>""",
        "",
    )


def test_remove_package_first_child():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert remove_package("/p.csproj", "PkgA", xml)

    assert fs.files["/p.csproj"] == SDK_PROJECT.replace(
        '\n    <PackageReference Include="PkgA" Version="1.0.0" />', ""
    )


def test_remove_package_only_child():
    content = """<Project>
  <ItemGroup>
    <PackageReference Include="Solo" Version="1.0.0" />
  </ItemGroup>
</Project>"""
    xml, fs = make_xml({"/p.csproj": content})

    assert remove_package("/p.csproj", "Solo", xml)

    assert fs.files["/p.csproj"] == """<Project>
  <ItemGroup>
  </ItemGroup>
</Project>"""


def test_remove_package_absent_id_does_not_write():
    xml, fs = make_xml({"/p.csproj": SDK_PROJECT})

    assert not remove_package("/p.csproj", "PkgZ", xml)
    assert fs.writes == []


def test_remove_package_removes_every_duplicate():
    content = """<Project>
  <ItemGroup>
    <PackageReference Include="Dup" Version="1.0.0" />
  </ItemGroup>
  <ItemGroup>
    <PackageReference Include="dup" Version="2.0.0" />
  </ItemGroup>
</Project>"""
    xml, fs = make_xml({"/p.csproj": content})

    assert remove_package("/p.csproj", "DUP", xml)

    assert "Dup" not in fs.files["/p.csproj"]
    assert "dup" not in fs.files["/p.csproj"]
    assert fs.writes == ["/p.csproj"]


def test_load_invalid_utf8_raises_project_file_error(tmp_path):
    path = tmp_path / "Bad.csproj"
    path.write_bytes(b'<Project>\n  <PackageReference Include="Pkg\xff" Version="1.0.0" />\n</Project>\n')

    with pytest.raises(ProjectFileError) as exc_info:
        scan_project(str(path), XmlService())

    assert "not valid UTF-8" in str(exc_info.value)
