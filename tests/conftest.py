"""Shared fixtures for building VSIX packages on the fly."""

import json
import zipfile
from pathlib import Path

import pytest

VSX_NAMESPACE = "http://schemas.microsoft.com/developer/vsx-schema/2011"

MANIFEST_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<PackageManifest Version="2.0.0" xmlns="http://schemas.microsoft.com/developer/vsx-schema/2011" xmlns:d="http://schemas.microsoft.com/developer/vsx-schema-design/2011">
  <Metadata>
    <Identity Language="en-US" Id="{id}" Version="{version}" Publisher="{publisher}" />
    <DisplayName>{display_name}</DisplayName>
    <Description xml:space="preserve">Build tools</Description>
    {gallery_flags}
  </Metadata>
  <Installation>
    <InstallationTarget Id="Microsoft.VisualStudio.Services" />
  </Installation>
  <Assets>
    <Asset Type="Microsoft.VisualStudio.Services.Manifest" d:Source="File" Path="extension.vsomanifest" Addressable="true" />
  </Assets>
</PackageManifest>
"""

PAYLOAD = {
    "[Content_Types].xml": b'<?xml version="1.0" encoding="utf-8"?><Types />',
    "MyTask/index.js": b"console.log('hello');\n",
    "images/logo.png": bytes(range(256)) * 4,
}


def make_manifest(
    id: str = "x",
    version: str = "1.0",
    publisher: str = "p",
    display_name: str = "Tool",
    gallery_flags: str | None = "Paid",
) -> str:
    flags = "" if gallery_flags is None else f"<GalleryFlags>{gallery_flags}</GalleryFlags>"
    return MANIFEST_TEMPLATE.format(
        id=id,
        version=version,
        publisher=publisher,
        display_name=display_name,
        gallery_flags=flags,
    )


def make_vso_manifest(task_dirs: list[str]) -> str:
    contributions = [
        {
            "id": "hub",
            "type": "ms.vss-web.hub",
            "properties": {"name": "Hub"},
        }
    ]
    for task_dir in task_dirs:
        contributions.append(
            {
                "id": task_dir.lower(),
                "type": "ms.vss-distributed-task.task",
                "targets": ["ms.vss-distributed-task.tasks"],
                "properties": {"name": task_dir},
            }
        )
    return json.dumps({"manifestVersion": 1.0, "contributions": contributions}, indent=2)


def make_task(name: str = "MyTask", task_id: str = "00000000-0000-0000-0000-000000000001") -> str:
    return json.dumps(
        {
            "id": task_id,
            "name": name,
            "friendlyName": "My Task",
            "version": {"Major": 0, "Minor": 1, "Patch": 7},
            "execution": {"Node16": {"target": "index.js"}},
        },
        indent=2,
    )


def write_vsix(path: Path, manifest: str | None = None, with_tasks: bool = True) -> Path:
    """Write a VSIX package with a manifest, an optional task and some payload."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", PAYLOAD["[Content_Types].xml"])
        zf.writestr("extension.vsixmanifest", manifest or make_manifest())
        zf.writestr("extension.vsomanifest", make_vso_manifest(["MyTask"] if with_tasks else []))
        if with_tasks:
            zf.writestr("MyTask/task.json", make_task())
            zf.writestr("MyTask/task.loc.json", make_task())
        zf.writestr("MyTask/index.js", PAYLOAD["MyTask/index.js"])
        zf.writestr("images/logo.png", PAYLOAD["images/logo.png"])
    return path


def read_member(archive: Path, name: str) -> bytes:
    with zipfile.ZipFile(archive) as zf:
        return zf.read(name)


@pytest.fixture
def vsix(tmp_path):
    """A VSIX package for extension p.x 1.0 with one build task."""
    source = tmp_path / "src"
    source.mkdir()
    return write_vsix(source / "p.x-1.0.vsix")


@pytest.fixture
def output_dir(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    return out
