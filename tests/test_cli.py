import json
import zipfile

import pytest
from typer.testing import CliRunner

from cli.vsixstamp.cli import app
from tests.conftest import make_manifest, read_member
from vsixstamp import __version__
from vsixstamp import config as config_module
from vsixstamp.tasks import generate_task_id

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("VSIXSTAMP_ARCHIVE_TOOL", "VSIXSTAMP_TASKS_VERSION_TYPE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_config", None)
    monkeypatch.setattr(config_module, "_config_path", None)


def test_edit_writes_new_package(vsix, output_dir):
    result = runner.invoke(
        app,
        [
            "edit",
            str(vsix),
            "--output-path",
            str(output_dir),
            "--extension-version",
            "2.0",
            "--extension-tag",
            "-dev",
            "--extension-visibility",
            "public",
        ],
    )

    assert result.exit_code == 0, result.output
    expected = output_dir / "p.x-dev-2.0.gen.vsix"
    assert str(expected) in result.stdout.splitlines()
    with zipfile.ZipFile(expected) as zf:
        manifest = zf.read("extension.vsixmanifest").decode("utf-8")
    assert 'Version="2.0"' in manifest
    assert "<GalleryFlags>Paid Public</GalleryFlags>" in manifest


def test_edit_honours_task_version_type_from_config(vsix, output_dir, tmp_path):
    config_path = tmp_path / "custom.toml"
    config_path.write_text('[tasks]\nversion_type = "patch"\n', encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "--config",
            str(config_path),
            "edit",
            str(vsix),
            "-o",
            str(output_dir),
            "--extension-version",
            "3.4.5",
        ],
    )

    assert result.exit_code == 0, result.output
    task = json.loads(read_member(output_dir / "p.x-3.4.5.gen.vsix", "MyTask/task.json"))
    assert task["version"] == {"Major": 0, "Minor": 1, "Patch": 5}
    assert task["id"] == generate_task_id("p", "x", "MyTask")


def test_edit_without_changes_keeps_input(vsix, output_dir):
    result = runner.invoke(
        app, ["edit", str(vsix), "-o", str(output_dir), "--no-update-tasks-id"]
    )

    assert result.exit_code == 0, result.output
    assert str(vsix) in result.stdout.splitlines()
    assert list(output_dir.iterdir()) == []


def test_edit_missing_file(tmp_path):
    result = runner.invoke(app, ["edit", str(tmp_path / "missing.vsix")])
    assert result.exit_code == 1


def test_edit_bad_archive(tmp_path, output_dir):
    bogus = tmp_path / "bogus.vsix"
    bogus.write_bytes(b"not a zip")

    result = runner.invoke(app, ["edit", str(bogus), "-o", str(output_dir), "--extension-version", "2.0"])

    assert result.exit_code == 1
    assert "Failed to edit" in result.output
    assert list(output_dir.iterdir()) == []


def test_edit_unknown_archive_tool(vsix):
    result = runner.invoke(app, ["edit", str(vsix), "--archive-tool", "rar"])

    assert result.exit_code == 1
    assert "Unknown archive tool" in result.output


def test_inspect(vsix):
    result = runner.invoke(app, ["inspect", str(vsix)])

    assert result.exit_code == 0, result.output
    assert "Tool" in result.stdout
    assert "Paid" in result.stdout


def test_inspect_bad_archive(tmp_path):
    bogus = tmp_path / "bogus.vsix"
    bogus.write_bytes(b"not a zip")

    result = runner.invoke(app, ["inspect", str(bogus)])

    assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_config_show(tmp_path):
    (tmp_path / "vsixstamp.toml").write_text('[archive]\ntool = "command"\n', encoding="utf-8")

    result = runner.invoke(app, ["config", "show", "archive"])

    assert result.exit_code == 0, result.output
    assert "tool = command" in result.stdout


def test_config_show_unknown_section():
    result = runner.invoke(app, ["config", "show", "llm"])
    assert result.exit_code == 1


def test_edit_rejects_unknown_task_version_type(vsix, output_dir, monkeypatch):
    monkeypatch.setenv("VSIXSTAMP_TASKS_VERSION_TYPE", "Major")

    result = runner.invoke(app, ["edit", str(vsix), "-o", str(output_dir), "--extension-version", "2.0"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "Unknown task version type" in result.output
    assert list(output_dir.iterdir()) == []


def test_unknown_config_key_is_reported(vsix, tmp_path):
    (tmp_path / "vsixstamp.toml").write_text('[archive]\nformat = "rar"\n', encoding="utf-8")

    result = runner.invoke(app, ["edit", str(vsix), "--extension-version", "2.0"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, TypeError)
    assert "Invalid configuration" in result.output


def test_config_show_reports_explicit_file(tmp_path):
    config_path = tmp_path / "custom.toml"
    config_path.write_text('[archive]\ntool = "command"\n', encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config_path), "config", "show", "archive"])

    assert result.exit_code == 0, result.output
    assert f"Config file: {config_path}" in result.stdout
    assert "No vsixstamp.toml found" not in result.stdout
    assert "tool = command" in result.stdout


def test_inspect_mixed_case_manifest_name(tmp_path):
    source = tmp_path / "mixed.vsix"
    with zipfile.ZipFile(source, "w") as zf:
        zf.writestr("Extension.VsixManifest", make_manifest(display_name="Mixed Case"))

    result = runner.invoke(app, ["inspect", str(source)])

    assert result.exit_code == 0, result.output
    assert "Mixed Case" in result.stdout
