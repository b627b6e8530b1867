# tests/test_cli.py
"""End-to-end tests for the promptdoc command line."""
import json

import pytest
import pyperclip
from pathlib import Path
from unittest.mock import patch
from click.testing import CliRunner

from promptdoc import __version__
from promptdoc.cli.interface import main_cli
from promptdoc.core.output import copy_to_clipboard, write_to_file
from promptdoc.exceptions import OutputError

GREETING = {"tag": "p", "children": ["Hello {{name}}"]}


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path, monkeypatch):
    monkeypatch.setattr("promptdoc.config.loader.USER_CONFIG_FILE", tmp_path / "absent-user-config.toml")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _write_doc(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


def test_renders_to_stdout_with_vars(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), GREETING)
        result = runner.invoke(main_cli, ["doc.json", "--var", "name=Ada"], catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output == "Hello Ada\n"


def test_context_file_and_var_override(runner: CliRunner):
    with runner.isolated_filesystem():
        doc = {"tag": "list", "children": [{"tag": "item", "props": {"for": "t in tools"}, "children": ["{{t}} for {{name}}"]}]}
        _write_doc(Path("doc.json"), doc)
        Path("ctx.yaml").write_text("name: Bob\ntools:\n  - hammer\n  - saw\n")
        result = runner.invoke(main_cli, ["doc.json", "--context", "ctx.yaml", "--var", "name=Ada"], catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output == "- hammer for Ada\n- saw for Ada\n"


def test_yaml_document_with_html_syntax(runner: CliRunner):
    with runner.isolated_filesystem():
        Path("doc.yml").write_text("tag: p\nchildren:\n  - 'a < b'\n")
        result = runner.invoke(main_cli, ["doc.yml", "--syntax", "html"], catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output == "<p>a &lt; b</p>\n"


def test_output_file(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), GREETING)
        result = runner.invoke(main_cli, ["doc.json", "--var", "name=Ada", "-o", "out/prompt.md"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "Output written to: out/prompt.md" in result.output
        assert Path("out/prompt.md").read_text(encoding="utf-8") == "Hello Ada\n"


def test_strict_tags_fail_on_unknown_tag(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), {"tag": "mystery", "children": ["x"]})
        lenient = runner.invoke(main_cli, ["doc.json"])
        assert lenient.exit_code == 0
        assert "x" in lenient.output

        strict = runner.invoke(main_cli, ["doc.json", "--strict-tags"])
        assert strict.exit_code == 1
        assert "Error: unknown tag 'mystery'" in strict.output


def test_invalid_document_reports_error(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), {"tag": "p", "colour": "red"})
        result = runner.invoke(main_cli, ["doc.json"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "unexpected keys" in result.output


def test_malformed_var_is_a_usage_error(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), GREETING)
        result = runner.invoke(main_cli, ["doc.json", "--var", "novalue"])
        assert result.exit_code == 2
        assert "expected KEY=VALUE" in result.output


def test_config_profile_from_project_file(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), GREETING)
        Path(".promptdoc.toml").write_text('syntax = "text"\n\n[profiles.web]\nsyntax = "html"\n')
        result = runner.invoke(main_cli, ["doc.json", "--config-profile", "web", "--var", "name=Ada"], catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output == "<p>Hello Ada</p>\n"

        missing = runner.invoke(main_cli, ["doc.json", "--config-profile", "nope"])
        assert missing.exit_code == 1
        assert "profile 'nope' not found" in missing.output


def test_media_paths_resolve_against_document_directory(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("docs/doc.json"), {"tag": "img", "props": {"src": "pic.png", "alt": "logo"}})
        Path("docs/pic.png").write_bytes(b"ABC")
        result = runner.invoke(main_cli, ["docs/doc.json"], catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output == "![logo](data:image/png;base64,QUJD)\n"


def test_clipboard_failure_falls_back_to_stdout(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), GREETING)
        with patch("promptdoc.cli.interface.copy_to_clipboard", return_value=False):
            result = runner.invoke(main_cli, ["doc.json", "--clipboard", "--var", "name=Ada"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "Clipboard copy failed" in result.output
        assert "Hello Ada" in result.output


def test_console_summary(runner: CliRunner):
    with runner.isolated_filesystem():
        _write_doc(Path("doc.json"), GREETING)
        result = runner.invoke(main_cli, ["doc.json", "--console-summary", "--var", "name=Ada"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "promptdoc render summary" in result.output


def test_version(runner: CliRunner):
    result = runner.invoke(main_cli, ["--version"])
    assert result.exit_code == 0
    assert f"promptdoc, version {__version__}" in result.output


def test_copy_to_clipboard_reports_failure():
    with patch("promptdoc.core.output.pyperclip.copy", side_effect=pyperclip.PyperclipException("no clipboard")):
        assert copy_to_clipboard("x") is False
    with patch("promptdoc.core.output.pyperclip.copy") as copy:
        assert copy_to_clipboard("x") is True
        copy.assert_called_once_with("x")


def test_write_to_file_wraps_os_errors(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(OutputError):
        write_to_file(blocker / "out.md", "x")
