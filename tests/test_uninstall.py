"""!
@brief Tests for the ODT removal command and its helpers.
"""
from __future__ import annotations

import subprocess
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List

import pytest

from odt_generator import command_runner, confirm, uninstall


def _result(returncode: int = 0, *, skipped: bool = False) -> command_runner.CommandResult:
    return command_runner.CommandResult(
        command=["setup.exe"], returncode=returncode, stdout="", stderr="", duration=0.0, skipped=skipped
    )


@pytest.fixture
def setup_exe(tmp_path: Path) -> Path:
    path = tmp_path / "setup.exe"
    path.write_bytes(b"MZ")
    return path


class TestBuildRemovalXml:
    """Removal document layout."""

    def test_remove_all(self) -> None:
        xml_text = uninstall.build_removal_xml()
        root = ET.fromstring(xml_text.split("\n", 1)[1])
        assert root.find("Remove").get("All") == "TRUE"
        assert root.find("RemoveMSI") is not None
        assert root.find("Property").attrib == {"Name": "FORCEAPPSHUTDOWN", "Value": "TRUE"}
        assert root.find("Display").get("Level") == "None"

    def test_selected_products(self) -> None:
        xml_text = uninstall.build_removal_xml(["VisioProRetail", "ProjectProRetail"], remove_msi=False)
        root = ET.fromstring(xml_text.split("\n", 1)[1])
        remove = root.find("Remove")
        assert remove.get("All") is None
        assert [product.get("ID") for product in remove.findall("Product")] == ["VisioProRetail", "ProjectProRetail"]
        assert root.find("RemoveMSI") is None


class TestConfirmation:
    """Prompt behaviour."""

    def test_dry_run_and_force_skip_prompt(self) -> None:
        def fail(_prompt: str) -> str:
            raise AssertionError("prompt should not be shown")

        assert confirm.request_removal_confirmation(dry_run=True, force=False, input_func=fail, interactive=True)
        assert confirm.request_removal_confirmation(dry_run=False, force=True, input_func=fail, interactive=True)

    @pytest.mark.parametrize(("answer", "expected"), [("y", True), ("YES", True), ("", False), ("n", False)])
    def test_interactive_answers(self, answer: str, expected: bool) -> None:
        assert (
            confirm.request_removal_confirmation(
                dry_run=False, force=False, input_func=lambda _prompt: answer, interactive=True
            )
            is expected
        )

    def test_non_interactive_refuses(self) -> None:
        assert not confirm.request_removal_confirmation(dry_run=False, force=False, interactive=False)

    def test_eof_declines(self) -> None:
        def eof(_prompt: str) -> str:
            raise EOFError

        assert not confirm.request_removal_confirmation(dry_run=False, force=False, input_func=eof, interactive=True)


class TestRunRemoval:
    """Execution and retry policy."""

    def test_retries_once_then_succeeds(self, monkeypatch: pytest.MonkeyPatch, setup_exe: Path) -> None:
        calls: List[dict] = []
        outcomes = [_result(1), _result(0)]

        def fake_run(command, **kwargs):
            calls.append({"command": list(command), **kwargs})
            assert 'All="TRUE"' in Path(command[2]).read_text(encoding="utf-8")
            return outcomes.pop(0)

        monkeypatch.setattr(command_runner, "run_command", fake_run)
        result = uninstall.run_removal(setup_path=setup_exe, force=True)

        assert result is not None and result.returncode == 0
        assert len(calls) == 2
        assert calls[0]["command"][:2] == [str(setup_exe), "/configure"]
        assert [call["extra"]["attempt"] for call in calls] == [1, 2]
        assert not Path(calls[0]["command"][2]).exists()

    def test_two_failures_raise(self, monkeypatch: pytest.MonkeyPatch, setup_exe: Path) -> None:
        commands: List[list] = []

        def fake_run(command, **kwargs):
            commands.append(list(command))
            return _result(17)

        monkeypatch.setattr(command_runner, "run_command", fake_run)
        with pytest.raises(uninstall.RemovalError, match="17"):
            uninstall.run_removal(setup_path=setup_exe, force=True)
        assert not Path(commands[0][2]).exists()

    def test_declined_runs_nothing(self, monkeypatch: pytest.MonkeyPatch, setup_exe: Path) -> None:
        def fail(command, **kwargs):
            raise AssertionError("setup must not run")

        monkeypatch.setattr(command_runner, "run_command", fail)
        result = uninstall.run_removal(setup_path=setup_exe, input_func=lambda _prompt: "n", interactive=True)
        assert result is None

    def test_dry_run_skips_execution(self, setup_exe: Path) -> None:
        result = uninstall.run_removal(["O365ProPlusRetail"], setup_path=setup_exe, dry_run=True)
        assert result is not None
        assert result.skipped
        assert not Path(result.command[2]).exists()

    def test_missing_setup(self, tmp_path: Path) -> None:
        with pytest.raises(uninstall.RemovalError):
            uninstall.locate_setup(tmp_path / "missing.exe")


class TestCommandRunner:
    """Subprocess wrapper outcomes."""

    def test_missing_binary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def raise_missing(*args, **kwargs):
            raise FileNotFoundError("setup.exe")

        monkeypatch.setattr(subprocess, "run", raise_missing)
        result = command_runner.run_command(["setup.exe", "/configure", "x.xml"], event="odt_remove")
        assert result.returncode == 127
        assert not result.ok

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def raise_timeout(*args, **kwargs):
            raise subprocess.TimeoutExpired(cmd="setup.exe", timeout=1)

        monkeypatch.setattr(subprocess, "run", raise_timeout)
        result = command_runner.run_command(["setup.exe"], event="odt_remove", timeout=1)
        assert result.timed_out
        assert result.error == "timeout"

    def test_completed_process(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda *args, **kwargs: subprocess.CompletedProcess(args[0], 0, stdout="done", stderr=""),
        )
        result = command_runner.run_command(["setup.exe"], event="odt_remove")
        assert result.ok
        assert result.stdout == "done"
