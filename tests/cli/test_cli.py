"""Tests for the sync, order and env CLI commands."""

import json
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]


def _run(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, ".", *args],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        timeout=60,
    )


@pytest.fixture
def design_file(tmp_path, design_payload) -> Path:
    path = tmp_path / "app.json"
    path.write_text(json.dumps(design_payload), encoding="utf-8")
    return path


@pytest.mark.integration
def test_help_lists_commands():
    result = _run("--help")
    assert result.returncode == 0
    for command in ("sync", "order", "env"):
        assert command in result.stdout


@pytest.mark.integration
def test_unknown_command_fails():
    result = _run("bogus")
    assert result.returncode == 1


@pytest.mark.integration
def test_sync_writes_result(design_file, tmp_path):
    """sync writes build order, artifacts and the annotated document."""
    output = tmp_path / "out.json"

    result = _run("sync", str(design_file), "-o", str(output))

    assert result.returncode == 0, result.stderr
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["build_order"] == [["1:1", "1:3", "3:1"], ["2:1"]]
    assert data["stats"]["artifacts_built"] == 4
    assert data["artifacts"][0]["ref"].endswith("/Atoms/Button_Primary")
    assert data["document"]["name"] == "Sample App"


@pytest.mark.integration
def test_sync_missing_file(tmp_path):
    result = _run("sync", str(tmp_path / "missing.json"))
    assert result.returncode == 1


@pytest.mark.integration
def test_order_prints_tiers(design_file):
    result = _run("order", str(design_file))

    assert result.returncode == 0, result.stderr
    assert "Atom (3)" in result.stdout
    assert "Molecule (1)" in result.stdout
    assert "[component]" in result.stdout


@pytest.mark.integration
def test_env_masks_keys():
    result = _run("env", "--category", "llm")

    assert result.returncode == 0
    assert "OLLAMA_HOST" in result.stdout
    assert "FIGSYNC_ARTIFACT_ROOT" not in result.stdout
