"""
Tests for the subprocess-backed collaborators (external.py). subprocess.run
is mocked throughout; nothing here needs fzf, tmux or git installed.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from brain.errors import IOFailureError
from brain.external import CommandEditor, FzfSelector, GitClient, TmuxClient


def _done(returncode=0, stdout=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout)


# --- fzf ---

def test_fzf_returns_choice():
    with patch("brain.external.subprocess.run", return_value=_done(0, "beta\n")) as run:
        assert FzfSelector().select(["alpha", "beta"], header="Pick") == "beta"
    cmd = run.call_args[0][0]
    assert cmd[0] == "fzf"
    assert "--header" in cmd
    assert run.call_args[1]["input"] == "alpha\nbeta"


@pytest.mark.parametrize("code", [1, 130])
def test_fzf_cancel_is_none(code):
    with patch("brain.external.subprocess.run", return_value=_done(code)):
        assert FzfSelector().select(["alpha"]) is None


def test_fzf_empty_list_skips_process():
    with patch("brain.external.subprocess.run") as run:
        assert FzfSelector().select([]) is None
    run.assert_not_called()


def test_fzf_missing_binary():
    with patch("brain.external.subprocess.run", side_effect=FileNotFoundError()):
        with pytest.raises(IOFailureError):
            FzfSelector().select(["alpha"])


# --- editor ---

def test_editor_from_env(monkeypatch):
    monkeypatch.setenv("EDITOR", "code --wait")
    assert CommandEditor().command == ["code", "--wait"]


def test_editor_open_with_line():
    with patch("brain.external.subprocess.run", return_value=_done()) as run:
        CommandEditor("nano").open(Path("/tmp/todo.md"), line=7)
    assert run.call_args[0][0] == ["nano", "+7", "/tmp/todo.md"]


def test_edit_scratch_returns_saved_text():
    def fake_editor(cmd, **kwargs):
        Path(cmd[-1]).write_text("Title\nbody\n", encoding="utf-8")
        return _done()

    with patch("brain.external.subprocess.run", side_effect=fake_editor) as run:
        text = CommandEditor("myed").edit_scratch("# hint\n")

    assert text == "Title\nbody\n"
    assert not Path(run.call_args[0][0][-1]).exists()


def test_editor_failure():
    err = subprocess.CalledProcessError(2, ["myed"])
    with patch("brain.external.subprocess.run", side_effect=err):
        with pytest.raises(IOFailureError):
            CommandEditor("myed").open(Path("x.md"))


# --- tmux ---

def test_tmux_session_exists():
    with patch("brain.external.subprocess.run", return_value=_done(1)):
        assert TmuxClient().session_exists("brain-api") is False
    with patch("brain.external.subprocess.run", return_value=_done(0)):
        assert TmuxClient().session_exists("brain-api") is True


def test_tmux_attach_inside_tmux_switches(monkeypatch):
    monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,1,0")
    with patch("brain.external.subprocess.run", return_value=_done()) as run:
        TmuxClient().attach("brain-api")
    assert run.call_args[0][0] == ["tmux", "switch-client", "-t", "brain-api"]


def test_tmux_attach_outside_tmux(monkeypatch):
    monkeypatch.delenv("TMUX", raising=False)
    with patch("brain.external.subprocess.run", return_value=_done()) as run:
        TmuxClient().attach("brain-api")
    assert run.call_args[0][0] == ["tmux", "attach", "-t", "brain-api"]


# --- git ---

def test_git_clone_command(tmp_path):
    with patch("brain.external.subprocess.run", return_value=_done()) as run:
        GitClient().clone("git@github.com:me/api.git", tmp_path / "api")
    assert run.call_args[0][0] == ["git", "clone", "git@github.com:me/api.git", str(tmp_path / "api")]


def test_git_failure_maps_to_io_failure(tmp_path):
    err = subprocess.CalledProcessError(128, ["git"], stderr="fatal: repository not found\n")
    with patch("brain.external.subprocess.run", side_effect=err):
        with pytest.raises(IOFailureError) as exc:
            GitClient().verify_remote("https://nowhere/x.git")
    assert "repository not found" in str(exc.value)
    assert exc.value.error.details["returncode"] == 128
