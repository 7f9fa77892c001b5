import subprocess

import pytest

from benchtrail import git as git_module
from benchtrail.git import Git


@pytest.fixture
def git_present(monkeypatch):
    monkeypatch.setattr(git_module.shutil, "which", lambda name: f"/usr/bin/{name}")


def _fake_run(calls, returncode=0, stdout="", stderr=""):
    def run(command, **kwargs):
        calls.append((command, kwargs.get("cwd")))
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)

    return run


def test_missing_git_yields_empty_strings(monkeypatch):
    monkeypatch.setattr(git_module.shutil, "which", lambda name: None)
    git = Git()
    assert not git.is_available()
    assert git.hash("/src") == ""
    assert git.diff("/src", "a", "b") == ""


def test_hash_runs_rev_parse_in_source_root(monkeypatch, git_present):
    calls = []
    monkeypatch.setattr(git_module.subprocess, "run", _fake_run(calls, stdout="abc123\n"))

    assert Git().hash("/src/demo") == "abc123"
    assert calls == [(["git", "rev-parse", "HEAD"], "/src/demo")]


def test_diff_uses_color_flag_and_both_hashes(monkeypatch, git_present):
    calls = []
    monkeypatch.setattr(git_module.subprocess, "run", _fake_run(calls, stdout="+line\n"))

    assert Git(color=True).diff("/src", "aaa", "bbb") == "+line\n"
    Git(color=False).diff("/src", "aaa", "bbb")
    assert calls[0][0] == ["git", "diff", "--color=always", "aaa", "bbb"]
    assert calls[1][0] == ["git", "diff", "aaa", "bbb"]


def test_diff_without_hashes_skips_git(monkeypatch, git_present):
    calls = []
    monkeypatch.setattr(git_module.subprocess, "run", _fake_run(calls))
    assert Git().diff("/src", "", "bbb") == ""
    assert calls == []


def test_git_failure_yields_empty_string(monkeypatch, git_present, caplog):
    monkeypatch.setattr(
        git_module.subprocess,
        "run",
        _fake_run([], returncode=128, stderr="fatal: not a git repository"),
    )
    with caplog.at_level("WARNING", logger="benchtrail.git"):
        assert Git().hash("/tmp") == ""
    assert "not a git repository" in caplog.text


def test_unreadable_source_root_yields_empty_string(monkeypatch, git_present):
    def boom(command, **kwargs):
        raise FileNotFoundError(kwargs["cwd"])

    monkeypatch.setattr(git_module.subprocess, "run", boom)
    assert Git().hash("/missing") == ""
