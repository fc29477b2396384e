"""Tests for GitHub token lookup."""

import subprocess
import types

import pytest

from prca_cli.auth import resolve_github_token


@pytest.fixture(autouse=True)
def no_token_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


def _gh(returncode=0, stdout="", stderr=""):
    return types.SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)


class TestResolveGithubToken:
    def test_github_token_wins(self, monkeypatch, mocker):
        monkeypatch.setenv("GITHUB_TOKEN", "actions-token")
        monkeypatch.setenv("GH_TOKEN", "gh-token")
        run = mocker.patch("prca_cli.auth.subprocess.run")

        assert resolve_github_token() == "actions-token"
        run.assert_not_called()

    def test_gh_token_env(self, monkeypatch, mocker):
        monkeypatch.setenv("GH_TOKEN", " gh-token\n")
        mocker.patch("prca_cli.auth.subprocess.run")

        assert resolve_github_token() == "gh-token"

    def test_blank_env_falls_through_to_gh_session(self, monkeypatch, mocker):
        monkeypatch.setenv("GITHUB_TOKEN", "  ")
        mocker.patch("prca_cli.auth.subprocess.run", return_value=_gh(stdout="session-token\n"))

        assert resolve_github_token() == "session-token"

    def test_gh_not_logged_in(self, mocker):
        mocker.patch("prca_cli.auth.subprocess.run", return_value=_gh(returncode=1, stderr="not logged in"))

        assert resolve_github_token() is None

    def test_gh_not_installed(self, mocker):
        mocker.patch("prca_cli.auth.subprocess.run", side_effect=FileNotFoundError("gh"))

        assert resolve_github_token() is None

    def test_gh_timeout(self, mocker, caplog):
        mocker.patch("prca_cli.auth.subprocess.run", side_effect=subprocess.TimeoutExpired(["gh"], 5))

        assert resolve_github_token() is None
        assert "did not answer" in caplog.text
