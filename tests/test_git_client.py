"""
Tests for GitClient.

subprocess.run is patched, no git binary is needed.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from depmirror.infra.git_client import GitClient, GitCommandError


def completed(returncode=0, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitClient:

    @patch("depmirror.infra.git_client.subprocess.run")
    def test_mirror_clone(self, mock_run):
        mock_run.return_value = completed()

        GitClient(timeout=10).mirror_clone("https://github.com/psr/log.git", "/srv/psr/log.git")

        mock_run.assert_called_once_with(
            ["git", "clone", "--mirror", "https://github.com/psr/log.git", "/srv/psr/log.git"],
            cwd=None,
            capture_output=True,
            text=True,
            timeout=10,
        )

    @pytest.mark.parametrize("method,args", [
        ("update_server_info", ["update-server-info", "-f"]),
        ("fsck", ["fsck"]),
        ("fetch_prune", ["fetch", "--prune"]),
    ])
    @patch("depmirror.infra.git_client.subprocess.run")
    def test_commands_run_inside_mirror(self, mock_run, method, args):
        mock_run.return_value = completed()

        getattr(GitClient(), method)("/srv/psr/log.git")

        call = mock_run.call_args
        assert call.args[0] == ["git"] + args
        assert call.kwargs["cwd"] == "/srv/psr/log.git"

    @patch("depmirror.infra.git_client.subprocess.run")
    def test_custom_binary(self, mock_run):
        mock_run.return_value = completed()
        GitClient(git_binary="/usr/local/bin/git").fsck("/p")
        assert mock_run.call_args.args[0][0] == "/usr/local/bin/git"

    @patch("depmirror.infra.git_client.subprocess.run")
    def test_non_zero_exit(self, mock_run):
        mock_run.return_value = completed(128, stdout="", stderr="fatal: repository not found\n")

        with pytest.raises(GitCommandError) as exc_info:
            GitClient().mirror_clone("https://github.com/gone/gone.git", "/srv/gone/gone.git")

        error = exc_info.value
        assert error.returncode == 128
        assert error.stderr == "fatal: repository not found\n"
        assert "exit code 128" in str(error)
        assert "fatal: repository not found" in str(error)
        assert "git clone --mirror" in str(error)

    @patch("depmirror.infra.git_client.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["git"], timeout=5)

        with pytest.raises(GitCommandError) as exc_info:
            GitClient(timeout=5).fetch_prune("/p")

        assert exc_info.value.returncode == -1
        assert "timed out" in exc_info.value.stderr

    @patch("depmirror.infra.git_client.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("git")

        with pytest.raises(GitCommandError) as exc_info:
            GitClient().fsck("/p")

        assert exc_info.value.returncode == -1
        assert exc_info.value.cwd == "/p"
