"""
Git client infrastructure for depmirror.

Provides a clean abstraction over the git commands a mirror needs.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    """A git process failed. Carries everything the process told us."""

    def __init__(
        self,
        cmd: List[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
        cwd: Optional[str] = None
    ):
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        self.cwd = cwd
        super().__init__(
            f"Error during cmd \"{' '.join(cmd)}\" (exit code {returncode}). "
            f"stdOut: {self.stdout.strip()}. stdErr: {self.stderr.strip()}"
        )


class GitClient:
    """
    Abstraction over the git commands used for mirroring.

    Every method raises GitCommandError when git exits non-zero or runs
    into the timeout.

    Example:
        client = GitClient()
        client.mirror_clone("https://github.com/symfony/console.git",
                            "/srv/mirror/symfony/console.git")
        client.update_server_info("/srv/mirror/symfony/console.git")
    """

    def __init__(self, timeout: float = 3600, git_binary: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 3600, clones can be slow)
            git_binary: Name or path of the git executable
        """
        self.timeout = timeout
        self.git_binary = git_binary

    def _run(self, args: List[str], cwd: Optional[str] = None) -> str:
        """
        Run a git command.

        Args:
            args: Arguments after the git binary
            cwd: Working directory

        Returns:
            Captured stdout

        Raises:
            GitCommandError: non-zero exit, timeout or missing binary
        """
        cmd = [self.git_binary] + args
        logger.debug(f"Running command in '{cwd or '.'}': {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            raise GitCommandError(cmd, -1, stderr=f"timed out after {self.timeout}s", cwd=cwd) from e
        except OSError as e:
            raise GitCommandError(cmd, -1, stderr=str(e), cwd=cwd) from e

        if result.returncode != 0:
            raise GitCommandError(cmd, result.returncode, result.stdout, result.stderr, cwd=cwd)

        return result.stdout

    def mirror_clone(self, url: str, target: str) -> None:
        """Create a bare mirror of url (all refs, branches and tags) at target."""
        self._run(["clone", "--mirror", url, target])

    def update_server_info(self, path: str) -> None:
        """
        Regenerate the auxiliary info files for dumb transports.

        Needed so the mirror can be served over plain HTTP, where the server
        cannot generate pack information on the fly.
        """
        self._run(["update-server-info", "-f"], cwd=path)

    def fsck(self, path: str) -> None:
        """Verify connectivity and validity of the objects in the mirror."""
        self._run(["fsck"], cwd=path)

    def fetch_prune(self, path: str) -> None:
        """Fetch all refs and drop the ones deleted upstream."""
        self._run(["fetch", "--prune"], cwd=path)
