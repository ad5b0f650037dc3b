"""
Mirror and update engines for depmirror.

Both engines run a bounded pool of worker threads over a job list that is
known up front and report exactly one result per job.
"""

import glob
import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, Iterator, List, Optional

from ..domain.operation import MirrorResult, UpdateResult
from ..domain.package import MirrorError, MirrorExistsError, Package
from ..exit_codes import ConfigError
from ..infra.git_client import GitClient, GitCommandError

logger = logging.getLogger(__name__)


def find_mirrors(repo_dir: str) -> List[str]:
    """Return all mirrors below repo_dir ({repo_dir}/vendor/project.git), sorted."""
    return sorted(glob.glob(os.path.join(glob.escape(repo_dir), '*', '*.git')))


class MirrorEngine:
    """
    Mirror packages into {repo_dir}/{vendor}/{project}.git concurrently.

    Example:
        with MirrorEngine(4, "/srv/mirror") as engine:
            for result in engine.mirror(packages):
                if result.already_exists:
                    ...  # update it instead

    The engine can mirror several batches before it is closed.
    """

    def __init__(self, worker_count: int, repo_dir: str, git_client: Optional[GitClient] = None):
        """
        Initialize MirrorEngine.

        Args:
            worker_count: Number of concurrent mirror operations (>= 1)
            repo_dir: Base directory of all mirrors
            git_client: GitClient instance (creates new if None)

        Raises:
            ConfigError: zero workers or no base directory
        """
        if not worker_count or worker_count < 1:
            raise ConfigError("Starting a mirror engine with zero worker is not possible")
        if not repo_dir:
            raise ConfigError("Starting a mirror engine without a repository directory is not possible")

        self.worker_count = worker_count
        self.repo_dir = repo_dir
        self.git = git_client or GitClient()
        self._executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="mirror")
        self._closed = False

    def target_path(self, package: Package) -> str:
        return os.path.join(self.repo_dir, f"{package.name}.git")

    def mirror(self, packages: Iterable[Package]) -> Iterator[MirrorResult]:
        """
        Submit all packages and stream their results as they complete.

        Work starts immediately. The returned iterator yields exactly one
        MirrorResult per submitted package.
        """
        if self._closed:
            raise RuntimeError("MirrorEngine is closed")

        futures = {self._executor.submit(self._mirror_one, p): p for p in packages}
        logger.debug(f"Submitted {len(futures)} packages to {self.worker_count} mirror workers")
        return self._stream(futures)

    def _stream(self, futures: Dict[Future, Package]) -> Iterator[MirrorResult]:
        for future in as_completed(futures):
            package = futures[future]
            try:
                yield future.result()
            except Exception as e:
                yield MirrorResult(package=package, path=self.target_path(package), error=e)

    def _mirror_one(self, package: Package) -> MirrorResult:
        path = self.target_path(package)

        if os.path.exists(path):
            return MirrorResult(package=package, path=path, error=MirrorExistsError(path))

        if not package.repository_url:
            return MirrorResult(
                package=package,
                path=path,
                error=MirrorError(f"No repository URL known for package {package.name}"),
            )

        logger.debug(f"Mirroring {package.name} from {package.repository_url}")
        try:
            self.git.mirror_clone(package.repository_url, path)
            self.git.update_server_info(path)
            self.git.fsck(path)
        except (GitCommandError, OSError) as e:
            # The directory is left as is for inspection or a retry
            return MirrorResult(package=package, path=path, error=e)

        return MirrorResult(package=package, path=path)

    def close(self) -> None:
        """Wait for running jobs and shut the worker pool down."""
        if not self._closed:
            self._closed = True
            self._executor.shutdown(wait=True)

    def __enter__(self) -> 'MirrorEngine':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class UpdateEngine:
    """
    Refresh existing mirrors concurrently.

    Example:
        engine = UpdateEngine(4)
        for result in engine.update_all(find_mirrors("/srv/mirror")):
            print(result.path, result.ok)
    """

    def __init__(self, worker_count: int, git_client: Optional[GitClient] = None):
        if not worker_count or worker_count < 1:
            raise ConfigError("Starting an update engine with zero worker is not possible")
        self.worker_count = worker_count
        self.git = git_client or GitClient()

    def update_all(self, paths: Iterable[str]) -> List[UpdateResult]:
        """Fetch (with prune) and refresh server info for every path."""
        paths = list(paths)
        if not paths:
            return []

        results = []
        with ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="update") as executor:
            futures = {executor.submit(self._update_one, p): p for p in paths}

            for future in as_completed(futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    results.append(UpdateResult(path=futures[future], error=e))

        return results

    def _update_one(self, path: str) -> UpdateResult:
        try:
            self.git.fetch_prune(path)
            self.git.update_server_info(path)
        except (GitCommandError, OSError) as e:
            return UpdateResult(path=path, error=e)
        return UpdateResult(path=path)
