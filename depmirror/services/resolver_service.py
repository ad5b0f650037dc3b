"""
Dependency resolution service for depmirror.

Walks the "requires" graph of one or more root packages by asking the
registry for every package it finds. The result is not a tree but a flat,
unordered stream with one entry per package:

    symfony/console
    |- symfony/polyfill-mbstring
    |- symfony/debug
       |- psr/log

resolves to {symfony/console, symfony/polyfill-mbstring, symfony/debug,
psr/log} in whatever order the workers finish.

Requirements are collected from every version the registry knows, not
only the latest one: a mirror has to serve every tag and branch.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Mapping, Optional

from ..concurrent_set import ConcurrentSet
from ..domain.operation import ResolutionResult
from ..domain.package import Package, is_system_package
from ..exit_codes import ConfigError
from ..infra.packagist_client import RegistryClient, RegistryError
from ..renames import RENAME_TABLE, canonical_name

logger = logging.getLogger(__name__)

# Marks the end of the job queue, the backlog and the result stream
_STOP = object()


class PendingWork:
    """
    Counts outstanding units of work and wakes waiters when it hits zero.

    One unit is held by every package from the moment it is queued until a
    worker has finished with it, wherever it waits in between.
    """

    def __init__(self):
        self._count = 0
        self._cond = threading.Condition()

    def add(self, n: int = 1) -> None:
        with self._cond:
            self._count += n

    def done(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count < 0:
                raise ValueError("PendingWork.done() called more often than add()")
            if self._count == 0:
                self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            while self._count > 0:
                self._cond.wait()

    @property
    def count(self) -> int:
        with self._cond:
            return self._count


@dataclass
class _Run:
    """Queues and counters of a single resolve() call."""
    jobs: "queue.Queue"
    results: "queue.Queue"
    # Discovered packages waiting for a free slot in jobs. Unbounded, so a
    # worker never blocks on handing off a dependency.
    backlog: "queue.SimpleQueue" = field(default_factory=queue.SimpleQueue)
    pending: PendingWork = field(default_factory=PendingWork)
    cancelled: threading.Event = field(default_factory=threading.Event)


class DependencyResolver:
    """
    Resolve the transitive dependencies of packages with a pool of workers.

    Example:
        resolver = DependencyResolver(4, PackagistClient())
        for result in resolver.resolve([Package("symfony/console")]):
            if result.ok:
                print(result.package.name, result.package.repository_url)

    Workers block on a full result channel until the caller picks up the
    next result. Leaving the stream early (break or close()) cancels the
    remaining lookups and returns once the lookups in flight are done.
    """

    def __init__(
        self,
        worker_count: int,
        client: Optional[RegistryClient],
        renames: Optional[Mapping[str, str]] = None,
        queued: Optional[ConcurrentSet] = None,
        resolved: Optional[ConcurrentSet] = None
    ):
        """
        Initialize DependencyResolver.

        Args:
            worker_count: Number of concurrent registry lookups (>= 1)
            client: Registry client used for the lookups
            renames: Obsolete name -> current name table (default: RENAME_TABLE)
            queued: Set of already queued names (fresh set if None)
            resolved: Set of already resolved names (fresh set if None)

        Raises:
            ConfigError: zero workers or no client
        """
        if not worker_count or worker_count < 1:
            raise ConfigError("Starting a dependency resolver with zero worker is not possible")
        if client is None:
            raise ConfigError("Starting a dependency resolver with an empty registry client is not possible")

        self.worker_count = worker_count
        self.client = client
        self.renames = RENAME_TABLE if renames is None else renames
        self.queued = ConcurrentSet() if queued is None else queued
        self.resolved = ConcurrentSet() if resolved is None else resolved

    def resolve(self, packages: Iterable[Package]) -> Iterator[ResolutionResult]:
        """
        Start resolving and stream the results as workers produce them.

        Args:
            packages: Root packages

        Yields:
            One ResolutionResult per resolved (or failed) package
        """
        roots = list(packages)
        # One slot more than workers: every worker finds pending work
        # without the pusher blocking on every put.
        run = _Run(jobs=queue.Queue(maxsize=self.worker_count + 1), results=queue.Queue(maxsize=1))

        workers = []
        try:
            for worker_id in range(1, self.worker_count + 1):
                worker = threading.Thread(
                    target=self._worker,
                    args=(worker_id, run),
                    name=f"resolver-{worker_id}",
                    daemon=True,
                )
                worker.start()
                workers.append(worker)

            threading.Thread(
                target=self._push_backlog,
                args=(run,),
                name="resolver-pusher",
                daemon=True,
            ).start()

            threading.Thread(
                target=self._coordinate,
                args=(roots, run, len(workers)),
                name="resolver-coordinator",
                daemon=True,
            ).start()
        except Exception:
            # Release what is already running, nothing has been queued yet
            for _ in workers:
                run.jobs.put(_STOP)
            run.backlog.put(_STOP)
            raise

        return self._stream(run)

    def _stream(self, run: _Run) -> Iterator[ResolutionResult]:
        finished = False
        try:
            while True:
                item = run.results.get()
                if item is _STOP:
                    finished = True
                    return
                yield item
        finally:
            if not finished:
                logger.debug("Result stream closed early, cancelling outstanding lookups")
                run.cancelled.set()
                # Unblock the workers until the coordinator closes the stream
                while run.results.get() is not _STOP:
                    pass

    def _coordinate(self, roots: List[Package], run: _Run, worker_count: int) -> None:
        """Queue the roots, wait for the traversal to drain, then close everything."""
        run.pending.add(len(roots))
        for package in roots:
            name = canonical_name(package.name, self.renames)
            if not package.is_system:
                if self.resolved.exists(name):
                    logger.debug(f"Root package {package.name} already resolved")
                    run.pending.done()
                    continue
                if not self.queued.add_if_missing(name):
                    logger.debug(f"Root package {package.name} already queued")
                    run.pending.done()
                    continue
            run.jobs.put(package)

        run.pending.wait()

        run.backlog.put(_STOP)
        for _ in range(worker_count):
            run.jobs.put(_STOP)
        run.results.put(_STOP)

    @staticmethod
    def _push_backlog(run: _Run) -> None:
        """Move discovered packages from the backlog into the job queue."""
        while True:
            package = run.backlog.get()
            if package is _STOP:
                return
            run.jobs.put(package)

    def _worker(self, worker_id: int, run: _Run) -> None:
        logger.debug(f"Worker {worker_id}: started")
        while True:
            job = run.jobs.get()
            if job is _STOP:
                break
            try:
                if run.cancelled.is_set():
                    continue
                self._process(worker_id, job, run)
            except Exception as e:
                logger.error(f"Worker {worker_id}: unexpected error while resolving {job.name}: {e}")
                run.results.put(ResolutionResult(package=job, error=e))
            finally:
                run.pending.done()
        logger.debug(f"Worker {worker_id}: done")

    def _process(self, worker_id: int, job: Package, run: _Run) -> None:
        # php, ext-curl and friends have to be provided by the platform
        if is_system_package(job.name):
            logger.debug(f"Worker {worker_id}: system package {job.name} skipped")
            return

        lookup = canonical_name(job.name, self.renames)
        if lookup != job.name:
            logger.debug(f"Worker {worker_id}: {job.name} was renamed to {lookup}")

        try:
            registry_package, status = self.client.get_package_by_name(lookup)
        except Exception as e:
            # Any failure of a single lookup ends this branch only
            logger.debug(f"Worker {worker_id}: lookup of {lookup} failed: {e}")
            self.resolved.add(lookup)
            run.results.put(ResolutionResult(package=job, error=e, status_code=getattr(e, 'status_code', None)))
            return

        if registry_package is None:
            self.resolved.add(lookup)
            error = RegistryError(
                f"Registry call for package \"{lookup}\" successful (status code {status}), "
                f"but no package received",
                status_code=status,
            )
            run.results.put(ResolutionResult(package=job, error=error, status_code=status))
            return

        for dependency in sorted(registry_package.all_requirements()):
            name = canonical_name(dependency, self.renames)
            if not self._should_be_queued(name):
                continue
            # Another worker may have queued it since the check
            if not self.queued.add_if_missing(name):
                continue
            logger.debug(f"Worker {worker_id}: new package queued {lookup} -> {name}")
            run.pending.add()
            run.backlog.put(Package(name))

        resolved = job.canonicalize(registry_package.name, registry_package.repository)
        self.queued.add(resolved.name)
        first = self.resolved.add_if_missing(resolved.name)
        self.resolved.add(lookup)
        if not first:
            logger.debug(f"Worker {worker_id}: {resolved.name} already resolved under another name")
            return

        logger.debug(f"Worker {worker_id}: package resolved {resolved.name}")
        run.results.put(ResolutionResult(package=resolved, status_code=status))

    def _should_be_queued(self, name: str) -> bool:
        """
        A package should be queued if it is not a system package and
        was neither queued nor resolved before.
        """
        if is_system_package(name):
            return False
        if self.queued.exists(name):
            return False
        if self.resolved.exists(name):
            return False
        return True
