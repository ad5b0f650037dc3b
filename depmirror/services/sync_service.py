"""
Mirror synchronization service for depmirror.

Orchestrates the add, mirror and update workflows:
resolver -> mirror engine -> Satis writer, or update engine on its own.
Used by the `depmirror add|mirror|update` commands.
"""

import logging
from typing import Generator, List, Optional

from ..concurrent_set import ConcurrentSet
from ..config import MirrorConfig, NoRepositoriesError
from ..domain.operation import (
    OperationDetail,
    OperationSummary,
    ResolutionResult,
)
from ..domain.package import Package
from ..infra.git_client import GitClient
from ..infra.packagist_client import PackagistClient, RegistryClient, RegistryError
from ..renames import canonical_name
from .mirror_service import MirrorEngine, UpdateEngine, find_mirrors
from .resolver_service import DependencyResolver
from .satis_service import SatisWriter

logger = logging.getLogger(__name__)


class SyncService:
    """
    Service for keeping the local mirror in sync.

    Every workflow yields one OperationDetail per package (or mirror path)
    as soon as its outcome is known. Per-package failures are reported,
    never raised; only configuration errors abort a run.

    Example:
        service = SyncService(MirrorConfig.load("medusa.json"))
        for detail in service.mirror_all():
            print(detail.to_dict())
        print(service.last_result.to_dict())
    """

    def __init__(
        self,
        config: MirrorConfig,
        registry_client: Optional[RegistryClient] = None,
        git_client: Optional[GitClient] = None,
        workers: Optional[int] = None
    ):
        """
        Initialize SyncService.

        Args:
            config: Typed configuration
            registry_client: Registry client (PackagistClient on config.registry_url if None)
            git_client: GitClient instance (creates new if None)
            workers: Worker pool size (config.workers if None)
        """
        self.config = config
        self.registry = registry_client or PackagistClient(config.registry_url, timeout=config.http_timeout)
        self.git = git_client or GitClient(timeout=config.git_timeout)
        self.workers = workers or config.workers
        self.last_result: Optional[OperationSummary] = None

    def _with_override(self, package: Package) -> Package:
        """Prefer a repository URL from the configuration over the registry's."""
        url = self.config.get_repository_url_of_package(package.name)
        if url:
            return Package(package.name, url)
        return package

    def resolve(
        self,
        roots: List[Package],
        packages: ConcurrentSet,
        summary: OperationSummary
    ) -> Generator[OperationDetail, None, None]:
        """Resolve roots into packages, yielding a detail for every failed lookup."""
        resolver = DependencyResolver(self.workers, self.registry)
        for result in resolver.resolve(roots):
            if not result.ok:
                logger.info(f"Resolving {result.package.name} failed: {result.error}")
                detail = OperationDetail.from_resolution_result(result)
                summary.add_detail(detail)
                yield detail
                continue
            packages.add(self._with_override(result.package))

    def lookup(self, package: Package) -> ResolutionResult:
        """Ask the registry for the repository URL of a single package."""
        name = canonical_name(package.name)
        try:
            registry_package, status = self.registry.get_package_by_name(name)
        except RegistryError as e:
            return ResolutionResult(package=package, error=e, status_code=e.status_code)

        if registry_package is None or not registry_package.repository:
            error = RegistryError(f"Received no repository URL for package {name}", status_code=status)
            return ResolutionResult(package=package, error=error, status_code=status)

        return ResolutionResult(
            package=package.canonicalize(registry_package.name, registry_package.repository),
            status_code=status,
        )

    def mirror_packages(
        self,
        packages: List[Package],
        summary: OperationSummary
    ) -> Generator[OperationDetail, None, None]:
        """Mirror packages, then publish every usable mirror to Satis."""
        logger.info(f"Start concurrent download process ({len(packages)} packages, {self.workers} workers)")

        local_urls = []
        with MirrorEngine(self.workers, self.config.repodir, self.git) as engine:
            for result in engine.mirror(packages):
                url = None
                if result.ok:
                    logger.info(f"Mirroring of package {result.package.name} successful")
                elif result.already_exists:
                    logger.info(f"Package {result.package.name} exists on disk. Try updating it instead. Skipping.")
                else:
                    logger.info(f"Error while mirroring package {result.package.name}: {result.error}")

                if result.ok or result.already_exists:
                    url = self.config.local_url_for(result.package.name)
                    local_urls.append(url)

                detail = OperationDetail.from_mirror_result(result, url=url)
                summary.add_detail(detail)
                yield detail

        self.write_satis(local_urls)

    def write_satis(self, urls: List[str]) -> None:
        if not self.config.satisconfig:
            logger.info("No Satis configuration specified. Skipping to write a satis configuration.")
            return
        SatisWriter(self.config.satisconfig).add_repositories(sorted(urls))

    def add(self, name: str, with_dependencies: bool = False) -> Generator[OperationDetail, None, OperationSummary]:
        """
        Mirror one package, optionally with all of its dependencies.

        A repository URL from the configuration wins; otherwise the
        registry is asked for it.
        """
        summary = OperationSummary(operation="add")
        self.last_result = summary

        package = self._with_override(Package(name))
        if package.repository_url:
            logger.info(f"Mirroring {package.name} from configured repository {package.repository_url}")
            yield from self.mirror_packages([package], summary)
            return summary

        if with_dependencies:
            logger.info(f"Loading dependencies of {name} from {self.config.registry_url}")
            packages = ConcurrentSet()
            yield from self.resolve([package], packages, summary)
            names = sorted(p.name for p in packages.flatten())
            if names:
                logger.info(f"Dependencies found ({len(names)}): {', '.join(names)}")
            else:
                logger.info(f"No dependencies found for {name}")
            to_mirror = packages.flatten()
        else:
            result = self.lookup(package)
            if not result.ok:
                detail = OperationDetail.from_resolution_result(result)
                summary.add_detail(detail)
                yield detail
                return summary
            to_mirror = [result.package]

        if to_mirror:
            yield from self.mirror_packages(to_mirror, summary)
        return summary

    def mirror_all(self) -> Generator[OperationDetail, None, OperationSummary]:
        """
        Mirror every configured package.

        Packages in "repositories" are mirrored as is. Packages in
        "require" are resolved with all their dependencies first.
        """
        summary = OperationSummary(operation="mirror")
        self.last_result = summary
        packages = ConcurrentSet()

        try:
            for name in self.config.get_names_of_repositories():
                url = self.config.get_repository_url_of_package(name)
                if url:
                    packages.add(Package(name, url))
                else:
                    # Without a URL the registry has to tell us where it lives
                    packages.add(Package(name))
        except NoRepositoriesError as e:
            logger.info(f"Configuration: {e}")

        for package in [p for p in packages.flatten() if not p.repository_url]:
            packages.remove(package)
            result = self.lookup(package)
            if result.ok:
                packages.add(result.package)
                continue
            detail = OperationDetail.from_resolution_result(result)
            summary.add_detail(detail)
            yield detail

        roots = [Package(n) for n in self.config.get_require()]

        if roots:
            yield from self.resolve(roots, packages, summary)

        yield from self.mirror_packages(packages.flatten(), summary)
        return summary

    def update_all(self) -> Generator[OperationDetail, None, OperationSummary]:
        """Fetch the latest state of every mirror below repodir."""
        summary = OperationSummary(operation="update")
        self.last_result = summary

        paths = find_mirrors(self.config.repodir)
        if not paths:
            logger.info(f"No repositories found in {self.config.repodir}")
            return summary

        logger.info(f"Updating {len(paths)} mirrors with {self.workers} workers")
        for result in UpdateEngine(self.workers, self.git).update_all(paths):
            if result.ok:
                logger.info(f"Update of {result.path} successful")
            else:
                logger.info(f"Error while updating {result.path}: {result.error}")
            detail = OperationDetail.from_update_result(result)
            summary.add_detail(detail)
            yield detail

        return summary
