"""
depmirror - Local git mirror of a package dependency graph.

depmirror resolves the full transitive dependency set of root packages
against a Packagist compatible registry, mirrors every repository with git
and keeps those mirrors up to date.

Quick Start:
    from depmirror import DependencyResolver, MirrorEngine, Package, PackagistClient

    resolver = DependencyResolver(4, PackagistClient())
    packages = [r.package for r in resolver.resolve([Package("symfony/console")]) if r.ok]

    with MirrorEngine(4, "/srv/mirror") as engine:
        for result in engine.mirror(packages):
            print(result.package.name, result.status.value)

Domain Objects:
    Package - Vendor-qualified package with an optional repository URL
    ResolutionResult / MirrorResult / UpdateResult - per item outcomes

Services:
    DependencyResolver - Concurrent dependency discovery
    MirrorEngine / UpdateEngine - Concurrent mirroring and refreshing
    SyncService - The add / mirror / update workflows
"""

__version__ = "0.1.0"

from .concurrent_set import ConcurrentSet

from .domain import (
    Package,
    MirrorError,
    MirrorExistsError,
    ResolutionResult,
    MirrorResult,
    UpdateResult,
    OperationStatus,
    OperationSummary,
)

from .infra import GitClient, GitCommandError, PackagistClient, RegistryError

from .services import (
    DependencyResolver,
    MirrorEngine,
    UpdateEngine,
    SatisWriter,
    SyncService,
)

from .renames import RENAME_TABLE

# Configuration
from .config import MirrorConfig, load_config

__all__ = [
    "__version__",
    "ConcurrentSet",
    "Package",
    "MirrorError",
    "MirrorExistsError",
    "ResolutionResult",
    "MirrorResult",
    "UpdateResult",
    "OperationStatus",
    "OperationSummary",
    "GitClient",
    "GitCommandError",
    "PackagistClient",
    "RegistryError",
    "DependencyResolver",
    "MirrorEngine",
    "UpdateEngine",
    "SatisWriter",
    "SyncService",
    "RENAME_TABLE",
    "MirrorConfig",
    "load_config",
]
