"""
Service layer for depmirror.

Contains the engines and the workflows built on top of them:
- DependencyResolver: Concurrent discovery of transitive dependencies
- MirrorEngine / UpdateEngine: Concurrent mirroring and refreshing
- SatisWriter: Publishing mirror URLs to a Satis configuration
- SyncService: The add / mirror / update workflows

Services are the primary API for commands to use.
"""

from .resolver_service import DependencyResolver, PendingWork
from .mirror_service import MirrorEngine, UpdateEngine, find_mirrors
from .satis_service import SatisWriter
from .sync_service import SyncService

__all__ = [
    'DependencyResolver',
    'PendingWork',
    'MirrorEngine',
    'UpdateEngine',
    'find_mirrors',
    'SatisWriter',
    'SyncService',
]
