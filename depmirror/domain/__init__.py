"""
Domain layer for depmirror.

Contains pure domain objects with no I/O or side effects:
- Package: A vendor-qualified package with an optional repository URL
- ResolutionResult / MirrorResult / UpdateResult: per-item engine outcomes
- OperationDetail / OperationSummary: what a run reports to the user
"""

from .package import (
    Package,
    MirrorError,
    MirrorExistsError,
    is_system_package,
    normalize_repository_url,
)
from .operation import (
    OperationStatus,
    OperationDetail,
    OperationSummary,
    ResolutionResult,
    MirrorResult,
    UpdateResult,
)

__all__ = [
    'Package',
    'MirrorError',
    'MirrorExistsError',
    'is_system_package',
    'normalize_repository_url',
    'OperationStatus',
    'OperationDetail',
    'OperationSummary',
    'ResolutionResult',
    'MirrorResult',
    'UpdateResult',
]
