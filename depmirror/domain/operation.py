"""
Result domain objects for depmirror.

Every engine reports one record per item it worked on. Errors always
travel on these records and are never raised across worker threads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from .package import Package, MirrorExistsError


class OperationStatus(Enum):
    """User visible outcome for a single package or mirror path."""
    MIRRORED = "mirrored"
    EXISTS = "exists"
    RESOLUTION_FAILED = "resolution_failed"
    MIRROR_FAILED = "mirror_failed"
    UPDATED = "updated"
    UPDATE_FAILED = "update_failed"


FAILED_STATUSES = (
    OperationStatus.RESOLUTION_FAILED,
    OperationStatus.MIRROR_FAILED,
    OperationStatus.UPDATE_FAILED,
)


@dataclass
class ResolutionResult:
    """Outcome of resolving one package against the registry."""
    package: Package
    error: Optional[Exception] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MirrorResult:
    """Outcome of mirroring one package to disk."""
    package: Package
    path: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def already_exists(self) -> bool:
        return isinstance(self.error, MirrorExistsError)

    @property
    def status(self) -> OperationStatus:
        if self.ok:
            return OperationStatus.MIRRORED
        if self.already_exists:
            return OperationStatus.EXISTS
        return OperationStatus.MIRROR_FAILED


@dataclass
class UpdateResult:
    """Outcome of refreshing one existing mirror."""
    path: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> OperationStatus:
        return OperationStatus.UPDATED if self.ok else OperationStatus.UPDATE_FAILED


@dataclass
class OperationDetail:
    """What happened to one package (or mirror path) during a run."""
    name: str
    status: OperationStatus
    path: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_mirror_result(cls, result: MirrorResult, url: Optional[str] = None) -> 'OperationDetail':
        return cls(
            name=result.package.name,
            status=result.status,
            path=result.path,
            url=url,
            error=None if result.ok or result.already_exists else str(result.error),
        )

    @classmethod
    def from_resolution_result(cls, result: ResolutionResult) -> 'OperationDetail':
        return cls(
            name=result.package.name,
            status=OperationStatus.RESOLUTION_FAILED,
            error=str(result.error),
        )

    @classmethod
    def from_update_result(cls, result: UpdateResult) -> 'OperationDetail':
        return cls(
            name=result.path,
            status=result.status,
            path=result.path,
            error=None if result.ok else str(result.error),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.name,
            'status': self.status.value,
        }
        if self.path:
            result['path'] = self.path
        if self.url:
            result['url'] = self.url
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class OperationSummary:
    """
    Summary of a run across many packages.

    Collects counts per outcome so controllers can decide on an exit code.
    """
    operation: str  # "add", "mirror", "update"
    total: int = 0
    counts: Dict[str, int] = field(default_factory=dict)
    details: List[OperationDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(self.counts.get(s.value, 0) for s in FAILED_STATUSES)

    @property
    def succeeded(self) -> int:
        return self.total - self.failed

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return self.failed == 0

    def add_detail(self, detail: OperationDetail) -> None:
        """Add an operation detail and update counts."""
        self.details.append(detail)
        self.total += 1
        self.counts[detail.status.value] = self.counts.get(detail.status.value, 0) + 1
        if detail.status in FAILED_STATUSES and detail.error:
            self.errors.append(f"{detail.name}: {detail.error}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'type': 'summary',
            'operation': self.operation,
            'total': self.total,
            'failed': self.failed,
            'errors': self.errors,
        }
        for status in OperationStatus:
            result[status.value] = self.counts.get(status.value, 0)
        return result
