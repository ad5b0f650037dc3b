"""
Package domain object for depmirror.

A Package is the unit every engine works on: the resolver discovers them,
the mirror engine clones them and the Satis writer publishes them.
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

# Separator between vendor and project ("symfony/console")
VENDOR_SEPARATOR = "/"

_SSH_SHORTHAND = re.compile(r'^git@([^:/]+):')


class MirrorError(Exception):
    """Raised when a package cannot be mirrored."""


class MirrorExistsError(MirrorError, FileExistsError):
    """The mirror target is already on disk. Not a failure: route to update."""

    def __init__(self, path: str):
        super().__init__(f"Mirror already exists at {path}")
        self.path = path


def normalize_repository_url(url: Optional[str]) -> Optional[str]:
    """
    Rewrite an SSH-style shorthand into its protocol-explicit form.

    git@github.com:symfony/console.git -> https://github.com/symfony/console.git

    Other URLs are returned stripped but otherwise untouched.
    """
    if not url:
        return None
    url = url.strip()
    if not url:
        return None
    return _SSH_SHORTHAND.sub(r'https://\1/', url)


def is_system_package(name: str) -> bool:
    """
    Check whether name is a platform/system requirement like 'php' or 'ext-curl'.

    Registry packages follow the "vendor/project" scheme. Anything without
    a vendor has to be provided by the platform and is never looked up.
    """
    return VENDOR_SEPARATOR not in name


@dataclass(frozen=True)
class Package:
    """A single package, identified by its vendor-qualified name."""
    name: str
    repository_url: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Package name required, empty string given")
        object.__setattr__(self, 'repository_url', normalize_repository_url(self.repository_url))

    @property
    def is_system(self) -> bool:
        return is_system_package(self.name)

    def canonicalize(self, name: str, repository_url: Optional[str]) -> 'Package':
        """Return a copy carrying the registry's canonical name and URL."""
        return replace(self, name=name or self.name, repository_url=repository_url or self.repository_url)

    def to_dict(self) -> Dict[str, Any]:
        result = {'name': self.name}
        if self.repository_url:
            result['repository'] = self.repository_url
        return result
