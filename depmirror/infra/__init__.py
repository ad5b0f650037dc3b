"""
Infrastructure layer for depmirror.

Contains abstractions for external systems:
- GitClient: Git command execution (mirror transport)
- PackagistClient: Package registry API access

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitCommandError
from .packagist_client import (
    PackagistClient,
    RegistryClient,
    RegistryError,
    RegistryPackage,
    PACKAGIST_URL,
)

__all__ = [
    'GitClient',
    'GitCommandError',
    'PackagistClient',
    'RegistryClient',
    'RegistryError',
    'RegistryPackage',
    'PACKAGIST_URL',
]
