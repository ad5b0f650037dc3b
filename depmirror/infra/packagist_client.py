"""
Packagist API client infrastructure for depmirror.

Provides the registry lookup the dependency resolver depends on:
- One call per package: GET {base}/packages/{vendor}/{project}.json
- Version constraints are dropped, only the presence of a requirement matters
- Any transport error or non-2xx status is raised as RegistryError

API documentation: https://packagist.org/apidoc
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Set, Tuple

import requests

logger = logging.getLogger(__name__)

# Public Packagist instance
PACKAGIST_URL = "https://packagist.org"


class RegistryError(Exception):
    """A registry lookup failed (transport error, bad status or bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RegistryPackage:
    """A package as the registry describes it."""
    name: str
    repository: Optional[str] = None
    # version label -> names of required packages
    versions: Dict[str, Set[str]] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> Optional['RegistryPackage']:
        """
        Create from the "package" object of a Packagist response.

        Returns:
            RegistryPackage or None if the payload carries no package
        """
        if not isinstance(data, dict) or not data.get('name'):
            return None

        versions = {}
        raw_versions = data.get('versions') or {}
        if isinstance(raw_versions, dict):
            for label, composer in raw_versions.items():
                require = composer.get('require') if isinstance(composer, dict) else None
                versions[label] = set(require) if isinstance(require, dict) else set()

        return cls(
            name=data['name'],
            repository=data.get('repository') or None,
            versions=versions,
        )

    def all_requirements(self) -> Set[str]:
        """Union of the requirements of every version (tags and branches)."""
        required: Set[str] = set()
        for names in self.versions.values():
            required |= names
        return required


class RegistryClient(Protocol):
    """What the dependency resolver needs from a package registry."""

    def get_package_by_name(self, name: str) -> Tuple[Optional[RegistryPackage], Optional[int]]:
        ...


class PackagistClient:
    """
    Client for a Packagist compatible registry.

    Example:
        client = PackagistClient()
        package, status = client.get_package_by_name("symfony/console")
        print(package.repository)
    """

    def __init__(self, base_url: str = PACKAGIST_URL, timeout: float = 30,
                 session: Optional[requests.Session] = None):
        """
        Initialize PackagistClient.

        Args:
            base_url: Registry instance, e.g. https://packagist.org
            timeout: HTTP request timeout in seconds
            session: Optional preconfigured requests session
        """
        if not base_url:
            raise ValueError("Registry URL is empty")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
        })

    def package_url(self, name: str) -> str:
        # normpath keeps "../" tricks in a name from leaving /packages
        return f"{self.base_url}/packages{posixpath.normpath('/' + name)}.json"

    def get_package_by_name(self, name: str) -> Tuple[Optional[RegistryPackage], Optional[int]]:
        """
        Fetch the metadata of one package.

        Args:
            name: Package name like "symfony/console"

        Returns:
            Tuple of (RegistryPackage or None for an empty payload, HTTP status)

        Raises:
            RegistryError: transport failure, non-2xx status or invalid JSON
        """
        url = self.package_url(name)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryError(f"Request to {url} for package \"{name}\" failed: {e}") from e

        status = response.status_code
        if status < 200 or status > 299:
            raise RegistryError(
                f"Expected a return code within 2xx for package \"{name}\". Got {status}",
                status_code=status,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RegistryError(f"Registry returned invalid JSON for package \"{name}\": {e}",
                                status_code=status) from e

        payload = data.get('package') if isinstance(data, dict) else None
        return RegistryPackage.from_api_response(payload), status
