"""
Shared fakes for depmirror tests.

FakeRegistry serves package metadata from a dict, FakeGitClient records
every git call instead of running git.
"""

import os
import threading

import pytest

from depmirror.infra.git_client import GitCommandError
from depmirror.infra.packagist_client import RegistryError, RegistryPackage


def make_package(name, versions, repository=None):
    """Build the "package" object of a Packagist response."""
    return {
        "name": name,
        "repository": repository or f"https://github.com/{name}",
        "versions": {
            label: {"require": {req: "*" for req in requires}}
            for label, requires in versions.items()
        },
    }


# symfony/console -> polyfill-mbstring, debug -> psr/log -> (old) symfony/console
SYMFONY_GRAPH = {
    "symfony/console": make_package("symfony/console", {
        "v3.0.0": ["php", "symfony/polyfill-mbstring", "symfony/debug"],
    }),
    "symfony/polyfill-mbstring": make_package("symfony/polyfill-mbstring", {
        "v1.0.0": ["php", "ext-mbstring"],
    }),
    "symfony/debug": make_package("symfony/debug", {
        "v3.0.0": ["php", "psr/log"],
    }),
    "psr/log": make_package("psr/log", {
        "1.0.0": [],
        "0.9.0": ["symfony/console"],
    }),
}


class FakeRegistry:
    """In-memory registry. Unknown names raise RegistryError with status 404."""

    def __init__(self, packages=None, empty=()):
        self.packages = dict(packages or {})
        self.empty = set(empty)
        self.calls = []
        self._lock = threading.Lock()

    def get_package_by_name(self, name):
        with self._lock:
            self.calls.append(name)
        if name in self.empty:
            return None, 200
        if name not in self.packages:
            raise RegistryError(f"Expected a return code within 2xx for package \"{name}\". Got 404",
                                status_code=404)
        return RegistryPackage.from_api_response(self.packages[name]), 200


class FakeGitClient:
    """Records git calls. mirror_clone creates the target like git would."""

    def __init__(self, fail_on=None):
        # {"mirror_clone": {"some/url-or-path", ...}, ...}
        self.fail_on = fail_on or {}
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, method, arg, *rest):
        with self._lock:
            self.calls.append((method, arg) + rest)
        failing = self.fail_on.get(method, ())
        if arg in failing or "*" in failing:
            raise GitCommandError(["git", method, arg], 128, stderr=f"fatal: {method} failed")

    def mirror_clone(self, url, target):
        self._record("mirror_clone", url, target)
        os.makedirs(target, exist_ok=True)

    def update_server_info(self, path):
        self._record("update_server_info", path)

    def fsck(self, path):
        self._record("fsck", path)

    def fetch_prune(self, path):
        self._record("fetch_prune", path)

    def methods(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def symfony_registry():
    return FakeRegistry(SYMFONY_GRAPH)


@pytest.fixture
def git_client():
    return FakeGitClient()
