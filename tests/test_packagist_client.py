"""
Tests for the Packagist registry client.

HTTP is mocked on the client's requests session.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from depmirror.infra.packagist_client import PackagistClient, RegistryError, RegistryPackage

from conftest import make_package


def response(status=200, payload=None, invalid=False):
    mock = MagicMock()
    mock.status_code = status
    if invalid:
        mock.json.side_effect = ValueError("Expecting value")
    else:
        mock.json.return_value = payload
    return mock


class TestRegistryPackage:

    def test_from_api_response(self):
        data = make_package("symfony/console", {
            "v3.0.0": ["php", "symfony/debug"],
            "dev-master": ["php", "psr/log"],
        })

        package = RegistryPackage.from_api_response(data)

        assert package.name == "symfony/console"
        assert package.repository == "https://github.com/symfony/console"
        assert package.versions["v3.0.0"] == {"php", "symfony/debug"}
        assert package.all_requirements() == {"php", "symfony/debug", "psr/log"}

    def test_versions_without_require(self):
        data = {"name": "psr/log", "repository": "https://x", "versions": {"1.0.0": {}, "1.1.0": {"require": []}}}

        package = RegistryPackage.from_api_response(data)

        assert package.all_requirements() == set()

    @pytest.mark.parametrize("data", [None, {}, {"name": ""}, []])
    def test_no_package(self, data):
        assert RegistryPackage.from_api_response(data) is None


class TestPackagistClient:

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError):
            PackagistClient(base_url="")

    def test_accept_header(self):
        client = PackagistClient()
        assert client.session.headers["Accept"] == "application/json"

    @pytest.mark.parametrize("base,name,expected", [
        ("https://packagist.org", "symfony/console", "https://packagist.org/packages/symfony/console.json"),
        ("https://packagist.org/", "psr/log", "https://packagist.org/packages/psr/log.json"),
        ("https://repo.example.com", "../../etc/passwd", "https://repo.example.com/packages/etc/passwd.json"),
    ])
    def test_package_url(self, base, name, expected):
        assert PackagistClient(base_url=base).package_url(name) == expected

    def test_get_package_by_name(self):
        client = PackagistClient(timeout=7)
        payload = {"package": make_package("psr/log", {"1.0.0": ["php"]})}

        with patch.object(client.session, "get", return_value=response(200, payload)) as mock_get:
            package, status = client.get_package_by_name("psr/log")

        mock_get.assert_called_once_with("https://packagist.org/packages/psr/log.json", timeout=7)
        assert status == 200
        assert package.name == "psr/log"
        assert package.all_requirements() == {"php"}

    def test_empty_payload(self):
        client = PackagistClient()

        with patch.object(client.session, "get", return_value=response(200, {"status": "ok"})):
            package, status = client.get_package_by_name("psr/log")

        assert package is None
        assert status == 200

    @pytest.mark.parametrize("status", [301, 404, 500])
    def test_non_2xx_status(self, status):
        client = PackagistClient()

        with patch.object(client.session, "get", return_value=response(status)):
            with pytest.raises(RegistryError) as exc_info:
                client.get_package_by_name("gone/pkg")

        assert exc_info.value.status_code == status
        assert str(exc_info.value) == f"Expected a return code within 2xx for package \"gone/pkg\". Got {status}"

    def test_transport_error(self):
        client = PackagistClient()

        with patch.object(client.session, "get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(RegistryError) as exc_info:
                client.get_package_by_name("psr/log")

        assert exc_info.value.status_code is None
        assert "refused" in str(exc_info.value)

    def test_invalid_json(self):
        client = PackagistClient()

        with patch.object(client.session, "get", return_value=response(200, invalid=True)):
            with pytest.raises(RegistryError) as exc_info:
                client.get_package_by_name("psr/log")

        assert exc_info.value.status_code == 200
