"""
Tests for configuration loading and the typed MirrorConfig view.
"""

import json
import os
from pathlib import Path

import pytest

from depmirror.config import (
    DEFAULT_CONFIG_FILE,
    MirrorConfig,
    NoRepositoriesError,
    apply_env_overrides,
    get_config_path,
    get_default_config,
    load_config,
    merge_configs,
)
from depmirror.exit_codes import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep DEPMIRROR_* variables of the test runner out of the tests."""
    for key in list(os.environ):
        if key.startswith("DEPMIRROR_"):
            monkeypatch.delenv(key)


MEDUSA = {
    "repodir": "/srv/mirror",
    "satisconfig": "/srv/satis.json",
    "satisurl": "https://mirror.example.com/",
    "require": ["symfony/console", "twig/twig"],
    "repositories": [
        {"name": "acme/private", "url": "git@github.com:acme/private.git"},
        {"name": "acme/registry-only"},
    ],
}


class TestGetConfigPath:

    def test_explicit_path(self):
        assert get_config_path("/etc/medusa.json") == Path("/etc/medusa.json")

    def test_env_path(self, monkeypatch):
        monkeypatch.setenv("DEPMIRROR_CONFIG", "/opt/medusa.yaml")
        assert get_config_path() == Path("/opt/medusa.yaml")

    def test_default_path(self):
        assert get_config_path() == Path.cwd() / DEFAULT_CONFIG_FILE


class TestLoadConfig:

    def test_load_json(self, fs):
        fs.create_file("/conf/medusa.json", contents=json.dumps(MEDUSA))

        config = load_config("/conf/medusa.json")

        assert config["repodir"] == "/srv/mirror"
        assert config["require"] == ["symfony/console", "twig/twig"]
        # Defaults fill the gaps
        assert config["workers"] == 4
        assert config["timeouts"] == {"http": 30, "git": 3600}
        assert config["registry_url"] == "https://packagist.org"

    def test_load_yaml(self, fs):
        fs.create_file("/conf/medusa.yaml", contents=(
            "repodir: /srv/mirror\n"
            "require:\n"
            "  - symfony/console\n"
            "timeouts:\n"
            "  git: 60\n"
        ))

        config = load_config("/conf/medusa.yaml")

        assert config["require"] == ["symfony/console"]
        assert config["timeouts"] == {"http": 30, "git": 60}

    def test_load_toml(self, fs):
        fs.create_file("/conf/medusa.toml", contents=(
            'repodir = "/srv/mirror"\n'
            'workers = 8\n'
            '[[repositories]]\n'
            'name = "acme/private"\n'
            'url = "https://git.example.com/acme/private.git"\n'
        ))

        config = load_config("/conf/medusa.toml")

        assert config["workers"] == 8
        assert config["repositories"][0]["name"] == "acme/private"

    def test_missing_file(self, fs):
        with pytest.raises(ConfigError, match="does not exist"):
            load_config("/conf/missing.json")

    def test_invalid_json(self, fs):
        fs.create_file("/conf/medusa.json", contents="{not json")

        with pytest.raises(ConfigError, match="Error loading config"):
            load_config("/conf/medusa.json")

    def test_invalid_yaml(self, fs):
        fs.create_file("/conf/medusa.yml", contents="repodir: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config("/conf/medusa.yml")

    def test_not_a_mapping(self, fs):
        fs.create_file("/conf/medusa.json", contents="[1, 2]")

        with pytest.raises(ConfigError, match="mapping"):
            load_config("/conf/medusa.json")

    def test_env_config_path(self, fs, monkeypatch):
        fs.create_file("/conf/other.json", contents=json.dumps({"repodir": "/other"}))
        monkeypatch.setenv("DEPMIRROR_CONFIG", "/conf/other.json")

        assert load_config()["repodir"] == "/other"

    def test_env_overrides_file(self, fs, monkeypatch):
        fs.create_file("/conf/medusa.json", contents=json.dumps(MEDUSA))
        monkeypatch.setenv("DEPMIRROR_REPODIR", "/data/git")
        monkeypatch.setenv("DEPMIRROR_TIMEOUTS_HTTP", "5")

        config = load_config("/conf/medusa.json")

        assert config["repodir"] == "/data/git"
        assert config["timeouts"]["http"] == 5
        assert config["timeouts"]["git"] == 3600


class TestMergeAndOverrides:

    def test_merge_configs_is_recursive(self):
        base = {"a": 1, "nested": {"x": 1, "y": 2}}
        merged = merge_configs(base, {"nested": {"y": 3}, "b": 2})

        assert merged == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3}}
        assert base["nested"]["y"] == 2

    def test_multi_word_key(self, monkeypatch):
        monkeypatch.setenv("DEPMIRROR_REGISTRY_URL", "https://repo.example.com")

        config = apply_env_overrides(get_default_config())

        assert config["registry_url"] == "https://repo.example.com"

    @pytest.mark.parametrize("raw,expected", [
        ("12", 12),
        ("yes", True),
        ("off", False),
        ("/srv/git", "/srv/git"),
    ])
    def test_value_conversion(self, monkeypatch, raw, expected):
        monkeypatch.setenv("DEPMIRROR_WORKERS", raw)
        assert apply_env_overrides(get_default_config())["workers"] == expected

    def test_unknown_key_is_ignored(self, monkeypatch):
        monkeypatch.setenv("DEPMIRROR_DOES_NOT_EXIST", "1")
        assert apply_env_overrides(get_default_config()) == get_default_config()


class TestMirrorConfig:

    def make(self, **overrides):
        data = merge_configs(get_default_config(), MEDUSA)
        data.update(overrides)
        return MirrorConfig.from_dict(data)

    def test_from_dict(self):
        config = self.make()

        assert config.repodir == "/srv/mirror"
        assert config.satisurl == "https://mirror.example.com"
        assert config.workers == 4
        assert config.http_timeout == 30.0
        assert config.get_require() == ["symfony/console", "twig/twig"]
        assert config.get_string("satisconfig") == "/srv/satis.json"
        assert config.get_string("missing") == ""

    def test_repodir_required(self):
        with pytest.raises(ConfigError, match="repodir"):
            self.make(repodir="")

    def test_repodir_user_expanded(self):
        config = self.make(repodir="~/mirror")
        assert config.repodir == os.path.expanduser("~/mirror")

    @pytest.mark.parametrize("workers", [0, -1, "many"])
    def test_invalid_workers(self, workers):
        with pytest.raises(ConfigError, match="workers"):
            self.make(workers=workers)

    def test_invalid_require(self):
        with pytest.raises(ConfigError, match="require"):
            self.make(require="symfony/console")

    def test_invalid_repositories(self):
        with pytest.raises(ConfigError, match="repositories"):
            self.make(repositories=["acme/private"])

    def test_names_of_repositories(self):
        assert self.make().get_names_of_repositories() == ["acme/private", "acme/registry-only"]

    def test_no_repositories(self):
        with pytest.raises(NoRepositoriesError):
            self.make(repositories=[]).get_names_of_repositories()

    def test_repository_url_of_package(self):
        config = self.make()
        assert config.get_repository_url_of_package("acme/private") == "git@github.com:acme/private.git"
        assert config.get_repository_url_of_package("acme/registry-only") is None
        assert config.get_repository_url_of_package("symfony/console") is None

    def test_mirror_path(self):
        assert self.make().mirror_path("psr/log") == os.path.join("/srv/mirror", "psr/log.git")

    def test_local_url_with_satisurl(self):
        assert self.make().local_url_for("psr/log") == "https://mirror.example.com/psr/log.git"

    def test_local_url_without_satisurl(self):
        config = self.make(satisurl="")
        assert config.local_url_for("psr/log") == "file:///srv/mirror/psr/log.git"

    def test_load(self, fs):
        fs.create_file("/conf/medusa.json", contents=json.dumps(MEDUSA))
        config = MirrorConfig.load("/conf/medusa.json")
        assert config.satisconfig == "/srv/satis.json"
