"""Tests for argument parsing, YAML config loading and environment credentials."""

import asyncio

import pytest

from args import parse_args
from cli_config import apply_config_overrides, get_env, get_publish_credentials, load_config
from common.errors import ConfigError
from constants import Constants, ExitCodes

OVERRIDDEN = [
    "MAVEN_RELEASES_URL",
    "PUBLISH_API_BASE",
    "PUBLISH_SUBJECT",
    "REGISTRY_URL_NPM",
    "REQUEST_TIMEOUT",
    "HTTP_RETRY_BASE_DELAY_SEC",
]


@pytest.fixture
def restore_constants(monkeypatch):
    for attribute in OVERRIDDEN:
        monkeypatch.setattr(Constants, attribute, getattr(Constants, attribute))


class TestParseArgs:

    def test_positionals_and_defaults(self):
        args = parse_args(["BowerGitHub", "jquery/jquery", "3.2.1"])
        assert args.webjar_type == "bowergithub"
        assert args.name_or_urlish == "jquery/jquery"
        assert args.upstream_version == "3.2.1"
        assert not args.DEPLOY_DEPENDENCIES
        assert not args.FORCE
        assert not args.CREATE_ONLY
        assert args.LOG_LEVEL == "INFO"

    def test_flags(self):
        args = parse_args(
            ["npm", "jquery", "3.2.1", "--deps", "--force", "--release-version", "3.2.1-1",
             "--license", "MIT", "--create-only", "-o", "out.jar"]
        )
        assert args.DEPLOY_DEPENDENCIES
        assert args.FORCE
        assert args.RELEASE_VERSION == "3.2.1-1"
        assert args.LICENSE == "MIT"
        assert args.CREATE_ONLY
        assert args.OUTPUT == "out.jar"

    def test_unknown_type(self):
        with pytest.raises(SystemExit):
            parse_args(["maven", "jquery", "3.2.1"])


class TestLoadConfig:

    def test_no_path(self):
        assert load_config(None) == {}

    def test_missing_file(self, tmp_path):
        assert load_config(str(tmp_path / "missing.yml")) == {}

    def test_deploy_section(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("deploy:\n  releases_url: https://repo.example/releases\n", encoding="utf-8")
        assert load_config(str(path)) == {"releases_url": "https://repo.example/releases"}

    def test_bare_section(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("http:\n  timeout: 5\n", encoding="utf-8")
        assert load_config(str(path)) == {"http": {"timeout": 5}}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("deploy: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))


class TestApplyConfigOverrides:

    def test_overrides(self, restore_constants):
        apply_config_overrides(
            {
                "releases_url": "https://repo.example/releases",
                "publish": {"api_base": "https://publish.example", "subject": "acme"},
                "registries": {"npm": "https://npm.example/"},
                "http": {"timeout": "10", "retry_delay": 0.5},
            }
        )
        assert Constants.MAVEN_RELEASES_URL == "https://repo.example/releases"
        assert Constants.PUBLISH_API_BASE == "https://publish.example"
        assert Constants.PUBLISH_SUBJECT == "acme"
        assert Constants.REGISTRY_URL_NPM == "https://npm.example/"
        assert Constants.REQUEST_TIMEOUT == 10
        assert Constants.HTTP_RETRY_BASE_DELAY_SEC == 0.5

    def test_unset_values_are_kept(self, restore_constants):
        before = Constants.PUBLISH_API_BASE
        apply_config_overrides({"publish": {"api_base": None}, "http": None})
        assert Constants.PUBLISH_API_BASE == before

    def test_bad_value(self, restore_constants):
        with pytest.raises(ConfigError, match="http.timeout"):
            apply_config_overrides({"http": {"timeout": "soon"}})


class TestEnvironment:

    def test_blank_values_are_unset(self, monkeypatch):
        monkeypatch.setenv("WEBJARS_TEST_VALUE", "   ")
        assert get_env("WEBJARS_TEST_VALUE") is None
        monkeypatch.setenv("WEBJARS_TEST_VALUE", " x ")
        assert get_env("WEBJARS_TEST_VALUE") == "x"

    def test_publish_credentials(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_PUBLISH_USER, "user")
        monkeypatch.setenv(Constants.ENV_PUBLISH_TOKEN, "token")
        monkeypatch.delenv(Constants.ENV_SONATYPE_USER, raising=False)
        monkeypatch.delenv(Constants.ENV_SONATYPE_PASSWORD, raising=False)
        assert get_publish_credentials() == {
            "user": "user",
            "token": "token",
            "sonatype_user": None,
            "sonatype_password": None,
        }

    def test_deploy_needs_credentials(self, monkeypatch):
        deploywebjar = pytest.importorskip("deploywebjar")
        monkeypatch.delenv(Constants.ENV_PUBLISH_USER, raising=False)
        monkeypatch.delenv(Constants.ENV_PUBLISH_TOKEN, raising=False)
        args = parse_args(["npm", "jquery", "3.2.1"])
        assert asyncio.run(deploywebjar.run(args)) == ExitCodes.INPUT_ERROR.value
