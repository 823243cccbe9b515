import pytest

from livereadme.core.config import (
    DEFAULT_USERNAME,
    AppConfig,
    ConfigError,
    ConfigurationMissing,
    load_app_config,
    load_credentials,
)


def test_missing_file_gives_defaults(tmp_path) -> None:
    config = load_app_config(tmp_path / "absent.yaml")

    assert config == AppConfig()
    assert config.cache.ttl_seconds == 300
    assert config.retry.max_attempts == 3
    assert config.throttle.max_concurrency == 10
    assert config.api.timeout_seconds == 10


def test_yaml_values_and_env_expansion(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PROFILE_TZ", "Asia/Kolkata")
    path = tmp_path / "app.yaml"
    path.write_text(
        "cache:\n"
        "  ttl_seconds: 60\n"
        "profile:\n"
        "  role: Maintainer\n"
        "  timezone: ${PROFILE_TZ}\n"
        "logging:\n"
        "  level: ${LOG_LEVEL_UNSET:-debug}\n",
        encoding="utf-8",
    )

    config = load_app_config(path)

    assert config.cache.ttl_seconds == 60
    assert config.profile.role == "Maintainer"
    assert config.profile.timezone == "Asia/Kolkata"
    assert config.logging.level == "DEBUG"


@pytest.mark.parametrize(
    "body",
    [
        "throttle:\n  max_concurrency: 50\n",
        "profile:\n  timezone: Mars/Olympus\n",
        "logging:\n  level: LOUD\n",
        "- just\n- a list\n",
        "cache: [unclosed\n",
    ],
)
def test_invalid_config_raises(tmp_path, body: str) -> None:
    path = tmp_path / "app.yaml"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_app_config(path)


def test_credentials_require_token() -> None:
    with pytest.raises(ConfigurationMissing) as excinfo:
        load_credentials(env={})
    assert excinfo.value.variable == "GITHUB_TOKEN"

    with pytest.raises(ConfigurationMissing):
        load_credentials(env={"GITHUB_TOKEN": "   "})


def test_credentials_username_resolution() -> None:
    assert load_credentials(env={"GITHUB_TOKEN": "t"}).username == DEFAULT_USERNAME
    assert (
        load_credentials(env={"GITHUB_TOKEN": "t", "GITHUB_USERNAME": "octocat"}).username
        == "octocat"
    )
    assert (
        load_credentials(env={"GITHUB_TOKEN": "t", "GITHUB_USERNAME": "octocat"}, username="hubot").username
        == "hubot"
    )
