import pytest

from fleet_dashboard.config import URL_ENV_VAR, load_config
from fleet_dashboard.errors import ConfigError

URL = "https://storage.example.com/fleet.json"


@pytest.fixture(autouse=True)
def _no_env_url(monkeypatch):
    monkeypatch.delenv(URL_ENV_VAR, raising=False)


def test_defaults_with_override_url():
    config = load_config(overrides={"url": URL})
    assert config.url == URL
    assert config.refresh_interval_seconds == 300
    assert config.timeout_seconds == 30.0


def test_yaml_file(tmp_path):
    path = tmp_path / "dashboard.yaml"
    path.write_text(
        f"url: {URL}\nrefresh_interval_seconds: 60\ntimeout_seconds: 5\n",
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.refresh_interval_seconds == 60
    assert config.timeout_seconds == 5


def test_precedence_file_env_override(tmp_path, monkeypatch):
    path = tmp_path / "dashboard.yaml"
    path.write_text("url: https://file.example.com/a.json\n", encoding="utf-8")

    monkeypatch.setenv(URL_ENV_VAR, "https://env.example.com/a.json")
    assert load_config(str(path)).url == "https://env.example.com/a.json"

    config = load_config(
        str(path), overrides={"url": URL, "refresh_interval_seconds": None}
    )
    assert config.url == URL
    assert config.refresh_interval_seconds == 300


def test_missing_url():
    with pytest.raises(ConfigError, match=URL_ENV_VAR):
        load_config()


def test_non_http_url():
    with pytest.raises(ConfigError, match="http"):
        load_config(overrides={"url": "ftp://example.com/x.json"})


@pytest.mark.parametrize("interval", [0, -5, "soon", True])
def test_bad_interval(interval):
    with pytest.raises(ConfigError):
        load_config(overrides={"url": URL, "refresh_interval_seconds": interval})


def test_unknown_key(tmp_path):
    path = tmp_path / "dashboard.yaml"
    path.write_text(f"url: {URL}\ntoken: secret\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="token"):
        load_config(str(path))


def test_invalid_yaml(tmp_path):
    path = tmp_path / "dashboard.yaml"
    path.write_text("url: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(str(path))


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "dashboard.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read"):
        load_config(str(tmp_path / "absent.yaml"))
