import os
from dataclasses import dataclass, fields, replace
from typing import Any

import yaml

from fleet_dashboard.errors import ConfigError

URL_ENV_VAR = "FLEET_DASHBOARD_URL"
DEFAULT_REFRESH_INTERVAL = 300
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class DashboardConfig:
    url: str
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL
    timeout_seconds: float = DEFAULT_TIMEOUT


def _read_yaml(path: str) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def validate_config(config: DashboardConfig) -> DashboardConfig:
    if not isinstance(config.url, str) or not config.url.strip():
        raise ConfigError(
            f"No snapshot URL configured (set 'url' or {URL_ENV_VAR})"
        )
    if not config.url.startswith(("http://", "https://")):
        raise ConfigError(f"Snapshot URL must be http(s): {config.url!r}")

    for name in ("refresh_interval_seconds", "timeout_seconds"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{name} must be a number, got {value!r}")
        if value <= 0:
            raise ConfigError(f"{name} must be positive, got {value!r}")
    return config


def load_config(
    path: str | None = None, overrides: dict[str, Any] | None = None
) -> DashboardConfig:
    """
    Build the configuration from, in increasing precedence:
    the YAML file, the FLEET_DASHBOARD_URL environment variable, and
    explicit overrides (None values are ignored).
    """
    values: dict[str, Any] = {}
    if path:
        values.update(_read_yaml(path))

    known = {f.name for f in fields(DashboardConfig)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {sorted(unknown)}")

    env_url = (os.getenv(URL_ENV_VAR, "") or "").strip()
    if env_url:
        values["url"] = env_url

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    config = DashboardConfig(url=values.pop("url", ""))
    config = replace(config, **values)
    return validate_config(config)
