"""
Configuration Dataclasses

Type-safe configuration structures for SwitchSync.
Loaded from a YAML file; the access token may come from the environment.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError


class DeviceTopology(str, Enum):
    """Parameter addressing scheme of a device"""
    FLAT = "flat"
    MULTI_OUTLET = "multi_outlet"


@dataclass
class ApiSettings:
    """Remote API connection settings"""
    region: str = "eu"
    base_url: str = ""  # Derived from region when empty
    app_id: str = ""
    access_token: str = ""
    timeout_s: float = 10.0

    def resolved_base_url(self) -> str:
        """Base URL for the v2 REST API"""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"https://{self.region}-apia.coolkit.cc"


@dataclass
class CatalogSettings:
    """Device catalog settings"""
    family_id: str = ""
    lang: str = "en"


@dataclass
class VerifySettings:
    """Convergence verification retry policy"""
    max_attempts: int = 3
    initial_delay_s: float = 0.2
    backoff_factor: float = 2.0
    max_delay_s: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay before re-reading after the given failed attempt (0-based)"""
        delay = self.initial_delay_s * (self.backoff_factor ** attempt)
        return min(delay, self.max_delay_s)


@dataclass
class SwitchSyncConfig:
    """Complete configuration"""
    api: ApiSettings = field(default_factory=ApiSettings)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)
    verify: VerifySettings = field(default_factory=VerifySettings)
    log_level: str = "INFO"


def validate_config(data: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate a raw configuration dict.

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors: list[str] = []

    api = data.get("api") or {}
    if not api.get("region") and not api.get("base_url"):
        errors.append("Missing api.region or api.base_url")
    if not api.get("app_id"):
        errors.append("Missing api.app_id")
    timeout = api.get("timeout_s", 10.0)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("Invalid api.timeout_s: must be positive")

    verify = data.get("verify") or {}
    max_attempts = verify.get("max_attempts", 3)
    if not isinstance(max_attempts, int) or max_attempts < 1:
        errors.append("Invalid verify.max_attempts: must be at least 1")
    for key in ("initial_delay_s", "max_delay_s"):
        value = verify.get(key, 0)
        if not isinstance(value, (int, float)) or value < 0:
            errors.append(f"Invalid verify.{key}: must be non-negative")
    factor = verify.get("backoff_factor", 2.0)
    if not isinstance(factor, (int, float)) or factor < 1:
        errors.append("Invalid verify.backoff_factor: must be >= 1")

    log_level = data.get("log_level", "INFO")
    if str(log_level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"Invalid log_level: {log_level}")

    return len(errors) == 0, errors


def config_from_dict(data: dict[str, Any]) -> SwitchSyncConfig:
    """Build SwitchSyncConfig from a dictionary (e.g., parsed YAML)"""
    api_data = data.get("api") or {}
    api = ApiSettings(
        region=api_data.get("region", "eu"),
        base_url=api_data.get("base_url", ""),
        app_id=api_data.get("app_id", ""),
        access_token=os.environ.get(
            "SWITCHSYNC_ACCESS_TOKEN", api_data.get("access_token", "")
        ),
        timeout_s=float(api_data.get("timeout_s", 10.0)),
    )

    catalog_data = data.get("catalog") or {}
    catalog = CatalogSettings(
        family_id=str(catalog_data.get("family_id", "")),
        lang=catalog_data.get("lang", "en"),
    )

    verify_data = data.get("verify") or {}
    verify = VerifySettings(
        max_attempts=verify_data.get("max_attempts", 3),
        initial_delay_s=float(verify_data.get("initial_delay_s", 0.2)),
        backoff_factor=float(verify_data.get("backoff_factor", 2.0)),
        max_delay_s=float(verify_data.get("max_delay_s", 2.0)),
    )

    return SwitchSyncConfig(
        api=api,
        catalog=catalog,
        verify=verify,
        log_level=data.get("log_level", "INFO"),
    )


def load_config(config_path: str | Path) -> SwitchSyncConfig:
    """
    Load configuration from YAML file.

    Raises:
        ConfigError: File missing, unparsable or invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")

    is_valid, errors = validate_config(data)
    if not is_valid:
        raise ConfigError("; ".join(errors))

    return config_from_dict(data)
