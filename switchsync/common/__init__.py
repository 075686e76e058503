"""
Common Utilities

Shared modules used across all services:
- config.py - Configuration dataclasses and YAML loading
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .config import (
    ApiSettings,
    CatalogSettings,
    DeviceTopology,
    SwitchSyncConfig,
    VerifySettings,
    config_from_dict,
    load_config,
    validate_config,
)
from .exceptions import (
    ConfigError,
    DeviceError,
    RemoteRejectedError,
    SwitchSyncError,
    TransportError,
    VerificationError,
)
from .logging_setup import (
    get_service_logger,
    log_param_read,
    log_param_write,
    log_reconcile_result,
    set_log_level,
    setup_logging,
)

__all__ = [
    # Config
    "ApiSettings",
    "CatalogSettings",
    "DeviceTopology",
    "SwitchSyncConfig",
    "VerifySettings",
    "config_from_dict",
    "load_config",
    "validate_config",
    # Exceptions
    "SwitchSyncError",
    "ConfigError",
    "DeviceError",
    "RemoteRejectedError",
    "TransportError",
    "VerificationError",
    # Logging
    "setup_logging",
    "set_log_level",
    "get_service_logger",
    "log_param_read",
    "log_param_write",
    "log_reconcile_result",
]
