"""
SwitchSync

Parameter reconciliation for cloud-connected smart switches and outlets.
"""

from .common.config import DeviceTopology, SwitchSyncConfig, load_config
from .services.catalog import DeviceCatalog, TopologyResolver
from .services.gateway import HttpGateway
from .services.reconcile import ReconcileService, ReconciliationResult, ResultKind

__version__ = "0.1.0"

__all__ = [
    "DeviceCatalog",
    "DeviceTopology",
    "HttpGateway",
    "ReconcileService",
    "ReconciliationResult",
    "ResultKind",
    "SwitchSyncConfig",
    "TopologyResolver",
    "load_config",
]
