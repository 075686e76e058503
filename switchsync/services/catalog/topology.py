"""
Topology Resolver

Decides how a device's parameters are addressed.
"""

from ...common.config import DeviceTopology
from .catalog import DeviceCatalog


class TopologyResolver:
    """Classifies devices as flat or multi-outlet from cached metadata"""

    def __init__(self, catalog: DeviceCatalog):
        self._catalog = catalog

    def resolve(self, device_id: str) -> DeviceTopology:
        # Unknown devices and absent/falsy flags are flat
        if self._catalog.is_multi_outlet(device_id):
            return DeviceTopology.MULTI_OUTLET
        return DeviceTopology.FLAT
