"""
Catalog Layer - Device metadata

Responsibilities:
- Hold the device list and refresh it on demand
- Look up devices and metadata keys
- Resolve each device's parameter topology
"""

from .catalog import DeviceCatalog
from .topology import TopologyResolver

__all__ = ["DeviceCatalog", "TopologyResolver"]
