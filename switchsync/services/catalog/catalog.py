"""
Device Catalog

Owned, in-memory list of devices for one family. Refreshed explicitly
from a CatalogSource; never reads or writes files.
"""

from typing import Any

from ...common.config import CatalogSettings
from ...common.logging_setup import get_service_logger
from ..gateway.protocols import CatalogSource

logger = get_service_logger("catalog")

# Metadata flag marking a device whose parameters are split per outlet
MULTI_OUTLET_FLAG = "isSupportChannelSplit"


class DeviceCatalog:
    """
    Cached device metadata.

    Each entry is the raw "thing" as returned by the API; device metadata
    lives under its "itemData" key.
    """

    def __init__(
        self,
        source: CatalogSource | None = None,
        settings: CatalogSettings | None = None,
    ):
        self._source = source
        self.settings = settings or CatalogSettings()
        self._things: list[dict[str, Any]] = []

    async def refresh(self) -> list[dict[str, Any]]:
        """Reload the device list from the catalog source"""
        if self._source is None:
            raise RuntimeError("DeviceCatalog has no source to refresh from")

        things = await self._source.fetch_things(
            self.settings.family_id,
            self.settings.lang,
        )
        self._things = list(things)
        logger.info(
            f"Catalog refreshed: {len(self._things)} devices",
            extra={"family_id": self.settings.family_id},
        )
        return self._things

    def load(self, things: list[dict[str, Any]]) -> None:
        """Seed the catalog with already-fetched things"""
        self._things = list(things)

    def devices(self) -> list[dict[str, Any]]:
        """Metadata ("itemData") of every cached device"""
        return [
            thing["itemData"]
            for thing in self._things
            if isinstance(thing.get("itemData"), dict)
        ]

    def find_device(self, device_id: str) -> dict[str, Any] | None:
        """Metadata of a device, or None if not cached"""
        for item in self.devices():
            if item.get("deviceid") == device_id:
                return item
        return None

    def is_multi_outlet(self, device_id: str) -> bool:
        item = self.find_device(device_id)
        if item is None:
            return False
        return _truthy(item.get(MULTI_OUTLET_FLAG))

    def is_online(self, identifier: str) -> bool:
        """Online flag of a device looked up by id or display name"""
        for item in self.devices():
            if identifier in (item.get("deviceid"), item.get("name")):
                return _truthy(item.get("online"))
        return False

    def search_parameter(self, key: str, device_id: str) -> Any:
        """
        First value stored under key anywhere in a device's metadata.

        Top-level keys win; otherwise the tree is searched depth-first.
        """
        item = self.find_device(device_id)
        if item is None:
            return None
        if key in item:
            return item[key]
        return _depth_first(item, key)


def _depth_first(node: Any, key: str) -> Any:
    if isinstance(node, dict):
        for name, value in node.items():
            if name == key and not isinstance(value, (dict, list)):
                return value
            if isinstance(value, (dict, list)):
                found = _depth_first(value, key)
                if found is not None:
                    return found
    elif isinstance(node, list):
        for value in node:
            found = _depth_first(value, key)
            if found is not None:
                return found
    return None


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
