"""
Unit tests for DeviceCatalog lookups and TopologyResolver.
"""

from unittest.mock import AsyncMock

import pytest

from conftest import FLAT_ID, MULTI_ID, THINGS
from switchsync.common.config import CatalogSettings, DeviceTopology
from switchsync.services.catalog import DeviceCatalog, TopologyResolver


class TestLookups:

    def test_find_device(self, catalog):
        assert catalog.find_device(FLAT_ID)["name"] == "Desk Lamp"
        assert catalog.find_device("missing") is None

    def test_search_parameter_top_level_first(self, catalog):
        assert catalog.search_parameter("productModel", FLAT_ID) == "BASIC"

    def test_search_parameter_depth_first(self, catalog):
        assert catalog.search_parameter("uiid", FLAT_ID) == 1
        assert catalog.search_parameter("fwVersion", FLAT_ID) == "3.5.0"
        assert catalog.search_parameter("0", MULTI_ID) == "Fan"

    def test_search_parameter_missing(self, catalog):
        assert catalog.search_parameter("voltage", FLAT_ID) is None
        assert catalog.search_parameter("productModel", "missing") is None

    def test_is_online_by_id_or_name(self, catalog):
        assert catalog.is_online(FLAT_ID)
        assert catalog.is_online("Desk Lamp")
        assert not catalog.is_online("Power Strip")
        assert not catalog.is_online("nobody")

    def test_devices_skips_entries_without_item_data(self, things):
        catalog = DeviceCatalog()
        catalog.load(things + [{"itemType": 3}])
        assert [d["deviceid"] for d in catalog.devices()] == [FLAT_ID, MULTI_ID]


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_uses_family_and_lang(self):
        source = AsyncMock()
        source.fetch_things.return_value = THINGS
        catalog = DeviceCatalog(source, CatalogSettings(family_id="fam1", lang="de"))

        things = await catalog.refresh()

        source.fetch_things.assert_awaited_once_with("fam1", "de")
        assert len(things) == 2
        assert catalog.find_device(MULTI_ID) is not None

    @pytest.mark.asyncio
    async def test_refresh_replaces_previous_list(self, things):
        source = AsyncMock()
        source.fetch_things.return_value = things[:1]
        catalog = DeviceCatalog(source)
        catalog.load(things)

        await catalog.refresh()

        assert catalog.find_device(MULTI_ID) is None

    @pytest.mark.asyncio
    async def test_refresh_without_source(self):
        with pytest.raises(RuntimeError):
            await DeviceCatalog().refresh()


class TestTopology:

    def test_multi_outlet_flag(self, catalog):
        resolver = TopologyResolver(catalog)
        assert resolver.resolve(MULTI_ID) == DeviceTopology.MULTI_OUTLET
        assert resolver.resolve(FLAT_ID) == DeviceTopology.FLAT

    def test_unknown_device_is_flat(self, catalog):
        assert TopologyResolver(catalog).resolve("missing") == DeviceTopology.FLAT

    @pytest.mark.parametrize("flag, expected", [
        (0, DeviceTopology.FLAT),
        (False, DeviceTopology.FLAT),
        ("0", DeviceTopology.FLAT),
        (None, DeviceTopology.FLAT),
        (True, DeviceTopology.MULTI_OUTLET),
        ("1", DeviceTopology.MULTI_OUTLET),
    ])
    def test_flag_values(self, flag, expected):
        catalog = DeviceCatalog()
        catalog.load([{"itemData": {"deviceid": "d1", "isSupportChannelSplit": flag}}])
        assert TopologyResolver(catalog).resolve("d1") == expected
