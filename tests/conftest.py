"""
Pytest fixtures for SwitchSync.

Provides:
- FakeCloud: in-memory remote API implementing the gateway contracts
- A device catalog with one flat and one multi-outlet device
"""

import asyncio
import copy

import pytest

from switchsync.common.config import VerifySettings
from switchsync.services.catalog import DeviceCatalog
from switchsync.services.gateway.protocols import CommandAck

FLAT_ID = "1000flat01"
MULTI_ID = "1000multi01"

THINGS = [
    {
        "itemType": 1,
        "itemData": {
            "deviceid": FLAT_ID,
            "name": "Desk Lamp",
            "productModel": "BASIC",
            "online": True,
            "params": {"switch": "on", "fwVersion": "3.5.0"},
            "extra": {"uiid": 1},
        },
    },
    {
        "itemType": 1,
        "itemData": {
            "deviceid": MULTI_ID,
            "name": "Power Strip",
            "productModel": "4CH",
            "online": False,
            "isSupportChannelSplit": 1,
            "tags": {"ck_channel_name": {"0": "Fan"}},
        },
    },
]


class FakeCloud:
    """In-memory remote API holding device params"""

    def __init__(self, devices: dict[str, dict], apply_writes: bool = True):
        self.devices = copy.deepcopy(devices)
        self.apply_writes = apply_writes
        self.reject_code = 0
        self.submitted: list[tuple[str, dict]] = []
        self.reads: list[tuple[str, object]] = []

    async def get_all_parameters(self, device_id):
        # Yield so concurrent callers can interleave
        await asyncio.sleep(0)
        params = self.devices.get(device_id)
        return copy.deepcopy(params) if params is not None else None

    async def get_parameter(self, device_id, param):
        self.reads.append((device_id, param))
        params = self.devices.get(device_id) or {}
        if isinstance(param, list):
            return {name: copy.deepcopy(params.get(name)) for name in param}
        return copy.deepcopy(params.get(param))

    async def submit(self, device_id, payload):
        await asyncio.sleep(0)
        self.submitted.append((device_id, copy.deepcopy(payload)))
        if self.reject_code:
            return CommandAck(code=self.reject_code, message="Device control failure")
        if self.apply_writes:
            self.devices[device_id].update(copy.deepcopy(payload))
        return CommandAck()


@pytest.fixture
def things():
    return copy.deepcopy(THINGS)


@pytest.fixture
def catalog(things):
    catalog = DeviceCatalog()
    catalog.load(things)
    return catalog


@pytest.fixture
def fast_verify():
    """One immediate read, no backoff"""
    return VerifySettings(max_attempts=1, initial_delay_s=0.0)
