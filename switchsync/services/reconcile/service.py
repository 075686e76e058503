"""
Reconcile Service

Entry point for callers: resolves topology, normalises desired params,
serialises reconciliations per device and aggregates batches across
devices without letting one device's failure abort the others.
"""

import asyncio
from typing import Any

from ...common.config import DeviceTopology, SwitchSyncConfig
from ...common.exceptions import RemoteRejectedError, TransportError
from ...common.logging_setup import get_service_logger, set_log_level
from ..catalog.catalog import MULTI_OUTLET_FLAG, DeviceCatalog
from ..catalog.topology import TopologyResolver
from ..gateway.http_gateway import HttpGateway
from ..gateway.protocols import CommandGateway, LiveStateGateway
from .models import (
    OUTLETS_PARAM,
    ReconciliationResult,
    ResultKind,
    ValidationReason,
    parse_desired,
)
from .reconciler import Reconciler
from .verifier import ConvergenceVerifier

logger = get_service_logger("reconcile.service")

# Status parameter shown for flat devices in the overview
SWITCH_PARAM = "switch"


class ReconcileService:
    """
    Reconciles devices towards desired parameter values.

    One asyncio.Lock per device serialises fetch -> write -> verify so two
    callers cannot race on the same device's intervening remote state.
    """

    def __init__(
        self,
        catalog: DeviceCatalog,
        live: LiveStateGateway,
        commands: CommandGateway,
        verifier: ConvergenceVerifier | None = None,
    ):
        self.catalog = catalog
        self.resolver = TopologyResolver(catalog)
        self._live = live
        self.verifier = verifier or ConvergenceVerifier(live)
        self.reconciler = Reconciler(live, commands, self.verifier)
        self._device_locks: dict[str, asyncio.Lock] = {}
        self._locks_guard = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: SwitchSyncConfig,
        gateway: HttpGateway | None = None,
    ) -> "ReconcileService":
        """Wire a service over the HTTP gateway and apply the configured log level"""
        set_log_level(config.log_level)
        gateway = gateway or HttpGateway(config.api)
        catalog = DeviceCatalog(gateway, config.catalog)
        verifier = ConvergenceVerifier(gateway, config.verify)
        return cls(catalog, gateway, gateway, verifier)

    async def _lock_for(self, device_id: str) -> asyncio.Lock:
        async with self._locks_guard:
            lock = self._device_locks.get(device_id)
            if lock is None:
                lock = asyncio.Lock()
                self._device_locks[device_id] = lock
            return lock

    async def reconcile(
        self,
        device_id: str,
        params: dict[str, Any] | list[Any],
    ) -> ReconciliationResult:
        """
        Bring a device to the desired params.

        Args:
            device_id: Device to reconcile
            params: Desired params, e.g. {"switch": "off"} or
                [{"outlet": 0, "switch": "off"}, ...] for multi-outlet devices

        Returns:
            ReconciliationResult; transport failures become TRANSPORT_FAILED
        """
        topology = self.resolver.resolve(device_id)
        try:
            changes = parse_desired(params, topology)
        except TypeError as e:
            message = f"Invalid desired params for device {device_id}: {e}"
            logger.warning(
                message,
                extra={"device": device_id, "reason": ValidationReason.INVALID_INPUT.value},
            )
            return ReconciliationResult(
                device_id=device_id,
                kind=ResultKind.VALIDATION_FAILED,
                messages=[message],
                reason=ValidationReason.INVALID_INPUT,
                subject=params,
            )

        lock = await self._lock_for(device_id)
        async with lock:
            try:
                return await self.reconciler.reconcile(device_id, topology, changes)
            except TransportError as e:
                logger.error(
                    f"Transport failure reconciling {device_id}: {e}",
                    extra={"device": device_id, "topology": topology.value},
                )
                return ReconciliationResult(
                    device_id=device_id,
                    kind=ResultKind.TRANSPORT_FAILED,
                    messages=[f"Could not reach the remote API for device {device_id}: {e.message}"],
                    error=e.message,
                )

    async def reconcile_many(
        self,
        requests: dict[str, dict[str, Any] | list[Any]],
    ) -> dict[str, ReconciliationResult]:
        """Reconcile several devices concurrently; one result per device"""
        device_ids = list(requests)
        results = await asyncio.gather(
            *(self.reconcile(device_id, requests[device_id]) for device_id in device_ids)
        )

        failed = [r.device_id for r in results if not r.ok]
        if failed:
            logger.warning(
                f"Batch reconcile: {len(failed)}/{len(results)} devices failed",
                extra={"failed_devices": failed},
            )
        else:
            logger.info(f"Batch reconcile: {len(results)} devices ok")

        return dict(zip(device_ids, results))

    def is_online(self, identifier: str) -> bool:
        """Online flag from the catalog, by device id or name"""
        return self.catalog.is_online(identifier)

    async def device_overview(self) -> dict[str, dict[str, Any]]:
        """
        Summary of every catalog device keyed by display name.

        Each entry holds deviceid, productModel, online, the multi-outlet
        flag and the live switch state ("switches" for multi-outlet devices,
        "switch" otherwise; None when the read is rejected).
        """
        overview: dict[str, dict[str, Any]] = {}
        for item in self.catalog.devices():
            device_id = item.get("deviceid", "")
            multi_outlet = self.resolver.resolve(device_id) == DeviceTopology.MULTI_OUTLET
            status_param = OUTLETS_PARAM if multi_outlet else SWITCH_PARAM

            try:
                status = await self._live.get_parameter(device_id, status_param)
            except RemoteRejectedError as e:
                logger.warning(
                    f"Could not read {status_param} for {device_id}: {e.remote_message}",
                    extra={"device": device_id, "code": e.code},
                )
                status = None

            overview[item.get("name") or device_id] = {
                "deviceid": device_id,
                "productModel": item.get("productModel"),
                "online": self.catalog.is_online(device_id),
                MULTI_OUTLET_FLAG: multi_outlet,
                status_param: status,
            }
        return overview
