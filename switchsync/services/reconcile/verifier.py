"""
Convergence Verifier

Re-reads changed parameters after a write and confirms the device
reports the requested values. Remote state is eventually consistent, so
each mismatch is re-read with exponential backoff before giving up.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ...common.config import VerifySettings
from ...common.exceptions import VerificationError
from ...common.logging_setup import get_service_logger
from ..gateway.protocols import LiveStateGateway
from .compare import loose_equals
from .models import OUTLET_KEY, OUTLETS_PARAM, ChangeRecord, coerce_outlet

logger = get_service_logger("reconcile.verifier")


@dataclass
class VerificationOutcome:
    """Result of verifying a set of changes"""
    converged: bool
    param: str | None = None
    outlet: int | None = None
    expected: Any = None
    observed: Any = None
    reads: int = 0


class ConvergenceVerifier:
    """
    Confirms written parameters took effect.

    Features:
    - Single-parameter re-read per change
    - Bounded retries with exponential backoff
    - Short-circuits on the first parameter that does not converge
    """

    def __init__(
        self,
        live: LiveStateGateway,
        settings: VerifySettings | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._live = live
        self.settings = settings or VerifySettings()
        self._sleep = sleep

    async def verify(self, device_id: str, changes: list[ChangeRecord]) -> VerificationOutcome:
        """
        Verify every change record.

        Raises:
            RemoteRejectedError: The live gateway rejected a read
        """
        reads = 0
        for record in changes:
            try:
                reads += await self._confirm(device_id, record)
            except VerificationError as e:
                reads += self.settings.max_attempts
                logger.warning(
                    f"Verification failed for {device_id}.{record.param}: "
                    f"expected {e.expected_value}, got {e.actual_value}",
                    extra={"device": device_id, "param": record.param, "outlet": record.outlet},
                )
                return VerificationOutcome(
                    converged=False,
                    param=e.param,
                    outlet=record.outlet,
                    expected=e.expected_value,
                    observed=e.actual_value,
                    reads=reads,
                )

        return VerificationOutcome(converged=True, reads=reads)

    async def _confirm(self, device_id: str, record: ChangeRecord) -> int:
        """Re-read until the value matches; returns the number of reads"""
        observed = None
        attempts = max(1, self.settings.max_attempts)

        for attempt in range(attempts):
            observed = await self._read(device_id, record)
            if loose_equals(record.new_value, observed):
                return attempt + 1

            if attempt < attempts - 1:
                delay = self.settings.delay_for(attempt)
                logger.debug(
                    f"{device_id}.{record.param} not converged yet, "
                    f"retrying in {delay:.2f}s ({attempt + 1}/{attempts})"
                )
                if delay > 0:
                    await self._sleep(delay)

        raise VerificationError(
            device_id=device_id,
            param=record.param,
            expected_value=record.new_value,
            actual_value=observed,
        )

    async def _read(self, device_id: str, record: ChangeRecord) -> Any:
        if record.outlet is None:
            return await self._live.get_parameter(device_id, record.param)

        outlets = await self._live.get_parameter(device_id, OUTLETS_PARAM)
        for entry in outlets or []:
            if isinstance(entry, dict) and coerce_outlet(entry.get(OUTLET_KEY)) == record.outlet:
                return entry.get(record.param)
        return None
