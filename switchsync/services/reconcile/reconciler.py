"""
Reconciler

Computes the minimal write needed to move a device to a desired partial
state, submits it as one batched request and verifies convergence.

Validation covers the whole batch before anything is written: the first
unaddressable change aborts the batch with zero writes.
"""

import time
from dataclasses import dataclass, field
from typing import Any

from ...common.config import DeviceTopology
from ...common.exceptions import RemoteRejectedError, TransportError
from ...common.logging_setup import get_service_logger, log_param_write, log_reconcile_result
from ..gateway.protocols import CommandGateway, LiveStateGateway
from .compare import format_value, is_numeric_text, loose_equals
from .models import (
    OUTLET_KEY,
    OUTLETS_PARAM,
    ChangeRecord,
    DesiredChange,
    LiveSnapshot,
    ReconciliationResult,
    ResultKind,
    ValidationReason,
    coerce_outlet,
)
from .verifier import ConvergenceVerifier

logger = get_service_logger("reconcile.reconciler")


@dataclass
class _Plan:
    """Diff of a validated batch"""
    records: list[ChangeRecord] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    failure: ReconciliationResult | None = None

    def record(self, change: DesiredChange, live_value: Any) -> ChangeRecord | None:
        """
        Record a change, merging repeats of the same parameter.

        The old value always stays the originally reported one; a repeat
        that brings the parameter back to it cancels the change.
        """
        for index, existing in enumerate(self.records):
            if existing.param == change.param and existing.outlet == change.outlet:
                if loose_equals(change.value, existing.old_value):
                    del self.records[index]
                    return None
                existing.new_value = change.value
                return existing

        record = ChangeRecord(
            param=change.param,
            old_value=live_value,
            new_value=change.value,
            outlet=change.outlet,
        )
        self.records.append(record)
        return record


class Reconciler:
    """Diffs desired against live state and applies the difference"""

    def __init__(
        self,
        live: LiveStateGateway,
        commands: CommandGateway,
        verifier: ConvergenceVerifier,
    ):
        self._live = live
        self._commands = commands
        self._verifier = verifier

    async def reconcile(
        self,
        device_id: str,
        topology: DeviceTopology,
        changes: list[DesiredChange],
    ) -> ReconciliationResult:
        """
        Reconcile a device towards the desired changes.

        Never raises for validation, rejection or verification outcomes;
        those are returned as results. A TransportError while fetching live
        state propagates; once a write is under way it becomes a
        TRANSPORT_FAILED result that keeps the changes and payload.
        """
        start = time.monotonic()
        result = await self._reconcile(device_id, topology, changes)
        log_reconcile_result(
            logger.logger,
            device_id,
            result.kind.value,
            len(result.changes),
            (time.monotonic() - start) * 1000,
        )
        return result

    async def _reconcile(
        self,
        device_id: str,
        topology: DeviceTopology,
        changes: list[DesiredChange],
    ) -> ReconciliationResult:
        try:
            params = await self._live.get_all_parameters(device_id)
        except RemoteRejectedError as e:
            return self._rejected(device_id, e.code, e.remote_message)

        if not params:
            return _validation_failed(
                device_id,
                ValidationReason.NO_LIVE_STATE,
                None,
                f"Device {device_id} does not have any parameters to update.",
            )

        snapshot = LiveSnapshot.from_params(topology, params)
        if topology == DeviceTopology.MULTI_OUTLET:
            plan = self._plan_multi_outlet(device_id, snapshot, changes)
        else:
            plan = self._plan_flat(device_id, snapshot, changes)

        if plan.failure is not None:
            return plan.failure

        if not plan.records:
            return ReconciliationResult(
                device_id=device_id,
                kind=ResultKind.ALREADY_CONVERGED,
                messages=plan.messages,
            )

        change_messages = [record.describe(device_id) for record in plan.records]

        try:
            ack = await self._commands.submit(device_id, plan.payload)
        except RemoteRejectedError as e:
            ack_code, ack_message = e.code, e.remote_message
        except TransportError as e:
            # The write may or may not have landed
            log_param_write(logger.logger, device_id, plan.payload, success=False)
            return self._transport_failed(
                device_id,
                e,
                plan,
                f"Write outcome unknown for device {device_id}: {e.message}",
            )
        else:
            ack_code, ack_message = ack.code, ack.message

        if ack_code != 0:
            log_param_write(logger.logger, device_id, plan.payload, success=False)
            result = self._rejected(device_id, ack_code, ack_message, plan.messages)
            result.changes = plan.records
            result.payload = plan.payload
            return result

        log_param_write(logger.logger, device_id, plan.payload, success=True)

        try:
            outcome = await self._verifier.verify(device_id, plan.records)
        except RemoteRejectedError as e:
            result = self._rejected(device_id, e.code, e.remote_message, plan.messages)
            result.changes = plan.records
            result.payload = plan.payload
            return result
        except TransportError as e:
            return self._transport_failed(
                device_id,
                e,
                plan,
                f"Write accepted but could not be verified for device {device_id}: {e.message}",
            )

        if not outcome.converged:
            target = (
                f"parameter {outcome.param}"
                if outcome.outlet is None
                else f"parameter {outcome.param} for outlet {outcome.outlet}"
            )
            return ReconciliationResult(
                device_id=device_id,
                kind=ResultKind.VERIFICATION_FAILED,
                messages=plan.messages + [
                    f"Failed to update {target} to {format_value(outcome.expected)} "
                    f"for device {device_id}. Current value is {format_value(outcome.observed)}."
                ],
                changes=plan.records,
                payload=plan.payload,
                param=outcome.param,
                outlet=outcome.outlet,
                expected=outcome.expected,
                observed=outcome.observed,
            )

        return ReconciliationResult(
            device_id=device_id,
            kind=ResultKind.APPLIED,
            messages=[f"Parameters successfully updated for device {device_id}."]
            + change_messages
            + plan.messages,
            changes=plan.records,
            payload=plan.payload,
        )

    def _plan_flat(
        self,
        device_id: str,
        snapshot: LiveSnapshot,
        changes: list[DesiredChange],
    ) -> _Plan:
        plan = _Plan()
        current = dict(snapshot.params)

        for change in changes:
            if change.param not in snapshot.params:
                plan.failure = _validation_failed(
                    device_id,
                    ValidationReason.UNKNOWN_PARAMETER,
                    change.param,
                    f"Parameter {change.param} does not exist for device {device_id}.",
                )
                return plan

            _advise(plan, device_id, change)

            if loose_equals(change.value, current[change.param]):
                plan.messages.append(
                    f"Parameter {change.param} is already set to "
                    f"{format_value(change.value)} for device {device_id}."
                )
                continue

            plan.record(change, snapshot.params[change.param])
            current[change.param] = change.value

        plan.payload = {record.param: record.new_value for record in plan.records}
        return plan

    def _plan_multi_outlet(
        self,
        device_id: str,
        snapshot: LiveSnapshot,
        changes: list[DesiredChange],
    ) -> _Plan:
        plan = _Plan()
        # Working copy of the full outlet list, written back whole
        outlets = [
            dict(entry) if isinstance(entry, dict) else entry
            for entry in snapshot.params.get(OUTLETS_PARAM) or []
        ]
        by_index = {}
        for entry in outlets:
            if isinstance(entry, dict):
                index = coerce_outlet(entry.get(OUTLET_KEY))
                if index is not None and index not in by_index:
                    by_index[index] = entry

        for change in changes:
            if change.outlet is None:
                plan.failure = _validation_failed(
                    device_id,
                    ValidationReason.OUTLET_REQUIRED,
                    change.param,
                    f"Parameter {change.param} needs an outlet index for device {device_id}.",
                )
                return plan

            outlet = coerce_outlet(change.outlet)
            entry = by_index.get(outlet) if outlet is not None else None
            if entry is None:
                plan.failure = _validation_failed(
                    device_id,
                    ValidationReason.OUTLET_NOT_FOUND,
                    change.outlet,
                    f"Outlet {change.outlet} does not exist for device {device_id}.",
                )
                return plan

            if change.param not in entry:
                plan.failure = _validation_failed(
                    device_id,
                    ValidationReason.UNKNOWN_PARAMETER,
                    change.param,
                    f"Parameter {change.param} does not exist for outlet {outlet} "
                    f"of device {device_id}.",
                )
                return plan

            _advise(plan, device_id, change)

            if loose_equals(change.value, entry[change.param]):
                plan.messages.append(
                    f"Parameter {change.param} for outlet {outlet} is already set to "
                    f"{format_value(change.value)} for device {device_id}."
                )
                continue

            normalized = DesiredChange(param=change.param, value=change.value, outlet=outlet)
            plan.record(normalized, snapshot.outlets[outlet][change.param])
            entry[change.param] = change.value

        if plan.records:
            plan.payload = {OUTLETS_PARAM: outlets}
        return plan

    def _rejected(
        self,
        device_id: str,
        code: int,
        message: str,
        messages: list[str] | None = None,
    ) -> ReconciliationResult:
        return ReconciliationResult(
            device_id=device_id,
            kind=ResultKind.REMOTE_REJECTED,
            messages=list(messages or []) + [
                f"Remote rejected request for device {device_id} (code {code}): {message}"
            ],
            code=code,
            error=message,
        )

    def _transport_failed(
        self,
        device_id: str,
        error: TransportError,
        plan: _Plan,
        message: str,
    ) -> ReconciliationResult:
        logger.error(message, extra={"device": device_id, "endpoint": error.endpoint})
        return ReconciliationResult(
            device_id=device_id,
            kind=ResultKind.TRANSPORT_FAILED,
            messages=plan.messages + [message],
            changes=plan.records,
            payload=plan.payload,
            error=error.message,
        )


def _advise(plan: _Plan, device_id: str, change: DesiredChange) -> None:
    if is_numeric_text(change.value):
        plan.messages.append(
            f"Warning: Parameter {change.param} value is numeric but given as a string. "
            f"You may want to use an integer for device {device_id}."
        )


def _validation_failed(
    device_id: str,
    reason: ValidationReason,
    subject: Any,
    message: str,
) -> ReconciliationResult:
    logger.warning(
        message,
        extra={"device": device_id, "reason": reason.value},
    )
    return ReconciliationResult(
        device_id=device_id,
        kind=ResultKind.VALIDATION_FAILED,
        messages=[message],
        reason=reason,
        subject=subject,
    )
