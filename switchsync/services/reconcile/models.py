"""
Reconciliation Data Model

Desired changes, change records, live snapshots and tagged results.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from ...common.config import DeviceTopology
from .compare import format_value

# Multi-outlet devices report their outlets as a list under this parameter
OUTLETS_PARAM = "switches"
OUTLET_KEY = "outlet"

_INDEX_RE = re.compile(r"[+-]?\d+", re.ASCII)


class ResultKind(str, Enum):
    """Outcome of a reconciliation"""
    ALREADY_CONVERGED = "already_converged"
    APPLIED = "applied"
    VALIDATION_FAILED = "validation_failed"
    VERIFICATION_FAILED = "verification_failed"
    REMOTE_REJECTED = "remote_rejected"
    TRANSPORT_FAILED = "transport_failed"


class ValidationReason(str, Enum):
    """Why a desired change could not be addressed"""
    UNKNOWN_PARAMETER = "unknown_parameter"
    OUTLET_NOT_FOUND = "outlet_not_found"
    OUTLET_REQUIRED = "outlet_required"
    NO_LIVE_STATE = "no_live_state"
    INVALID_INPUT = "invalid_input"


@dataclass
class DesiredChange:
    """Requested target value for one parameter"""
    param: str
    value: Any
    outlet: int | None = None


@dataclass
class ChangeRecord:
    """A parameter whose desired value differs from the live value"""
    param: str
    old_value: Any
    new_value: Any
    outlet: int | None = None

    def describe(self, device_id: str) -> str:
        old, new = format_value(self.old_value), format_value(self.new_value)
        if self.outlet is None:
            return f"For device {device_id}, parameter {self.param} has changed from {old} to {new}."
        return (
            f"For device {device_id}, parameter {self.param} for outlet {self.outlet} "
            f"has changed from {old} to {new}."
        )


@dataclass
class ReconciliationResult:
    """Tagged outcome of one reconciliation with its audit trail"""
    device_id: str
    kind: ResultKind
    messages: list[str] = field(default_factory=list)
    changes: list[ChangeRecord] = field(default_factory=list)
    payload: dict[str, Any] | None = None
    # VALIDATION_FAILED
    reason: ValidationReason | None = None
    subject: Any = None
    # VERIFICATION_FAILED
    param: str | None = None
    outlet: int | None = None
    expected: Any = None
    observed: Any = None
    # REMOTE_REJECTED / TRANSPORT_FAILED
    code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind in (ResultKind.ALREADY_CONVERGED, ResultKind.APPLIED)

    @property
    def wrote(self) -> bool:
        """Whether a write request was submitted"""
        return self.payload is not None

    def summary(self) -> str:
        return "\n".join(self.messages)


@dataclass
class LiveSnapshot:
    """Current device parameters, indexed per outlet for multi-outlet devices"""
    topology: DeviceTopology
    params: dict[str, Any]
    outlets: dict[int, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_params(cls, topology: DeviceTopology, params: dict[str, Any]) -> "LiveSnapshot":
        outlets: dict[int, dict[str, Any]] = {}
        if topology == DeviceTopology.MULTI_OUTLET:
            for entry in params.get(OUTLETS_PARAM) or []:
                if not isinstance(entry, dict):
                    continue
                index = coerce_outlet(entry.get(OUTLET_KEY))
                if index is not None and index not in outlets:
                    outlets[index] = entry
        return cls(topology=topology, params=params, outlets=outlets)


def coerce_outlet(value: Any) -> int | None:
    """Outlet index as int, or None if the value is not an integer index"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INDEX_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def parse_desired(
    params: dict[str, Any] | Iterable[Any],
    topology: DeviceTopology,
) -> list[DesiredChange]:
    """
    Expand caller input into DesiredChange entries, in input order.

    Accepts a single dict of params, a list of dicts, or DesiredChange
    objects. For multi-outlet devices each dict carries its outlet index
    under "outlet"; flat devices treat every key as a parameter.
    """
    if isinstance(params, dict):
        entries: Iterable[Any] = [params]
    else:
        entries = params

    changes: list[DesiredChange] = []
    for entry in entries:
        if isinstance(entry, DesiredChange):
            changes.append(entry)
            continue
        if not isinstance(entry, dict):
            raise TypeError(f"Desired change must be a dict, got {type(entry).__name__}")

        if topology == DeviceTopology.MULTI_OUTLET:
            raw_outlet = entry.get(OUTLET_KEY)
            outlet = coerce_outlet(raw_outlet)
            if outlet is None and raw_outlet is not None:
                # Keep the unusable index so validation can report it
                outlet = raw_outlet
            for key, value in entry.items():
                if key == OUTLET_KEY:
                    continue
                changes.append(DesiredChange(param=key, value=value, outlet=outlet))
        else:
            for key, value in entry.items():
                changes.append(DesiredChange(param=key, value=value))

    return changes
