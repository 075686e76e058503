"""
Unit tests for ConvergenceVerifier retry and backoff behaviour.
"""

from unittest.mock import AsyncMock, call

import pytest

from switchsync.common.config import VerifySettings
from switchsync.common.exceptions import RemoteRejectedError
from switchsync.services.reconcile import ChangeRecord, ConvergenceVerifier

SETTINGS = VerifySettings(max_attempts=3, initial_delay_s=0.2, backoff_factor=2.0, max_delay_s=2.0)


def _verifier(live, settings=SETTINGS):
    sleep = AsyncMock()
    return ConvergenceVerifier(live, settings, sleep=sleep), sleep


@pytest.mark.asyncio
async def test_converges_after_retries():
    live = AsyncMock()
    live.get_parameter.side_effect = ["on", "on", "off"]
    verifier, sleep = _verifier(live)

    outcome = await verifier.verify("d1", [ChangeRecord("switch", "on", "off")])

    assert outcome.converged
    assert outcome.reads == 3
    assert sleep.await_args_list == [call(0.2), call(0.4)]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    live = AsyncMock()
    live.get_parameter.return_value = "on"
    verifier, sleep = _verifier(live)

    outcome = await verifier.verify("d1", [ChangeRecord("switch", "on", "off")])

    assert not outcome.converged
    assert (outcome.param, outcome.expected, outcome.observed) == ("switch", "off", "on")
    assert live.get_parameter.await_count == 3
    # No sleep after the final read
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_first_mismatch_short_circuits():
    live = AsyncMock()
    live.get_parameter.side_effect = lambda device_id, param: {"a": 0, "b": 2}[param]
    verifier, _ = _verifier(live, VerifySettings(max_attempts=1, initial_delay_s=0))

    outcome = await verifier.verify(
        "d1",
        [ChangeRecord("a", 0, 1), ChangeRecord("b", 0, 2)],
    )

    assert not outcome.converged
    assert outcome.param == "a"
    assert [c.args[1] for c in live.get_parameter.await_args_list] == ["a"]


@pytest.mark.asyncio
async def test_immediate_match_does_not_sleep():
    live = AsyncMock()
    live.get_parameter.return_value = 153
    verifier, sleep = _verifier(live)

    outcome = await verifier.verify("d1", [ChangeRecord("colorR", 0, "153")])

    assert outcome.converged
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_outlet_read_back():
    live = AsyncMock()
    live.get_parameter.return_value = [
        {"outlet": 0, "switch": "on"},
        {"outlet": 1, "switch": "off"},
    ]
    verifier, _ = _verifier(live)

    outcome = await verifier.verify("m1", [ChangeRecord("switch", "on", "off", outlet=1)])

    assert outcome.converged
    live.get_parameter.assert_awaited_once_with("m1", "switches")


@pytest.mark.asyncio
async def test_missing_outlet_in_read_back():
    live = AsyncMock()
    live.get_parameter.return_value = [{"outlet": 0, "switch": "on"}]
    verifier, _ = _verifier(live, VerifySettings(max_attempts=1, initial_delay_s=0))

    outcome = await verifier.verify("m1", [ChangeRecord("switch", "on", "off", outlet=3)])

    assert not outcome.converged
    assert outcome.outlet == 3
    assert outcome.observed is None


@pytest.mark.asyncio
async def test_remote_rejection_propagates():
    live = AsyncMock()
    live.get_parameter.side_effect = RemoteRejectedError(30022, "offline")
    verifier, _ = _verifier(live)

    with pytest.raises(RemoteRejectedError):
        await verifier.verify("d1", [ChangeRecord("switch", "on", "off")])
