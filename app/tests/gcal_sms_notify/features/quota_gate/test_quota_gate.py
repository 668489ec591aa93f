"""月次送信枠による送信許可のテスト。"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from gcal_sms_notify.features.quota_gate.usecase_quota_gate import QuotaGate


def _gate(*, baseline: int, ceiling: int) -> QuotaGate:
    return QuotaGate(month="2024-05", baseline=baseline, ceiling=ceiling)


def test_admits_until_ceiling() -> None:
    gate = _gate(baseline=98, ceiling=100)

    assert [gate.try_admit() for _ in range(4)] == [True, True, False, False]
    state = gate.snapshot()
    assert state.admitted_this_run == 2
    assert state.used == 100


def test_refuses_without_mutation_when_ceiling_reached() -> None:
    gate = _gate(baseline=100, ceiling=100)

    assert gate.try_admit() is False
    assert gate.snapshot().admitted_this_run == 0
    assert gate.exhausted_line() == "Monthly quota was reached: (100/100)"


def test_baseline_above_ceiling_admits_nothing() -> None:
    gate = _gate(baseline=120, ceiling=100)

    assert gate.try_admit() is False
    assert gate.snapshot().used == 120


@pytest.mark.parametrize(("remaining", "requests"), [(0, 5), (1, 8), (5, 50), (20, 20)])
def test_parallel_threads_admit_exactly_remaining_slots(remaining: int, requests: int) -> None:
    gate = _gate(baseline=100 - remaining, ceiling=100)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: gate.try_admit(), range(requests)))

    assert results.count(True) == min(remaining, requests)
    assert gate.snapshot().admitted_this_run == min(remaining, requests)


@pytest.mark.asyncio
async def test_concurrent_tasks_match_sequential_admissions() -> None:
    async def _admit(gate: QuotaGate) -> bool:
        await asyncio.sleep(0)
        return gate.try_admit()

    concurrent_gate = _gate(baseline=97, ceiling=100)
    concurrent = await asyncio.gather(*(_admit(concurrent_gate) for _ in range(10)))

    sequential_gate = _gate(baseline=97, ceiling=100)
    sequential = [sequential_gate.try_admit() for _ in range(10)]

    assert concurrent.count(True) == sequential.count(True) == 3
    assert concurrent_gate.snapshot() == sequential_gate.snapshot()
