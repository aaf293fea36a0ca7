"""Tests for result aggregation and benchmark metrics."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from autospec.core.models import SpecStatus, TestResult
from autospec.reporting.results import BenchmarkTally, ResultAggregator


def result(spec="s", status=SpecStatus.PASSED, input_tokens=10, output_tokens=2):
    return TestResult(spec=spec, status=status, total_input_tokens=input_tokens,
                      total_output_tokens=output_tokens)


class TestResultAggregator:

    def test_empty(self):
        aggregator = ResultAggregator()
        assert len(aggregator) == 0
        assert aggregator.all_passed
        assert aggregator.total_input_tokens == 0

    def test_totals(self):
        aggregator = ResultAggregator()
        aggregator.append(result("a", SpecStatus.PASSED, 100, 10))
        aggregator.append(result("b", SpecStatus.FAILED, 50, 5))

        assert aggregator.total_input_tokens == 150
        assert aggregator.total_output_tokens == 15
        assert aggregator.passed_count == 1
        assert aggregator.failed_count == 1
        assert not aggregator.all_passed
        assert aggregator.summary() == {
            'total_specs': 2,
            'passed': 1,
            'failed': 1,
            'total_input_tokens': 150,
            'total_output_tokens': 15,
        }

    def test_rejects_other_values(self):
        with pytest.raises(TypeError):
            ResultAggregator().append({"spec": "s", "status": "passed"})

    def test_snapshot_is_detached(self):
        aggregator = ResultAggregator()
        aggregator.append(result("a"))
        snapshot = aggregator.snapshot()
        aggregator.append(result("b"))
        assert [r.spec for r in snapshot] == ["a"]
        assert [r.spec for r in aggregator] == ["a", "b"]

    def test_concurrent_appends_from_threads(self):
        aggregator = ResultAggregator()

        def worker(n):
            for i in range(100):
                aggregator.append(result(f"{n}-{i}"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(worker, range(8)))

        assert len(aggregator) == 800
        assert len({r.spec for r in aggregator}) == 800

    @pytest.mark.asyncio
    async def test_concurrent_appends_from_tasks(self):
        aggregator = ResultAggregator()

        async def spec_task(i):
            await asyncio.sleep(0)
            aggregator.append(result(str(i)))

        await asyncio.gather(*(spec_task(i) for i in range(50)))
        assert len(aggregator) == 50


class TestBenchmarkTally:

    def test_precision_and_recall(self):
        tally = BenchmarkTally()
        tally.record(predicted_pass=True, should_pass=True)
        tally.record(predicted_pass=True, should_pass=False)
        tally.record(predicted_pass=False, should_pass=True)
        tally.record(predicted_pass=False, should_pass=False)
        tally.record(predicted_pass=True, should_pass=True)

        assert tally.total == 5
        assert tally.precision == pytest.approx(2 / 3)
        assert tally.recall == pytest.approx(2 / 3)
        assert tally.to_dict()['trueNegatives'] == 1

    def test_undefined_ratios_are_zero(self):
        tally = BenchmarkTally()
        tally.record(predicted_pass=False, should_pass=False)
        assert tally.precision == 0.0
        assert tally.recall == 0.0
