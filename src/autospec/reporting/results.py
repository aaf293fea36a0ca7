"""
Result Aggregation

Append-only collection of TestResults for one run, plus the derived
totals used for reporting, exit codes and benchmark metrics.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple

from ..core.models import SpecStatus, TestResult


class ResultAggregator:
    """
    Collects one TestResult per attempted spec, in completion order.

    Appends are guarded by a lock and never suspend, so concurrent spec
    tasks (or threads) can record results safely. Entries are never
    removed or replaced.
    """

    def __init__(self):
        self._results: List[TestResult] = []
        self._lock = threading.Lock()

    def append(self, result: TestResult) -> None:
        if not isinstance(result, TestResult):
            raise TypeError(f"Expected TestResult, got {type(result).__name__}")
        with self._lock:
            self._results.append(result)

    def snapshot(self) -> Tuple[TestResult, ...]:
        with self._lock:
            return tuple(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __iter__(self) -> Iterator[TestResult]:
        return iter(self.snapshot())

    @property
    def total_input_tokens(self) -> int:
        return sum(r.total_input_tokens for r in self.snapshot())

    @property
    def total_output_tokens(self) -> int:
        return sum(r.total_output_tokens for r in self.snapshot())

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.snapshot() if r.status == SpecStatus.PASSED)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.snapshot() if r.status == SpecStatus.FAILED)

    @property
    def all_passed(self) -> bool:
        """True when every recorded spec passed (vacuously true when empty)."""
        return all(r.passed for r in self.snapshot())

    def summary(self) -> Dict[str, Any]:
        results = self.snapshot()
        passed = sum(1 for r in results if r.passed)
        return {
            'total_specs': len(results),
            'passed': passed,
            'failed': len(results) - passed,
            'total_input_tokens': sum(r.total_input_tokens for r in results),
            'total_output_tokens': sum(r.total_output_tokens for r in results),
        }


@dataclass
class BenchmarkTally:
    """
    Confusion counts for benchmark runs.

    A site is predicted positive when every spec on it passed. A run that
    errors out counts as a negative prediction.
    """
    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0

    def record(self, predicted_pass: bool, should_pass: bool) -> None:
        if predicted_pass and should_pass:
            self.true_positives += 1
        elif predicted_pass:
            self.false_positives += 1
        elif should_pass:
            self.false_negatives += 1
        else:
            self.true_negatives += 1

    @property
    def total(self) -> int:
        return self.true_positives + self.false_positives + self.true_negatives + self.false_negatives

    @property
    def precision(self) -> float:
        denominator = self.true_positives + self.false_positives
        return self.true_positives / denominator if denominator else 0.0

    @property
    def recall(self) -> float:
        denominator = self.true_positives + self.false_negatives
        return self.true_positives / denominator if denominator else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'truePositives': self.true_positives,
            'falsePositives': self.false_positives,
            'trueNegatives': self.true_negatives,
            'falseNegatives': self.false_negatives,
            'precision': self.precision,
            'recall': self.recall,
        }
