from .results import BenchmarkTally, ResultAggregator
from .summary import print_test_results

__all__ = ['BenchmarkTally', 'ResultAggregator', 'print_test_results']
