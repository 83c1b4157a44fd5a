from .benchmark import benchmark
from .result import (
    BenchmarkResult,
    convert_bmr_to_rank_matrix,
    friedman_test_bmr,
    get_bmr_aggr_performances,
    get_bmr_learner_ids,
    get_bmr_measure_ids,
    get_bmr_models,
    get_bmr_performances,
    get_bmr_predictions,
    get_bmr_task_ids,
    merge_benchmark_results,
)

__all__ = [
    'benchmark', 'BenchmarkResult', 'merge_benchmark_results',
    'get_bmr_performances', 'get_bmr_aggr_performances', 'get_bmr_predictions',
    'get_bmr_task_ids', 'get_bmr_learner_ids', 'get_bmr_measure_ids', 'get_bmr_models',
    'convert_bmr_to_rank_matrix', 'friedman_test_bmr',
]
