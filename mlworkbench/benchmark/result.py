"""Benchmark results and their accessors."""

from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from loguru import logger
from scipy import stats

from ..exceptions import ResampleMergeError
from ..metrics.measures import Measure, measure_label
from ..metrics.performance import get_measure
from ..models.learner import Learner
from ..resampling.instance import ResampleInstance
from ..resampling.resample import ResampleResult


class BenchmarkResult:
    """
    Resample results of several learners on several tasks.

    Attributes:
        results: results[task_id][learner_id] -> ResampleResult
        measures: Measures per task id
        learners: Learner descriptors by id
    """

    def __init__(self,
                 results: Dict[str, Dict[str, ResampleResult]],
                 measures: Dict[str, List[Measure]],
                 learners: Dict[str, Learner]):
        self.results = results
        self.measures = measures
        self.learners = learners

    @property
    def instances(self) -> Dict[str, ResampleInstance]:
        """Resample instance shared by all learners of each task."""
        return {task_id: next(iter(per_task.values())).instance
                for task_id, per_task in self.results.items() if per_task}

    def iter_results(self, task_ids: Optional[Iterable[str]] = None, learner_ids: Optional[Iterable[str]] = None):
        """Yield (task_id, learner_id, ResampleResult) in insertion order."""
        task_ids = _check_ids(task_ids, get_bmr_task_ids(self), 'task')
        learner_ids = _check_ids(learner_ids, get_bmr_learner_ids(self), 'learner')
        for task_id in task_ids:
            for learner_id in learner_ids:
                if learner_id in self.results[task_id]:
                    yield task_id, learner_id, self.results[task_id][learner_id]

    def __repr__(self) -> str:
        aggr = get_bmr_aggr_performances(self)
        return f"Benchmark result\n{aggr.to_string(index=False)}"


def _check_ids(ids: Optional[Iterable[str]], available: List[str], what: str) -> List[str]:
    if ids is None:
        return available
    if isinstance(ids, str):
        ids = [ids]
    ids = list(ids)
    unknown = [i for i in ids if i not in available]
    if unknown:
        raise ValueError(f"Unknown {what} ids {unknown}; available: {available}")
    return ids


# ============================================================================
# ACCESSORS
# ============================================================================

def get_bmr_task_ids(bmr: BenchmarkResult) -> List[str]:
    return list(bmr.results)


def get_bmr_learner_ids(bmr: BenchmarkResult) -> List[str]:
    return list(bmr.learners)


def get_bmr_measure_ids(bmr: BenchmarkResult) -> List[str]:
    """Measure ids over all tasks, in first-seen order."""
    ids = []
    for measures in bmr.measures.values():
        ids += [m.id for m in measures if m.id not in ids]
    return ids


def get_bmr_performances(bmr: BenchmarkResult,
                         task_ids: Optional[Iterable[str]] = None,
                         learner_ids: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Per-iteration test scores in long format.

    Returns:
        DataFrame with columns task_id, learner_id, iter and one column per measure
    """
    frames = []
    for task_id, learner_id, res in bmr.iter_results(task_ids, learner_ids):
        frame = res.measures_test.copy()
        frame.insert(0, 'learner_id', learner_id)
        frame.insert(0, 'task_id', task_id)
        frames.append(frame)
    columns = ['task_id', 'learner_id', 'iter'] + get_bmr_measure_ids(bmr)
    if not frames:
        return pd.DataFrame(columns=columns)
    return pd.concat(frames, ignore_index=True).reindex(columns=columns)


def get_bmr_aggr_performances(bmr: BenchmarkResult,
                              task_ids: Optional[Iterable[str]] = None,
                              learner_ids: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Aggregated scores, one row per (task, learner).

    Returns:
        DataFrame with columns task_id, learner_id and '<measure>.<aggregation>' columns
    """
    rows, aggr_cols = [], []
    for task_id, learner_id, res in bmr.iter_results(task_ids, learner_ids):
        rows.append({'task_id': task_id, 'learner_id': learner_id, **res.aggr})
        aggr_cols += [k for k in res.aggr if k not in aggr_cols]
    return pd.DataFrame(rows, columns=['task_id', 'learner_id'] + aggr_cols)


def get_bmr_predictions(bmr: BenchmarkResult,
                        task_ids: Optional[Iterable[str]] = None,
                        learner_ids: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    All resampled predictions stacked.

    Raises:
        ValueError: If the benchmark was run with keep_pred=False
    """
    frames = []
    for task_id, learner_id, res in bmr.iter_results(task_ids, learner_ids):
        if res.pred is None:
            raise ValueError(f"No predictions kept for task '{task_id}', learner '{learner_id}'; "
                             f"run benchmark with keep_pred=True")
        frame = res.pred.data
        frame.insert(0, 'learner_id', learner_id)
        frame.insert(0, 'task_id', task_id)
        frames.append(frame)
    if not frames:
        return pd.DataFrame(columns=['task_id', 'learner_id'])
    return pd.concat(frames, ignore_index=True)


def get_bmr_models(bmr: BenchmarkResult,
                   task_ids: Optional[Iterable[str]] = None,
                   learner_ids: Optional[Iterable[str]] = None) -> Dict[str, Dict[str, Optional[list]]]:
    models: Dict[str, Dict[str, Optional[list]]] = {}
    for task_id, learner_id, res in bmr.iter_results(task_ids, learner_ids):
        models.setdefault(task_id, {})[learner_id] = res.models
    return models


# ============================================================================
# MERGING
# ============================================================================

def merge_benchmark_results(bmrs: List[BenchmarkResult]) -> BenchmarkResult:
    """
    Combine benchmark results.

    Tasks occurring in several results must have been resampled with equal
    instances and the same measures. Every (task, learner) pair may occur
    only once.

    Raises:
        ResampleMergeError: If the results cannot be combined safely
    """
    bmrs = list(bmrs)
    if not bmrs:
        raise ValueError("Need at least one benchmark result to merge")

    results: Dict[str, Dict[str, ResampleResult]] = {}
    measures: Dict[str, List[Measure]] = {}
    learners: Dict[str, Learner] = {}
    instances: Dict[str, ResampleInstance] = {}

    for bmr in bmrs:
        for learner_id, learner in bmr.learners.items():
            if learner_id in learners and learners[learner_id] != learner:
                raise ResampleMergeError(f"Learner id '{learner_id}' refers to different learners")
            learners.setdefault(learner_id, learner)

        bmr_instances = bmr.instances
        for task_id, per_task in bmr.results.items():
            if task_id in instances:
                if task_id in bmr_instances and instances[task_id] != bmr_instances[task_id]:
                    raise ResampleMergeError(f"Task '{task_id}' was resampled with different splits")
                old_ids = [m.id for m in measures[task_id]]
                new_ids = [m.id for m in bmr.measures[task_id]]
                if old_ids != new_ids:
                    raise ResampleMergeError(
                        f"Task '{task_id}' was scored with different measures: {old_ids} vs {new_ids}"
                    )
            else:
                if task_id in bmr_instances:
                    instances[task_id] = bmr_instances[task_id]
                measures[task_id] = list(bmr.measures[task_id])
                results[task_id] = {}

            for learner_id, res in per_task.items():
                if learner_id in results[task_id]:
                    raise ResampleMergeError(
                        f"Task '{task_id}' / learner '{learner_id}' occurs in more than one result"
                    )
                results[task_id][learner_id] = res

    logger.info(f"Merged {len(bmrs)} benchmark results: {len(results)} tasks, {len(learners)} learners")
    return BenchmarkResult(results, measures, learners)


# ============================================================================
# RANKS AND TESTS
# ============================================================================

def resolve_bmr_measure(bmr: BenchmarkResult, measure) -> Measure:
    if measure is None:
        first_task = get_bmr_task_ids(bmr)[0]
        return bmr.measures[first_task][0]
    measure = get_measure(measure)
    for task_measures in bmr.measures.values():
        for m in task_measures:
            if m.id == measure.id:
                return m
    raise ValueError(f"Measure '{measure.id}' was not computed in this benchmark")


def _aggr_matrix(bmr: BenchmarkResult, measure: Measure) -> pd.DataFrame:
    """Aggregated scores, learners x tasks."""
    label = measure_label(measure)
    matrix = pd.DataFrame(np.nan, index=get_bmr_learner_ids(bmr), columns=get_bmr_task_ids(bmr))
    for task_id, learner_id, res in bmr.iter_results():
        matrix.loc[learner_id, task_id] = res.aggr.get(label, np.nan)
    matrix.index.name = 'learner_id'
    matrix.columns.name = 'task_id'
    return matrix


def convert_bmr_to_rank_matrix(bmr: BenchmarkResult, measure=None, ties_method: str = 'average') -> pd.DataFrame:
    """
    Rank learners per task on one aggregated measure.

    Rank 1 is best. Rows are learners, columns are tasks.

    Args:
        bmr: Benchmark result
        measure: Measure or id; the first measure of the first task by default
        ties_method: pandas ranking method ('average', 'min', 'max', 'first', 'dense')
    """
    measure = resolve_bmr_measure(bmr, measure)
    matrix = _aggr_matrix(bmr, measure)
    return matrix.rank(axis=0, method=ties_method, ascending=measure.minimize)


def friedman_test_bmr(bmr: BenchmarkResult, measure=None) -> Dict[str, float]:
    """
    Friedman rank sum test of the learners over the tasks.

    Tasks with a missing score for any learner are left out.

    Returns:
        Dict with statistic, p_value, n_learners and n_tasks

    Raises:
        ValueError: With fewer than 3 learners or 2 complete tasks
    """
    measure = resolve_bmr_measure(bmr, measure)
    matrix = _aggr_matrix(bmr, measure).dropna(axis=1)
    n_learners, n_tasks = matrix.shape
    if n_learners < 3:
        raise ValueError(f"Friedman test needs at least 3 learners, got {n_learners}")
    if n_tasks < 2:
        raise ValueError(f"Friedman test needs at least 2 tasks with complete scores, got {n_tasks}")
    statistic, p_value = stats.friedmanchisquare(*[matrix.loc[lrn].to_numpy() for lrn in matrix.index])
    return {'statistic': float(statistic), 'p_value': float(p_value),
            'n_learners': n_learners, 'n_tasks': n_tasks}
