"""Benchmark experiments: several learners resampled on several tasks."""

import time
from typing import Optional, Sequence, Union

from loguru import logger

from ..data.task import Task
from ..exceptions import TaskTypeMismatchError
from ..metrics.performance import as_measures
from ..models.learner import Learner, as_learner
from ..resampling.desc import make_resample_desc
from ..resampling.resample import ResamplingLike, resample, resolve_instance
from .result import BenchmarkResult


def _as_list(value) -> list:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _unique_ids(items, what: str) -> None:
    ids = [item.id for item in items]
    duplicated = sorted({i for i in ids if ids.count(i) > 1})
    if duplicated:
        raise ValueError(f"Duplicate {what} ids: {duplicated}")


def benchmark(learners: Union[Learner, str, Sequence[Union[Learner, str]]],
              tasks: Union[Task, Sequence[Task]],
              resamplings: Union[ResamplingLike, Sequence[ResamplingLike], None] = None,
              measures=None,
              keep_pred: bool = True,
              models: bool = False,
              show_info: bool = True,
              seed: Optional[int] = None) -> BenchmarkResult:
    """
    Resample every learner on every task.

    Resample descriptions are instantiated once per task, so all learners of
    a task are evaluated on identical splits.

    Args:
        learners: Learner(s) or learner name(s)
        tasks: Task(s)
        resamplings: One description/instance for all tasks, or one per task.
            10-fold cross-validation by default.
        measures: Measure(s) used on every task; each task's default measure if omitted
        keep_pred: Keep all predictions
        models: Keep fitted models
        show_info: Log per-iteration progress
        seed: Seed for instantiating descriptions

    Returns:
        BenchmarkResult

    Raises:
        ValueError: On duplicate ids or a resampling list of the wrong length
        TaskTypeMismatchError: If a learner does not fit a task's type
    """
    learners = [as_learner(lrn) for lrn in _as_list(learners)]
    tasks = _as_list(tasks)
    if not learners or not tasks:
        raise ValueError("benchmark needs at least one learner and one task")
    _unique_ids(learners, 'learner')
    _unique_ids(tasks, 'task')

    for task in tasks:
        for lrn in learners:
            if lrn.type != task.type:
                raise TaskTypeMismatchError(
                    f"Learner '{lrn.id}' is for {lrn.type} tasks, task '{task.id}' is {task.type}"
                )

    if resamplings is None:
        resamplings = make_resample_desc('CV', iters=10)
    resamplings = _as_list(resamplings)
    if len(resamplings) == 1:
        resamplings = resamplings * len(tasks)
    elif len(resamplings) != len(tasks):
        raise ValueError(f"Got {len(resamplings)} resamplings for {len(tasks)} tasks")

    task_measures = {task.id: as_measures(measures, task.type) for task in tasks}

    results = {}
    start_time = time.time()
    for task, resampling in zip(tasks, resamplings):
        instance = resolve_instance(resampling, task, seed)
        results[task.id] = {}
        for lrn in learners:
            logger.info(f"[Benchmark] Task: {task.id}, Learner: {lrn.id}")
            results[task.id][lrn.id] = resample(
                lrn, task, instance,
                measures=task_measures[task.id],
                models=models,
                keep_pred=keep_pred,
                show_info=show_info,
            )

    logger.info(f"[Benchmark] {len(tasks)} tasks x {len(learners)} learners in {time.time() - start_time:.2f}s")
    return BenchmarkResult(results, task_measures, {lrn.id: lrn for lrn in learners})
