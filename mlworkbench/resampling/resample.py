"""Resampling: repeated train/predict/score over the splits of an instance."""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from ..data.task import Task
from ..exceptions import TaskTypeMismatchError
from ..metrics.measures import Measure, measure_label
from ..metrics.performance import as_measures, check_measure, performance
from ..models.learner import Learner, as_learner
from ..models.prediction import Prediction, predict
from ..models.train import WrappedModel, train
from .desc import ResampleDesc, make_resample_desc
from .instance import ResampleInstance, make_resample_instance

ResamplingLike = Union[ResampleDesc, ResampleInstance, str]


class ResamplePrediction(Prediction):
    """
    Predictions of all resampling iterations.

    Adds the columns 'iter' (1-based iteration) and 'set' ('train' or
    'test') to the usual prediction columns.
    """

    def __init__(self, data: pd.DataFrame, predict_type: str, task_desc, instance: ResampleInstance,
                 threshold=None, time: Optional[float] = None, iter_times: Optional[List[float]] = None):
        super().__init__(data, predict_type, task_desc, threshold=threshold, time=time)
        self.instance = instance
        self.iter_times = list(iter_times or [])

    def get_iteration(self, i: int, set: str = 'test') -> Prediction:
        """Prediction of a single iteration and set."""
        mask = (self._data['iter'] == i) & (self._data['set'] == set)
        data = self._data.loc[mask].drop(columns=['iter', 'set'])
        return Prediction(data, self.predict_type, self.task_desc, threshold=self.threshold)

    def __repr__(self) -> str:
        return (
            f"Resampled Prediction for:\n{self.instance.desc!r}\n"
            + super().__repr__()
        )


@dataclass
class ResampleResult:
    """
    Outcome of resampling one learner on one task.

    Attributes:
        learner_id: Id of the resampled learner
        task_id: Id of the task
        measures_test: DataFrame with 'iter' and one column per measure
        measures_train: Same on training sets, None unless predict includes train
        aggr: Aggregated scores keyed '<measure>.<aggregation>'
        pred: All predictions, None if keep_pred=False
        models: Fitted models per iteration, None unless models=True
        extract: Output of the extract function per iteration
        instance: Splits that were used
        runtime: Wall-clock seconds of the whole run
        measures: Measures that were computed
    """
    learner_id: str
    task_id: str
    measures_test: pd.DataFrame
    measures_train: Optional[pd.DataFrame]
    aggr: Dict[str, float]
    pred: Optional[ResamplePrediction]
    models: Optional[List[WrappedModel]]
    extract: Optional[List[Any]]
    instance: ResampleInstance
    runtime: float
    measures: List[Measure] = field(default_factory=list, repr=False)

    def __repr__(self) -> str:
        aggr = ', '.join(f"{k}={v:.4f}" for k, v in self.aggr.items())
        return (
            f"Resample Result\n"
            f"Task: {self.task_id}\n"
            f"Learner: {self.learner_id}\n"
            f"Aggr perf: {aggr}\n"
            f"Runtime: {self.runtime:.3f}"
        )


def resolve_instance(resampling: ResamplingLike, task: Task, seed: Optional[int] = None) -> ResampleInstance:
    """Instantiate a description for a task, or check a given instance fits it."""
    if isinstance(resampling, str):
        resampling = make_resample_desc(resampling)
    if isinstance(resampling, ResampleDesc):
        return make_resample_instance(resampling, task=task, seed=seed)
    if isinstance(resampling, ResampleInstance):
        if resampling.size != task.size:
            raise ValueError(f"Resample instance is for {resampling.size} rows, task '{task.id}' has {task.size}")
        return resampling
    raise TypeError(f"Expected ResampleDesc, ResampleInstance or method name, got {type(resampling).__name__}")


def _check_measures(measures: Sequence[Measure], learner: Learner, task: Task, desc: ResampleDesc) -> None:
    n_classes = len(task.class_levels) if task.class_levels is not None else None
    for measure in measures:
        check_measure(measure, task.type, learner.predict_type, n_classes)
        if measure.aggregation.uses_train and desc.predict == 'test':
            raise ValueError(f"Aggregation '{measure.aggregation.id}' of measure '{measure.id}' needs "
                             f"training-set predictions; use predict='train' or 'both'")


def _tag(pred: Prediction, i: int, set: str) -> pd.DataFrame:
    data = pred._data.copy()
    data['iter'] = i
    data['set'] = set
    return data


def resample(learner: Union[Learner, str, Sequence[Union[Learner, str]]],
             task: Task,
             resampling: ResamplingLike,
             measures=None,
             models: bool = False,
             extract: Optional[Callable[[WrappedModel], Any]] = None,
             keep_pred: bool = True,
             show_info: bool = True,
             seed: Optional[int] = None) -> Union[ResampleResult, List[ResampleResult]]:
    """
    Estimate the performance of a learner by resampling.

    Args:
        learner: Learner, learner name, or a list of them. A list is
            resampled on one shared instance.
        task: Task to resample on
        resampling: Description (instantiated with seed) or fixed instance
        measures: Measure(s); the task's default measure if omitted
        models: Keep the fitted model of every iteration
        extract: Function applied to each fitted model, results kept
        keep_pred: Keep all predictions
        show_info: Log one line per iteration
        seed: Seed used when instantiating a description

    Returns:
        ResampleResult, or a list of them for a list of learners

    Raises:
        TaskTypeMismatchError: If learner and task types differ
        MeasureTaskMismatchError: If a measure cannot score the predictions
    """
    if isinstance(learner, (list, tuple)):
        instance = resolve_instance(resampling, task, seed)
        return [resample(lrn, task, instance, measures, models, extract, keep_pred, show_info)
                for lrn in learner]

    learner = as_learner(learner)
    if learner.type != task.type:
        raise TaskTypeMismatchError(
            f"Learner '{learner.id}' is for {learner.type} tasks, task '{task.id}' is {task.type}"
        )
    instance = resolve_instance(resampling, task, seed)
    desc = instance.desc
    measures = as_measures(measures, task.type)
    _check_measures(measures, learner, task, desc)
    measure_ids = [m.id for m in measures]

    do_test = desc.predict in ('test', 'both')
    do_train = desc.predict in ('train', 'both')

    test_rows, train_rows, pred_frames, iter_times = [], [], [], []
    kept_models = [] if models else None
    extracted = [] if extract is not None else None
    threshold = None

    start_time = time.time()
    for i, (train_inds, test_inds) in enumerate(zip(instance.train_inds, instance.test_inds), start=1):
        model = train(learner, task, subset=train_inds)
        predict_time = 0.0

        if do_test and len(test_inds) == 0:
            logger.warning(f"[Resample] iter {i} of {learner.id} on {task.id} has no test rows; scores are NaN")
            test_rows.append({'iter': i, **{mid: np.nan for mid in measure_ids}})
        elif do_test:
            pred = predict(model, task=task, subset=test_inds)
            predict_time += pred.time
            threshold = pred.threshold
            test_rows.append({'iter': i, **performance(pred, measures, task=task, model=model)})
            if keep_pred:
                pred_frames.append(_tag(pred, i, 'test'))
        else:
            test_rows.append({'iter': i, **{mid: np.nan for mid in measure_ids}})

        if do_train:
            pred = predict(model, task=task, subset=train_inds)
            predict_time += pred.time
            threshold = pred.threshold
            train_rows.append({'iter': i, **performance(pred, measures, task=task, model=model)})
            if keep_pred:
                pred_frames.append(_tag(pred, i, 'train'))

        iter_times.append(predict_time)
        if kept_models is not None:
            kept_models.append(model)
        if extracted is not None:
            extracted.append(extract(model))

        if show_info:
            scores = ', '.join(f"{k}={v:.4f}" for k, v in test_rows[-1].items() if k != 'iter')
            logger.info(f"[Resample] {learner.id} on {task.id} iter {i}/{instance.iters}: {scores}")

    runtime = time.time() - start_time

    measures_test = pd.DataFrame(test_rows, columns=['iter'] + measure_ids)
    measures_train = pd.DataFrame(train_rows, columns=['iter'] + measure_ids) if do_train else None

    aggr = {}
    for m in measures:
        train_values = measures_train[m.id].to_numpy() if measures_train is not None else None
        aggr[measure_label(m)] = m.aggregation(measures_test[m.id].to_numpy(), train_values)

    pred = None
    if keep_pred and pred_frames:
        data = pd.concat(pred_frames, ignore_index=True)
        pred = ResamplePrediction(data, learner.predict_type, task.desc, instance,
                                  threshold=threshold, time=float(np.sum(iter_times)), iter_times=iter_times)

    if show_info:
        logger.info(f"[Resample] {learner.id} on {task.id} aggregated: "
                    + ', '.join(f"{k}={v:.4f}" for k, v in aggr.items()))

    return ResampleResult(
        learner_id=learner.id,
        task_id=task.id,
        measures_test=measures_test,
        measures_train=measures_train,
        aggr=aggr,
        pred=pred,
        models=kept_models,
        extract=extracted,
        instance=instance,
        runtime=runtime,
        measures=list(measures),
    )


# ============================================================================
# CONVENIENCE WRAPPERS
# ============================================================================

def crossval(learner, task: Task, iters: int = 10, stratify: bool = False, **kwargs):
    """k-fold cross-validation."""
    return resample(learner, task, make_resample_desc('CV', iters=iters, stratify=stratify), **kwargs)


def repcv(learner, task: Task, folds: int = 10, reps: int = 10, stratify: bool = False, **kwargs):
    """Repeated k-fold cross-validation."""
    return resample(learner, task, make_resample_desc('RepCV', folds=folds, reps=reps, stratify=stratify), **kwargs)


def holdout(learner, task: Task, split: float = 2 / 3, stratify: bool = False, **kwargs):
    return resample(learner, task, make_resample_desc('Holdout', split=split, stratify=stratify), **kwargs)


def subsample(learner, task: Task, iters: int = 30, split: float = 2 / 3, stratify: bool = False, **kwargs):
    return resample(learner, task,
                    make_resample_desc('Subsample', iters=iters, split=split, stratify=stratify), **kwargs)


def bootstrap_oob(learner, task: Task, iters: int = 30, stratify: bool = False, **kwargs):
    """Out-of-bag bootstrap."""
    return resample(learner, task, make_resample_desc('Bootstrap', iters=iters, stratify=stratify), **kwargs)
