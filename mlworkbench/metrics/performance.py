"""Scoring predictions with measures."""

import dataclasses
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from ..data.task import Task
from ..exceptions import MeasureTaskMismatchError, UnknownMeasureError
from ..models.prediction import Prediction
from ..models.train import WrappedModel
from .measures import (
    DEFAULT_MEASURES,
    MEASURES,
    Aggregation,
    Measure,
    describe_measure,
    get_aggregation,
)

MeasureLike = Union[str, Measure]


def get_measure(measure: MeasureLike) -> Measure:
    """
    Resolve a measure id.

    Raises:
        UnknownMeasureError: If the id is not registered
    """
    if isinstance(measure, Measure):
        return measure
    if measure not in MEASURES:
        raise UnknownMeasureError(measure, list(MEASURES))
    return MEASURES[measure]


def as_measures(measures: Union[MeasureLike, Iterable[MeasureLike], None], task_type: str) -> List[Measure]:
    """Normalise a measure argument to a non-empty list of measures."""
    if measures is None:
        return [get_default_measure(task_type)]
    if isinstance(measures, (str, Measure)):
        measures = [measures]
    resolved = [get_measure(m) for m in measures]
    if not resolved:
        raise ValueError("At least one measure is required")
    ids = [m.id for m in resolved]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate measure ids: {ids}")
    return resolved


def get_default_measure(task_or_type: Union[Task, str]) -> Measure:
    task_type = task_or_type.type if isinstance(task_or_type, Task) else task_or_type
    if task_type not in DEFAULT_MEASURES:
        raise ValueError(f"Unknown task type '{task_type}'")
    return MEASURES[DEFAULT_MEASURES[task_type]]


def check_measure(measure: Measure, task_type: str, predict_type: str, n_classes: Optional[int]) -> None:
    """
    Check that a measure can score predictions of this kind.

    Raises:
        MeasureTaskMismatchError: On task type, predict type or class count mismatch
    """
    if task_type not in measure.task_types:
        raise MeasureTaskMismatchError(
            f"Measure '{measure.id}' does not support {task_type} tasks "
            f"(supported: {sorted(measure.task_types)})"
        )
    if measure.has_property('req.prob') and predict_type != 'prob':
        raise MeasureTaskMismatchError(
            f"Measure '{measure.id}' needs probabilities, but predict_type is '{predict_type}'"
        )
    if measure.has_property('twoclass') and n_classes != 2:
        raise MeasureTaskMismatchError(
            f"Measure '{measure.id}' is only defined for binary classification, got {n_classes} classes"
        )


def performance(pred: Prediction,
                measures: Union[MeasureLike, Iterable[MeasureLike], None] = None,
                task: Optional[Task] = None,
                model: Optional[WrappedModel] = None) -> Dict[str, float]:
    """
    Score a prediction.

    Args:
        pred: Prediction to score
        measures: Measure(s) or id(s); the task type's default measure if omitted
        task: Task the prediction comes from, needed by clustering measures
        model: Fitted model, needed by time measures

    Returns:
        Dict mapping measure id to score

    Raises:
        UnknownMeasureError: If a measure id is not registered
        MeasureTaskMismatchError: If a measure cannot score this prediction
        ValueError: If truth, task or model is needed but not available, or a
            task-based measure is applied to a prediction on newdata
    """
    desc = pred.task_desc
    n_classes = len(desc.class_levels) if desc.class_levels is not None else None
    resolved = as_measures(measures, desc.type)

    scores = {}
    for measure in resolved:
        check_measure(measure, desc.type, pred.predict_type, n_classes)
        if measure.has_property('req.truth') and not pred.has_truth:
            raise ValueError(f"Measure '{measure.id}' needs the true target values")
        if measure.has_property('req.task') and task is None:
            raise ValueError(f"Measure '{measure.id}' needs the task; pass task=...")
        if measure.has_property('req.task') and pred.source != 'task':
            # ids of a newdata prediction are index labels, not task rows
            raise ValueError(f"Measure '{measure.id}' can only score predictions of task rows, "
                             f"not predictions on newdata")
        if measure.has_property('req.model') and model is None:
            raise ValueError(f"Measure '{measure.id}' needs the fitted model; pass model=...")
        scores[measure.id] = measure(pred, task, model)
    return scores


def set_aggregation(measure: MeasureLike, aggregation: Union[str, Aggregation]) -> Measure:
    """Return a copy of the measure with another aggregation."""
    measure = get_measure(measure)
    if isinstance(aggregation, str):
        aggregation = get_aggregation(aggregation)
    return dataclasses.replace(measure, aggregation=aggregation)


def list_measures(task_or_type: Union[Task, str, None] = None,
                  properties: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    List registered measures.

    Args:
        task_or_type: A task (only applicable measures) or a task type
        properties: Required properties, e.g. ['req.prob']

    Returns:
        DataFrame with one row per measure
    """
    required = set(properties or [])
    task = task_or_type if isinstance(task_or_type, Task) else None
    task_type = task.type if task is not None else task_or_type

    rows = []
    for measure in MEASURES.values():
        if task_type is not None and task_type not in measure.task_types:
            continue
        if not required <= measure.properties:
            continue
        if task is not None and measure.has_property('twoclass') and len(task.class_levels or ()) != 2:
            continue
        rows.append(describe_measure(measure))
    return pd.DataFrame(rows, columns=['id', 'name', 'task_types', 'minimize', 'best', 'worst',
                                       'properties', 'aggregation'])
