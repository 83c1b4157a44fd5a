"""Learner descriptors.

A learner is a registered algorithm name plus hyperparameters and a
prediction-output mode. It is a plain immutable value: nothing is fitted
until `train` is called with a task.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from loguru import logger

from ..data.task import Task
from ..exceptions import LearnerCapabilityError
from .base import ModelFactory

PREDICT_TYPES = ('response', 'prob')


@dataclass(frozen=True)
class Learner:
    """
    Immutable learner descriptor.

    Attributes:
        name: Catalog name, e.g. 'classif.rpart'
        id: Identifier used in resample and benchmark results
        type: Task type the learner applies to
        predict_type: 'response' (labels/values) or 'prob' (class probabilities)
        par_vals: Hyperparameters passed to the backend
        properties: Capabilities of the backend
    """
    name: str
    id: str
    type: str
    predict_type: str = 'response'
    par_vals: Mapping[str, Any] = field(default_factory=dict)
    properties: FrozenSet[str] = frozenset()

    def has_property(self, prop: str) -> bool:
        return prop in self.properties

    def __repr__(self) -> str:
        pars = ', '.join(f"{k}={v}" for k, v in self.par_vals.items()) or '<none>'
        return (
            f"Learner {self.id} from package sklearn\n"
            f"Type: {self.type}\n"
            f"Name: {self.name}\n"
            f"Predict-Type: {self.predict_type}\n"
            f"Hyperparameters: {pars}\n"
            f"Properties: {', '.join(sorted(self.properties))}"
        )


def _check_predict_type(name: str, task_type: str, properties: FrozenSet[str], predict_type: str) -> None:
    if predict_type not in PREDICT_TYPES:
        raise ValueError(f"predict_type must be one of {PREDICT_TYPES}, got '{predict_type}'")
    if predict_type == 'prob':
        if task_type != 'classif':
            raise LearnerCapabilityError(name, 'prob', f"predict_type='prob' is only available for classification, "
                                                       f"'{name}' is a {task_type} learner")
        if 'prob' not in properties:
            raise LearnerCapabilityError(name, 'prob')


def _filter_pars(name: str, par_vals: Mapping[str, Any]) -> Dict[str, Any]:
    accepted = ModelFactory.get_entry(name).param_names
    kept = {}
    for key, value in par_vals.items():
        if key in accepted:
            kept[key] = value
        else:
            logger.warning(f"Learner '{name}' has no hyperparameter '{key}'; dropping it")
    return kept


def make_learner(name: str, id: Optional[str] = None, predict_type: str = 'response', **par_vals) -> Learner:
    """
    Create a learner descriptor from the catalog.

    Args:
        name: Registered learner name
        id: Identifier, defaults to the name
        predict_type: 'response' or 'prob'
        **par_vals: Backend hyperparameters; unknown names are dropped with a warning

    Returns:
        Learner

    Raises:
        UnknownLearnerError: If the name is not registered
        LearnerCapabilityError: If probabilities are requested but not supported
    """
    entry = ModelFactory.get_entry(name)
    _check_predict_type(name, entry.task_type, entry.properties, predict_type)
    return Learner(
        name=name,
        id=id or name,
        type=entry.task_type,
        predict_type=predict_type,
        par_vals=_filter_pars(name, par_vals),
        properties=entry.properties,
    )


def make_learners(names: Iterable[Union[str, Tuple[str, Mapping[str, Any]]]],
                  ids: Optional[Sequence[str]] = None,
                  predict_type: str = 'response',
                  **par_vals) -> List[Learner]:
    """
    Create several learners at once.

    Args:
        names: Learner names, or (name, hyperparameters) pairs
        ids: One id per learner, the names by default
        predict_type: Predict type of every learner
        **par_vals: Hyperparameters passed to every learner; per-learner
            hyperparameters take precedence

    Returns:
        List of Learner
    """
    names = list(names)
    if ids is not None and len(ids) != len(names):
        raise ValueError(f"Got {len(ids)} ids for {len(names)} learners")
    learners = []
    for i, entry in enumerate(names):
        name, own_pars = (entry, {}) if isinstance(entry, str) else entry
        learners.append(make_learner(name, id=ids[i] if ids is not None else None,
                                     predict_type=predict_type, **{**par_vals, **own_pars}))
    return learners


def as_learner(learner: Union[str, Learner]) -> Learner:
    """Accept a learner or a catalog name."""
    if isinstance(learner, Learner):
        return learner
    if isinstance(learner, str):
        return make_learner(learner)
    raise TypeError(f"Expected Learner or learner name, got {type(learner).__name__}")


def set_hyper_pars(learner: Learner, **par_vals) -> Learner:
    """Return a copy with updated hyperparameters."""
    merged = {**learner.par_vals, **_filter_pars(learner.name, par_vals)}
    return dataclasses.replace(learner, par_vals=merged)


def get_hyper_pars(learner: Learner, include_defaults: bool = False) -> Dict[str, Any]:
    if include_defaults:
        return {**ModelFactory.get_entry(learner.name).defaults, **learner.par_vals}
    return dict(learner.par_vals)


def set_predict_type(learner: Learner, predict_type: str) -> Learner:
    _check_predict_type(learner.id, learner.type, learner.properties, predict_type)
    return dataclasses.replace(learner, predict_type=predict_type)


def set_learner_id(learner: Learner, id: str) -> Learner:
    return dataclasses.replace(learner, id=id)


def list_learners(task_or_type: Union[Task, str, None] = None,
                  properties: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    List catalog entries.

    Args:
        task_or_type: A task (only applicable learners are listed) or a task type
        properties: Required properties, e.g. ['prob', 'weights']

    Returns:
        DataFrame with one row per learner
    """
    required = set(properties or [])
    task = task_or_type if isinstance(task_or_type, Task) else None
    task_type = task.type if task is not None else task_or_type

    if task is not None:
        desc = task.desc
        if desc.has_missings:
            required.add('missings')
        if desc.class_levels is not None:
            required.add('twoclass' if len(desc.class_levels) == 2 else 'multiclass')

    rows = []
    for name in ModelFactory.list_models(task_type):
        entry = ModelFactory.get_entry(name)
        if not required <= entry.properties:
            continue
        row = {'class': name, 'type': entry.task_type, 'short_name': entry.short_name,
               'backend': entry.model_class.__name__, 'note': entry.note}
        for prop in ('prob', 'weights', 'missings'):
            row[prop] = prop in entry.properties
        rows.append(row)
    return pd.DataFrame(rows, columns=['class', 'type', 'short_name', 'backend', 'prob', 'weights', 'missings', 'note'])
