"""Training: apply a learner to (a subset of) a task.

The result is a WrappedModel, an immutable handle that keeps the fitted
backend together with everything needed to predict consistently later:
the learner, the task description, the training rows, the feature order
and the categorical levels seen during training.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import joblib
import numpy as np
import pandas as pd
from loguru import logger

from ..data.task import Task, TaskDesc, check_subset, feature_kind, get_task_data, get_task_weights
from ..exceptions import LearnerCapabilityError, ShapeMismatchError, TaskTypeMismatchError
from .base import BaseModel, ModelFactory
from .learner import Learner, as_learner


@dataclass(frozen=True, eq=False)
class WrappedModel:
    """
    Fitted-model handle.

    Attributes:
        learner: Learner descriptor the model was trained from
        learner_model: Fitted backend
        task_desc: Description of the training task
        subset: Row positions used for training
        features: Feature names in training order
        factor_levels: Levels of each categorical feature seen at training time
        time: Training duration in seconds
    """
    learner: Learner
    learner_model: BaseModel
    task_desc: TaskDesc
    subset: np.ndarray
    features: Tuple[str, ...]
    factor_levels: Dict[str, Tuple[Any, ...]] = field(default_factory=dict)
    time: float = 0.0

    def __repr__(self) -> str:
        return (
            f"Model for learner.id={self.learner.id}; learner.class={self.learner.name}\n"
            f"Trained on: task.id = {self.task_desc.id}; obs = {len(self.subset)}; "
            f"features = {len(self.features)}\n"
            f"Hyperparameters: {', '.join(f'{k}={v}' for k, v in self.learner.par_vals.items()) or '<none>'}\n"
            f"Training time: {self.time:.3f}s"
        )


def encode_features(X: pd.DataFrame, factor_levels: Dict[str, Tuple[Any, ...]]) -> np.ndarray:
    """
    Turn a feature frame into a float matrix.

    Numeric columns are kept (missing values stay NaN). Categorical columns
    are one-hot encoded against the given levels; unseen levels and missing
    values encode as all zeros.
    """
    blocks = []
    for name in X.columns:
        if name in factor_levels:
            values = X[name]
            for level in factor_levels[name]:
                blocks.append((values == level).to_numpy(dtype=float))
        else:
            blocks.append(X[name].to_numpy(dtype=float, na_value=np.nan))
    if not blocks:
        return np.empty((len(X), 0))
    return np.column_stack(blocks)


def collect_factor_levels(X: pd.DataFrame) -> Dict[str, Tuple[Any, ...]]:
    levels = {}
    for name in X.columns:
        if feature_kind(X[name]) == 'factors':
            if isinstance(X[name].dtype, pd.CategoricalDtype):
                levels[name] = tuple(X[name].cat.categories)
            else:
                present = X[name].dropna().unique().tolist()
                try:
                    levels[name] = tuple(sorted(present))
                except TypeError:
                    levels[name] = tuple(sorted(present, key=str))
    return levels


def check_missings(learner: Learner, X: pd.DataFrame) -> None:
    if not learner.has_property('missings') and X.isna().any().any():
        cols = X.columns[X.isna().any()].tolist()
        raise LearnerCapabilityError(
            learner.id, 'missings',
            f"Learner '{learner.id}' cannot handle missing values, found in features {cols}"
        )


def train(learner: Union[Learner, str],
          task: Task,
          subset: Any = None,
          weights: Optional[np.ndarray] = None) -> WrappedModel:
    """
    Train a learner on a task.

    Args:
        learner: Learner descriptor or catalog name
        task: Task to train on
        subset: Row positions (or boolean mask) to train on; all rows by default
        weights: Observation weights, one per subset row. If omitted, the
            task's own weights are used when the learner supports them.

    Returns:
        WrappedModel

    Raises:
        TaskTypeMismatchError: If learner and task types differ
        SubsetBoundsError: If subset positions are out of range
        ShapeMismatchError: If weights do not match the subset length
        LearnerCapabilityError: If weights or missing values are not supported
    """
    learner = as_learner(learner)
    if learner.type != task.type:
        raise TaskTypeMismatchError(
            f"Learner '{learner.id}' is for {learner.type} tasks, task '{task.id}' is {task.type}"
        )

    rows = check_subset(subset, task.size)
    if len(rows) == 0:
        raise ValueError("Cannot train on an empty subset")

    if weights is not None:
        weights = np.asarray(weights, dtype=float)
        if weights.ndim != 1 or len(weights) != len(rows):
            raise ShapeMismatchError(
                f"weights has length {len(weights)}, expected one weight per training row ({len(rows)})"
            )
        if not learner.has_property('weights'):
            raise LearnerCapabilityError(learner.id, 'weights')
    else:
        weights = get_task_weights(task, rows)
        if weights is not None and not learner.has_property('weights'):
            logger.warning(f"Learner '{learner.id}' does not support observation weights; "
                           f"ignoring the weights of task '{task.id}'")
            weights = None

    X, y = get_task_data(task, rows, target_extra=True)
    check_missings(learner, X)

    levels = collect_factor_levels(X)
    X_mat = encode_features(X, levels)
    y_vec = None if y is None else y.to_numpy()

    backend = ModelFactory.create_model(learner.name, dict(learner.par_vals))
    start_time = time.time()
    backend.train(X_mat, y_vec, weights)
    elapsed = time.time() - start_time

    logger.info(f"Trained {learner.id} on task '{task.id}': {len(rows)} rows in {elapsed:.3f}s")

    return WrappedModel(
        learner=learner,
        learner_model=backend,
        task_desc=task.desc,
        subset=rows.copy(),
        features=tuple(X.columns),
        factor_levels=levels,
        time=elapsed,
    )


def get_learner_model(model: WrappedModel) -> Any:
    """Return the fitted scikit-learn estimator inside a model."""
    return model.learner_model.model


def save_model(model: WrappedModel, filepath: Union[str, Path]) -> Path:
    """
    Save a fitted model to disk with joblib.

    Args:
        model: Model to save
        filepath: Target path; the suffix is forced to .joblib

    Returns:
        Path written
    """
    filepath = Path(filepath).with_suffix('.joblib')
    filepath.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump({'model': model, 'learner_id': model.learner.id, 'task_id': model.task_desc.id}, filepath)
    logger.info(f"Saved {model.learner.id}: {filepath}")
    return filepath


def load_model(filepath: Union[str, Path]) -> WrappedModel:
    """Load a model written by save_model."""
    filepath = Path(filepath).with_suffix('.joblib')
    if not filepath.exists():
        raise FileNotFoundError(f"Model file not found: {filepath}")
    payload = joblib.load(filepath)
    model = payload['model']
    if not model.learner_model.fitted:
        raise ValueError("Cannot load unfitted model")
    logger.info(f"Loaded {model.learner.id}: {filepath}")
    return model
