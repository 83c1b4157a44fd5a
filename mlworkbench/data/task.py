"""Task descriptors.

A task bundles a dataset with the kind of learning problem to solve on it.
Tasks are never mutated: every operation that restricts or transforms a
task returns a new one.

Key Components:
    - Task: Base class holding data, blocking labels and weights
    - ClassifTask / RegrTask / ClusterTask: Concrete task kinds
    - TaskDesc: Lightweight description carried by models and predictions
    - make_*_task: Validating constructors
    - get_task_*: Accessors used by training, prediction and resampling
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from loguru import logger

from ..exceptions import (
    SchemaMismatchError,
    ShapeMismatchError,
    SubsetBoundsError,
    TaskTypeMismatchError,
)

TASK_TYPES = ('classif', 'regr', 'cluster')


@dataclass(frozen=True)
class TaskDesc:
    """Description of a task without its data."""
    id: str
    type: str
    target: Optional[str]
    size: int
    feature_names: Tuple[str, ...]
    feature_types: Dict[str, str] = field(default_factory=dict)
    class_levels: Optional[Tuple[Any, ...]] = None
    positive: Optional[Any] = None
    has_missings: bool = False
    has_weights: bool = False
    has_blocking: bool = False

    @property
    def n_features(self) -> Dict[str, int]:
        counts = {'numerics': 0, 'factors': 0}
        for kind in self.feature_types.values():
            counts[kind] += 1
        return counts


def feature_kind(series: pd.Series) -> str:
    """Classify a column as 'numerics' or 'factors'."""
    if pd.api.types.is_bool_dtype(series):
        return 'factors'
    if pd.api.types.is_numeric_dtype(series):
        return 'numerics'
    return 'factors'


def _sorted_levels(values: Sequence[Any]) -> List[Any]:
    try:
        return sorted(values)
    except TypeError:
        return sorted(values, key=str)


def _class_levels(y: pd.Series) -> Tuple[Any, ...]:
    present = set(y.dropna().unique())
    if isinstance(y.dtype, pd.CategoricalDtype):
        return tuple(c for c in y.cat.categories if c in present)
    return tuple(_sorted_levels(present))


class Task:
    """
    Base class for all tasks.

    Holds a private copy of the dataset with a fresh positional index, so
    row ids are always 0..size-1.

    Attributes:
        id: Task identifier
        type: One of 'classif', 'regr', 'cluster'
        target: Target column name (None for unsupervised tasks)
    """

    type: str = None

    def __init__(self,
                 data: pd.DataFrame,
                 target: Optional[str] = None,
                 id: Optional[str] = None,
                 blocking: Optional[np.ndarray] = None,
                 weights: Optional[np.ndarray] = None):
        self._data = data
        self.target = target
        self.id = id
        self._blocking = blocking
        self._weights = weights

    # ------------------------------------------------------------------
    # Basic properties
    # ------------------------------------------------------------------

    @property
    def data(self) -> pd.DataFrame:
        """Copy of the full dataset including the target column."""
        return self._data.copy()

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def feature_names(self) -> List[str]:
        return [c for c in self._data.columns if c != self.target]

    @property
    def blocking(self) -> Optional[np.ndarray]:
        return None if self._blocking is None else self._blocking.copy()

    @property
    def weights(self) -> Optional[np.ndarray]:
        return None if self._weights is None else self._weights.copy()

    @property
    def class_levels(self) -> Optional[Tuple[Any, ...]]:
        return None

    @property
    def positive(self) -> Optional[Any]:
        return None

    @property
    def desc(self) -> TaskDesc:
        features = self.feature_names
        return TaskDesc(
            id=self.id,
            type=self.type,
            target=self.target,
            size=self.size,
            feature_names=tuple(features),
            feature_types={f: feature_kind(self._data[f]) for f in features},
            class_levels=self.class_levels,
            positive=self.positive,
            has_missings=bool(self._data[features].isna().any().any()) if features else False,
            has_weights=self._weights is not None,
            has_blocking=self._blocking is not None,
        )

    def _derive(self,
                data: pd.DataFrame,
                blocking: Optional[np.ndarray],
                weights: Optional[np.ndarray]) -> 'Task':
        """Shallow copy of this task with replaced rows/columns."""
        new = copy.copy(self)
        new._data = data.reset_index(drop=True)
        new._blocking = blocking
        new._weights = weights
        return new

    def __repr__(self) -> str:
        desc = self.desc
        kind = 'Unsupervised' if self.target is None else 'Supervised'
        counts = pd.DataFrame([desc.n_features]).to_string(index=False)
        lines = [
            f"{kind} task: {self.id}",
            f"Type: {self.type}",
        ]
        if self.target is not None:
            lines.append(f"Target: {self.target}")
        lines += [
            f"Observations: {self.size}",
            "Features:",
            counts,
            f"Missings: {desc.has_missings}",
            f"Has weights: {desc.has_weights}",
            f"Has blocking: {desc.has_blocking}",
        ]
        return "\n".join(lines)


class ClassifTask(Task):
    """Classification task with a categorical target."""

    type = 'classif'

    def __init__(self, data, target, id=None, blocking=None, weights=None,
                 class_levels: Tuple[Any, ...] = (), positive: Any = None):
        super().__init__(data, target, id, blocking, weights)
        self._class_levels = tuple(class_levels)
        self._positive = positive

    @property
    def class_levels(self) -> Tuple[Any, ...]:
        return self._class_levels

    @property
    def positive(self) -> Optional[Any]:
        return self._positive

    def __repr__(self) -> str:
        base = super().__repr__()
        counts = self._data[self.target].value_counts().reindex(list(self._class_levels), fill_value=0)
        table = pd.DataFrame([counts.values], columns=[str(c) for c in counts.index]).to_string(index=False)
        positive = 'NA' if self._positive is None else self._positive
        return f"{base}\nClasses: {len(self._class_levels)}\n{table}\nPositive class: {positive}"


class RegrTask(Task):
    """Regression task with a numeric target."""

    type = 'regr'


class ClusterTask(Task):
    """Unsupervised clustering task."""

    type = 'cluster'


# ============================================================================
# CONSTRUCTION
# ============================================================================

def _default_id(data: pd.DataFrame, task_type: str) -> str:
    name = getattr(data, 'attrs', {}).get('name')
    return str(name) if name else f"{task_type}_task"


def _extract_row_vector(data: pd.DataFrame, value: Any, what: str) -> Tuple[pd.DataFrame, Optional[np.ndarray]]:
    """Resolve blocking/weights given as column name or per-row vector."""
    if value is None:
        return data, None
    if isinstance(value, str):
        if value not in data.columns:
            raise SchemaMismatchError(f"{what} column '{value}' not found in data", [value])
        vector = data[value].to_numpy()
        return data.drop(columns=[value]), vector
    vector = np.asarray(value)
    if vector.ndim != 1 or len(vector) != len(data):
        raise ShapeMismatchError(
            f"{what} must have one entry per row: got {vector.shape}, expected ({len(data)},)"
        )
    return data, vector


def _prepare(data: pd.DataFrame,
             target: Optional[str],
             blocking: Any,
             weights: Any) -> Tuple[pd.DataFrame, Optional[np.ndarray], Optional[np.ndarray]]:
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"data must be a pandas DataFrame, got {type(data).__name__}")
    if target is not None and target not in data.columns:
        raise SchemaMismatchError(f"Target column '{target}' not found in data", [target])
    attrs = dict(data.attrs)
    data = data.reset_index(drop=True).copy()
    data.attrs = attrs
    data, blocking = _extract_row_vector(data, blocking, 'blocking')
    data, weights = _extract_row_vector(data, weights, 'weights')
    if weights is not None:
        weights = weights.astype(float)
        if np.any(weights < 0):
            raise ValueError("weights must be non-negative")
    if target is not None and data[target].isna().any():
        raise ValueError(f"Target column '{target}' contains missing values")
    return data, blocking, weights


def make_classif_task(data: pd.DataFrame,
                      target: str,
                      id: Optional[str] = None,
                      blocking: Any = None,
                      weights: Any = None,
                      positive: Any = None) -> ClassifTask:
    """
    Create a classification task.

    Args:
        data: Dataset, rows are observations
        target: Name of the class label column
        id: Task identifier, derived from data.attrs['name'] if not given
        blocking: Column name or per-row labels of rows that belong together
        weights: Column name or per-row observation weights
        positive: Positive class for binary problems (first level by default)

    Returns:
        ClassifTask

    Raises:
        SchemaMismatchError: If target (or blocking/weights column) is missing
        TaskTypeMismatchError: If the target is not categorical
    """
    task_id = id or _default_id(data, 'classif')
    data, blocking, weights = _prepare(data, target, blocking, weights)
    y = data[target]

    if pd.api.types.is_float_dtype(y):
        if not np.all(np.mod(y.to_numpy(), 1) == 0):
            raise TaskTypeMismatchError(
                f"Classification target '{target}' must be categorical, got non-integral floats"
            )
    elif not (pd.api.types.is_integer_dtype(y) or pd.api.types.is_bool_dtype(y)
              or isinstance(y.dtype, pd.CategoricalDtype) or pd.api.types.is_object_dtype(y)
              or pd.api.types.is_string_dtype(y)):
        raise TaskTypeMismatchError(
            f"Classification target '{target}' must be categorical, got dtype {y.dtype}"
        )

    levels = _class_levels(y)
    if len(levels) < 2:
        raise ValueError(f"Classification target '{target}' needs at least 2 classes, got {len(levels)}")

    if len(levels) == 2:
        if positive is None:
            positive = levels[0]
        elif positive not in levels:
            raise ValueError(f"Positive class '{positive}' not among class levels {list(levels)}")
    elif positive is not None:
        logger.warning(f"Ignoring positive class '{positive}' for multiclass task")
        positive = None

    return ClassifTask(data, target, task_id, blocking, weights,
                       class_levels=levels, positive=positive)


def make_regr_task(data: pd.DataFrame,
                   target: str,
                   id: Optional[str] = None,
                   blocking: Any = None,
                   weights: Any = None) -> RegrTask:
    """Create a regression task; the target must be numeric."""
    task_id = id or _default_id(data, 'regr')
    data, blocking, weights = _prepare(data, target, blocking, weights)
    y = data[target]
    if pd.api.types.is_bool_dtype(y) or not pd.api.types.is_numeric_dtype(y):
        raise TaskTypeMismatchError(
            f"Regression target '{target}' must be numeric, got dtype {y.dtype}"
        )
    return RegrTask(data, target, task_id, blocking, weights)


def make_cluster_task(data: pd.DataFrame,
                      id: Optional[str] = None,
                      blocking: Any = None,
                      weights: Any = None) -> ClusterTask:
    """Create an unsupervised clustering task over all columns."""
    task_id = id or _default_id(data, 'cluster')
    data, blocking, weights = _prepare(data, None, blocking, weights)
    return ClusterTask(data, None, task_id, blocking, weights)


# ============================================================================
# ACCESSORS
# ============================================================================

def check_subset(subset: Any, size: int) -> np.ndarray:
    """
    Normalise a row subset to an array of integer positions.

    Accepts None (all rows), a boolean mask of length size, or integer
    positions. Duplicated positions are allowed.

    Raises:
        ShapeMismatchError: If a boolean mask has the wrong length
        SubsetBoundsError: If a position is outside [0, size)
    """
    if subset is None:
        return np.arange(size)
    idx = np.asarray(subset)
    if idx.ndim == 0:
        idx = idx.reshape(1)
    if idx.dtype == bool:
        if len(idx) != size:
            raise ShapeMismatchError(f"Boolean subset has length {len(idx)}, expected {size}")
        return np.flatnonzero(idx)
    if idx.size == 0:
        return idx.astype(int)
    if idx.dtype.kind not in 'iu':
        raise TypeError(f"subset must contain integer positions, got dtype {idx.dtype}")
    bad = idx[(idx < 0) | (idx >= size)]
    if len(bad):
        raise SubsetBoundsError(
            f"Subset indices out of range [0, {size}): {bad[:5].tolist()}"
        )
    return idx.astype(int)


def _check_features(task: Task, features: Optional[Sequence[str]]) -> List[str]:
    if features is None:
        return task.feature_names
    features = list(features)
    missing = [f for f in features if f not in task.feature_names]
    if missing:
        raise SchemaMismatchError(f"Unknown features for task '{task.id}': {missing}", missing)
    return features


def get_task_data(task: Task,
                  subset: Any = None,
                  features: Optional[Sequence[str]] = None,
                  target_extra: bool = False) -> Union[pd.DataFrame, Tuple[pd.DataFrame, Optional[pd.Series]]]:
    """
    Extract rows (in subset order) and columns of a task.

    Args:
        task: Task to read from
        subset: Row positions or boolean mask
        features: Feature columns to keep (all by default)
        target_extra: Return (X, y) instead of a single frame

    Returns:
        DataFrame with selected features and target, or tuple (X, y)
    """
    rows = check_subset(subset, task.size)
    cols = _check_features(task, features)
    frame = task._data.iloc[rows]
    if target_extra:
        y = frame[task.target].copy() if task.target is not None else None
        return frame[cols].copy(), y
    if task.target is not None:
        cols = cols + [task.target]
    return frame[cols].copy()


def get_task_features(task: Task) -> List[str]:
    return task.feature_names


def get_task_targets(task: Task, subset: Any = None) -> Optional[pd.Series]:
    if task.target is None:
        return None
    rows = check_subset(subset, task.size)
    return task._data[task.target].iloc[rows].copy()


def get_task_weights(task: Task, subset: Any = None) -> Optional[np.ndarray]:
    if task._weights is None:
        return None
    return task._weights[check_subset(subset, task.size)].copy()


def get_task_blocking(task: Task, subset: Any = None) -> Optional[np.ndarray]:
    if task._blocking is None:
        return None
    return task._blocking[check_subset(subset, task.size)].copy()


def get_task_size(task: Task) -> int:
    return task.size


def get_task_n_features(task: Task) -> int:
    return len(task.feature_names)


def get_task_class_levels(task: Task) -> Optional[Tuple[Any, ...]]:
    return task.class_levels


def get_task_desc(task: Task) -> TaskDesc:
    return task.desc


def subset_task(task: Task, subset: Any = None, features: Optional[Sequence[str]] = None) -> Task:
    """Return a new task restricted to rows and/or features."""
    rows = check_subset(subset, task.size)
    cols = _check_features(task, features)
    if task.target is not None:
        cols = cols + [task.target]
    data = task._data.iloc[rows][cols]
    blocking = None if task._blocking is None else task._blocking[rows]
    weights = None if task._weights is None else task._weights[rows]
    return task._derive(data, blocking, weights)


def drop_features(task: Task, features: Sequence[str]) -> Task:
    """Return a new task without the given features."""
    drop = set(_check_features(task, features))
    return subset_task(task, features=[f for f in task.feature_names if f not in drop])
