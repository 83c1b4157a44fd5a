"""
Task Preprocessing
==================

Feature scaling and feature removal on tasks. Every function returns a
new task and leaves its input untouched.

"""

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.preprocessing import MinMaxScaler, RobustScaler, StandardScaler
from loguru import logger

from .task import Task, _check_features, drop_features, feature_kind


class FeatureScaler:
    """Column-wise feature scaler over the numeric features of a task."""

    SCALERS = {
        'standardize': StandardScaler,
        'range': MinMaxScaler,
        'robust': RobustScaler,
    }

    def __init__(self, method: str = 'standardize'):
        """
        Initialize scaler.

        Args:
            method: Scaling method ('standardize', 'range', 'robust')
        """
        if method not in self.SCALERS:
            raise ValueError(f"Unknown scaling method '{method}'. Available: {list(self.SCALERS)}")

        self.method = method
        self.scaler = self.SCALERS[method]()

    def fit_transform(self, X: pd.DataFrame) -> pd.DataFrame:
        """Fit on X and return a scaled copy with the same columns."""
        scaled = self.scaler.fit_transform(X.to_numpy(dtype=float))
        logger.info(f"Fitted {self.method} scaler on {X.shape[1]} features")
        return pd.DataFrame(scaled, columns=X.columns, index=X.index)

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        return pd.DataFrame(self.scaler.transform(X.to_numpy(dtype=float)), columns=X.columns, index=X.index)


def normalize_features(task: Task,
                       method: str = 'standardize',
                       features: Optional[Sequence[str]] = None) -> Task:
    """
    Scale numeric features of a task.

    Args:
        task: Input task
        method: 'standardize' (zero mean, unit variance), 'range' ([0, 1])
            or 'robust' (median / IQR)
        features: Features to scale; defaults to all numeric features.
            Non-numeric features in this list are skipped.

    Returns:
        New task with scaled features
    """
    candidates = _check_features(task, features)
    data = task.data
    numeric = [f for f in candidates if feature_kind(data[f]) == 'numerics']
    if not numeric:
        logger.warning(f"No numeric features to normalize in task '{task.id}'")
        return task._derive(data, task.blocking, task.weights)

    data[numeric] = FeatureScaler(method).fit_transform(data[numeric])
    return task._derive(data, task.blocking, task.weights)


def remove_constant_features(task: Task, perc: float = 0.0, dont_rm: Optional[Sequence[str]] = None) -> Task:
    """
    Drop features that are (almost) constant.

    A feature is removed when its most frequent value (missing values
    count as a value) covers at least a (1 - perc) share of the rows.

    Args:
        task: Input task
        perc: Tolerated share of deviating values, in [0, 1)
        dont_rm: Features that are never removed
    """
    if not 0 <= perc < 1:
        raise ValueError(f"perc must be in [0, 1), got {perc}")
    keep = set(dont_rm or [])
    data = task.data
    constant: List[str] = []
    for name in task.feature_names:
        if name in keep:
            continue
        top_share = data[name].value_counts(dropna=False, normalize=True).iloc[0] if len(data) else 1.0
        if top_share >= 1 - perc - np.finfo(float).eps:
            constant.append(name)

    if constant:
        logger.info(f"Removing {len(constant)} constant features: {constant}")
        return drop_features(task, constant)
    return task._derive(data, task.blocking, task.weights)
