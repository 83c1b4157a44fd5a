"""Prediction: apply a fitted model to task rows or new data.

A Prediction holds exactly one row per predicted observation with the
columns 'id', 'truth' (when the true value is known), 'response' and, for
probability predictions, one 'prob.<class>' column per class level.
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.metrics import confusion_matrix

from ..data.task import Task, TaskDesc, check_subset, get_task_data
from ..exceptions import SchemaMismatchError, TaskTypeMismatchError
from .train import WrappedModel, check_missings, encode_features

PROB_PREFIX = 'prob.'


class Prediction:
    """
    Predictions of one model on a set of rows.

    Attributes:
        data: DataFrame with id, truth, response and prob.* columns
        predict_type: 'response' or 'prob'
        task_desc: Description of the task the model was trained on
        threshold: Class thresholds used to derive the response from probabilities
        time: Prediction duration in seconds
        source: 'task' when ids are task row positions, 'newdata' when they are
            index labels of a user-supplied DataFrame
    """

    def __init__(self,
                 data: pd.DataFrame,
                 predict_type: str,
                 task_desc: TaskDesc,
                 threshold: Optional[Dict[Any, float]] = None,
                 time: Optional[float] = None,
                 source: str = 'task'):
        self._data = data.reset_index(drop=True)
        self.predict_type = predict_type
        self.task_desc = task_desc
        self.threshold = threshold
        self.time = time
        self.source = source

    @property
    def data(self) -> pd.DataFrame:
        return self._data.copy()

    @property
    def has_truth(self) -> bool:
        return 'truth' in self._data.columns

    @property
    def prob_columns(self) -> List[str]:
        return [c for c in self._data.columns if c.startswith(PROB_PREFIX)]

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        threshold = '' if not self.threshold else \
            "\nthreshold: " + ', '.join(f"{k}={v:.2f}" for k, v in self.threshold.items())
        time_str = 'NA' if self.time is None else f"{self.time:.3f}"
        return (
            f"Prediction: {len(self)} observations\n"
            f"predict.type: {self.predict_type}{threshold}\n"
            f"time: {time_str}\n"
            f"{self._data.head(6).to_string(index=False)}\n"
            f"... ({len(self)} rows, {self._data.shape[1]} cols)"
        )

    def _replace_data(self, data: pd.DataFrame, threshold: Optional[Dict[Any, float]]) -> 'Prediction':
        new = object.__new__(type(self))
        new.__dict__.update(self.__dict__)
        new._data = data.reset_index(drop=True)
        new.threshold = threshold
        return new


def _default_threshold(levels) -> Dict[Any, float]:
    if len(levels) == 2:
        return {levels[0]: 0.5, levels[1]: 0.5}
    return {lvl: 1.0 / len(levels) for lvl in levels}


def response_from_probs(probs: pd.DataFrame, levels, threshold: Mapping[Any, float], positive: Any = None) -> np.ndarray:
    """
    Derive class labels from probabilities and thresholds.

    Binary: the positive class wins when its probability is at least its
    threshold. Multiclass: the class maximising prob / threshold wins, ties
    go to the earlier class level.
    """
    levels = list(levels)
    if len(levels) == 2 and positive is not None:
        negative = levels[1] if levels[0] == positive else levels[0]
        p_pos = probs[f"{PROB_PREFIX}{positive}"].to_numpy()
        return np.where(p_pos >= threshold[positive], positive, negative).astype(object)
    scaled = np.column_stack([probs[f"{PROB_PREFIX}{lvl}"].to_numpy() / threshold[lvl] for lvl in levels])
    return np.array(levels, dtype=object)[scaled.argmax(axis=1)]


def _prob_frame(model: WrappedModel, X_mat: np.ndarray) -> pd.DataFrame:
    """Probability matrix aligned to the task's class levels."""
    levels = list(model.task_desc.class_levels)
    raw = model.learner_model.predict_proba(X_mat)
    seen = list(model.learner_model.classes)
    frame = pd.DataFrame(0.0, index=range(X_mat.shape[0]), columns=[f"{PROB_PREFIX}{lvl}" for lvl in levels])
    for j, cls in enumerate(seen):
        frame[f"{PROB_PREFIX}{cls}"] = raw[:, j]
    return frame


def predict(model: WrappedModel,
            task: Optional[Task] = None,
            subset: Any = None,
            newdata: Optional[pd.DataFrame] = None) -> Prediction:
    """
    Predict with a fitted model.

    Args:
        model: Fitted model
        task: Task to predict rows of (mutually exclusive with newdata)
        subset: Row positions of the task or of newdata
        newdata: New observations with (at least) the training features

    Returns:
        Prediction with one row per predicted observation

    Raises:
        SchemaMismatchError: If newdata lacks training features
        SubsetBoundsError: If subset positions are out of range
    """
    if (task is None) == (newdata is None):
        raise ValueError("Pass exactly one of 'task' or 'newdata'")

    desc = model.task_desc
    features = list(model.features)

    if task is not None:
        if task.type != desc.type:
            raise TaskTypeMismatchError(f"Model was trained on a {desc.type} task, got a {task.type} task")
        rows = check_subset(subset, task.size)
        X, y = get_task_data(task, rows, features=features, target_extra=True)
        ids = rows
    else:
        if not isinstance(newdata, pd.DataFrame):
            raise TypeError(f"newdata must be a pandas DataFrame, got {type(newdata).__name__}")
        missing = [f for f in features if f not in newdata.columns]
        if missing:
            raise SchemaMismatchError(f"newdata is missing features {missing}", missing)
        rows = check_subset(subset, len(newdata))
        frame = newdata.iloc[rows]
        X = frame[features]
        y = frame[desc.target] if desc.target is not None and desc.target in frame.columns else None
        ids = frame.index.to_numpy()

    check_missings(model.learner, X)
    X_mat = encode_features(X, model.factor_levels)

    start_time = time.time()
    out = pd.DataFrame({'id': ids})
    if y is not None:
        out['truth'] = y.to_numpy()

    threshold = None
    if model.learner.predict_type == 'prob':
        probs = _prob_frame(model, X_mat)
        threshold = _default_threshold(desc.class_levels)
        out['response'] = response_from_probs(probs, desc.class_levels, threshold, desc.positive)
        out = pd.concat([out, probs], axis=1)
    else:
        out['response'] = model.learner_model.predict(X_mat)
    elapsed = time.time() - start_time

    logger.debug(f"Predicted {len(out)} rows with {model.learner.id}")
    return Prediction(out, model.learner.predict_type, desc, threshold=threshold, time=elapsed,
                      source='task' if task is not None else 'newdata')


# ============================================================================
# ACCESSORS
# ============================================================================

def as_data_frame(pred: Prediction) -> pd.DataFrame:
    return pred.data


def get_prediction_response(pred: Prediction) -> pd.Series:
    return pred._data['response'].copy()


def get_prediction_truth(pred: Prediction) -> Optional[pd.Series]:
    return pred._data['truth'].copy() if pred.has_truth else None


def get_prediction_probabilities(pred: Prediction, cl: Union[Any, List[Any], None] = None) -> Union[pd.Series, pd.DataFrame]:
    """
    Extract predicted probabilities.

    Args:
        pred: Probability prediction
        cl: Class level(s). Defaults to the positive class for binary tasks
            and to all classes otherwise.

    Returns:
        Series for a single class, DataFrame (columns = class levels) otherwise
    """
    if pred.predict_type != 'prob':
        raise ValueError("Prediction has no probabilities; train the learner with predict_type='prob'")
    levels = list(pred.task_desc.class_levels)
    if cl is None:
        cl = pred.task_desc.positive if len(levels) == 2 else levels
    if isinstance(cl, (list, tuple)):
        unknown = [c for c in cl if c not in levels]
        if unknown:
            raise SchemaMismatchError(f"Unknown class levels {unknown}", unknown)
        frame = pred._data[[f"{PROB_PREFIX}{c}" for c in cl]].copy()
        frame.columns = list(cl)
        return frame
    if cl not in levels:
        raise SchemaMismatchError(f"Unknown class level '{cl}'", [cl])
    return pred._data[f"{PROB_PREFIX}{cl}"].rename(cl)


def set_threshold(pred: Prediction, threshold: Union[float, Mapping[Any, float]]) -> Prediction:
    """
    Recompute the response of a probability prediction.

    Args:
        pred: Probability prediction
        threshold: For binary tasks a float, the threshold of the positive
            class. For multiclass tasks a mapping class level -> threshold.

    Returns:
        New Prediction with updated response and threshold
    """
    if pred.predict_type != 'prob':
        raise ValueError("Thresholds can only be set on probability predictions")
    desc = pred.task_desc
    levels = list(desc.class_levels)

    if isinstance(threshold, Mapping):
        if set(threshold) != set(levels):
            raise ValueError(f"Threshold must name every class level {levels}, got {list(threshold)}")
        th = {lvl: float(threshold[lvl]) for lvl in levels}
        if any(v <= 0 for v in th.values()):
            raise ValueError("Multiclass thresholds must be positive")
    else:
        if len(levels) != 2:
            raise ValueError("A scalar threshold is only allowed for binary tasks")
        t = float(threshold)
        if not 0 <= t <= 1:
            raise ValueError(f"Binary threshold must be in [0, 1], got {t}")
        negative = levels[1] if levels[0] == desc.positive else levels[0]
        th = {desc.positive: t, negative: 1 - t}

    data = pred.data
    data['response'] = response_from_probs(data, levels, th, desc.positive if len(levels) == 2 else None)
    return pred._replace_data(data, th)


def calculate_confusion_matrix(pred: Prediction, relative: bool = False, sums: bool = False) -> pd.DataFrame:
    """
    Confusion matrix of a classification prediction.

    Rows are true classes, columns predicted classes.

    Args:
        pred: Classification prediction with truth
        relative: Normalise every row to sum to one
        sums: Append a 'total' row and column

    Returns:
        DataFrame indexed by class level
    """
    if pred.task_desc.type != 'classif':
        raise TaskTypeMismatchError("Confusion matrices are only defined for classification")
    if not pred.has_truth:
        raise ValueError("Prediction has no truth column")

    levels = list(pred.task_desc.class_levels)
    cm = confusion_matrix(pred._data['truth'].to_numpy(), pred._data['response'].to_numpy(), labels=levels)
    frame = pd.DataFrame(cm, index=pd.Index(levels, name='true'), columns=pd.Index(levels, name='predicted'))

    if relative:
        row_sums = frame.sum(axis=1).replace(0, 1)
        frame = frame.div(row_sums, axis=0)
    if sums:
        frame['total'] = frame.sum(axis=1)
        frame.loc['total'] = frame.sum(axis=0)
    return frame
