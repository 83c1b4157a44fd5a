"""Performance measures and aggregations.

A Measure scores one Prediction. An Aggregation folds the per-iteration
scores of a resampling run into a single number. Both are plain immutable
values kept in module-level registries.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional

import numpy as np
from loguru import logger
from sklearn.metrics import (
    balanced_accuracy_score, cohen_kappa_score, davies_bouldin_score,
    explained_variance_score, f1_score, log_loss, mean_absolute_error,
    mean_squared_error, median_absolute_error, precision_score, r2_score,
    recall_score, roc_auc_score, silhouette_score,
)

from ..data.task import get_task_data
from ..models.train import collect_factor_levels, encode_features

MEASURE_PROPERTIES = ('req.prob', 'req.truth', 'req.task', 'req.model', 'twoclass')


# ============================================================================
# AGGREGATIONS
# ============================================================================

def _finite(values) -> np.ndarray:
    values = np.asarray(values, dtype=float)
    return values[~np.isnan(values)]


def _nan_safe(fun: Callable[[np.ndarray], float]) -> Callable[[np.ndarray], float]:
    """Apply fun to the non-NaN values; NaN if none are left."""
    def wrapped(values) -> float:
        values = _finite(values)
        return float(fun(values)) if len(values) else float('nan')
    return wrapped


def _sd(values: np.ndarray) -> float:
    return float(np.std(values, ddof=1)) if len(values) > 1 else float('nan')


@dataclass(frozen=True)
class Aggregation:
    """
    Aggregation of per-iteration scores.

    Attributes:
        id: e.g. 'test.mean'
        fun: Function of the score vector
        uses_train: Aggregate training-set scores instead of test-set scores
    """
    id: str
    fun: Callable[[np.ndarray], float]
    uses_train: bool = False

    def __call__(self, test_values, train_values=None) -> float:
        if self.uses_train:
            if train_values is None:
                raise ValueError(f"Aggregation '{self.id}' needs training-set scores; "
                                 f"resample with predict='train' or 'both'")
            return self.fun(train_values)
        return self.fun(test_values)


AGGREGATIONS: Dict[str, Aggregation] = {
    'test.mean': Aggregation('test.mean', _nan_safe(np.mean)),
    'test.sd': Aggregation('test.sd', _nan_safe(_sd)),
    'test.median': Aggregation('test.median', _nan_safe(np.median)),
    'test.min': Aggregation('test.min', _nan_safe(np.min)),
    'test.max': Aggregation('test.max', _nan_safe(np.max)),
    'test.sum': Aggregation('test.sum', _nan_safe(np.sum)),
    'train.mean': Aggregation('train.mean', _nan_safe(np.mean), uses_train=True),
}


def get_aggregation(agg_id: str) -> Aggregation:
    if agg_id not in AGGREGATIONS:
        raise ValueError(f"Aggregation '{agg_id}' not found. Available aggregations: {list(AGGREGATIONS)}")
    return AGGREGATIONS[agg_id]


# ============================================================================
# MEASURE TYPE
# ============================================================================

@dataclass(frozen=True)
class Measure:
    """
    Performance measure.

    Attributes:
        id: Short identifier used as column name, e.g. 'mmce'
        name: Human readable name
        task_types: Task types the measure applies to
        fun: Score function fun(pred, task, model) -> float
        minimize: Whether lower values are better
        best: Best attainable value
        worst: Worst attainable value
        properties: Requirements from MEASURE_PROPERTIES
        aggregation: How resampling scores are folded
    """
    id: str
    name: str
    task_types: FrozenSet[str]
    fun: Callable[..., float] = field(repr=False)
    minimize: bool = True
    best: float = 0.0
    worst: float = float('inf')
    properties: FrozenSet[str] = frozenset()
    aggregation: Aggregation = AGGREGATIONS['test.mean']

    def has_property(self, prop: str) -> bool:
        return prop in self.properties

    def __call__(self, pred, task=None, model=None) -> float:
        return float(self.fun(pred, task, model))


MEASURES: Dict[str, Measure] = {}


def register_measure(measure_id: str,
                     name: str,
                     task_types,
                     fun: Callable[..., float],
                     minimize: bool = True,
                     best: float = 0.0,
                     worst: float = float('inf'),
                     properties=('req.truth',)) -> Measure:
    """Create a measure and add it to the registry."""
    unknown = set(properties) - set(MEASURE_PROPERTIES)
    if unknown:
        raise ValueError(f"Unknown measure properties for '{measure_id}': {sorted(unknown)}")
    measure = Measure(
        id=measure_id,
        name=name,
        task_types=frozenset(task_types),
        fun=fun,
        minimize=minimize,
        best=best,
        worst=worst,
        properties=frozenset(properties),
    )
    MEASURES[measure_id] = measure
    return measure


# ============================================================================
# HELPERS
# ============================================================================

def _truth(pred) -> np.ndarray:
    return pred._data['truth'].to_numpy()


def _response(pred) -> np.ndarray:
    return pred._data['response'].to_numpy()


def _prob_matrix(pred) -> np.ndarray:
    levels = pred.task_desc.class_levels
    return np.column_stack([pred._data[f"prob.{lvl}"].to_numpy(dtype=float) for lvl in levels])


def _positive_prob(pred) -> np.ndarray:
    return pred._data[f"prob.{pred.task_desc.positive}"].to_numpy(dtype=float)


def _is_positive(pred) -> np.ndarray:
    return (_truth(pred) == pred.task_desc.positive).astype(int)


def _auc(pred, task=None, model=None) -> float:
    """Binary AUC, or one-vs-rest macro AUC over the classes present."""
    truth = _truth(pred)
    levels = list(pred.task_desc.class_levels)
    if len(levels) == 2:
        y = _is_positive(pred)
        if y.min() == y.max():
            logger.warning("auc is undefined when only one class is present; returning NaN")
            return float('nan')
        return roc_auc_score(y, _positive_prob(pred))
    probs = _prob_matrix(pred)
    scores = []
    for j, lvl in enumerate(levels):
        y = (truth == lvl).astype(int)
        if 0 < y.sum() < len(y):
            scores.append(roc_auc_score(y, probs[:, j]))
    if not scores:
        logger.warning("auc is undefined when only one class is present; returning NaN")
        return float('nan')
    return float(np.mean(scores))


def _multiclass_brier(pred, task=None, model=None) -> float:
    truth = _truth(pred)
    levels = np.array(pred.task_desc.class_levels, dtype=object)
    onehot = (truth[:, None] == levels[None, :]).astype(float)
    return float(np.mean(np.sum((_prob_matrix(pred) - onehot) ** 2, axis=1)))


def _logloss(pred, task=None, model=None) -> float:
    probs = np.clip(_prob_matrix(pred), 1e-15, 1.0)
    probs = probs / probs.sum(axis=1, keepdims=True)
    return log_loss(_truth(pred), probs, labels=list(pred.task_desc.class_levels))


def _cluster_score(score_fun: Callable[[np.ndarray, np.ndarray], float], name: str):
    def measure(pred, task, model=None) -> float:
        ids = pred._data['id'].to_numpy()
        X = get_task_data(task, ids, features=list(pred.task_desc.feature_names), target_extra=True)[0]
        X_mat = encode_features(X, collect_factor_levels(X))
        labels = _response(pred)
        n_clusters = len(np.unique(labels))
        if n_clusters < 2 or n_clusters >= len(labels):
            logger.warning(f"{name} needs between 2 and n-1 clusters, got {n_clusters}; returning NaN")
            return float('nan')
        return score_fun(X_mat, labels)
    return measure


def _ber(pred, task=None, model=None) -> float:
    truth, response = _truth(pred), _response(pred)
    present = [lvl for lvl in pred.task_desc.class_levels if np.any(truth == lvl)]
    errors = [np.mean(response[truth == lvl] != lvl) for lvl in present]
    return float(np.mean(errors))


# ============================================================================
# CATALOG
# ============================================================================

CLASSIF, REGR, CLUSTER = ('classif',), ('regr',), ('cluster',)
ALL_TYPES = ('classif', 'regr', 'cluster')

# Classification
register_measure('mmce', 'Mean misclassification error', CLASSIF,
                 lambda p, t, m: np.mean(_truth(p) != _response(p)), best=0.0, worst=1.0)
register_measure('acc', 'Accuracy', CLASSIF,
                 lambda p, t, m: np.mean(_truth(p) == _response(p)), minimize=False, best=1.0, worst=0.0)
register_measure('ber', 'Balanced error rate', CLASSIF, _ber, best=0.0, worst=1.0)
register_measure('kappa', "Cohen's kappa", CLASSIF,
                 lambda p, t, m: cohen_kappa_score(_truth(p), _response(p)),
                 minimize=False, best=1.0, worst=-1.0)
register_measure('bac', 'Balanced accuracy', CLASSIF,
                 lambda p, t, m: balanced_accuracy_score(_truth(p), _response(p)),
                 minimize=False, best=1.0, worst=0.0)
register_measure('f1', 'F1 measure', CLASSIF,
                 lambda p, t, m: f1_score(_truth(p), _response(p), pos_label=p.task_desc.positive,
                                          average='binary', zero_division=0),
                 minimize=False, best=1.0, worst=0.0, properties=('req.truth', 'twoclass'))
register_measure('tpr', 'True positive rate', CLASSIF,
                 lambda p, t, m: recall_score(_truth(p), _response(p), pos_label=p.task_desc.positive,
                                              average='binary', zero_division=0),
                 minimize=False, best=1.0, worst=0.0, properties=('req.truth', 'twoclass'))
register_measure('ppv', 'Positive predictive value', CLASSIF,
                 lambda p, t, m: precision_score(_truth(p), _response(p), pos_label=p.task_desc.positive,
                                                 average='binary', zero_division=0),
                 minimize=False, best=1.0, worst=0.0, properties=('req.truth', 'twoclass'))
register_measure('auc', 'Area under the ROC curve', CLASSIF, _auc,
                 minimize=False, best=1.0, worst=0.0, properties=('req.truth', 'req.prob'))
register_measure('brier', 'Brier score', CLASSIF,
                 lambda p, t, m: np.mean((_positive_prob(p) - _is_positive(p)) ** 2),
                 best=0.0, worst=1.0, properties=('req.truth', 'req.prob', 'twoclass'))
register_measure('multiclass.brier', 'Multiclass Brier score', CLASSIF, _multiclass_brier,
                 best=0.0, worst=2.0, properties=('req.truth', 'req.prob'))
register_measure('logloss', 'Logarithmic loss', CLASSIF, _logloss,
                 properties=('req.truth', 'req.prob'))

# Regression
register_measure('mse', 'Mean of squared errors', REGR,
                 lambda p, t, m: mean_squared_error(_truth(p), _response(p)))
register_measure('rmse', 'Root mean squared error', REGR,
                 lambda p, t, m: np.sqrt(mean_squared_error(_truth(p), _response(p))))
register_measure('mae', 'Mean of absolute errors', REGR,
                 lambda p, t, m: mean_absolute_error(_truth(p), _response(p)))
register_measure('medae', 'Median of absolute errors', REGR,
                 lambda p, t, m: median_absolute_error(_truth(p), _response(p)))
register_measure('rsq', 'Coefficient of determination', REGR,
                 lambda p, t, m: r2_score(_truth(p), _response(p)) if len(p) > 1 else float('nan'),
                 minimize=False, best=1.0, worst=float('-inf'))
register_measure('expvar', 'Explained variance', REGR,
                 lambda p, t, m: explained_variance_score(_truth(p), _response(p)) if len(p) > 1 else float('nan'),
                 minimize=False, best=1.0, worst=0.0)

# Clustering
register_measure('db', 'Davies-Bouldin cluster separation', CLUSTER,
                 _cluster_score(davies_bouldin_score, 'db'), properties=('req.task',))
register_measure('silhouette', 'Mean silhouette width', CLUSTER,
                 _cluster_score(silhouette_score, 'silhouette'),
                 minimize=False, best=1.0, worst=-1.0, properties=('req.task',))

# Any task
register_measure('timetrain', 'Time of fitting the model', ALL_TYPES,
                 lambda p, t, m: m.time, properties=('req.model',))
register_measure('timepredict', 'Time of predicting test set', ALL_TYPES,
                 lambda p, t, m: p.time if p.time is not None else float('nan'), properties=())
register_measure('timeboth', 'timetrain + timepredict', ALL_TYPES,
                 lambda p, t, m: m.time + (p.time or 0.0), properties=('req.model',))

DEFAULT_MEASURES = {'classif': 'mmce', 'regr': 'mse', 'cluster': 'db'}


def describe_measure(measure: Measure) -> Dict[str, Any]:
    return {
        'id': measure.id,
        'name': measure.name,
        'task_types': ','.join(sorted(measure.task_types)),
        'minimize': measure.minimize,
        'best': measure.best,
        'worst': measure.worst,
        'properties': ','.join(sorted(measure.properties)),
        'aggregation': measure.aggregation.id,
    }


def measure_label(measure: Measure, aggregation: Optional[Aggregation] = None) -> str:
    """Column name of an aggregated score, '<measure>.<aggregation>'."""
    return f"{measure.id}.{(aggregation or measure.aggregation).id}"
