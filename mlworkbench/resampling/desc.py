"""Resampling descriptions.

A ResampleDesc says how to split (method and its parameters) without
referring to any data. It is turned into concrete splits by
make_resample_instance.
"""

from dataclasses import dataclass
from typing import Optional

# Parameters each method accepts, with defaults
METHOD_PARAMS = {
    'CV': {'iters': 10},
    'LOO': {},
    'RepCV': {'folds': 10, 'reps': 10},
    'Subsample': {'iters': 30, 'split': 2 / 3},
    'Bootstrap': {'iters': 30},
    'Holdout': {'split': 2 / 3},
}

STRATIFY_WITH_BLOCKING = ('CV', 'RepCV')
PREDICT_SETS = ('test', 'train', 'both')

_METHOD_ALIASES = {name.lower(): name for name in METHOD_PARAMS}


@dataclass(frozen=True)
class ResampleDesc:
    """
    Resampling strategy without data.

    Attributes:
        method: One of 'CV', 'LOO', 'RepCV', 'Subsample', 'Bootstrap', 'Holdout'
        iters: Number of iterations (None for LOO, where it equals the task size)
        split: Training fraction for Subsample and Holdout
        folds: Folds per repetition for RepCV
        reps: Repetitions for RepCV
        stratify: Keep class proportions in every split
        blocking: Keep every block of the task on one side of every split
        predict: Which sets to predict on: 'test', 'train' or 'both'
    """
    method: str
    iters: Optional[int] = None
    split: Optional[float] = None
    folds: Optional[int] = None
    reps: Optional[int] = None
    stratify: bool = False
    blocking: bool = False
    predict: str = 'test'

    @property
    def id(self) -> str:
        if self.method == 'CV':
            return f"cross-validation ({self.iters} folds)"
        if self.method == 'RepCV':
            return f"repeated cross-validation ({self.reps} x {self.folds} folds)"
        if self.method == 'LOO':
            return "leave-one-out"
        if self.method == 'Holdout':
            return f"holdout (split {self.split:.3f})"
        if self.method == 'Subsample':
            return f"subsampling ({self.iters} iters, split {self.split:.3f})"
        return f"OOB bootstrapping ({self.iters} iters)"

    def __repr__(self) -> str:
        return (
            f"Resample description: {self.id}\n"
            f"Predict: {self.predict}\n"
            f"Stratification: {self.stratify}\n"
            f"Blocking: {self.blocking}"
        )


def _check_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool) or int(value) != value or value < minimum:
        raise ValueError(f"'{name}' must be an integer >= {minimum}, got {value!r}")
    return int(value)


def make_resample_desc(method: str,
                       iters: Optional[int] = None,
                       split: Optional[float] = None,
                       folds: Optional[int] = None,
                       reps: Optional[int] = None,
                       stratify: bool = False,
                       blocking: bool = False,
                       predict: str = 'test') -> ResampleDesc:
    """
    Create a resampling description.

    Args:
        method: 'CV', 'LOO', 'RepCV', 'Subsample', 'Bootstrap' or 'Holdout'
            (case-insensitive)
        iters: Iterations (CV folds, Subsample/Bootstrap repetitions)
        split: Training fraction in (0, 1) for Subsample and Holdout
        folds: Folds per repetition for RepCV
        reps: Repetitions for RepCV
        stratify: Preserve class proportions (classification tasks only)
        blocking: Use the task's blocking labels
        predict: 'test', 'train' or 'both'

    Returns:
        ResampleDesc

    Raises:
        ValueError: On unknown method, parameters the method does not take,
            invalid values, or stratify + blocking outside CV/RepCV
    """
    canonical = _METHOD_ALIASES.get(str(method).lower())
    if canonical is None:
        raise ValueError(f"Unknown resampling method '{method}'. Available: {list(METHOD_PARAMS)}")

    given = {'iters': iters, 'split': split, 'folds': folds, 'reps': reps}
    allowed = METHOD_PARAMS[canonical]
    unexpected = [k for k, v in given.items() if v is not None and k not in allowed]
    if unexpected:
        raise ValueError(f"Resampling method '{canonical}' does not take parameters {unexpected}; "
                         f"allowed: {list(allowed)}")
    params = {k: (given[k] if given[k] is not None else default) for k, default in allowed.items()}

    if 'iters' in params:
        params['iters'] = _check_int('iters', params['iters'], 2 if canonical == 'CV' else 1)
    if 'folds' in params:
        params['folds'] = _check_int('folds', params['folds'], 2)
    if 'reps' in params:
        params['reps'] = _check_int('reps', params['reps'], 1)
    if 'split' in params:
        params['split'] = float(params['split'])
        if not 0 < params['split'] < 1:
            raise ValueError(f"'split' must be in (0, 1), got {params['split']}")

    if predict not in PREDICT_SETS:
        raise ValueError(f"predict must be one of {PREDICT_SETS}, got '{predict}'")
    if stratify and blocking and canonical not in STRATIFY_WITH_BLOCKING:
        raise ValueError(f"Stratification together with blocking is only supported for "
                         f"{list(STRATIFY_WITH_BLOCKING)}, not '{canonical}'")
    if stratify and canonical == 'LOO':
        raise ValueError("Leave-one-out cannot be stratified")

    if canonical == 'Holdout':
        params['iters'] = 1
    elif canonical == 'RepCV':
        params['iters'] = params['folds'] * params['reps']

    return ResampleDesc(method=canonical, stratify=bool(stratify), blocking=bool(blocking),
                        predict=predict, **params)
