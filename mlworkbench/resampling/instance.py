"""Resampling instances: concrete train/test splits for one dataset size.

Split generation is delegated to scikit-learn where it offers the
strategy (KFold, StratifiedKFold, StratifiedGroupKFold, ShuffleSplit,
StratifiedShuffleSplit, GroupShuffleSplit, LeaveOneOut, LeaveOneGroupOut).
Bootstrap samples are drawn with numpy. All randomness flows from one
numpy Generator seeded by the caller.
"""

from typing import Optional, Sequence, Union

import numpy as np
from loguru import logger
from sklearn.model_selection import (
    KFold,
    LeaveOneGroupOut,
    LeaveOneOut,
    ShuffleSplit,
    StratifiedKFold,
    StratifiedGroupKFold,
    StratifiedShuffleSplit,
    GroupShuffleSplit,
)

from ..data.task import Task, check_subset, get_task_blocking, get_task_targets
from ..exceptions import TaskTypeMismatchError
from .desc import ResampleDesc, make_resample_desc

MAX_SEED = 2 ** 31 - 1


class ResampleInstance:
    """
    Concrete splits of rows 0..size-1.

    Attributes:
        desc: Description the splits were generated from
        size: Number of rows
        train_inds: Training row positions per iteration
        test_inds: Test row positions per iteration
        group: Repetition label per iteration (RepCV), else None
        seed: Seed the splits were generated with
    """

    def __init__(self,
                 desc: ResampleDesc,
                 size: int,
                 train_inds: Sequence[np.ndarray],
                 test_inds: Sequence[np.ndarray],
                 group: Optional[np.ndarray] = None,
                 seed: Optional[int] = None):
        if len(train_inds) != len(test_inds):
            raise ValueError("train_inds and test_inds must have one entry per iteration")
        self.desc = desc
        self.size = int(size)
        self.train_inds = [np.asarray(i, dtype=int) for i in train_inds]
        self.test_inds = [np.asarray(i, dtype=int) for i in test_inds]
        self.group = None if group is None else np.asarray(group)
        self.seed = seed

    @property
    def iters(self) -> int:
        return len(self.train_inds)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResampleInstance):
            return NotImplemented
        if self.size != other.size or self.iters != other.iters:
            return False
        return all(
            np.array_equal(a, b) for a, b in zip(self.train_inds + self.test_inds,
                                                 other.train_inds + other.test_inds)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Resample instance for {self.size} cases.\n"
            f"Resample description: {self.desc.id}\n"
            f"Iterations: {self.iters}\n"
            f"Stratification: {self.desc.stratify}\n"
            f"Blocking: {self.desc.blocking}"
        )


# ============================================================================
# SPLIT GENERATORS
# ============================================================================

def _random_state(rng: np.random.Generator) -> int:
    return int(rng.integers(MAX_SEED))


def _split_sizes(n: int, split: float):
    n_train = int(round(split * n))
    n_test = n - n_train
    if n_train < 1 or n_test < 1:
        raise ValueError(f"split={split:.3f} on {n} rows leaves an empty train or test set")
    return n_train, n_test


def _cv(n: int, k: int, y, blocks, rng: np.random.Generator):
    rows = np.arange(n)
    state = _random_state(rng)
    if blocks is not None and y is not None:
        splitter = StratifiedGroupKFold(n_splits=k, shuffle=True, random_state=state)
        return list(splitter.split(rows, y, groups=blocks))
    if blocks is not None:
        # Folds over whole blocks, then expanded back to rows
        levels, codes = np.unique(blocks, return_inverse=True)
        if len(levels) < k:
            raise ValueError(f"Cannot build {k} folds from {len(levels)} blocks")
        splitter = KFold(n_splits=k, shuffle=True, random_state=state)
        return [(np.flatnonzero(np.isin(codes, tr)), np.flatnonzero(np.isin(codes, te)))
                for tr, te in splitter.split(levels)]
    if k > n:
        raise ValueError(f"Cannot build {k} folds from {n} rows")
    if y is not None:
        splitter = StratifiedKFold(n_splits=k, shuffle=True, random_state=state)
        return list(splitter.split(rows, y))
    return list(KFold(n_splits=k, shuffle=True, random_state=state).split(rows))


def _loo(n: int, blocks):
    rows = np.arange(n)
    if blocks is not None:
        return list(LeaveOneGroupOut().split(rows, groups=blocks))
    return list(LeaveOneOut().split(rows))


def _subsample(n: int, iters: int, split: float, y, blocks, rng: np.random.Generator):
    rows = np.arange(n)
    state = _random_state(rng)
    if blocks is not None:
        splitter = GroupShuffleSplit(n_splits=iters, train_size=split, random_state=state)
        return list(splitter.split(rows, groups=blocks))
    n_train, n_test = _split_sizes(n, split)
    if y is not None:
        splitter = StratifiedShuffleSplit(n_splits=iters, train_size=n_train, test_size=n_test, random_state=state)
        return list(splitter.split(rows, y))
    splitter = ShuffleSplit(n_splits=iters, train_size=n_train, test_size=n_test, random_state=state)
    return list(splitter.split(rows))


def _bootstrap(n: int, iters: int, y, blocks, rng: np.random.Generator):
    rows = np.arange(n)
    splits = []
    for _ in range(iters):
        if blocks is not None:
            levels = np.unique(blocks)
            drawn = rng.choice(levels, size=len(levels), replace=True)
            train = np.concatenate([np.flatnonzero(blocks == b) for b in drawn])
        elif y is not None:
            train = np.concatenate([
                rng.choice(members, size=len(members), replace=True)
                for members in (np.flatnonzero(y == cls) for cls in np.unique(y))
            ])
        else:
            train = rng.choice(rows, size=n, replace=True)
        test = np.setdiff1d(rows, train)
        splits.append((np.sort(train), test))
    return splits


# ============================================================================
# CONSTRUCTION
# ============================================================================

def make_resample_instance(desc: Union[ResampleDesc, str],
                           task: Optional[Task] = None,
                           size: Optional[int] = None,
                           seed: Optional[int] = None) -> ResampleInstance:
    """
    Generate concrete splits from a description.

    Args:
        desc: Resampling description (or method name with default parameters)
        task: Task to split; needed for stratification and blocking
        size: Number of rows, when no task is given
        seed: Seed for all random choices; None draws fresh entropy

    Returns:
        ResampleInstance

    Raises:
        ValueError: If neither task nor size is given, sizes disagree, or the
            task lacks what stratification/blocking needs
        TaskTypeMismatchError: If stratification is requested for a
            non-classification task
    """
    if isinstance(desc, str):
        desc = make_resample_desc(desc)
    if task is None and size is None:
        raise ValueError("Either 'task' or 'size' is required")
    if task is not None:
        if size is not None and size != task.size:
            raise ValueError(f"size={size} does not match task size {task.size}")
        size = task.size
    size = int(size)
    if size < 2:
        raise ValueError(f"Need at least 2 rows to resample, got {size}")

    y = None
    if desc.stratify:
        if task is None:
            raise ValueError("Stratified resampling needs a task")
        if task.type != 'classif':
            raise TaskTypeMismatchError(f"Stratification needs a classification task, got {task.type}")
        y = get_task_targets(task).to_numpy()

    blocks = None
    if desc.blocking:
        if task is None or get_task_blocking(task) is None:
            raise ValueError("Blocked resampling needs a task with blocking labels")
        blocks = get_task_blocking(task)

    rng = np.random.default_rng(seed)
    group = None
    if desc.method == 'CV':
        splits = _cv(size, desc.iters, y, blocks, rng)
    elif desc.method == 'LOO':
        splits = _loo(size, blocks)
    elif desc.method == 'RepCV':
        splits, group = [], []
        for rep in range(desc.reps):
            rep_splits = _cv(size, desc.folds, y, blocks, rng)
            splits += rep_splits
            group += [rep + 1] * len(rep_splits)
    elif desc.method in ('Subsample', 'Holdout'):
        splits = _subsample(size, desc.iters, desc.split, y, blocks, rng)
    else:
        splits = _bootstrap(size, desc.iters, y, blocks, rng)

    logger.debug(f"{desc.id}: {len(splits)} iterations on {size} rows, "
                 f"mean train size {np.mean([len(tr) for tr, _ in splits]):.1f}")

    return ResampleInstance(
        desc=desc,
        size=size,
        train_inds=[tr for tr, _ in splits],
        test_inds=[te for _, te in splits],
        group=group,
        seed=seed,
    )


def make_fixed_holdout_instance(train_inds, test_inds, size: int) -> ResampleInstance:
    """
    Holdout instance with user-chosen train and test rows.

    Raises:
        SubsetBoundsError: If an index is outside [0, size)
        ValueError: If either set is empty or the sets share rows
    """
    train = check_subset(train_inds, size)
    test = check_subset(test_inds, size)
    if len(train) == 0 or len(test) == 0:
        raise ValueError("Fixed holdout needs non-empty train and test sets")
    shared = np.intersect1d(train, test)
    if len(shared) > 0:
        raise ValueError(f"Fixed holdout train and test sets share rows {shared.tolist()}")
    split = min(max(len(train) / size, 1e-6), 1 - 1e-6)
    desc = make_resample_desc('Holdout', split=split)
    return ResampleInstance(desc=desc, size=size, train_inds=[train], test_inds=[test])
