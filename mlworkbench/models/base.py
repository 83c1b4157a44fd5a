"""Base model interface and learner catalog.

This module provides the foundation for all learning backends in the
package. A backend wraps one scikit-learn estimator behind a uniform
train/predict interface; the catalog maps learner names to backends and
records what each backend is able to do.

Key Components:
    - BaseModel: Abstract base class for all backends
    - SklearnModel: Generic wrapper around a scikit-learn estimator class
    - LearnerEntry: Catalog record (task type, properties, backend)
    - ModelFactory: Registry for backend lookup and creation
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import inspect
import numpy as np
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from loguru import logger

from ..exceptions import UnknownLearnerError

LEARNER_PROPERTIES = ('numerics', 'factors', 'missings', 'weights', 'prob', 'twoclass', 'multiclass')


def safe_int(value: Any, default: Optional[int]) -> Optional[int]:
    """
    Safely convert value to integer.

    Handles various input types including strings with scientific notation,
    floats, and None values. Returns default if conversion fails.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Converted integer value or default
    """
    if value is None:
        return default
    try:
        return int(float(str(value)))
    except (TypeError, ValueError):
        return default


def safe_float(value: Any, default: Optional[float]) -> Optional[float]:
    """
    Safely convert value to float.

    Handles various input types including strings with scientific notation,
    integers, and None values. Returns default if conversion fails.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Converted float value or default
    """
    if value is None:
        return default
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return default


class BaseModel(ABC):
    """
    Abstract base class for all learning backends.

    Provides a consistent interface for training and prediction. Backends
    receive fully numeric feature matrices; encoding of categorical
    features happens before a backend is called.

    Attributes:
        config: Hyperparameters for the backend
        model: The underlying estimator
        fitted: Whether the backend has been trained
        model_name: Name of the backend class
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize base model.

        Args:
            config: Hyperparameter dictionary specific to each backend
        """
        self.config = config or {}
        self.model = None
        self.fitted = False
        self.model_name = self.__class__.__name__

    @classmethod
    def param_names(cls) -> FrozenSet[str]:
        """Hyperparameter names accepted by this backend."""
        return frozenset()

    @abstractmethod
    def train(self, X: np.ndarray, y: Optional[np.ndarray], weights: Optional[np.ndarray] = None) -> None:
        """
        Train the backend on the provided data.

        Args:
            X: Training features of shape (n_samples, n_features)
            y: Training targets of shape (n_samples,), None for clustering
            weights: Optional observation weights of shape (n_samples,)
        """
        pass

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Generate predictions for the provided features.

        Args:
            X: Features of shape (n_samples, n_features)

        Returns:
            Predicted labels, values or cluster ids of shape (n_samples,)
        """
        pass

    def predict_proba(self, X: np.ndarray) -> Optional[np.ndarray]:
        """
        Predict class probabilities if supported by the backend.

        Columns follow the order of `classes`. Returns None if the
        underlying estimator has no predict_proba method.

        Args:
            X: Features of shape (n_samples, n_features)

        Returns:
            Class probabilities of shape (n_samples, n_classes) or None
        """
        if hasattr(self.model, 'predict_proba'):
            return self.model.predict_proba(X)
        return None

    @property
    def classes(self) -> Optional[np.ndarray]:
        """Class labels seen during training, in probability column order."""
        return getattr(self.model, 'classes_', None)


class SklearnModel(BaseModel):
    """Base wrapper for sklearn estimators."""

    estimator_class = None
    defaults: Dict[str, Any] = {}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        # Start with defaults
        params = dict(self.defaults)

        # Only update with config params that the estimator accepts
        accepted = self.param_names()
        for k, v in self.config.items():
            if k in accepted:
                params[k] = v
            else:
                logger.warning(f"{self.model_name}: dropping unknown hyperparameter '{k}'")

        self.model = self.estimator_class(**params)

    @classmethod
    def param_names(cls) -> FrozenSet[str]:
        return frozenset(inspect.signature(cls.estimator_class).parameters)

    def train(self, X: np.ndarray, y: Optional[np.ndarray], weights: Optional[np.ndarray] = None) -> None:
        if weights is not None:
            self.model.fit(X, y, sample_weight=weights)
        else:
            self.model.fit(X, y)
        self.fitted = True
        logger.debug(f"{self.model_name} trained on {X.shape[0]} rows")

    def predict(self, X: np.ndarray) -> np.ndarray:
        if not self.fitted:
            raise ValueError("Model not trained")
        return self.model.predict(X)


# ============================================================================
# FACTORY
# ============================================================================

@dataclass(frozen=True)
class LearnerEntry:
    """Catalog record of a registered learner."""
    name: str
    task_type: str
    model_class: type
    properties: FrozenSet[str]
    short_name: str = ''
    note: str = ''

    @property
    def param_names(self) -> FrozenSet[str]:
        return self.model_class.param_names()

    @property
    def defaults(self) -> Dict[str, Any]:
        return dict(getattr(self.model_class, 'defaults', {}))


class ModelFactory:
    """
    Registry of learning backends.

    Implements the factory pattern to provide a centralized way to create
    backends by learner name. Learners must be registered before they can
    be created.
    """

    _models: Dict[str, LearnerEntry] = {}

    @classmethod
    def register_model(cls,
                       name: str,
                       model_class: type,
                       properties: Tuple[str, ...] = ('numerics', 'factors'),
                       short_name: str = '',
                       note: str = '') -> None:
        """
        Register a backend under a learner name.

        The task type is the name prefix ('classif.rpart' -> 'classif').

        Args:
            name: Learner name, '<task type>.<algorithm>'
            model_class: Backend class inheriting from BaseModel
            properties: Capabilities from LEARNER_PROPERTIES
            short_name: Abbreviation used in plots
            note: Free-text remark shown by list_learners
        """
        unknown = set(properties) - set(LEARNER_PROPERTIES)
        if unknown:
            raise ValueError(f"Unknown learner properties for '{name}': {sorted(unknown)}")
        task_type = name.split('.', 1)[0]
        cls._models[name] = LearnerEntry(
            name=name,
            task_type=task_type,
            model_class=model_class,
            properties=frozenset(properties),
            short_name=short_name or name.split('.', 1)[-1],
            note=note,
        )

    @classmethod
    def get_entry(cls, name: str) -> LearnerEntry:
        """
        Look up a catalog entry.

        Raises:
            UnknownLearnerError: If the name is not registered
        """
        if name not in cls._models:
            raise UnknownLearnerError(name, cls.list_models())
        return cls._models[name]

    @classmethod
    def create_model(cls, name: str, config: Optional[Dict[str, Any]] = None, **kwargs) -> BaseModel:
        """
        Create a fresh backend instance by learner name.

        Args:
            name: Registered learner name
            config: Hyperparameter dictionary
            **kwargs: Additional hyperparameters merged into config

        Returns:
            Untrained backend

        Raises:
            UnknownLearnerError: If the name is not registered
        """
        entry = cls.get_entry(name)
        full_config = {**(config or {}), **kwargs}
        return entry.model_class(config=full_config)

    @classmethod
    def list_models(cls, task_type: Optional[str] = None) -> List[str]:
        """
        Get list of registered learner names.

        Args:
            task_type: Restrict to 'classif', 'regr' or 'cluster'

        Returns:
            List of registered names
        """
        return [name for name, entry in cls._models.items()
                if task_type is None or entry.task_type == task_type]
