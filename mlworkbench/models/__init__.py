"""Models module for mlworkbench.

This module provides the learner catalog and the train/predict layer:
- Backends wrapping scikit-learn estimators (classification, regression, clustering)
- Immutable learner descriptors
- Training into fitted-model handles and prediction
"""

# Base classes and factory
from .base import (
    BaseModel,
    SklearnModel,
    LearnerEntry,
    ModelFactory,
    LEARNER_PROPERTIES,
    safe_int,
    safe_float
)

# Backends register themselves with the factory on import
from . import classical, regression, cluster

from .learner import (
    Learner,
    PREDICT_TYPES,
    make_learner,
    make_learners,
    as_learner,
    set_hyper_pars,
    get_hyper_pars,
    set_predict_type,
    set_learner_id,
    list_learners,
)

from .train import (
    WrappedModel,
    train,
    get_learner_model,
    save_model,
    load_model,
)

from .prediction import (
    Prediction,
    predict,
    as_data_frame,
    get_prediction_probabilities,
    get_prediction_response,
    get_prediction_truth,
    set_threshold,
    calculate_confusion_matrix,
)

# Public API
__all__ = [
    # Base classes
    'BaseModel',
    'SklearnModel',
    'LearnerEntry',
    'ModelFactory',
    'LEARNER_PROPERTIES',

    # Utilities
    'safe_int',
    'safe_float',

    # Learners
    'Learner',
    'PREDICT_TYPES',
    'make_learner',
    'make_learners',
    'as_learner',
    'set_hyper_pars',
    'get_hyper_pars',
    'set_predict_type',
    'set_learner_id',
    'list_learners',

    # Training
    'WrappedModel',
    'train',
    'get_learner_model',
    'save_model',
    'load_model',

    # Prediction
    'Prediction',
    'predict',
    'as_data_frame',
    'get_prediction_probabilities',
    'get_prediction_response',
    'get_prediction_truth',
    'set_threshold',
    'calculate_confusion_matrix',
]
