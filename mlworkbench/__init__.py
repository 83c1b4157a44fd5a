"""mlworkbench: tasks, learners, resampling and benchmark experiments on top of scikit-learn."""

from .exceptions import (
    MLWorkbenchError,
    TaskTypeMismatchError,
    SchemaMismatchError,
    SubsetBoundsError,
    ShapeMismatchError,
    UnknownLearnerError,
    LearnerCapabilityError,
    UnknownMeasureError,
    MeasureTaskMismatchError,
    ResampleMergeError,
)
from .data import (
    Task,
    TaskDesc,
    make_classif_task,
    make_regr_task,
    make_cluster_task,
    get_task_data,
    get_task_features,
    get_task_targets,
    get_task_size,
    get_task_n_features,
    get_task_class_levels,
    get_task_desc,
    subset_task,
    drop_features,
    normalize_features,
    remove_constant_features,
    DataLoader,
)
from .models import (
    Learner,
    ModelFactory,
    make_learner,
    make_learners,
    set_hyper_pars,
    get_hyper_pars,
    set_predict_type,
    set_learner_id,
    list_learners,
    WrappedModel,
    train,
    get_learner_model,
    save_model,
    load_model,
    Prediction,
    predict,
    as_data_frame,
    get_prediction_probabilities,
    get_prediction_response,
    get_prediction_truth,
    set_threshold,
    calculate_confusion_matrix,
)
from .metrics import (
    Aggregation,
    Measure,
    performance,
    get_measure,
    get_default_measure,
    list_measures,
    set_aggregation,
)
from .resampling import (
    ResampleDesc,
    ResampleInstance,
    ResamplePrediction,
    ResampleResult,
    make_resample_desc,
    make_resample_instance,
    make_fixed_holdout_instance,
    resample,
    crossval,
    repcv,
    holdout,
    subsample,
    bootstrap_oob,
)
from .benchmark import (
    BenchmarkResult,
    benchmark,
    merge_benchmark_results,
    get_bmr_performances,
    get_bmr_aggr_performances,
    get_bmr_predictions,
    get_bmr_task_ids,
    get_bmr_learner_ids,
    get_bmr_measure_ids,
    get_bmr_models,
    convert_bmr_to_rank_matrix,
    friedman_test_bmr,
)
from .utils import Config, LearnerConfigBuilder, set_seed

__version__ = '0.1.0'

__all__ = [
    # Errors
    'MLWorkbenchError', 'TaskTypeMismatchError', 'SchemaMismatchError', 'SubsetBoundsError',
    'ShapeMismatchError', 'UnknownLearnerError', 'LearnerCapabilityError', 'UnknownMeasureError',
    'MeasureTaskMismatchError', 'ResampleMergeError',

    # Tasks
    'Task', 'TaskDesc', 'make_classif_task', 'make_regr_task', 'make_cluster_task',
    'get_task_data', 'get_task_features', 'get_task_targets', 'get_task_size', 'get_task_n_features',
    'get_task_class_levels', 'get_task_desc', 'subset_task', 'drop_features',
    'normalize_features', 'remove_constant_features', 'DataLoader',

    # Learners, training, prediction
    'Learner', 'ModelFactory', 'make_learner', 'make_learners', 'set_hyper_pars', 'get_hyper_pars',
    'set_predict_type', 'set_learner_id', 'list_learners',
    'WrappedModel', 'train', 'get_learner_model', 'save_model', 'load_model',
    'Prediction', 'predict', 'as_data_frame', 'get_prediction_probabilities', 'get_prediction_response',
    'get_prediction_truth', 'set_threshold', 'calculate_confusion_matrix',

    # Measures
    'Aggregation', 'Measure', 'performance', 'get_measure', 'get_default_measure', 'list_measures',
    'set_aggregation',

    # Resampling
    'ResampleDesc', 'ResampleInstance', 'ResamplePrediction', 'ResampleResult',
    'make_resample_desc', 'make_resample_instance', 'make_fixed_holdout_instance',
    'resample', 'crossval', 'repcv', 'holdout', 'subsample', 'bootstrap_oob',

    # Benchmark
    'BenchmarkResult', 'benchmark', 'merge_benchmark_results',
    'get_bmr_performances', 'get_bmr_aggr_performances', 'get_bmr_predictions',
    'get_bmr_task_ids', 'get_bmr_learner_ids', 'get_bmr_measure_ids', 'get_bmr_models',
    'convert_bmr_to_rank_matrix', 'friedman_test_bmr',

    # Utilities
    'Config', 'LearnerConfigBuilder', 'set_seed',
]
