"""Data module: tasks, example datasets, loading and feature preprocessing."""

from .task import (
    TASK_TYPES,
    Task,
    ClassifTask,
    RegrTask,
    ClusterTask,
    TaskDesc,
    make_classif_task,
    make_regr_task,
    make_cluster_task,
    get_task_data,
    get_task_features,
    get_task_targets,
    get_task_weights,
    get_task_blocking,
    get_task_size,
    get_task_n_features,
    get_task_class_levels,
    get_task_desc,
    subset_task,
    drop_features,
)
from .preprocessing import FeatureScaler, normalize_features, remove_constant_features
from .datasets import DATASETS, load_iris, iris_task, iris_cluster_task, breast_cancer_task, wine_task, diabetes_task
from .loader import DataLoader

__all__ = [
    'TASK_TYPES', 'Task', 'ClassifTask', 'RegrTask', 'ClusterTask', 'TaskDesc',
    'make_classif_task', 'make_regr_task', 'make_cluster_task',
    'get_task_data', 'get_task_features', 'get_task_targets', 'get_task_weights', 'get_task_blocking',
    'get_task_size', 'get_task_n_features', 'get_task_class_levels', 'get_task_desc',
    'subset_task', 'drop_features',
    'FeatureScaler', 'normalize_features', 'remove_constant_features',
    'DATASETS', 'load_iris', 'iris_task', 'iris_cluster_task', 'breast_cancer_task', 'wine_task', 'diabetes_task',
    'DataLoader',
]
