"""Example tasks built from the scikit-learn toy datasets."""

import re

import pandas as pd
from sklearn import datasets

from .task import ClassifTask, ClusterTask, RegrTask, make_classif_task, make_cluster_task, make_regr_task


def _clean_name(name: str) -> str:
    name = re.sub(r'\s*\(.*?\)', '', name)
    return re.sub(r'[^0-9a-zA-Z]+', '_', name.strip()).strip('_')


def _as_frame(bunch, target: str, labels: bool = True) -> pd.DataFrame:
    frame = bunch.frame.copy() if bunch.frame is not None else pd.DataFrame(bunch.data, columns=bunch.feature_names)
    frame = frame.drop(columns=['target'], errors='ignore')
    frame.columns = [_clean_name(c) for c in frame.columns]
    if labels:
        names = list(bunch.target_names)
        frame[target] = pd.Categorical.from_codes(bunch.target, categories=names)
    else:
        frame[target] = bunch.target
    return frame


def load_iris() -> pd.DataFrame:
    """Iris flowers: 150 rows, 4 numeric features, 3 balanced species."""
    frame = _as_frame(datasets.load_iris(as_frame=True), 'species')
    frame.attrs['name'] = 'iris'
    return frame


def iris_task() -> ClassifTask:
    return make_classif_task(load_iris(), target='species', id='iris')


def iris_cluster_task() -> ClusterTask:
    return make_cluster_task(load_iris().drop(columns=['species']), id='iris_cluster')


def breast_cancer_task() -> ClassifTask:
    """Binary task (569 rows, 30 features); 'malignant' is the positive class."""
    frame = _as_frame(datasets.load_breast_cancer(as_frame=True), 'diagnosis')
    return make_classif_task(frame, target='diagnosis', id='breast_cancer', positive='malignant')


def wine_task() -> ClassifTask:
    frame = _as_frame(datasets.load_wine(as_frame=True), 'cultivar')
    return make_classif_task(frame, target='cultivar', id='wine')


def diabetes_task() -> RegrTask:
    """Regression on disease progression one year after baseline (442 rows)."""
    frame = _as_frame(datasets.load_diabetes(as_frame=True), 'progression', labels=False)
    return make_regr_task(frame, target='progression', id='diabetes')


DATASETS = {
    'iris': iris_task,
    'iris_cluster': iris_cluster_task,
    'breast_cancer': breast_cancer_task,
    'wine': wine_task,
    'diabetes': diabetes_task,
}
