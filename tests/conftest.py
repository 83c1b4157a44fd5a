"""Shared fixtures for mlworkbench tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from mlworkbench.data.datasets import breast_cancer_task, diabetes_task, iris_cluster_task, iris_task
from mlworkbench.data.task import make_classif_task, make_regr_task


@pytest.fixture
def iris():
    return iris_task()


@pytest.fixture
def binary_task():
    return breast_cancer_task()


@pytest.fixture
def regr_task():
    return diabetes_task()


@pytest.fixture
def cluster_task():
    return iris_cluster_task()


@pytest.fixture
def small_classif_df():
    rng = np.random.default_rng(0)
    n = 60
    x1 = rng.normal(size=n)
    x2 = rng.normal(size=n)
    label = np.where(x1 + 0.5 * x2 > 0, "yes", "no")
    return pd.DataFrame({"x1": x1, "x2": x2, "color": rng.choice(["red", "blue"], size=n), "label": label})


@pytest.fixture
def small_classif_task(small_classif_df):
    return make_classif_task(small_classif_df, target="label", id="small")


@pytest.fixture
def blocked_task():
    """Binary task with 12 blocks of 5 rows each."""
    rng = np.random.default_rng(1)
    n = 60
    df = pd.DataFrame({
        "x1": rng.normal(size=n),
        "x2": rng.normal(size=n),
        "patient": np.repeat(np.arange(12), 5),
    })
    df["label"] = np.where(df["x1"] > 0, "a", "b")
    return make_classif_task(df, target="label", id="blocked", blocking="patient")


@pytest.fixture
def small_regr_task():
    rng = np.random.default_rng(2)
    n = 40
    df = pd.DataFrame({"x": rng.normal(size=n), "z": rng.uniform(size=n)})
    df["y"] = 2.0 * df["x"] + rng.normal(scale=0.1, size=n)
    return make_regr_task(df, target="y", id="small_regr")


@pytest.fixture
def log_messages():
    """Collect loguru messages of level WARNING and above."""
    from loguru import logger

    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
