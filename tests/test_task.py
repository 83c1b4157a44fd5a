"""Tests for mlworkbench/data/task.py and task preprocessing."""

import numpy as np
import pandas as pd
import pytest

from mlworkbench.data.datasets import load_iris
from mlworkbench.data.preprocessing import FeatureScaler, normalize_features, remove_constant_features
from mlworkbench.data.task import (
    check_subset,
    drop_features,
    get_task_blocking,
    get_task_class_levels,
    get_task_data,
    get_task_desc,
    get_task_features,
    get_task_n_features,
    get_task_size,
    get_task_targets,
    make_classif_task,
    make_cluster_task,
    make_regr_task,
    subset_task,
)
from mlworkbench.exceptions import (
    MLWorkbenchError,
    SchemaMismatchError,
    ShapeMismatchError,
    SubsetBoundsError,
    TaskTypeMismatchError,
)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestMakeClassifTask:
    def test_iris_basics(self, iris):
        assert iris.type == "classif"
        assert get_task_size(iris) == 150
        assert get_task_n_features(iris) == 4
        assert get_task_class_levels(iris) == ("setosa", "versicolor", "virginica")
        assert iris.positive is None

    def test_id_from_data_name(self):
        task = make_classif_task(load_iris(), target="species")
        assert task.id == "iris"

    def test_default_id_without_name(self, small_classif_df):
        assert make_classif_task(small_classif_df, target="label").id == "classif_task"

    def test_binary_positive_defaults_to_first_level(self, small_classif_task):
        assert small_classif_task.class_levels == ("no", "yes")
        assert small_classif_task.positive == "no"

    def test_explicit_positive(self, small_classif_df):
        task = make_classif_task(small_classif_df, target="label", positive="yes")
        assert task.positive == "yes"

    def test_unknown_positive_raises(self, small_classif_df):
        with pytest.raises(ValueError):
            make_classif_task(small_classif_df, target="label", positive="maybe")

    def test_missing_target_column(self, small_classif_df):
        with pytest.raises(SchemaMismatchError) as exc_info:
            make_classif_task(small_classif_df, target="nope")
        assert exc_info.value.missing == ["nope"]
        assert isinstance(exc_info.value, KeyError)
        assert isinstance(exc_info.value, MLWorkbenchError)

    def test_float_target_rejected(self, small_classif_df):
        df = small_classif_df.assign(label=np.linspace(0, 1, len(small_classif_df)))
        with pytest.raises(TaskTypeMismatchError):
            make_classif_task(df, target="label")

    def test_integral_float_target_accepted(self, small_classif_df):
        df = small_classif_df.assign(label=np.tile([0.0, 1.0], len(small_classif_df) // 2))
        task = make_classif_task(df, target="label")
        assert task.class_levels == (0.0, 1.0)

    def test_single_class_rejected(self, small_classif_df):
        with pytest.raises(ValueError):
            make_classif_task(small_classif_df.assign(label="same"), target="label")

    def test_missing_target_values_rejected(self, small_classif_df):
        df = small_classif_df.copy()
        df.loc[0, "label"] = None
        with pytest.raises(ValueError):
            make_classif_task(df, target="label")

    def test_input_frame_not_shared(self, small_classif_df):
        task = make_classif_task(small_classif_df, target="label")
        small_classif_df.loc[0, "x1"] = 999.0
        assert task.data.loc[0, "x1"] != 999.0

    def test_repr_summary(self, iris):
        text = repr(iris)
        assert "Supervised task: iris" in text
        assert "Type: classif" in text
        assert "Observations: 150" in text
        assert "Classes: 3" in text


class TestMakeRegrAndClusterTask:
    def test_regr_task(self, regr_task):
        assert regr_task.type == "regr"
        assert regr_task.target == "progression"
        assert regr_task.class_levels is None

    def test_regr_rejects_string_target(self, small_classif_df):
        with pytest.raises(TaskTypeMismatchError):
            make_regr_task(small_classif_df, target="label")

    def test_regr_rejects_bool_target(self, small_classif_df):
        df = small_classif_df.assign(flag=small_classif_df["x1"] > 0)
        with pytest.raises(TypeError):
            make_regr_task(df, target="flag")

    def test_cluster_task_uses_all_columns(self, cluster_task):
        assert cluster_task.type == "cluster"
        assert cluster_task.target is None
        assert get_task_n_features(cluster_task) == 4
        assert get_task_targets(cluster_task) is None

    def test_cluster_repr_unsupervised(self, cluster_task):
        assert "Unsupervised task" in repr(cluster_task)


class TestBlockingAndWeights:
    def test_blocking_column_removed_from_features(self, blocked_task):
        assert "patient" not in get_task_features(blocked_task)
        assert get_task_desc(blocked_task).has_blocking
        np.testing.assert_array_equal(get_task_blocking(blocked_task)[:6], [0, 0, 0, 0, 0, 1])

    def test_blocking_vector(self, small_classif_df):
        blocks = np.arange(len(small_classif_df)) // 3
        task = make_classif_task(small_classif_df, target="label", blocking=blocks)
        np.testing.assert_array_equal(task.blocking, blocks)

    def test_blocking_length_mismatch(self, small_classif_df):
        with pytest.raises(ShapeMismatchError):
            make_classif_task(small_classif_df, target="label", blocking=[1, 2, 3])

    def test_weights_length_mismatch(self, small_classif_df):
        with pytest.raises(ValueError):
            make_classif_task(small_classif_df, target="label", weights=np.ones(3))

    def test_negative_weights_rejected(self, small_classif_df):
        weights = -np.ones(len(small_classif_df))
        with pytest.raises(ValueError):
            make_classif_task(small_classif_df, target="label", weights=weights)

    def test_unknown_blocking_column(self, small_classif_df):
        with pytest.raises(SchemaMismatchError):
            make_classif_task(small_classif_df, target="label", blocking="nope")


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------

class TestAccessors:
    def test_get_task_data_respects_subset_order(self, iris):
        data = get_task_data(iris, subset=[5, 0, 5])
        assert len(data) == 3
        assert list(data.columns) == get_task_features(iris) + ["species"]
        assert data.iloc[0]["sepal_length"] == data.iloc[2]["sepal_length"]

    def test_get_task_data_target_extra(self, iris):
        X, y = get_task_data(iris, subset=np.arange(10), target_extra=True)
        assert X.shape == (10, 4)
        assert len(y) == 10
        assert "species" not in X.columns

    def test_feature_selection(self, iris):
        X, _ = get_task_data(iris, features=["petal_length"], target_extra=True)
        assert list(X.columns) == ["petal_length"]

    def test_unknown_feature(self, iris):
        with pytest.raises(SchemaMismatchError):
            get_task_data(iris, features=["petal_area"])

    def test_out_of_range_subset(self, iris):
        with pytest.raises(SubsetBoundsError):
            get_task_data(iris, subset=[0, 150])
        with pytest.raises(IndexError):
            get_task_data(iris, subset=[-1])

    def test_boolean_subset(self, iris):
        mask = np.zeros(150, dtype=bool)
        mask[[1, 3]] = True
        np.testing.assert_array_equal(check_subset(mask, 150), [1, 3])

    def test_boolean_subset_wrong_length(self):
        with pytest.raises(ShapeMismatchError):
            check_subset(np.ones(3, dtype=bool), 5)

    def test_data_property_is_a_copy(self, iris):
        data = iris.data
        data["sepal_length"] = 0.0
        assert iris.data["sepal_length"].max() > 0


class TestDerivedTasks:
    def test_subset_task(self, blocked_task):
        sub = subset_task(blocked_task, subset=np.arange(10, 20))
        assert get_task_size(sub) == 10
        np.testing.assert_array_equal(sub.blocking, blocked_task.blocking[10:20])
        assert get_task_size(blocked_task) == 60

    def test_subset_task_features(self, iris):
        sub = subset_task(iris, features=["sepal_length", "petal_width"])
        assert get_task_features(sub) == ["sepal_length", "petal_width"]
        assert get_task_features(iris) == ["sepal_length", "sepal_width", "petal_length", "petal_width"]

    def test_drop_features(self, iris):
        dropped = drop_features(iris, ["sepal_width"])
        assert "sepal_width" not in get_task_features(dropped)
        assert get_task_n_features(iris) == 4

    def test_remove_constant_features(self, small_classif_df):
        task = make_classif_task(small_classif_df.assign(const=1.0), target="label")
        cleaned = remove_constant_features(task)
        assert "const" not in get_task_features(cleaned)
        assert "const" in get_task_features(task)

    def test_remove_constant_features_keeps_listed(self, small_classif_df):
        task = make_classif_task(small_classif_df.assign(const=1.0), target="label")
        assert "const" in get_task_features(remove_constant_features(task, dont_rm=["const"]))


class TestNormalizeFeatures:
    def test_standardize(self, iris):
        scaled = normalize_features(iris)
        X, _ = get_task_data(scaled, target_extra=True)
        np.testing.assert_allclose(X.mean().to_numpy(), 0.0, atol=1e-10)
        assert get_task_data(iris)["sepal_length"].mean() > 5

    def test_range(self, iris):
        X, _ = get_task_data(normalize_features(iris, method="range"), target_extra=True)
        assert X.min().min() == pytest.approx(0.0)
        assert X.max().max() == pytest.approx(1.0)

    def test_factors_untouched(self, small_classif_task):
        scaled = normalize_features(small_classif_task)
        pd.testing.assert_series_equal(get_task_data(scaled)["color"], get_task_data(small_classif_task)["color"])

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            FeatureScaler("log")


def test_cluster_task_from_frame():
    df = pd.DataFrame({"a": [1.0, 2.0, 3.0], "b": [0.0, 1.0, 0.0]})
    task = make_cluster_task(df, id="pts")
    assert task.id == "pts"
    assert get_task_features(task) == ["a", "b"]
