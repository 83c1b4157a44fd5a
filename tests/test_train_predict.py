"""Tests for training, prediction and confusion matrices."""

import numpy as np
import pandas as pd
import pytest

from mlworkbench.data.task import get_task_data, get_task_targets, make_classif_task
from mlworkbench.exceptions import (
    LearnerCapabilityError,
    SchemaMismatchError,
    ShapeMismatchError,
    SubsetBoundsError,
    TaskTypeMismatchError,
)
from mlworkbench.models import (
    as_data_frame,
    calculate_confusion_matrix,
    get_learner_model,
    get_prediction_probabilities,
    get_prediction_response,
    get_prediction_truth,
    load_model,
    make_learner,
    predict,
    save_model,
    set_threshold,
    train,
)
from mlworkbench.resampling import make_resample_desc, make_resample_instance


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------

class TestTrain:
    def test_train_on_subset(self, iris):
        model = train(make_learner("classif.rpart"), iris, subset=np.arange(0, 150, 2))
        assert len(model.subset) == 75
        assert model.features == ("sepal_length", "sepal_width", "petal_length", "petal_width")
        assert model.task_desc.id == "iris"
        assert model.time >= 0

    def test_accepts_learner_name(self, iris):
        model = train("classif.lda", iris)
        assert model.learner.id == "classif.lda"

    def test_type_mismatch(self, regr_task):
        with pytest.raises(TaskTypeMismatchError):
            train(make_learner("classif.rpart"), regr_task)

    def test_subset_out_of_range(self, iris):
        with pytest.raises(SubsetBoundsError):
            train(make_learner("classif.rpart"), iris, subset=[0, 1, 500])

    def test_empty_subset(self, iris):
        with pytest.raises(ValueError):
            train(make_learner("classif.rpart"), iris, subset=[])

    def test_weights_length_checked(self, iris):
        with pytest.raises(ShapeMismatchError):
            train(make_learner("classif.rpart"), iris, subset=np.arange(10), weights=np.ones(5))

    def test_weights_unsupported(self, iris):
        with pytest.raises(LearnerCapabilityError) as exc_info:
            train(make_learner("classif.lda"), iris, weights=np.ones(150))
        assert exc_info.value.property == "weights"

    def test_task_weights_ignored_with_warning(self, small_classif_df, log_messages):
        task = make_classif_task(small_classif_df, target="label", weights=np.ones(len(small_classif_df)))
        model = train(make_learner("classif.knn"), task)
        assert model.learner.id == "classif.knn"
        assert any("observation weights" in m for m in log_messages)

    def test_missing_values_unsupported(self, small_classif_df):
        df = small_classif_df.copy()
        df.loc[0, "x2"] = np.nan
        task = make_classif_task(df, target="label")
        with pytest.raises(LearnerCapabilityError):
            train(make_learner("classif.rpart"), task)
        assert train(make_learner("classif.hist_gbm"), task).learner.name == "classif.hist_gbm"

    def test_factor_levels_recorded(self, small_classif_task):
        model = train(make_learner("classif.logreg"), small_classif_task)
        assert model.factor_levels == {"color": ("blue", "red")}

    def test_get_learner_model(self, iris):
        from sklearn.tree import DecisionTreeClassifier

        model = train(make_learner("classif.rpart"), iris)
        assert isinstance(get_learner_model(model), DecisionTreeClassifier)

    def test_deterministic(self, iris):
        lrn = make_learner("classif.random_forest", n_estimators=20)
        first = predict(train(lrn, iris, subset=np.arange(100)), task=iris, subset=np.arange(100, 150))
        second = predict(train(lrn, iris, subset=np.arange(100)), task=iris, subset=np.arange(100, 150))
        pd.testing.assert_frame_equal(as_data_frame(first), as_data_frame(second))

    def test_save_and_load(self, iris, tmp_path):
        model = train(make_learner("classif.rpart"), iris)
        path = save_model(model, tmp_path / "models" / "tree")
        assert path.suffix == ".joblib"
        loaded = load_model(path)
        pd.testing.assert_series_equal(
            get_prediction_response(predict(loaded, task=iris)),
            get_prediction_response(predict(model, task=iris)),
        )

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_model(tmp_path / "absent")


# ---------------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------------

class TestPredict:
    def test_one_row_per_observation(self, iris):
        model = train(make_learner("classif.rpart"), iris, subset=np.arange(0, 150, 2))
        test = np.arange(1, 150, 2)
        pred = predict(model, task=iris, subset=test)
        assert len(pred) == 75
        np.testing.assert_array_equal(pred.data["id"], test)
        assert list(pred.data.columns) == ["id", "truth", "response"]
        np.testing.assert_array_equal(get_prediction_truth(pred), get_task_targets(iris, test))

    def test_responses_are_class_levels(self, iris):
        pred = predict(train("classif.lda", iris), task=iris)
        assert set(get_prediction_response(pred)) <= set(iris.class_levels)

    def test_exactly_one_source(self, iris):
        model = train("classif.lda", iris)
        with pytest.raises(ValueError):
            predict(model)
        with pytest.raises(ValueError):
            predict(model, task=iris, newdata=iris.data)

    def test_newdata_without_target(self, iris):
        model = train("classif.lda", iris)
        newdata = get_task_data(iris, subset=[0, 50, 100]).drop(columns=["species"])
        newdata.index = ["a", "b", "c"]
        pred = predict(model, newdata=newdata)
        assert not pred.has_truth
        assert get_prediction_truth(pred) is None
        assert list(pred.data["id"]) == ["a", "b", "c"]

    def test_newdata_missing_feature(self, iris):
        model = train("classif.lda", iris)
        newdata = iris.data.drop(columns=["petal_width"])
        with pytest.raises(SchemaMismatchError) as exc_info:
            predict(model, newdata=newdata)
        assert exc_info.value.missing == ["petal_width"]

    def test_predict_task_type_mismatch(self, iris, regr_task):
        model = train("classif.lda", iris)
        with pytest.raises(TaskTypeMismatchError):
            predict(model, task=regr_task)

    def test_unseen_factor_level(self, small_classif_task):
        model = train(make_learner("classif.logreg"), small_classif_task)
        newdata = pd.DataFrame({"x1": [0.5], "x2": [0.1], "color": ["green"]})
        assert len(predict(model, newdata=newdata)) == 1

    def test_regression_prediction(self, small_regr_task):
        pred = predict(train("regr.lm", small_regr_task), task=small_regr_task)
        residuals = pred.data["truth"] - pred.data["response"]
        assert residuals.abs().max() < 1.0

    def test_cluster_prediction(self, cluster_task):
        learner = make_learner("cluster.kmeans", n_clusters=3)
        pred = predict(train(learner, cluster_task), task=cluster_task)
        assert not pred.has_truth
        assert set(get_prediction_response(pred)) == {0, 1, 2}

    def test_repr(self, iris):
        text = repr(predict(train("classif.lda", iris), task=iris))
        assert "Prediction: 150 observations" in text


class TestProbabilities:
    def test_prob_columns_follow_class_levels(self, iris):
        model = train(make_learner("classif.lda", predict_type="prob"), iris)
        pred = predict(model, task=iris)
        assert pred.prob_columns == ["prob.setosa", "prob.versicolor", "prob.virginica"]
        probs = get_prediction_probabilities(pred)
        assert list(probs.columns) == ["setosa", "versicolor", "virginica"]
        np.testing.assert_allclose(probs.sum(axis=1), 1.0)

    def test_level_missing_from_training_rows(self, iris):
        model = train(make_learner("classif.lda", predict_type="prob"), iris, subset=np.arange(0, 100))
        pred = predict(model, task=iris, subset=np.arange(100, 150))
        assert (get_prediction_probabilities(pred, "virginica") == 0).all()

    def test_binary_defaults_to_positive(self, binary_task):
        model = train(make_learner("classif.logreg", predict_type="prob"), binary_task)
        pred = predict(model, task=binary_task)
        probs = get_prediction_probabilities(pred)
        assert isinstance(probs, pd.Series)
        assert probs.name == "malignant"

    def test_unknown_class(self, iris):
        pred = predict(train(make_learner("classif.lda", predict_type="prob"), iris), task=iris)
        with pytest.raises(SchemaMismatchError):
            get_prediction_probabilities(pred, "rose")

    def test_response_prediction_has_no_probs(self, iris):
        pred = predict(train("classif.lda", iris), task=iris)
        with pytest.raises(ValueError):
            get_prediction_probabilities(pred)


class TestSetThreshold:
    def test_binary_extremes(self, binary_task):
        model = train(make_learner("classif.logreg", predict_type="prob"), binary_task)
        pred = predict(model, task=binary_task)
        all_pos = set_threshold(pred, 0.0)
        assert (get_prediction_response(all_pos) == "malignant").all()
        assert all_pos.threshold["malignant"] == 0.0
        # original prediction unchanged
        assert pred.threshold["malignant"] == 0.5

    def test_binary_response_matches_threshold(self, binary_task):
        model = train(make_learner("classif.logreg", predict_type="prob"), binary_task)
        pred = set_threshold(predict(model, task=binary_task), 0.8)
        p_pos = get_prediction_probabilities(pred)
        expected = np.where(p_pos >= 0.8, "malignant", "benign")
        np.testing.assert_array_equal(get_prediction_response(pred).to_numpy(), expected)

    def test_binary_range(self, binary_task):
        pred = predict(train(make_learner("classif.logreg", predict_type="prob"), binary_task), task=binary_task)
        with pytest.raises(ValueError):
            set_threshold(pred, 1.5)

    def test_multiclass_mapping(self, iris):
        pred = predict(train(make_learner("classif.lda", predict_type="prob"), iris), task=iris)
        th = {"setosa": 0.2, "versicolor": 0.5, "virginica": 0.3}
        changed = set_threshold(pred, th)
        probs = get_prediction_probabilities(changed)
        scaled = probs / pd.Series(th)
        np.testing.assert_array_equal(get_prediction_response(changed).to_numpy(), scaled.idxmax(axis=1).to_numpy())
        assert changed.threshold == th

    def test_multiclass_requires_all_levels(self, iris):
        pred = predict(train(make_learner("classif.lda", predict_type="prob"), iris), task=iris)
        with pytest.raises(ValueError):
            set_threshold(pred, {"setosa": 0.5})
        with pytest.raises(ValueError):
            set_threshold(pred, 0.5)

    def test_response_prediction_rejected(self, iris):
        pred = predict(train("classif.lda", iris), task=iris)
        with pytest.raises(ValueError):
            set_threshold(pred, {"setosa": 1, "versicolor": 1, "virginica": 1})


# ---------------------------------------------------------------------------
# Confusion matrix
# ---------------------------------------------------------------------------

class TestConfusionMatrix:
    def test_iris_holdout(self, iris):
        desc = make_resample_desc("Holdout", split=2 / 3)
        inst = make_resample_instance(desc, iris, seed=1)
        train_inds, test_inds = inst.train_inds[0], inst.test_inds[0]
        assert len(train_inds) == 100
        assert len(test_inds) == 50

        model = train(make_learner("classif.rpart"), iris, subset=train_inds)
        pred = predict(model, task=iris, subset=test_inds)
        cm = calculate_confusion_matrix(pred)

        assert cm.to_numpy().sum() == 50
        truth_counts = get_task_targets(iris, test_inds).value_counts()
        for level in iris.class_levels:
            assert cm.loc[level].sum() == truth_counts.get(level, 0)

    def test_sums_and_relative(self, iris):
        pred = predict(train("classif.lda", iris), task=iris)
        cm = calculate_confusion_matrix(pred, sums=True)
        assert cm.loc["total", "total"] == 150
        assert list(cm.index) == ["setosa", "versicolor", "virginica", "total"]

        rel = calculate_confusion_matrix(pred, relative=True)
        np.testing.assert_allclose(rel.sum(axis=1), 1.0)

    def test_regression_rejected(self, small_regr_task):
        pred = predict(train("regr.lm", small_regr_task), task=small_regr_task)
        with pytest.raises(TaskTypeMismatchError):
            calculate_confusion_matrix(pred)
