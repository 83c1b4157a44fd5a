"""Tests for mlworkbench/resampling: descriptions, instances and resample()."""

import math

import numpy as np
import pytest

from mlworkbench.data.task import get_task_blocking, get_task_targets
from mlworkbench.exceptions import (
    MeasureTaskMismatchError,
    SubsetBoundsError,
    TaskTypeMismatchError,
)
from mlworkbench.metrics import set_aggregation
from mlworkbench.models import make_learner
from mlworkbench.resampling import (
    ResamplePrediction,
    bootstrap_oob,
    crossval,
    holdout,
    make_fixed_holdout_instance,
    make_resample_desc,
    make_resample_instance,
    repcv,
    resample,
    subsample,
)


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------

class TestMakeResampleDesc:
    def test_defaults(self):
        assert make_resample_desc("CV").iters == 10
        assert make_resample_desc("Subsample").iters == 30
        assert make_resample_desc("Subsample").split == pytest.approx(2 / 3)
        assert make_resample_desc("Bootstrap").iters == 30
        holdout_desc = make_resample_desc("Holdout")
        assert holdout_desc.iters == 1
        assert holdout_desc.split == pytest.approx(2 / 3)

    def test_repcv_iterations(self):
        desc = make_resample_desc("RepCV", folds=3, reps=2)
        assert desc.iters == 6
        assert "2 x 3" in desc.id

    def test_case_insensitive(self):
        assert make_resample_desc("cv", iters=3).method == "CV"

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            make_resample_desc("Jackknife")

    def test_parameter_not_taken(self):
        with pytest.raises(ValueError):
            make_resample_desc("CV", split=0.5)
        with pytest.raises(ValueError):
            make_resample_desc("LOO", iters=3)

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            make_resample_desc("CV", iters=1)
        with pytest.raises(ValueError):
            make_resample_desc("Holdout", split=1.0)
        with pytest.raises(ValueError):
            make_resample_desc("Subsample", iters=2.5)
        with pytest.raises(ValueError):
            make_resample_desc("CV", predict="validation")

    def test_stratify_with_blocking(self):
        assert make_resample_desc("CV", iters=3, stratify=True, blocking=True).blocking
        with pytest.raises(ValueError):
            make_resample_desc("Subsample", stratify=True, blocking=True)

    def test_stratified_loo_rejected(self):
        with pytest.raises(ValueError):
            make_resample_desc("LOO", stratify=True)

    def test_descriptions_are_immutable(self):
        desc = make_resample_desc("CV", iters=3)
        with pytest.raises(AttributeError):
            desc.iters = 5


# ---------------------------------------------------------------------------
# Instances
# ---------------------------------------------------------------------------

class TestResampleInstance:
    def test_cv_partitions_rows(self, iris):
        inst = make_resample_instance(make_resample_desc("CV", iters=5), iris, seed=1)
        assert inst.iters == 5
        all_test = np.concatenate(inst.test_inds)
        np.testing.assert_array_equal(np.sort(all_test), np.arange(150))
        for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
            assert len(np.intersect1d(train_inds, test_inds)) == 0
            assert len(train_inds) + len(test_inds) == 150

    def test_size_only(self):
        inst = make_resample_instance("CV", size=20, seed=0)
        assert inst.iters == 10
        assert all(len(t) == 2 for t in inst.test_inds)

    def test_same_seed_same_splits(self, iris):
        desc = make_resample_desc("Subsample", iters=4)
        assert make_resample_instance(desc, iris, seed=7) == make_resample_instance(desc, iris, seed=7)
        assert make_resample_instance(desc, iris, seed=7) != make_resample_instance(desc, iris, seed=8)

    def test_stratified_cv_keeps_proportions(self, iris):
        inst = make_resample_instance(make_resample_desc("CV", iters=5, stratify=True), iris, seed=3)
        for test_inds in inst.test_inds:
            counts = get_task_targets(iris, test_inds).value_counts()
            assert set(counts.values) == {10}

    def test_stratified_subsample_keeps_proportions(self, iris):
        desc = make_resample_desc("Subsample", iters=3, split=0.6, stratify=True)
        inst = make_resample_instance(desc, iris, seed=3)
        for train_inds in inst.train_inds:
            assert set(get_task_targets(iris, train_inds).value_counts().values) == {30}

    def test_blocked_cv_keeps_blocks_together(self, blocked_task):
        inst = make_resample_instance(make_resample_desc("CV", iters=4, blocking=True), blocked_task, seed=0)
        blocks = get_task_blocking(blocked_task)
        for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
            assert not set(blocks[train_inds]) & set(blocks[test_inds])
        np.testing.assert_array_equal(np.sort(np.concatenate(inst.test_inds)), np.arange(60))

    def test_blocked_subsample_and_bootstrap(self, blocked_task):
        blocks = get_task_blocking(blocked_task)
        for method in ("Subsample", "Bootstrap"):
            desc = make_resample_desc(method, iters=3, blocking=True)
            inst = make_resample_instance(desc, blocked_task, seed=0)
            for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
                assert not set(blocks[train_inds]) & set(blocks[test_inds])

    def test_stratified_blocked_cv(self, blocked_task):
        desc = make_resample_desc("CV", iters=4, stratify=True, blocking=True)
        inst = make_resample_instance(desc, blocked_task, seed=5)
        blocks = get_task_blocking(blocked_task)
        assert inst.iters == 4
        for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
            assert not set(blocks[train_inds]) & set(blocks[test_inds])
            assert len(train_inds) + len(test_inds) == 60
        np.testing.assert_array_equal(np.sort(np.concatenate(inst.test_inds)), np.arange(60))

    def test_blocked_repcv(self, blocked_task):
        blocks = get_task_blocking(blocked_task)
        for stratify in (False, True):
            desc = make_resample_desc("RepCV", folds=3, reps=2, stratify=stratify, blocking=True)
            inst = make_resample_instance(desc, blocked_task, seed=2)
            np.testing.assert_array_equal(inst.group, [1, 1, 1, 2, 2, 2])
            for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
                assert not set(blocks[train_inds]) & set(blocks[test_inds])
            for rep in (1, 2):
                tests = [t for t, g in zip(inst.test_inds, inst.group) if g == rep]
                np.testing.assert_array_equal(np.sort(np.concatenate(tests)), np.arange(60))

    def test_stratified_bootstrap_keeps_class_counts(self, iris):
        inst = make_resample_instance(make_resample_desc("Bootstrap", iters=4, stratify=True), iris, seed=6)
        for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
            assert len(train_inds) == 150
            assert set(get_task_targets(iris, train_inds).value_counts().values) == {50}
            assert not set(train_inds) & set(test_inds)

    def test_blocked_loo_leaves_out_blocks(self, blocked_task):
        inst = make_resample_instance(make_resample_desc("LOO", blocking=True), blocked_task)
        assert inst.iters == 12
        assert all(len(t) == 5 for t in inst.test_inds)

    def test_blocking_needs_task_blocking(self, iris):
        with pytest.raises(ValueError):
            make_resample_instance(make_resample_desc("CV", blocking=True), iris)

    def test_stratify_needs_classif(self, regr_task):
        with pytest.raises(TaskTypeMismatchError):
            make_resample_instance(make_resample_desc("CV", stratify=True), regr_task)

    def test_stratify_needs_task(self):
        with pytest.raises(ValueError):
            make_resample_instance(make_resample_desc("CV", stratify=True), size=50)

    def test_too_few_rows(self):
        with pytest.raises(ValueError):
            make_resample_instance("Holdout", size=1)
        with pytest.raises(ValueError):
            make_resample_instance(make_resample_desc("CV", iters=5), size=3)

    def test_loo(self):
        inst = make_resample_instance("LOO", size=6)
        assert inst.iters == 6
        np.testing.assert_array_equal(np.concatenate(inst.test_inds), np.arange(6))

    def test_repcv_groups(self, iris):
        inst = make_resample_instance(make_resample_desc("RepCV", folds=3, reps=2), iris, seed=0)
        np.testing.assert_array_equal(inst.group, [1, 1, 1, 2, 2, 2])
        for rep in (1, 2):
            tests = [t for t, g in zip(inst.test_inds, inst.group) if g == rep]
            np.testing.assert_array_equal(np.sort(np.concatenate(tests)), np.arange(150))

    def test_bootstrap_out_of_bag(self):
        inst = make_resample_instance(make_resample_desc("Bootstrap", iters=5), size=50, seed=2)
        for train_inds, test_inds in zip(inst.train_inds, inst.test_inds):
            assert len(train_inds) == 50
            assert not set(train_inds) & set(test_inds)
            assert set(train_inds) | set(test_inds) == set(range(50))

    def test_holdout_sizes(self):
        inst = make_resample_instance(make_resample_desc("Holdout", split=0.8), size=50, seed=0)
        assert inst.iters == 1
        assert len(inst.train_inds[0]) == 40
        assert len(inst.test_inds[0]) == 10


class TestFixedHoldout:
    def test_fixed_rows(self):
        inst = make_fixed_holdout_instance([0, 1, 2], [3, 4], size=5)
        np.testing.assert_array_equal(inst.train_inds[0], [0, 1, 2])
        np.testing.assert_array_equal(inst.test_inds[0], [3, 4])
        assert inst.desc.method == "Holdout"

    def test_out_of_range(self):
        with pytest.raises(SubsetBoundsError):
            make_fixed_holdout_instance([0, 1], [9], size=5)

    def test_empty_side(self):
        with pytest.raises(ValueError):
            make_fixed_holdout_instance([0, 1], [], size=5)

    def test_overlapping_rows(self):
        with pytest.raises(ValueError, match="share rows"):
            make_fixed_holdout_instance([0, 1, 2], [2, 3], size=5)


# ---------------------------------------------------------------------------
# resample()
# ---------------------------------------------------------------------------

class TestResample:
    def test_cv_result(self, iris):
        desc = make_resample_desc("CV", iters=3, stratify=True)
        res = resample("classif.rpart", iris, desc, measures=["mmce", "acc"], seed=1, show_info=False)
        assert res.learner_id == "classif.rpart"
        assert res.task_id == "iris"
        assert list(res.measures_test.columns) == ["iter", "mmce", "acc"]
        assert list(res.measures_test["iter"]) == [1, 2, 3]
        assert res.measures_train is None
        assert res.aggr["mmce.test.mean"] == pytest.approx(res.measures_test["mmce"].mean())
        assert res.aggr["mmce.test.mean"] + res.aggr["acc.test.mean"] == pytest.approx(1.0)
        assert res.models is None
        assert res.runtime >= 0

    def test_prediction_covers_every_row_once(self, iris):
        res = resample("classif.lda", iris, make_resample_desc("CV", iters=5), seed=2, show_info=False)
        assert isinstance(res.pred, ResamplePrediction)
        data = res.pred.data
        assert len(data) == 150
        assert sorted(data["id"]) == list(range(150))
        assert set(data["set"]) == {"test"}
        assert set(data["iter"]) == {1, 2, 3, 4, 5}

    def test_iteration_prediction(self, iris):
        res = resample("classif.lda", iris, make_resample_desc("CV", iters=5), seed=2, show_info=False)
        first = res.pred.get_iteration(1)
        np.testing.assert_array_equal(np.sort(first.data["id"]), np.sort(res.instance.test_inds[0]))
        assert "iter" not in first.data.columns

    def test_same_seed_same_result(self, iris):
        desc = make_resample_desc("Subsample", iters=3)
        a = resample("classif.rpart", iris, desc, seed=11, show_info=False)
        b = resample("classif.rpart", iris, desc, seed=11, show_info=False)
        assert a.instance == b.instance
        assert a.aggr == b.aggr

    def test_predict_both(self, iris):
        desc = make_resample_desc("Holdout", predict="both")
        res = resample("classif.rpart", iris, desc, measures="mmce", seed=0, show_info=False)
        assert res.measures_train is not None
        assert res.measures_train["mmce"].iloc[0] < 0.05
        assert set(res.pred.data["set"]) == {"train", "test"}

    def test_predict_train_only(self, iris):
        desc = make_resample_desc("CV", iters=3, predict="train")
        measure = set_aggregation("mmce", "train.mean")
        res = resample("classif.rpart", iris, desc, measures=[measure], seed=0, show_info=False)
        assert res.measures_test["mmce"].isna().all()
        assert res.aggr["mmce.train.mean"] < 0.05

    def test_train_aggregation_needs_train_predictions(self, iris):
        measure = set_aggregation("mmce", "train.mean")
        with pytest.raises(ValueError):
            resample("classif.rpart", iris, make_resample_desc("CV", iters=3), measures=[measure], show_info=False)

    def test_models_and_extract(self, iris):
        res = resample("classif.rpart", iris, make_resample_desc("CV", iters=3), models=True,
                       extract=lambda m: m.learner_model.model.get_depth(), seed=0, show_info=False)
        assert len(res.models) == 3
        assert len(res.extract) == 3
        assert all(depth >= 1 for depth in res.extract)

    def test_keep_pred_false(self, iris):
        res = resample("classif.lda", iris, make_resample_desc("CV", iters=3), keep_pred=False, show_info=False)
        assert res.pred is None

    def test_fixed_instance(self, iris):
        inst = make_fixed_holdout_instance(np.arange(0, 150, 2), np.arange(1, 150, 2), size=150)
        res = resample("classif.lda", iris, inst, show_info=False)
        assert res.instance is inst
        assert len(res.pred) == 75

    def test_instance_size_mismatch(self, iris):
        inst = make_resample_instance("CV", size=20, seed=0)
        with pytest.raises(ValueError):
            resample("classif.lda", iris, inst, show_info=False)

    def test_learner_list_shares_instance(self, iris):
        results = resample(["classif.lda", "classif.rpart"], iris, make_resample_desc("CV", iters=3),
                           seed=5, show_info=False)
        assert [r.learner_id for r in results] == ["classif.lda", "classif.rpart"]
        assert results[0].instance is results[1].instance

    def test_type_mismatch(self, iris):
        with pytest.raises(TaskTypeMismatchError):
            resample("regr.lm", iris, "CV", show_info=False)

    def test_prob_measure_needs_prob_learner(self, iris):
        with pytest.raises(MeasureTaskMismatchError):
            resample("classif.lda", iris, make_resample_desc("CV", iters=3), measures="auc", show_info=False)

    def test_prob_learner(self, binary_task):
        lrn = make_learner("classif.logreg", predict_type="prob")
        res = resample(lrn, binary_task, make_resample_desc("CV", iters=3, stratify=True),
                       measures=["auc", "brier"], seed=0, show_info=False)
        assert 0.9 < res.aggr["auc.test.mean"] <= 1.0
        assert "prob.malignant" in res.pred.data.columns

    def test_regression(self, small_regr_task):
        res = resample("regr.lm", small_regr_task, make_resample_desc("CV", iters=4), seed=0, show_info=False)
        assert list(res.aggr) == ["mse.test.mean"]
        assert res.aggr["mse.test.mean"] < 0.1

    def test_logs_iterations(self, iris):
        from loguru import logger

        messages = []
        handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="INFO")
        try:
            resample("classif.lda", iris, make_resample_desc("CV", iters=2), seed=0)
        finally:
            logger.remove(handler_id)
        assert sum("[Resample]" in m for m in messages) == 3


class TestConvenienceWrappers:
    def test_crossval(self, iris):
        res = crossval("classif.lda", iris, iters=3, stratify=True, seed=0, show_info=False)
        assert res.instance.iters == 3

    def test_repcv(self, iris):
        res = repcv("classif.lda", iris, folds=3, reps=2, seed=0, show_info=False)
        assert res.instance.iters == 6
        assert len(res.measures_test) == 6

    def test_holdout(self, iris):
        res = holdout("classif.lda", iris, seed=0, show_info=False)
        assert len(res.pred) == 50

    def test_subsample(self, iris):
        res = subsample("classif.lda", iris, iters=2, split=0.5, seed=0, show_info=False)
        assert len(res.pred) == 150

    def test_bootstrap_oob(self, iris):
        res = bootstrap_oob("classif.lda", iris, iters=3, seed=0, show_info=False)
        assert res.instance.iters == 3
        assert not math.isnan(res.aggr["mmce.test.mean"])
