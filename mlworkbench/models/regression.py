"""Regression backends."""

from sklearn.dummy import DummyRegressor
from sklearn.ensemble import GradientBoostingRegressor, HistGradientBoostingRegressor, RandomForestRegressor
from sklearn.linear_model import Lasso, LinearRegression, Ridge
from sklearn.neighbors import KNeighborsRegressor
from sklearn.svm import SVR
from sklearn.tree import DecisionTreeRegressor

from .base import ModelFactory, SklearnModel


class FeaturelessRegressorModel(SklearnModel):
    """Predicts the training mean."""
    estimator_class = DummyRegressor
    defaults = {'strategy': 'mean'}


class LinearRegressionModel(SklearnModel):
    estimator_class = LinearRegression


class RidgeModel(SklearnModel):
    estimator_class = Ridge
    defaults = {'alpha': 1.0}


class LassoModel(SklearnModel):
    estimator_class = Lasso
    defaults = {'alpha': 1.0, 'random_state': 42}


class KNNRegressorModel(SklearnModel):
    estimator_class = KNeighborsRegressor
    defaults = {'n_neighbors': 5}


class DecisionTreeRegressorModel(SklearnModel):
    estimator_class = DecisionTreeRegressor
    defaults = {'random_state': 42}


class RandomForestRegressorModel(SklearnModel):
    estimator_class = RandomForestRegressor
    defaults = {'n_estimators': 100, 'random_state': 42}


class GradientBoostingRegressorModel(SklearnModel):
    estimator_class = GradientBoostingRegressor
    defaults = {'n_estimators': 100, 'random_state': 42}


class HistGradientBoostingRegressorModel(SklearnModel):
    estimator_class = HistGradientBoostingRegressor
    defaults = {'random_state': 42}


class SVRModel(SklearnModel):
    estimator_class = SVR
    defaults = {'gamma': 'scale'}


_BASE = ('numerics', 'factors')

ModelFactory.register_model('regr.featureless', FeaturelessRegressorModel, _BASE + ('weights', 'missings'),
                            short_name='featless', note='Baseline: training mean')
ModelFactory.register_model('regr.lm', LinearRegressionModel, _BASE + ('weights',), short_name='lm')
ModelFactory.register_model('regr.ridge', RidgeModel, _BASE + ('weights',), short_name='ridge')
ModelFactory.register_model('regr.lasso', LassoModel, _BASE + ('weights',), short_name='lasso')
ModelFactory.register_model('regr.knn', KNNRegressorModel, _BASE, short_name='knn')
ModelFactory.register_model('regr.rpart', DecisionTreeRegressorModel, _BASE + ('weights',), short_name='rpart')
ModelFactory.register_model('regr.random_forest', RandomForestRegressorModel, _BASE + ('weights',), short_name='rf')
ModelFactory.register_model('regr.gbm', GradientBoostingRegressorModel, _BASE + ('weights',), short_name='gbm')
ModelFactory.register_model('regr.hist_gbm', HistGradientBoostingRegressorModel, _BASE + ('weights', 'missings'),
                            short_name='hgbm')
ModelFactory.register_model('regr.svm', SVRModel, _BASE + ('weights',), short_name='svm')
