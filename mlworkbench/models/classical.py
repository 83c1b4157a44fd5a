"""Classification backends."""

from sklearn.discriminant_analysis import LinearDiscriminantAnalysis, QuadraticDiscriminantAnalysis
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import GradientBoostingClassifier, HistGradientBoostingClassifier, RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from .base import ModelFactory, SklearnModel


# Individual model classes for cleaner imports

class FeaturelessClassifierModel(SklearnModel):
    """Predicts the majority class; probabilities are the class priors."""
    estimator_class = DummyClassifier
    defaults = {'strategy': 'prior'}


class LogisticRegressionModel(SklearnModel):
    """Logistic Regression classifier."""
    estimator_class = LogisticRegression
    defaults = {'max_iter': 1000, 'random_state': 42}


class LDAModel(SklearnModel):
    """Linear discriminant analysis."""
    estimator_class = LinearDiscriminantAnalysis


class QDAModel(SklearnModel):
    """Quadratic discriminant analysis."""
    estimator_class = QuadraticDiscriminantAnalysis


class NaiveBayesModel(SklearnModel):
    """Gaussian Naive Bayes classifier."""
    estimator_class = GaussianNB
    defaults = {'var_smoothing': 1e-9}


class KNNModel(SklearnModel):
    """K-Nearest Neighbors classifier."""
    estimator_class = KNeighborsClassifier
    defaults = {'n_neighbors': 5}


class DecisionTreeModel(SklearnModel):
    """Decision Tree classifier."""
    estimator_class = DecisionTreeClassifier
    defaults = {'random_state': 42}


class RandomForestModel(SklearnModel):
    """Random Forest classifier."""
    estimator_class = RandomForestClassifier
    defaults = {'n_estimators': 100, 'random_state': 42}


class GradientBoostingModel(SklearnModel):
    """Gradient Boosting classifier."""
    estimator_class = GradientBoostingClassifier
    defaults = {'n_estimators': 100, 'random_state': 42}


class HistGradientBoostingModel(SklearnModel):
    """Histogram gradient boosting; handles missing values natively."""
    estimator_class = HistGradientBoostingClassifier
    defaults = {'random_state': 42}


class SVMModel(SklearnModel):
    """Support Vector Machine classifier."""
    estimator_class = SVC
    defaults = {'probability': True, 'gamma': 'scale', 'random_state': 42}


_ALL = ('numerics', 'factors', 'prob', 'twoclass', 'multiclass')

# Register all models
ModelFactory.register_model('classif.featureless', FeaturelessClassifierModel, _ALL + ('weights', 'missings'),
                            short_name='featless', note='Baseline: majority class / prior probabilities')
ModelFactory.register_model('classif.logreg', LogisticRegressionModel, _ALL + ('weights',), short_name='logreg')
ModelFactory.register_model('classif.lda', LDAModel, _ALL, short_name='lda')
ModelFactory.register_model('classif.qda', QDAModel, _ALL, short_name='qda')
ModelFactory.register_model('classif.naive_bayes', NaiveBayesModel, _ALL + ('weights',), short_name='nb')
ModelFactory.register_model('classif.knn', KNNModel, _ALL, short_name='knn')
ModelFactory.register_model('classif.rpart', DecisionTreeModel, _ALL + ('weights',), short_name='rpart',
                            note='CART decision tree')
ModelFactory.register_model('classif.random_forest', RandomForestModel, _ALL + ('weights',), short_name='rf')
ModelFactory.register_model('classif.gbm', GradientBoostingModel, _ALL + ('weights',), short_name='gbm')
ModelFactory.register_model('classif.hist_gbm', HistGradientBoostingModel, _ALL + ('weights', 'missings'),
                            short_name='hgbm')
ModelFactory.register_model('classif.svm', SVMModel, _ALL + ('weights',), short_name='svm',
                            note='Probabilities via Platt scaling')
