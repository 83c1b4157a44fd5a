"""Clustering backends."""

import numpy as np
from typing import Dict, Any, Optional
from sklearn.cluster import AgglomerativeClustering, KMeans
from loguru import logger

from .base import ModelFactory, SklearnModel


class KMeansModel(SklearnModel):
    """KMeans clustering; new rows are assigned to the nearest center."""
    estimator_class = KMeans
    defaults = {'n_clusters': 2, 'n_init': 10, 'random_state': 42}

    def train(self, X: np.ndarray, y: Optional[np.ndarray] = None, weights: Optional[np.ndarray] = None) -> None:
        self.model.fit(X, sample_weight=weights)
        self.fitted = True
        logger.debug(f"{self.model_name} trained with {self.model.n_clusters} clusters")


class AgglomerativeModel(SklearnModel):
    """
    Hierarchical clustering adapted for prediction.

    AgglomerativeClustering cannot label unseen rows, so the centroid of
    every training cluster is stored and new rows go to the nearest one.
    """
    estimator_class = AgglomerativeClustering
    defaults = {'n_clusters': 2}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.centroids = None

    def train(self, X: np.ndarray, y: Optional[np.ndarray] = None, weights: Optional[np.ndarray] = None) -> None:
        labels = self.model.fit_predict(X)
        clusters = np.unique(labels)
        self.centroids = np.vstack([X[labels == c].mean(axis=0) for c in clusters])
        self.fitted = True
        logger.debug(f"{self.model_name} trained with {len(clusters)} clusters")

    def predict(self, X: np.ndarray) -> np.ndarray:
        if not self.fitted:
            raise ValueError("Model not trained")
        distances = ((X[:, None, :] - self.centroids[None, :, :]) ** 2).sum(axis=2)
        return distances.argmin(axis=1)


ModelFactory.register_model('cluster.kmeans', KMeansModel, ('numerics', 'factors', 'weights'), short_name='kmeans')
ModelFactory.register_model('cluster.agglomerative', AgglomerativeModel, ('numerics', 'factors'),
                            short_name='agglo', note='Unseen rows are assigned to the nearest training centroid')
