"""Configuration management for benchmark experiments."""

import yaml
import copy
from typing import Dict, List, Optional, Any, Union
from pathlib import Path

from ..models.base import safe_float, safe_int

RESAMPLING_INT_KEYS = ('iters', 'folds', 'reps')


class Config:
    """
    YAML configuration loader that preserves all keys while expanding references.

    A learner entry may name a preset from 'param_sets' instead of listing
    its hyperparameters (e.g. params: 'deep_tree'); such string references
    are expanded. All other values remain untouched.
    """

    def __init__(self, config_path: Union[str, Path]):
        """Load configuration from YAML file."""
        self.config_path = Path(config_path)
        with open(self.config_path, 'r') as f:
            self.config = yaml.safe_load(f) or {}

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'Config':
        """Build a configuration from an in-memory dictionary."""
        obj = cls.__new__(cls)
        obj.config_path = None
        obj.config = copy.deepcopy(config)
        return obj

    def get_learner_config(self, learner_id: str) -> Dict[str, Any]:
        """
        Get learner configuration with expanded references.

        Args:
            learner_id: Learner id from 'learners' section

        Returns:
            Deep copy with 'name', 'id', 'predict_type' and 'params'

        Raises:
            ValueError: If learner not found
        """
        learners = self.config.get('learners', {})
        if learner_id not in learners:
            raise ValueError(f"Learner '{learner_id}' not found")

        entry = learners[learner_id]
        # Shorthand: 'rpart: classif.rpart'
        config = {'name': entry} if isinstance(entry, str) else copy.deepcopy(entry or {})
        config.setdefault('name', learner_id)
        config.setdefault('id', learner_id)
        config.setdefault('predict_type', 'response')

        params = config.get('params', {})
        if isinstance(params, str):
            params = self._get_named_config('param_sets', params)
        config['params'] = params or {}
        return config

    def get_learner_configs(self) -> List[Dict[str, Any]]:
        return [self.get_learner_config(lid) for lid in self.config.get('learners', {})]

    def _get_named_config(self, section: str, name: str) -> Dict[str, Any]:
        """
        Get named configuration from a section.

        Raises:
            ValueError: If the name is not defined in the section
        """
        configs = self.config.get(section, {})
        if name not in configs:
            raise ValueError(f"'{name}' not found in section '{section}'")
        return copy.deepcopy(configs[name])

    def get_resampling_config(self) -> Dict[str, Any]:
        """Get resampling configuration with numeric strings coerced."""
        config = copy.deepcopy(self.config.get('resampling', {'method': 'CV', 'iters': 10}))
        for key in RESAMPLING_INT_KEYS:
            if key in config:
                config[key] = safe_int(config[key], config[key])
        if 'split' in config:
            config['split'] = safe_float(config['split'], config['split'])
        return config

    # Simple getters for other sections
    def get_task_configs(self) -> Dict[str, Any]:
        """Get task configurations keyed by task id."""
        return self.config.get('tasks', {})

    def get_measures(self) -> Optional[List[str]]:
        measures = self.config.get('measures')
        if isinstance(measures, str):
            return [measures]
        return measures

    def get_seed(self) -> Optional[int]:
        return safe_int(self.config.get('seed'), None)

    def get_visualization_config(self) -> Dict[str, Any]:
        """Get visualization configuration."""
        return self.config.get('visualization', {})

    def get_output_config(self) -> Dict[str, Any]:
        """Get output configuration."""
        return self.config.get('output', {})

    def __getitem__(self, key: str) -> Any:
        """Allow dict-like access to config."""
        return self.config[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with default."""
        return self.config.get(key, default)


class LearnerConfigBuilder:
    """Simple builder for creating learner configurations programmatically."""

    def __init__(self, name: str):
        self.config = {'name': name, 'params': {}}

    def set(self, **kwargs) -> 'LearnerConfigBuilder':
        """Set any configuration values."""
        self.config.update(kwargs)
        return self

    def set_id(self, learner_id: str) -> 'LearnerConfigBuilder':
        self.config['id'] = learner_id
        return self

    def set_predict_type(self, predict_type: str) -> 'LearnerConfigBuilder':
        self.config['predict_type'] = predict_type
        return self

    def set_params(self, **params) -> 'LearnerConfigBuilder':
        """Set hyperparameters."""
        self.config['params'].update(params)
        return self

    def build(self) -> Dict[str, Any]:
        """Return the built configuration."""
        return copy.deepcopy(self.config)
