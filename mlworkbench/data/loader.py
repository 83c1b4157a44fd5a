"""Data loading utilities: build tasks from CSV/TXT files or bundled datasets."""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Any, Optional
from loguru import logger

from .datasets import DATASETS
from .task import Task, make_classif_task, make_cluster_task, make_regr_task


class DataLoader:
    """Handles task loading from CSV and TXT files."""

    def load_task_from_config(self, config: Dict[str, Any], project_root: Path = Path('.')) -> Task:
        """
        Load a task from configuration.

        Config formats:

        1. Bundled example dataset:
           {dataset: 'iris'}
           {dataset: 'diabetes', id: 'diab'}

        2. Single file with target column:
           {file: 'data.csv', target: 'class', type: 'classif', skip_rows: 0}
           {file: 'data.txt', target: 2, type: 'regr', blocking: 'patient'}

        3. Unsupervised file (no target):
           {file: 'points.csv', type: 'cluster'}

        Args:
            config: Task entry of the experiment configuration
            project_root: Root directory for relative paths

        Returns:
            Task built from the data
        """
        if 'dataset' in config:
            name = config['dataset']
            if name not in DATASETS:
                raise ValueError(f"Unknown dataset '{name}'. Available datasets: {list(DATASETS)}")
            task = DATASETS[name]()
            if config.get('id'):
                task = task._derive(task.data, task.blocking, task.weights)
                task.id = config['id']
            logger.info(f"Loaded dataset '{name}': {task.size} rows, {len(task.feature_names)} features")
            return task

        file_path = config.get('file')
        if not file_path:
            raise ValueError("Task config needs either 'dataset' or 'file'")

        task_type = config.get('type', 'classif')
        target = config.get('target')
        data = self._read_data(project_root / file_path, config.get('skip_rows', 0))

        # Integer targets refer to a column position
        if isinstance(target, int):
            target = data.columns[target]

        task_id = config.get('id') or Path(file_path).stem
        common = {'id': task_id, 'blocking': config.get('blocking'), 'weights': config.get('weights')}

        if task_type == 'classif':
            task = make_classif_task(data, target, positive=config.get('positive'), **common)
        elif task_type == 'regr':
            task = make_regr_task(data, target, **common)
        elif task_type == 'cluster':
            task = make_cluster_task(data, **common)
        else:
            raise ValueError(f"Unknown task type '{task_type}'")

        logger.info(f"Loaded {task_type} task '{task_id}': {task.size} rows, {len(task.feature_names)} features")
        return task

    def _read_data(self, file_path: Path, skip_rows: int = 0) -> pd.DataFrame:
        """Read data from file."""
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if file_path.suffix == '.csv':
            return pd.read_csv(file_path, skiprows=skip_rows)

        # TXT - auto-detect delimiter, no header
        with open(file_path, 'r') as f:
            for _ in range(skip_rows):
                f.readline()
            first_line = f.readline().strip()

        for delimiter in [',', '\t', '|', ';', ' ']:
            if delimiter in first_line:
                data = np.loadtxt(file_path, delimiter=delimiter, skiprows=skip_rows)
                break
        else:
            data = np.loadtxt(file_path, skiprows=skip_rows)

        data = data.reshape(-1, 1) if data.ndim == 1 else data
        return pd.DataFrame(data, columns=[f"V{i + 1}" for i in range(data.shape[1])])
