"""
Benchmark Experiment Runner
===========================

Runs a complete benchmark experiment described by a YAML configuration:
tasks, learners, resampling strategy and measures. Results are written as
CSV files, optionally together with fitted models and plots.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import yaml
from loguru import logger

from .benchmark import (
    BenchmarkResult,
    benchmark,
    convert_bmr_to_rank_matrix,
    get_bmr_aggr_performances,
    get_bmr_measure_ids,
    get_bmr_performances,
)
from .data.loader import DataLoader
from .data.task import Task
from .models.learner import Learner, make_learner
from .models.train import save_model
from .resampling.desc import ResampleDesc, make_resample_desc
from .utils.config import Config
from .utils.seed import set_seed
from .visualization.report_generator import ReportGenerator


class ExperimentRunner:
    """Main experiment orchestrator that reads all configuration from YAML."""

    def __init__(self, config: Union[str, Path, Config], project_root: Optional[Union[str, Path]] = None):
        """Initialize runner with a configuration file or Config object."""
        self.config = config if isinstance(config, Config) else Config(config)
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()

        self.experiment_name = self._create_experiment_name()
        self.seed = self.config.get_seed()
        set_seed(self.seed)

        self.tasks: List[Task] = []
        self.learners: List[Learner] = []
        self.bmr: Optional[BenchmarkResult] = None
        self.output_dir: Optional[Path] = None

        logger.info(f"Initialized runner - Experiment: {self.experiment_name}")

    def _create_experiment_name(self) -> str:
        """Create unique experiment identifier."""
        config_name = self.config.config_path.stem if self.config.config_path else 'experiment'
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        return f"{config_name}_{timestamp}"

    def run(self) -> BenchmarkResult:
        """Execute the complete benchmark pipeline."""
        logger.info("=" * 80)
        logger.info("BENCHMARK EXPERIMENT")
        logger.info("=" * 80)
        logger.info(f"Experiment: {self.experiment_name}")
        logger.info(f"Random seed: {self.seed}")

        self.tasks = self._load_tasks()
        self.learners = self._build_learners()
        resampling = self._build_resampling()

        output_config = self.config.get_output_config()
        self.bmr = benchmark(
            self.learners,
            self.tasks,
            resamplings=resampling,
            measures=self.config.get_measures(),
            keep_pred=output_config.get('keep_pred', True),
            models=output_config.get('save_models', False),
            show_info=output_config.get('show_info', True),
            seed=self.seed,
        )

        self._save_results()
        self._generate_reports()
        self._print_summary()
        return self.bmr

    def _load_tasks(self) -> List[Task]:
        """Build all tasks of the 'tasks' section."""
        task_configs = self.config.get_task_configs()
        if not task_configs:
            raise ValueError("Configuration defines no tasks")
        loader = DataLoader()
        tasks = []
        for task_id, task_config in task_configs.items():
            task_config = dict(task_config or {})
            task_config.setdefault('id', task_id)
            tasks.append(loader.load_task_from_config(task_config, self.project_root))
        return tasks

    def _build_learners(self) -> List[Learner]:
        """Build all enabled learners of the 'learners' section."""
        learners = []
        for cfg in self.config.get_learner_configs():
            if not cfg.get('enabled', True):
                continue
            learners.append(make_learner(cfg['name'], id=cfg['id'], predict_type=cfg['predict_type'],
                                         **cfg['params']))
        if not learners:
            raise ValueError("Configuration defines no enabled learners")
        logger.info(f"Learners: {', '.join(lrn.id for lrn in learners)}")
        return learners

    def _build_resampling(self) -> ResampleDesc:
        desc = make_resample_desc(**self.config.get_resampling_config())
        logger.info(f"Resampling: {desc.id}")
        return desc

    def _save_results(self) -> None:
        """Save performance tables, rank matrices and optionally fitted models."""
        output_config = self.config.get_output_config()
        self.output_dir = self.project_root / output_config.get('output_dir', 'results') / self.experiment_name
        results_dir = self.output_dir / 'results'
        results_dir.mkdir(parents=True, exist_ok=True)

        get_bmr_performances(self.bmr).to_csv(results_dir / 'performances.csv', index=False)
        get_bmr_aggr_performances(self.bmr).to_csv(results_dir / 'aggregated.csv', index=False)
        for measure_id in get_bmr_measure_ids(self.bmr):
            ranks = convert_bmr_to_rank_matrix(self.bmr, measure_id)
            ranks.to_csv(results_dir / f'ranks_{measure_id}.csv')
        logger.info(f"  Saved performance tables to {results_dir}")

        if output_config.get('save_models', False):
            models_dir = self.output_dir / 'models'
            for task_id, learner_id, res in self.bmr.iter_results():
                for i, model in enumerate(res.models or [], start=1):
                    save_model(model, models_dir / task_id / f"{learner_id}_iter{i}.joblib")

        with open(self.output_dir / 'config.yaml', 'w') as f:
            yaml.safe_dump(self.config.config, f, sort_keys=False)

    def _generate_reports(self) -> None:
        ReportGenerator(self.config.get_visualization_config()).generate_all_reports(self.bmr, self.output_dir)

    def _print_summary(self) -> None:
        """Log aggregated performance and the best learner per task."""
        aggr = get_bmr_aggr_performances(self.bmr)
        logger.info("=" * 60)
        logger.info("SUMMARY")
        logger.info("=" * 60)
        logger.info("\n" + aggr.to_string(index=False))

        for task_id, measures in self.bmr.measures.items():
            measure = measures[0]
            ranks = convert_bmr_to_rank_matrix(self.bmr, measure)[task_id].dropna()
            if not ranks.empty:
                logger.info(f"  Best on {task_id} by {measure.id}: {ranks.idxmin()}")
