"""
Report Generator
================

Generates the configured plots of a benchmark experiment.

"""

from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from ..benchmark.result import BenchmarkResult, get_bmr_measure_ids
from ..models.prediction import Prediction, calculate_confusion_matrix
from .plotter import Plotter

DEFAULT_PLOTS = ['bmr_boxplots', 'bmr_summary', 'confusion_matrix']


class ReportGenerator:
    """Generate experiment plots from a benchmark result."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize report generator with the 'visualization' config section."""
        self.viz_config = config or {}
        self.plotter = Plotter(dpi=self.viz_config.get('dpi', 300))

    def generate_all_reports(self, bmr: BenchmarkResult, output_dir: Path) -> int:
        """
        Generate all configured plots.

        Returns:
            Number of plot files written
        """
        if not self.viz_config.get('create_report', False):
            return 0

        logger.info("=" * 60)
        logger.info("GENERATING VISUALIZATIONS")
        logger.info("=" * 60)

        plots_dir = Path(output_dir) / 'plots'
        plots_dir.mkdir(parents=True, exist_ok=True)
        plot_format = self.viz_config.get('plot_format', 'png')
        plots_to_generate = self.viz_config.get('plots', DEFAULT_PLOTS)

        plot_count = 0
        for measure_id in get_bmr_measure_ids(bmr):
            if 'bmr_boxplots' in plots_to_generate:
                self.plotter.plot_bmr_boxplots(bmr, measure_id, plots_dir / f'boxplots_{measure_id}.{plot_format}')
                plot_count += 1
            if 'bmr_summary' in plots_to_generate:
                self.plotter.plot_bmr_summary(bmr, measure_id, plots_dir / f'summary_{measure_id}.{plot_format}')
                plot_count += 1

        for task_id, learner_id, res in bmr.iter_results():
            if 'resample_iterations' in plots_to_generate:
                self.plotter.plot_resample_iterations(
                    res, save_path=plots_dir / f'iterations_{task_id}_{learner_id}.{plot_format}')
                plot_count += 1
            if 'confusion_matrix' in plots_to_generate and res.pred is not None \
                    and res.pred.task_desc.type == 'classif':
                test = res.pred.data
                pooled = Prediction(test[test['set'] == 'test'].drop(columns=['iter', 'set']),
                                    res.pred.predict_type, res.pred.task_desc)
                self.plotter.plot_confusion_matrix(
                    calculate_confusion_matrix(pooled),
                    title=f'{learner_id} on {task_id}',
                    save_path=plots_dir / f'confusion_{task_id}_{learner_id}.{plot_format}')
                plot_count += 1

        logger.info(f"  Generated {plot_count} plots in {plots_dir}")
        return plot_count

