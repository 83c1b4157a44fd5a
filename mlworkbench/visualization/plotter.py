"""
Visualization Utilities
=======================

Core plotting functionality for predictions, resampling and benchmark results.

"""

import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
import pandas as pd
from typing import Dict, Optional, Union
from pathlib import Path

from ..benchmark.result import BenchmarkResult, get_bmr_aggr_performances, get_bmr_performances, resolve_bmr_measure
from ..metrics.measures import measure_label
from ..metrics.performance import get_measure
from ..resampling.resample import ResampleResult


class Plotter:
    """Handles core plotting functionality."""

    def __init__(self, dpi: int = 300):
        """Initialize plotter with default settings."""
        self.dpi = dpi

        # Try to use modern seaborn style
        try:
            plt.style.use('seaborn-v0_8-darkgrid')
        except OSError:
            try:
                plt.style.use('seaborn-darkgrid')
            except OSError:
                plt.style.use('default')

        # Set default figure parameters
        plt.rcParams['figure.figsize'] = (10, 6)
        plt.rcParams['font.size'] = 10
        plt.rcParams['axes.labelsize'] = 12
        plt.rcParams['axes.titlesize'] = 14
        plt.rcParams['legend.fontsize'] = 10

        self.colors = {
            'primary': '#1f77b4',
            'secondary': '#ff7f0e',
            'success': '#2ca02c',
            'danger': '#d62728',
            'warning': '#ff9800',
            'info': '#17a2b8',
        }

    def save_and_close(self, save_path: Optional[Union[str, Path]] = None) -> None:
        """Save figure and close it."""
        if save_path:
            Path(save_path).parent.mkdir(parents=True, exist_ok=True)
            plt.savefig(save_path, dpi=self.dpi, bbox_inches='tight', facecolor='white')
        plt.close()

    def plot_confusion_matrix(self,
                              cm: pd.DataFrame,
                              title: str = 'Confusion Matrix',
                              save_path: Optional[Union[str, Path]] = None) -> None:
        """
        Plot a confusion matrix heatmap with counts and row percentages.

        Args:
            cm: Absolute confusion matrix from calculate_confusion_matrix
                (a 'total' row/column is ignored)
            title: Plot title
            save_path: Where to save the figure
        """
        cm = cm.drop(index='total', columns='total', errors='ignore')
        counts = cm.to_numpy()
        row_sums = counts.sum(axis=1, keepdims=True)
        normalized = np.divide(counts, row_sums, out=np.zeros(counts.shape, dtype=float), where=row_sums > 0)

        annotations = np.empty(counts.shape, dtype=object)
        for i in range(counts.shape[0]):
            for j in range(counts.shape[1]):
                annotations[i, j] = f'{counts[i, j]:g}\n({normalized[i, j]:.1%})'

        size = max(6, 1.2 * len(cm))
        plt.figure(figsize=(size + 2, size))
        sns.heatmap(counts, annot=annotations, fmt='', cmap='Blues',
                    xticklabels=[str(c) for c in cm.columns], yticklabels=[str(i) for i in cm.index],
                    cbar_kws={'label': 'Count'}, square=True)

        plt.title(title, fontsize=16, fontweight='bold', pad=20)
        plt.ylabel('True Label', fontsize=12)
        plt.xlabel('Predicted Label', fontsize=12)
        plt.tight_layout()

        self.save_and_close(save_path)

    def plot_measures_bar(self,
                          scores: Dict[str, float],
                          title: str = 'Performance',
                          save_path: Optional[Union[str, Path]] = None) -> None:
        """Plot measure scores as a bar chart."""
        if not scores:
            return

        names = list(scores.keys())
        values = [float(v) for v in scores.values()]

        plt.figure(figsize=(max(6, 1.2 * len(names)), 6))
        x_pos = np.arange(len(names))
        bars = plt.bar(x_pos, values, color=self.colors['primary'], edgecolor='black', linewidth=1.2)

        plt.xlabel('Measure', fontsize=12, fontweight='bold')
        plt.ylabel('Score', fontsize=12, fontweight='bold')
        plt.title(title, fontsize=16, fontweight='bold', pad=20)
        plt.xticks(x_pos, names, rotation=45, ha='right')
        plt.grid(True, alpha=0.3, axis='y')

        for bar, value in zip(bars, values):
            if np.isfinite(value):
                plt.text(bar.get_x() + bar.get_width() / 2, bar.get_height(),
                         f'{value:.3f}', ha='center', va='bottom', fontsize=10, fontweight='bold')

        plt.tight_layout()
        self.save_and_close(save_path)

    def plot_bmr_boxplots(self,
                          bmr: BenchmarkResult,
                          measure=None,
                          save_path: Optional[Union[str, Path]] = None) -> None:
        """Box plots of per-iteration scores, one panel per task."""
        measure = resolve_bmr_measure(bmr, measure)
        perf = get_bmr_performances(bmr)[['task_id', 'learner_id', measure.id]].dropna()
        if perf.empty:
            return

        task_ids = list(dict.fromkeys(perf['task_id']))
        fig, axes = plt.subplots(1, len(task_ids), figsize=(5 * len(task_ids), 6), squeeze=False)
        for ax, task_id in zip(axes[0], task_ids):
            sns.boxplot(data=perf[perf['task_id'] == task_id], x='learner_id', y=measure.id, ax=ax,
                        color=self.colors['info'])
            ax.set_title(task_id, fontsize=14, fontweight='bold')
            ax.set_xlabel('')
            ax.tick_params(axis='x', rotation=45)
        fig.suptitle(f'{measure.name} per iteration', fontsize=16, fontweight='bold')
        fig.tight_layout()
        self.save_and_close(save_path)

    def plot_bmr_summary(self,
                         bmr: BenchmarkResult,
                         measure=None,
                         save_path: Optional[Union[str, Path]] = None) -> None:
        """Dot plot of aggregated scores: tasks on the y axis, one color per learner."""
        measure = resolve_bmr_measure(bmr, measure)
        label = measure_label(measure)
        aggr = get_bmr_aggr_performances(bmr)
        if label not in aggr.columns:
            return

        plt.figure(figsize=(10, max(4, 0.8 * aggr['task_id'].nunique() + 2)))
        sns.stripplot(data=aggr, x=label, y='task_id', hue='learner_id', size=10, jitter=False)
        plt.xlabel(label, fontsize=12, fontweight='bold')
        plt.ylabel('Task', fontsize=12, fontweight='bold')
        plt.title('Benchmark summary', fontsize=16, fontweight='bold', pad=20)
        plt.legend(title='Learner', bbox_to_anchor=(1.02, 1), loc='upper left')
        plt.grid(True, alpha=0.3, axis='x')
        plt.tight_layout()
        self.save_and_close(save_path)

    def plot_resample_iterations(self,
                                 result: ResampleResult,
                                 measure=None,
                                 save_path: Optional[Union[str, Path]] = None) -> None:
        """Line plot of test (and train) scores over resampling iterations."""
        measure = get_measure(measure) if measure is not None else result.measures[0]
        test = result.measures_test

        plt.figure(figsize=(10, 6))
        plt.plot(test['iter'], test[measure.id], 'b-', label='Test', linewidth=2.5, marker='o', markersize=4)
        if result.measures_train is not None:
            train = result.measures_train
            plt.plot(train['iter'], train[measure.id], 'r-', label='Train', linewidth=2.5, marker='s', markersize=4)
        plt.axhline(np.nanmean(test[measure.id].to_numpy(dtype=float)), color='gray', linestyle='--',
                    label='Test mean')

        plt.xlabel('Iteration', fontsize=12, fontweight='bold')
        plt.ylabel(measure.id, fontsize=12, fontweight='bold')
        plt.title(f'{result.learner_id} on {result.task_id}', fontsize=16, fontweight='bold', pad=20)
        plt.legend(loc='best', frameon=True)
        plt.grid(True, alpha=0.3)
        plt.tight_layout()
        self.save_and_close(save_path)
