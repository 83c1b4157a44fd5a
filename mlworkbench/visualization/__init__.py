from .plotter import Plotter
from .report_generator import ReportGenerator

__all__ = ['Plotter', 'ReportGenerator']
