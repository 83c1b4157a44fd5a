from .measures import AGGREGATIONS, MEASURES, Aggregation, Measure, get_aggregation, register_measure
from .performance import (
    get_default_measure,
    get_measure,
    list_measures,
    performance,
    set_aggregation,
)

__all__ = [
    'AGGREGATIONS', 'MEASURES', 'Aggregation', 'Measure', 'get_aggregation', 'register_measure',
    'get_default_measure', 'get_measure', 'list_measures', 'performance', 'set_aggregation',
]
