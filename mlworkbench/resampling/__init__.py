from .desc import ResampleDesc, make_resample_desc
from .instance import ResampleInstance, make_fixed_holdout_instance, make_resample_instance
from .resample import (
    ResamplePrediction,
    ResampleResult,
    bootstrap_oob,
    crossval,
    holdout,
    repcv,
    resample,
    subsample,
)

__all__ = [
    'ResampleDesc', 'make_resample_desc',
    'ResampleInstance', 'make_fixed_holdout_instance', 'make_resample_instance',
    'ResamplePrediction', 'ResampleResult', 'resample',
    'crossval', 'repcv', 'holdout', 'subsample', 'bootstrap_oob',
]
