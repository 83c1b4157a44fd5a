"""Random seed handling."""

import random
from typing import Optional

import numpy as np
from loguru import logger


def set_seed(seed: Optional[int]) -> None:
    """Set random seeds for reproducibility."""
    if seed is None:
        return
    random.seed(seed)
    np.random.seed(seed)
    logger.debug(f"Random seed set to {seed}")
