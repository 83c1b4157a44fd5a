"""Exception hierarchy for mlworkbench.

Every error derives from MLWorkbenchError and from the closest builtin
exception, so callers can catch either broadly or narrowly.
"""


class MLWorkbenchError(Exception):
    """Base exception for all mlworkbench errors."""


# ---------------------------------------------------------------------------
# Tasks and data
# ---------------------------------------------------------------------------

class TaskTypeMismatchError(MLWorkbenchError, TypeError):
    """Target column or learner does not fit the kind of task."""


class SchemaMismatchError(MLWorkbenchError, KeyError):
    """Expected columns are missing from a dataset."""

    def __init__(self, message: str, missing=None):
        self.missing = list(missing or [])
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0])


class SubsetBoundsError(MLWorkbenchError, IndexError):
    """Row subset indices fall outside the task."""


class ShapeMismatchError(MLWorkbenchError, ValueError):
    """A per-row vector does not match the number of rows."""


# ---------------------------------------------------------------------------
# Learners
# ---------------------------------------------------------------------------

class UnknownLearnerError(MLWorkbenchError, LookupError):
    """Learner name is not registered in the catalog."""

    def __init__(self, name: str, available=None):
        self.name = name
        self.available = list(available or [])
        super().__init__(f"Unknown learner: '{name}'. Available learners: {self.available}")


class LearnerCapabilityError(MLWorkbenchError, ValueError):
    """Learner lacks a property the requested operation needs."""

    def __init__(self, learner_id: str, prop: str, message: str = None):
        self.learner_id = learner_id
        self.property = prop
        super().__init__(message or f"Learner '{learner_id}' does not support '{prop}'")


# ---------------------------------------------------------------------------
# Measures
# ---------------------------------------------------------------------------

class UnknownMeasureError(MLWorkbenchError, LookupError):
    """Measure id is not registered."""

    def __init__(self, measure_id: str, available=None):
        self.measure_id = measure_id
        self.available = list(available or [])
        super().__init__(f"Measure '{measure_id}' not found. Available measures: {self.available}")


class MeasureTaskMismatchError(MLWorkbenchError, TypeError):
    """Measure cannot be applied to the given prediction."""


# ---------------------------------------------------------------------------
# Resampling and benchmarking
# ---------------------------------------------------------------------------

class ResampleMergeError(MLWorkbenchError, ValueError):
    """Benchmark results cannot be merged without mixing different splits."""
