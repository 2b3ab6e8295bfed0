"""Errors raised by the step size policies, the line search and the objectives.

None of these errors is handled inside the package; retrying is left to the caller.
"""


class BigBatchSGDError(RuntimeError):
    """Base class for all errors of the package."""


class LineSearchDivergence(BigBatchSGDError):
    """Raised when the backtracking line search cannot satisfy the sufficient decrease condition.

    Attributes
    ----------
    stepsize
        Last candidate stepsize that was tried.
    num_search_steps
        Number of shrink steps performed before giving up.
    """
    def __init__(self, stepsize, num_search_steps):
        super().__init__(f'No sufficient decrease after {num_search_steps} search steps '
                         f'(last stepsize {stepsize:.3e}).')
        self.stepsize = stepsize
        self.num_search_steps = num_search_steps


class DimensionMismatch(BigBatchSGDError, ValueError):
    """Raised when two arrays that have to share their shape do not."""
    def __init__(self, shape_a, shape_b):
        super().__init__(f'Shape mismatch: {tuple(shape_a)} vs {tuple(shape_b)}.')
        self.shape_a = tuple(shape_a)
        self.shape_b = tuple(shape_b)


class InvalidBatchSize(BigBatchSGDError, ValueError):
    """Raised for non-positive batch sizes or sample ranges beyond the number of functions."""
