import numpy as np

from bigbatch_sgd.utils.exceptions import LineSearchDivergence
from bigbatch_sgd.utils.logger import getLogger


class BacktrackingLineSearch:
    """Class that implements a backtracking line search based on the Armijo-Goldstein condition.

    Beginning with a given stepsize, the stepsize is successively multiplied by a constant
    factor until the resulting point decreases the objective sufficiently, i.e. until

        f(x - s * grad) <= f(x) - search_parameter * s * grad_norm

    holds, where `f` is the objective restricted to a range of samples.
    """
    def __init__(self, backtrack_stepsize=0.5, search_parameter=0.1, max_num_search_steps=100,
                 min_stepsize=np.finfo(float).tiny, log_level='INFO'):
        """Constructor.

        Parameters
        ----------
        backtrack_stepsize
            Factor in `(0, 1)` by which the stepsize is reduced in each search step.
        search_parameter
            Constant in `(0, 1)` of the sufficient decrease condition; the larger, the more
            decrease is demanded before a stepsize is accepted.
        max_num_search_steps
            Maximum number of reductions of the stepsize.
        min_stepsize
            Smallest stepsize that may be tried.
        log_level
            Level of the log messages to display (required by the logger).
        """
        assert max_num_search_steps >= 1

        self.backtrack_stepsize = backtrack_stepsize
        self.search_parameter = search_parameter
        self.max_num_search_steps = max_num_search_steps
        self.min_stepsize = min_stepsize
        self.num_search_steps = 0

        self.logger = getLogger('backtracking_line_search', level=log_level)

    def __call__(self, function, x, grad, grad_norm, stepsize, offset, batch_size):
        """Function that performs the line search.

        Parameters
        ----------
        function
            Decomposable objective that is to be minimized.
        x
            Current iterate of the optimization algorithm.
        grad
            Gradient of the objective at `x`; the search moves along `-grad`.
        grad_norm
            Gradient norm entering the sufficient decrease condition.
        stepsize
            Initial stepsize.
        offset
            Index of the first sample used to evaluate the objective.
        batch_size
            Number of samples used to evaluate the objective.

        Returns
        -------
        The accepted stepsize; the caller computes the new iterate from it.
        """
        energy = function.evaluate(x, offset, batch_size)
        new_energy = function.evaluate(x - stepsize * grad, offset, batch_size)

        self.num_search_steps = 0
        while not new_energy <= energy - self.search_parameter * stepsize * grad_norm:
            if (self.num_search_steps >= self.max_num_search_steps
                    or stepsize * self.backtrack_stepsize < self.min_stepsize):
                raise LineSearchDivergence(stepsize, self.num_search_steps)
            stepsize *= self.backtrack_stepsize
            self.num_search_steps += 1
            new_energy = function.evaluate(x - stepsize * grad, offset, batch_size)

        if self.num_search_steps > 0:
            self.logger.debug(f'Reducing stepsize to {stepsize:.3e} ...')

        return stepsize
