import numpy as np

from bigbatch_sgd.utils.exceptions import DimensionMismatch, InvalidBatchSize
from bigbatch_sgd.utils.logger import getLogger
from bigbatch_sgd.utils.optim.line_search import BacktrackingLineSearch


def estimate_gradient_statistics(function, x, offset, batch_size):
    """Computes the gradient over a batch together with the sample variance of the gradients.

    The sample gradients are visited one by one. A running mean is updated incrementally and
    the products `|g_j - old_mean| * |g_j - new_mean|` are summed up, which yields the sample
    variance scaled by the number of samples.

    Parameters
    ----------
    function
        Decomposable objective.
    x
        Point at which to compute the gradients.
    offset
        Index of the first sample.
    batch_size
        Number of samples.

    Returns
    -------
    Sum of the sample gradients, squared norm of their mean and the sample variance.
    """
    if batch_size < 1:
        raise InvalidBatchSize(f'Batch size has to be positive, got {batch_size}.')

    grad = function.gradient(x, offset, 1)
    mean = grad.copy()
    sample_variance = 0.
    for j in range(1, batch_size):
        sample_grad = function.gradient(x, offset + j, 1)
        # mean after k = j + 1 samples
        new_mean = mean + (sample_grad - mean) / (j + 1)
        sample_variance += np.linalg.norm(sample_grad - mean) * np.linalg.norm(sample_grad - new_mean)
        mean = new_mean
        grad = grad + sample_grad

    grad_norm = np.linalg.norm(grad / batch_size) ** 2
    return grad, float(grad_norm), float(sample_variance)


class BaseStepsizeController:
    """Base class for the stepsize policies used by `BigBatchSGD`.

    A policy performs one optimization step per call of `update` and determines the stepsize
    of this step with a backtracking line search. A certain policy is specified by writing
    the `update` method.
    """
    def __init__(self, backtrack_stepsize=0.5, search_parameter=0.1, max_num_search_steps=100,
                 log_level='INFO'):
        """Constructor.

        Parameters
        ----------
        backtrack_stepsize
            Factor by which the line search reduces the stepsize in each search step.
        search_parameter
            Constant of the sufficient decrease condition of the line search.
        max_num_search_steps
            Maximum number of reductions of the stepsize within one line search.
        log_level
            Level of the log messages to display (required by the logger).
        """
        self.line_search = BacktrackingLineSearch(backtrack_stepsize=backtrack_stepsize,
                                                  search_parameter=search_parameter,
                                                  max_num_search_steps=max_num_search_steps,
                                                  log_level=log_level)

        self.logger = getLogger('stepsize_controller', level=log_level)

    @property
    def backtrack_stepsize(self):
        return self.line_search.backtrack_stepsize

    @backtrack_stepsize.setter
    def backtrack_stepsize(self, value):
        self.line_search.backtrack_stepsize = value

    @property
    def search_parameter(self):
        return self.line_search.search_parameter

    @search_parameter.setter
    def search_parameter(self, value):
        self.line_search.search_parameter = value

    def _check_arguments(self, x, grad, batch_size, backtracking_batch_size):
        if grad.shape != x.shape:
            raise DimensionMismatch(x.shape, grad.shape)
        if batch_size < 1:
            raise InvalidBatchSize(f'Batch size has to be positive, got {batch_size}.')
        if backtracking_batch_size < 1:
            raise InvalidBatchSize(f'Backtracking batch size has to be positive, got {backtracking_batch_size}.')

    def update(self, function, stepsize, x, grad, grad_norm, sample_variance, offset, batch_size,
               backtracking_batch_size, reset=False):
        raise NotImplementedError


class BacktrackingStepsize(BaseStepsizeController):
    """Policy that performs a gradient step with the stepsize found by the line search.

    The stepsize is not adapted across iterations apart from the reductions of the line search.
    """
    def update(self, function, stepsize, x, grad, grad_norm, sample_variance, offset, batch_size,
               backtracking_batch_size, reset=False):
        """Performs a single optimization step.

        The arguments are the same as for `AdaptiveStepsize.update`; gradient, gradient norm
        and sample variance are returned unchanged.

        Returns
        -------
        Dictionary with the keys `stepsize`, `x`, `grad`, `grad_norm` and `sample_variance`.
        """
        self._check_arguments(x, grad, batch_size, backtracking_batch_size)

        stepsize = self.line_search(function, x, grad, grad_norm, stepsize, offset, backtracking_batch_size)
        return {'stepsize': stepsize, 'x': x - stepsize * grad, 'grad': grad,
                'grad_norm': grad_norm, 'sample_variance': sample_variance}


class AdaptiveStepsize(BaseStepsizeController):
    """Non-monotonic stepsize policy that uses curvature estimates to propose new stepsizes.

    Based on:
    Big Batch SGD: Automated Inference using Adaptive Batch Sizes.
    De, Yadav, Jacobs, Goldstein, 2017

    The policy remembers the iterate of its previous call to estimate the curvature of the
    objective between consecutive iterates. An instance must therefore only be used for a
    single optimization run at a time.
    """
    def __init__(self, backtrack_stepsize=0.5, search_parameter=0.1, max_num_search_steps=100,
                 log_level='INFO'):
        super().__init__(backtrack_stepsize=backtrack_stepsize, search_parameter=search_parameter,
                         max_num_search_steps=max_num_search_steps, log_level=log_level)
        self.previous_iterate = None

    def update(self, function, stepsize, x, grad, grad_norm, sample_variance, offset, batch_size,
               backtracking_batch_size, reset=False):
        """Performs a single optimization step and adapts the stepsize.

        Parameters
        ----------
        function
            Decomposable objective that is to be minimized.
        stepsize
            Stepsize proposed for the current iteration.
        x
            Current iterate (not modified).
        grad
            Gradient of the objective over the backtracking batch at `x`.
        grad_norm
            Squared norm of the mean sample gradient at `x`.
        sample_variance
            Sample variance of the gradients at `x`; only recomputed, never read.
        offset
            Index of the first sample of the current batch.
        batch_size
            Batch size of the current iteration, used to weight the stepsize smoothing.
        backtracking_batch_size
            Number of samples used by the line search and by the gradient estimation.
        reset
            Accepted for compatibility with the batch size adaptation of the driver; it has
            no effect on the stepsize.

        Returns
        -------
        Dictionary with the new stepsize `stepsize`, the new iterate `x`, the gradient `grad`
        over the backtracking batch at the new iterate, its mean squared norm `grad_norm` and
        the sample variance `sample_variance`.
        """
        self._check_arguments(x, grad, batch_size, backtracking_batch_size)
        if self.previous_iterate is None:
            previous_iterate = np.zeros_like(x, dtype=float)
        elif self.previous_iterate.shape != x.shape:
            raise DimensionMismatch(self.previous_iterate.shape, x.shape)
        else:
            previous_iterate = self.previous_iterate

        stepsize = self.line_search(function, x, grad, grad_norm, stepsize, offset, backtracking_batch_size)

        x = x - stepsize * grad

        grad, grad_norm, sample_variance = estimate_gradient_statistics(function, x, offset,
                                                                        backtracking_batch_size)
        grad_previous = function.gradient(previous_iterate, offset, 1)
        for j in range(1, backtracking_batch_size):
            grad_previous = grad_previous + function.gradient(previous_iterate, offset + j, 1)

        curvature = self.compute_curvature(x, previous_iterate, grad, grad_previous)

        stepsize_decay = self.compute_stepsize_decay(grad_norm, sample_variance, batch_size, curvature,
                                                     function.num_functions())

        # a vanishing decay leaves the stepsize as it is
        if stepsize_decay > 0.:
            ratio = batch_size / function.num_functions()
            stepsize = stepsize * (1. - ratio) + stepsize_decay * ratio

        self.logger.debug(f'Curvature: {curvature:.3e}, stepsize decay: {stepsize_decay:.3e}, '
                          f'smoothed stepsize: {stepsize:.3e}')

        stepsize = self.line_search(function, x, grad, grad_norm, stepsize, offset, backtracking_batch_size)

        # only advanced once the whole update succeeded
        self.previous_iterate = x.copy()

        return {'stepsize': stepsize, 'x': x, 'grad': grad,
                'grad_norm': grad_norm, 'sample_variance': sample_variance}

    @staticmethod
    def compute_curvature(x, previous_iterate, grad, grad_previous):
        """Estimates the curvature of the objective between two iterates.

        Parameters
        ----------
        x
            Current iterate.
        previous_iterate
            Iterate of the previous iteration.
        grad
            Gradient at `x`.
        grad_previous
            Gradient at `previous_iterate` over the same samples.

        Returns
        -------
        The ratio `<dx, dg> / |dx|^2`, or 0 if it is not finite.
        """
        dx = x - previous_iterate
        with np.errstate(divide='ignore', invalid='ignore'):
            curvature = np.vdot(dx, grad - grad_previous) / np.linalg.norm(dx) ** 2
        return float(curvature) if np.isfinite(curvature) else 0.

    def compute_stepsize_decay(self, grad_norm, sample_variance, batch_size, curvature, num_functions):
        """Computes the stepsize proposed by the curvature and the gradient noise.

        Parameters
        ----------
        grad_norm
            Squared norm of the mean sample gradient.
        sample_variance
            Sample variance of the gradients.
        batch_size
            Current batch size.
        curvature
            Curvature estimate.
        num_functions
            Total number of samples of the objective.

        Returns
        -------
        The proposed stepsize, or 0 if no proposal can be made.
        """
        if not (grad_norm and sample_variance and batch_size and curvature):
            return 0.

        if batch_size < num_functions:
            if batch_size == 1:
                self.logger.warning('Cannot correct the stepsize for gradient noise with batch size 1, '
                                    'keeping the stepsize ...')
                return 0.
            stepsize_decay = (1. - (sample_variance / (batch_size - 1.)) / (batch_size * grad_norm)) / curvature
        else:
            stepsize_decay = 1. / curvature

        return stepsize_decay if np.isfinite(stepsize_decay) else 0.
