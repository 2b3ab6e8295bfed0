import math
import time
import numpy as np

from bigbatch_sgd.utils.logger import getLogger
from bigbatch_sgd.utils.optim.stepsize_controllers import AdaptiveStepsize, estimate_gradient_statistics


class BigBatchSGD:
    """Class that implements stochastic gradient descent with adaptively growing batches.

    Based on:
    Big Batch SGD: Automated Inference using Adaptive Batch Sizes.
    De, Yadav, Jacobs, Goldstein, 2017

    Whenever the gradient over the current batch is dominated by noise, i.e. the squared norm
    of the mean gradient is smaller than the variance estimate divided by the batch size, the
    batch is enlarged. The stepsize of each iteration is chosen by an update policy (see
    `bigbatch_sgd.utils.optim.stepsize_controllers`).
    """
    def __init__(self, batch_size=1000, stepsize=0.01, batch_delta=0.1, max_iterations=100000,
                 tolerance=1e-5, shuffle=True, exact_objective=False, update_policy=None,
                 log_frequency=100, log_level='INFO'):
        """Constructor.

        Parameters
        ----------
        batch_size
            Initial batch size.
        stepsize
            Initial stepsize.
        batch_delta
            Relative increase of the batch size whenever the batch is too noisy.
        max_iterations
            Maximum number of iterations (0 means no limit).
        tolerance
            Optimization stops if the objective of two consecutive epochs differs by less.
        shuffle
            Determines whether to shuffle the samples after each epoch.
        exact_objective
            Determines whether to evaluate the objective on all samples after optimization.
        update_policy
            Stepsize policy; defaults to `AdaptiveStepsize`.
        log_frequency
            Number of iterations between two progress messages.
        log_level
            Level of the log messages to display (required by the logger).
        """
        assert batch_size >= 1
        assert stepsize > 0.
        assert batch_delta > 0.
        assert isinstance(max_iterations, int) and max_iterations >= 0

        self.batch_size = batch_size
        self.stepsize = stepsize
        self.batch_delta = batch_delta
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.shuffle = shuffle
        self.exact_objective = exact_objective
        self.update_policy = update_policy if update_policy is not None else AdaptiveStepsize(log_level=log_level)
        self.log_frequency = log_frequency

        self.logger = getLogger('bigbatch_sgd', level=log_level)

    def __str__(self):
        return (f"{self.__class__.__name__}:\n"
                f"\tBatch size: {self.batch_size}\n"
                f"\tStepsize: {self.stepsize}\n"
                f"\tBatch delta: {self.batch_delta}\n"
                f"\tUpdate policy: {self.update_policy.__class__.__name__}")

    def optimize(self, function, x0, callback=None):
        """Minimizes a decomposable objective.

        Parameters
        ----------
        function
            Objective providing `evaluate`, `gradient` and `num_functions` (and optionally
            `shuffle`), see `bigbatch_sgd.core.BaseDecomposableFunction`.
        x0
            Initial iterate.
        callback
            If not `None`, called with a copy of the iterate after every iteration.

        Returns
        -------
        Dictionary containing the final iterate `x`, the objective `objective`, the number of
        iterations and epochs, the histories of stepsizes and batch sizes, the reason for
        stopping `message` and the elapsed time `time`.
        """
        start_time = time.perf_counter()

        num_functions = function.num_functions()
        batch_size = min(self.batch_size, num_functions)
        stepsize = self.stepsize
        x = np.array(x0, dtype=float)
        self.logger.debug(str(self))

        stepsizes = []
        batch_sizes = []
        current_function = 0
        overall_objective = 0.
        last_objective = np.inf
        epochs = 0
        i = 0
        message = 'maximum number of iterations reached'

        if self.shuffle and hasattr(function, 'shuffle'):
            function.shuffle()

        with self.logger.block(f'Optimizing objective with {num_functions} samples via big batch SGD ...'):
            try:
                while self.max_iterations == 0 or i < self.max_iterations:
                    effective_batch_size = min(batch_size, num_functions - current_function)
                    grad, grad_norm, sample_variance = estimate_gradient_statistics(function, x, current_function,
                                                                                    effective_batch_size)

                    reset = False
                    while (effective_batch_size > 1 and effective_batch_size < num_functions - current_function
                           and grad_norm <= sample_variance / ((effective_batch_size - 1) * effective_batch_size)):
                        batch_size = min(batch_size + math.ceil(self.batch_delta * batch_size), num_functions)
                        effective_batch_size = min(batch_size, num_functions - current_function)
                        grad, grad_norm, sample_variance = estimate_gradient_statistics(function, x,
                                                                                        current_function,
                                                                                        effective_batch_size)
                        reset = True

                    if reset:
                        self.logger.info(f'Increasing batch size to {batch_size} ...')

                    result = self.update_policy.update(function, stepsize, x, grad, grad_norm, sample_variance,
                                                       current_function, batch_size, effective_batch_size,
                                                       reset=reset)
                    stepsize = result['stepsize']
                    x = result['x']
                    stepsizes.append(stepsize)
                    batch_sizes.append(effective_batch_size)

                    overall_objective += function.evaluate(x, current_function, effective_batch_size)
                    current_function += effective_batch_size
                    i += 1

                    if callback is not None:
                        callback(np.copy(x))

                    if i % self.log_frequency == 0:
                        self.logger.info(f'iter: {i:5d}\tstepsize= {stepsize:.5e}\tbatch size= {batch_size}\t'
                                         f'|grad|^2= {result["grad_norm"]:.5e}')

                    if current_function == num_functions:
                        epochs += 1
                        if not np.isfinite(overall_objective):
                            message = 'objective diverged'
                            self.logger.warning(f'Objective is {overall_objective}, terminating optimization ...')
                            break
                        if abs(last_objective - overall_objective) < self.tolerance:
                            message = 'objective update below tolerance'
                            break
                        last_objective = overall_objective
                        overall_objective = 0.
                        current_function = 0
                        if self.shuffle and hasattr(function, 'shuffle'):
                            function.shuffle()
            except KeyboardInterrupt:
                message = 'optimization stopped due to keyboard interrupt'
                self.logger.warning('Optimization interrupted ...')

        if self.exact_objective:
            objective = function.evaluate(x, 0, num_functions)
        elif current_function == 0 and epochs > 0:
            objective = last_objective
        else:
            objective = overall_objective

        self.logger.info(f'Finished optimization ({message}) ...')

        return {'x': x, 'objective': objective, 'iterations': i, 'epochs': epochs,
                'stepsizes': stepsizes, 'batch_sizes': batch_sizes, 'message': message,
                'time': time.perf_counter() - start_time}
