import numpy as np
from scipy.special import expit

from bigbatch_sgd.utils.exceptions import InvalidBatchSize


class BaseDecomposableFunction:
    """Base class for objectives that decompose into a sum over samples.

    The objective over a sample range is the sum of the per-sample losses, its gradient
    the sum of the per-sample gradients. The samples are visited in an internal ordering
    that can be permuted via `shuffle`.

    A certain objective is specified by writing the methods `_evaluate` and `_gradient`,
    which receive the indices of the samples to use.
    """
    def __init__(self, num_samples, seed=None):
        """Constructor.

        Parameters
        ----------
        num_samples
            Number of samples (separable functions) of the objective.
        seed
            Seed for the random number generator used by `shuffle`.
        """
        assert num_samples >= 1
        self.ordering = np.arange(num_samples)
        self.rng = np.random.default_rng(seed)

    def num_functions(self):
        """Returns the number of samples the objective is composed of."""
        return len(self.ordering)

    def shuffle(self):
        """Randomly permutes the order in which the samples are visited."""
        self.ordering = self.rng.permutation(self.num_functions())

    def _indices(self, offset, batch_size):
        if batch_size < 1:
            raise InvalidBatchSize(f'Batch size has to be positive, got {batch_size}.')
        if offset < 0 or offset + batch_size > self.num_functions():
            raise InvalidBatchSize(f'Samples [{offset}, {offset + batch_size}) exceed the '
                                   f'{self.num_functions()} available samples.')
        return self.ordering[offset:offset + batch_size]

    def evaluate(self, x, offset=0, batch_size=1):
        """Evaluates the objective on a range of samples.

        Parameters
        ----------
        x
            Point at which to evaluate.
        offset
            Index of the first sample.
        batch_size
            Number of samples to use.

        Returns
        -------
        Sum of the losses of the samples `[offset, offset + batch_size)`.
        """
        return float(self._evaluate(x, self._indices(offset, batch_size)))

    def gradient(self, x, offset=0, batch_size=1):
        """Computes the gradient of the objective on a range of samples.

        Parameters
        ----------
        x
            Point at which to compute the gradient.
        offset
            Index of the first sample.
        batch_size
            Number of samples to use.

        Returns
        -------
        Array of the same shape as `x` containing the sum of the sample gradients.
        """
        return self._gradient(x, self._indices(offset, batch_size)).reshape(x.shape)

    def _evaluate(self, x, indices):
        raise NotImplementedError

    def _gradient(self, x, indices):
        raise NotImplementedError


class QuadraticFunction(BaseDecomposableFunction):
    """Sum of squared distances to a set of centers, i.e. `f_i(x) = |x - c_i|^2`.

    With a single center at the origin this is `f(x) = x^T x` with gradient `2x`.
    """
    def __init__(self, centers, seed=None):
        """Constructor.

        Parameters
        ----------
        centers
            Array whose first axis enumerates the samples; each entry has the shape
            of the iterate.
        seed
            Seed for the random number generator used by `shuffle`.
        """
        self.centers = np.asarray(centers, dtype=float)
        super().__init__(self.centers.shape[0], seed=seed)

    def _evaluate(self, x, indices):
        diff = x[np.newaxis] - self.centers[indices]
        return np.sum(diff ** 2)

    def _gradient(self, x, indices):
        return 2. * np.sum(x[np.newaxis] - self.centers[indices], axis=0)


class LinearRegressionFunction(BaseDecomposableFunction):
    """Least squares objective `f_i(x) = (a_i^T x - b_i)^2`."""
    def __init__(self, predictors, responses, seed=None):
        """Constructor.

        Parameters
        ----------
        predictors
            Array of shape `(num_samples, dim)` whose rows are the predictors `a_i`.
        responses
            Array of length `num_samples` with the responses `b_i`.
        seed
            Seed for the random number generator used by `shuffle`.
        """
        self.predictors = np.asarray(predictors, dtype=float)
        self.responses = np.asarray(responses, dtype=float).ravel()
        assert self.predictors.ndim == 2
        assert self.predictors.shape[0] == self.responses.shape[0]
        super().__init__(self.predictors.shape[0], seed=seed)

    def _residuals(self, x, indices):
        return self.predictors[indices] @ x.ravel() - self.responses[indices]

    def _evaluate(self, x, indices):
        return np.sum(self._residuals(x, indices) ** 2)

    def _gradient(self, x, indices):
        return 2. * self.predictors[indices].T @ self._residuals(x, indices)


class LogisticRegressionFunction(BaseDecomposableFunction):
    """Negative log-likelihood of logistic regression with optional L2 regularization.

    For labels `y_i` in `{0, 1}` the sample loss is `log(1 + exp(z_i)) - y_i z_i` with
    `z_i = a_i^T x`. The regularization term `lambda_ / 2 |x|^2` is distributed over the
    samples, i.e. a batch of size `b` contributes `b / N` of it.
    """
    def __init__(self, predictors, labels, lambda_=0., seed=None):
        """Constructor.

        Parameters
        ----------
        predictors
            Array of shape `(num_samples, dim)` whose rows are the predictors `a_i`.
        labels
            Array of length `num_samples` with labels in `{0, 1}`.
        lambda_
            Weight of the L2 regularization.
        seed
            Seed for the random number generator used by `shuffle`.
        """
        self.predictors = np.asarray(predictors, dtype=float)
        self.labels = np.asarray(labels, dtype=float).ravel()
        assert self.predictors.ndim == 2
        assert self.predictors.shape[0] == self.labels.shape[0]
        assert np.all((self.labels == 0.) | (self.labels == 1.))
        assert lambda_ >= 0.
        self.lambda_ = lambda_
        super().__init__(self.predictors.shape[0], seed=seed)

    def _regularization_weight(self, indices):
        return self.lambda_ * len(indices) / self.num_functions()

    def _evaluate(self, x, indices):
        z = self.predictors[indices] @ x.ravel()
        loss = np.sum(np.logaddexp(0., z) - self.labels[indices] * z)
        return loss + 0.5 * self._regularization_weight(indices) * np.sum(x ** 2)

    def _gradient(self, x, indices):
        z = self.predictors[indices] @ x.ravel()
        grad = self.predictors[indices].T @ (expit(z) - self.labels[indices])
        return grad + self._regularization_weight(indices) * x.ravel()

    def classify(self, x, predictors, threshold=0.5):
        """Predicts labels for the given predictors.

        Parameters
        ----------
        x
            Parameters of the model.
        predictors
            Array of shape `(num_points, dim)`.
        threshold
            Probability above which label `1` is predicted.

        Returns
        -------
        Array of predicted labels.
        """
        return (expit(np.asarray(predictors) @ x.ravel()) > threshold).astype(int)
