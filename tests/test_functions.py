import numpy as np
import pytest

from bigbatch_sgd.core import QuadraticFunction, LinearRegressionFunction, LogisticRegressionFunction
from bigbatch_sgd.utils.exceptions import InvalidBatchSize


def create_functions(rng):
    predictors = rng.normal(size=(12, 3))
    return [QuadraticFunction(rng.normal(size=(12, 3))),
            LinearRegressionFunction(predictors, rng.normal(size=12)),
            LogisticRegressionFunction(predictors, rng.integers(0, 2, size=12), lambda_=0.3)]


@pytest.mark.parametrize("index", [0, 1, 2])
def test_gradient_finite_differences(index):
    rng = np.random.default_rng(index)
    f = create_functions(rng)[index]
    x = rng.normal(size=3)

    h = 1e-6
    grad = f.gradient(x, 2, 7)
    for i in range(3):
        e = np.zeros(3)
        e[i] = h
        finite_difference = (f.evaluate(x + e, 2, 7) - f.evaluate(x - e, 2, 7)) / (2. * h)
        assert np.isclose(grad[i], finite_difference, rtol=1e-5, atol=1e-6)


@pytest.mark.parametrize("index", [0, 1, 2])
def test_batches_are_sums_of_samples(index):
    rng = np.random.default_rng(10 + index)
    f = create_functions(rng)[index]
    x = rng.normal(size=3)

    assert np.isclose(f.evaluate(x, 3, 5), sum(f.evaluate(x, 3 + j, 1) for j in range(5)))
    assert np.allclose(f.gradient(x, 3, 5), sum(f.gradient(x, 3 + j, 1) for j in range(5)))
    assert np.isclose(f.evaluate(x, 0, f.num_functions()),
                      f.evaluate(x, 0, 4) + f.evaluate(x, 4, f.num_functions() - 4))


def test_quadratic_function():
    f = QuadraticFunction(np.zeros((1, 2)))
    x = np.array([10., 10.])
    assert f.num_functions() == 1
    assert np.isclose(f.evaluate(x), 200.)
    assert np.allclose(f.gradient(x), 2. * x)


def test_column_iterates():
    rng = np.random.default_rng(5)
    f = LinearRegressionFunction(rng.normal(size=(6, 4)), rng.normal(size=6))
    x = rng.normal(size=(4, 1))
    assert f.gradient(x, 0, 6).shape == (4, 1)
    assert np.allclose(f.gradient(x, 0, 6).ravel(), f.gradient(x.ravel(), 0, 6))


def test_shuffle():
    f = QuadraticFunction(np.arange(20.)[:, np.newaxis], seed=0)
    x = np.zeros(1)
    total = f.evaluate(x, 0, 20)
    f.shuffle()
    assert sorted(f.ordering) == list(range(20))
    assert np.isclose(f.evaluate(x, 0, 20), total)
    assert np.isclose(f.evaluate(x, 4, 1), f.ordering[4] ** 2)


@pytest.mark.parametrize("offset, batch_size", [(0, 0), (0, 21), (15, 6), (-1, 2)])
def test_invalid_sample_range(offset, batch_size):
    f = QuadraticFunction(np.zeros((20, 1)))
    with pytest.raises(InvalidBatchSize):
        f.evaluate(np.zeros(1), offset, batch_size)
    with pytest.raises(InvalidBatchSize):
        f.gradient(np.zeros(1), offset, batch_size)


def test_logistic_regression_classify():
    f = LogisticRegressionFunction(np.array([[1., 0.], [0., 1.]]), np.array([1, 0]))
    x = np.array([2., -2.])
    assert np.array_equal(f.classify(x, np.array([[1., 0.], [0., 1.], [3., 1.]])), [1, 0, 1])
