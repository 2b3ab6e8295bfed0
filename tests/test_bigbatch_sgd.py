import numpy as np
import pytest

import bigbatch_sgd
from bigbatch_sgd.core import QuadraticFunction, LinearRegressionFunction, LogisticRegressionFunction


class ShuffleCountingFunction(QuadraticFunction):
    def __init__(self, centers):
        super().__init__(centers)
        self.num_shuffles = 0

    def shuffle(self):
        self.num_shuffles += 1
        super().shuffle()


def test_linear_regression():
    rng = np.random.default_rng(0)
    predictors = rng.normal(size=(200, 3))
    x_true = np.array([1., -2., 0.5])
    f = LinearRegressionFunction(predictors, predictors @ x_true, seed=0)
    x0 = np.zeros(3)

    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=20, stepsize=1e-3, max_iterations=2000, tolerance=1e-10,
                                         exact_objective=True)
    result = optimizer.optimize(f, x0)

    assert result['objective'] < 1e-3 * f.evaluate(x0, 0, f.num_functions())
    assert np.linalg.norm(result['x'] - x_true) < 0.1 * np.linalg.norm(x_true)
    assert len(result['stepsizes']) == len(result['batch_sizes']) == result['iterations']
    assert all(1 <= b <= f.num_functions() for b in result['batch_sizes'])


def test_logistic_regression():
    rng = np.random.default_rng(1)
    points = np.concatenate([rng.normal(loc=-2., size=(100, 2)), rng.normal(loc=2., size=(100, 2))])
    predictors = np.concatenate([points, np.ones((200, 1))], axis=1)
    labels = np.concatenate([np.zeros(100), np.ones(100)])
    f = LogisticRegressionFunction(predictors, labels, lambda_=0.1, seed=1)

    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=10, stepsize=0.01, max_iterations=300)
    result = optimizer.optimize(f, np.zeros(3))

    accuracy = np.mean(f.classify(result['x'], predictors) == labels)
    assert accuracy > 0.9


def test_stops_when_objective_stagnates():
    center = np.array([1., 2.])
    f = ShuffleCountingFunction(np.stack([center] * 10))

    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=10, stepsize=0.1)
    result = optimizer.optimize(f, center)

    assert result['message'] == 'objective update below tolerance'
    assert result['iterations'] == result['epochs'] == 2
    assert np.isclose(result['objective'], 0.)
    assert np.allclose(result['x'], center)
    assert f.num_shuffles == 2


def test_maximum_number_of_iterations_and_callback():
    rng = np.random.default_rng(2)
    f = QuadraticFunction(rng.normal(size=(30, 2)))
    iterates = []

    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=5, stepsize=0.01, max_iterations=4, shuffle=False)
    result = optimizer.optimize(f, np.ones(2), callback=iterates.append)

    assert result['message'] == 'maximum number of iterations reached'
    assert result['iterations'] == 4
    assert len(iterates) == 4
    assert np.allclose(iterates[-1], result['x'])


def test_keyboard_interrupt():
    f = QuadraticFunction(np.zeros((4, 2)))

    def callback(x):
        raise KeyboardInterrupt

    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=2, stepsize=0.01)
    result = optimizer.optimize(f, np.ones(2), callback=callback)

    assert result['message'] == 'optimization stopped due to keyboard interrupt'
    assert result['iterations'] == 1


def test_backtracking_policy():
    rng = np.random.default_rng(3)
    f = QuadraticFunction(rng.normal(size=(50, 2)), seed=3)
    x0 = 10. * np.ones(2)

    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=50, stepsize=1., max_iterations=50,
                                         update_policy=bigbatch_sgd.BacktrackingStepsize(),
                                         exact_objective=True)
    result = optimizer.optimize(f, x0)

    assert result['objective'] < f.evaluate(x0, 0, 50)
    assert all(s <= 1. for s in result['stepsizes'])


@pytest.mark.parametrize("kwargs", [{'batch_size': 0}, {'stepsize': 0.}, {'batch_delta': -0.1},
                                    {'max_iterations': 1.5}])
def test_invalid_configuration(kwargs):
    with pytest.raises(AssertionError):
        bigbatch_sgd.BigBatchSGD(**kwargs)
