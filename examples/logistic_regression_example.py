import numpy as np

import bigbatch_sgd
from bigbatch_sgd.core import LogisticRegressionFunction


if __name__ == "__main__":
    # two overlapping gaussian clouds
    rng = np.random.default_rng(1)
    N = 2000
    points = np.concatenate([rng.normal(loc=-1., size=(N // 2, 2)), rng.normal(loc=1., size=(N // 2, 2))])
    predictors = np.concatenate([points, np.ones((N, 1))], axis=1)
    labels = np.concatenate([np.zeros(N // 2), np.ones(N // 2)])

    f = LogisticRegressionFunction(predictors, labels, lambda_=0.01, seed=1)

    # compare the adaptive stepsize with plain backtracking
    for policy in [bigbatch_sgd.AdaptiveStepsize(), bigbatch_sgd.BacktrackingStepsize()]:
        optimizer = bigbatch_sgd.BigBatchSGD(batch_size=20, stepsize=0.1, max_iterations=1000,
                                             update_policy=policy, exact_objective=True)
        print(optimizer)
        result = optimizer.optimize(f, np.zeros(3))

        accuracy = np.mean(f.classify(result['x'], predictors) == labels)
        print(f'Objective: {result["objective"]:.5e}, accuracy: {accuracy:.3f}, '
              f'iterations: {result["iterations"]}, time: {result["time"]:.2f}s')
