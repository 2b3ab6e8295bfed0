import numpy as np
import matplotlib.pyplot as plt

import bigbatch_sgd
from bigbatch_sgd.core import LinearRegressionFunction
from bigbatch_sgd.utils.visualization import plot_optimization_history


if __name__ == "__main__":
    # noisy linear model
    rng = np.random.default_rng(0)
    N = 5000
    predictors = rng.normal(size=(N, 10))
    x_true = rng.normal(size=10)
    responses = predictors @ x_true + 0.1 * rng.normal(size=N)

    f = LinearRegressionFunction(predictors, responses, seed=0)

    # perform the optimization
    optimizer = bigbatch_sgd.BigBatchSGD(batch_size=50, stepsize=1e-3, max_iterations=5000,
                                         tolerance=1e-6, exact_objective=True, log_frequency=50)
    result = optimizer.optimize(f, np.zeros(10))

    print(f'Objective: {result["objective"]:.5e}')
    print(f'Relative error: {np.linalg.norm(result["x"] - x_true) / np.linalg.norm(x_true):.5e}')
    print(f'Final batch size: {result["batch_sizes"][-1]}')

    plot_optimization_history(result, title='Linear regression')
    plt.show()
