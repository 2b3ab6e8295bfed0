import numpy as np
import matplotlib.pyplot as plt


def plot_optimization_history(results, title='', axis=None, log_scale=True):
    """Plot the stepsizes and batch sizes of an optimization run.

    Parameters
    ----------
    results
        Dictionary returned by `BigBatchSGD.optimize`.
    title
        Title of the plot.
    axis
        If not `None`, the history is plotted on the provided axis.
    log_scale
        Determines whether to use a logarithmic scale for the stepsizes.

    Returns
    -------
    The axis of the stepsizes and the (twin) axis of the batch sizes.
    """
    assert len(results['stepsizes']) == len(results['batch_sizes'])

    if not axis:
        fig = plt.figure()
        axis = fig.add_subplot(1, 1, 1)

    iterations = np.arange(1, len(results['stepsizes']) + 1)

    axis.set_title(title)
    axis.plot(iterations, results['stepsizes'], color='tab:blue')
    axis.set_xlabel('Iteration')
    axis.set_ylabel('Stepsize', color='tab:blue')
    if log_scale:
        axis.set_yscale('log')

    batch_axis = axis.twinx()
    batch_axis.step(iterations, results['batch_sizes'], where='post', color='tab:orange')
    batch_axis.set_ylabel('Batch size', color='tab:orange')

    return axis, batch_axis
