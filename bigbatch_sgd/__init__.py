from .version import __version__

from .bigbatch_sgd import BigBatchSGD
from .utils.optim import AdaptiveStepsize, BacktrackingStepsize, BacktrackingLineSearch
