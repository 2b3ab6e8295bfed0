from .line_search import BacktrackingLineSearch
from .stepsize_controllers import AdaptiveStepsize, BacktrackingStepsize
