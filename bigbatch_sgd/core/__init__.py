from .functions import (BaseDecomposableFunction, QuadraticFunction, LinearRegressionFunction,
                        LogisticRegressionFunction)
