import logging
from contextlib import contextmanager


FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'
INDENT = '|   '

_loggers = {}


class BlockLogger(logging.LoggerAdapter):
    """Logger that indents all messages emitted inside a `block`."""
    def __init__(self, logger):
        """Constructor.

        Parameters
        ----------
        logger
            Logger from the `logging` module to wrap.
        """
        super().__init__(logger, {})
        self.indent = 0

    def process(self, msg, kwargs):
        return INDENT * self.indent + str(msg), kwargs

    @contextmanager
    def block(self, msg):
        """Context manager that logs `msg` and indents subsequent messages.

        Parameters
        ----------
        msg
            Message to log before entering the block.
        """
        self.info(msg)
        self.indent += 1
        try:
            yield self
        finally:
            self.indent -= 1


def _setup_root_logger():
    root = logging.getLogger('bigbatch_sgd')
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMAT, datefmt='%H:%M:%S'))
        root.addHandler(handler)
    return root


def getLogger(name, level='INFO'):
    """Returns the logger with the given name in the `bigbatch_sgd` namespace.

    Loggers are cached per name, so all objects asking for the same name share one logger
    and its level is the one passed by the most recent call.

    Parameters
    ----------
    name
        Name of the logger (without the `bigbatch_sgd.` prefix).
    level
        Level of the log messages to display.

    Returns
    -------
    `BlockLogger` wrapping the logger.
    """
    _setup_root_logger()
    if name not in _loggers:
        _loggers[name] = BlockLogger(logging.getLogger(f'bigbatch_sgd.{name}'))
    logger = _loggers[name]
    logger.logger.setLevel(level)
    return logger
