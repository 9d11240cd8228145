"""Package logger for protosim.

The engine never prints. Everything it has to say goes through the
"protosim" logger:

    INFO     unknown assignment (node and source-current counts)
    WARNING  a GenericNonlinear device exceeding its rating and breaking
    ERROR    a singular system, just before SingularMatrixError is raised
    DEBUG    one formatted StepRecord per solved step, when the simulator
             runs with SimulatorConfig(log_steps=True)

Out of the box only warnings and errors reach stdout. To watch a transient
run step by step:

    from protosim import Simulator, SimulatorConfig
    from protosim.logging import enable_step_logging

    enable_step_logging()
    sim = Simulator(SimulatorConfig(log_steps=True))

Callers that need the values rather than the text should pass an `on_step`
callback to `Simulator.run_transient` instead.
"""

import logging
import sys

_FORMAT = "%(message)s"

logger = logging.getLogger("protosim")
logger.setLevel(logging.WARNING)


class FlushingHandler(logging.StreamHandler):
    """StreamHandler that flushes after every record, so step lines show up live."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def _make_handler(stream, level: int, handler_cls=logging.StreamHandler) -> logging.Handler:
    handler = handler_cls(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT))
    return handler


if not logger.handlers:
    logger.addHandler(_make_handler(sys.stdout, logging.WARNING))


def enable_step_logging(stream=None):
    """Route every protosim record, down to the per-step DEBUG lines, to `stream`.

    Replaces the handlers currently attached to the package logger.

    Args:
        stream: Text stream to write to. Defaults to stdout.
    """
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(_make_handler(stream if stream is not None else sys.stdout, logging.DEBUG, FlushingHandler))


def set_log_level(level: int):
    """Set the level of the package logger and of every handler attached to it.

    Args:
        level: logging.DEBUG, logging.INFO, logging.WARNING, etc.
    """
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
