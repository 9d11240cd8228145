"""
Exception taxonomy of the simulation engine.
"""

from __future__ import annotations
import numpy as np


class ProtosimError(Exception):
    """Base class for every error raised by protosim."""


class ConfigurationError(ProtosimError, ValueError):
    """
    Raised while building a circuit: wrong terminal arity or invalid parameters.

    Not recoverable locally, the caller that built the circuit must fix it.
    """


class MergeCycleError(ProtosimError, ValueError):
    """Raised when resolving a node meets a merge chain that loops back on itself."""


class SingularMatrixError(ProtosimError, np.linalg.LinAlgError):
    """
    The assembled MNA system has no unique solution.

    Typical causes are a floating node (nothing conducts to it) or
    contradictory voltage sources forced on the same net.

    Attributes:
        index: Unknown index of the first zero pivot, or None if unknown.
        label: Human readable name of that unknown (node or source current).
    """

    def __init__(self, message: str, index: int | None = None, label: str | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.label = label
