from .node import Node  # noqa: F401
from .protoboard import Protoboard  # noqa: F401

__all__ = ["Node", "Protoboard"]
