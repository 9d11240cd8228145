from .linear import solve_dense  # noqa: F401

__all__ = ["solve_dense"]
