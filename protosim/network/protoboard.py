from __future__ import annotations
from typing import Dict, Iterable, List, Sequence

from .node import Node


class Protoboard:
    """
    Breadboard made of numbered rows and named power rails.

    Every row and rail is a pre-built node. Plugging a component pin into the
    board merges the pin's node into the row or rail node, so all pins sharing
    a row end up on the same net.
    """

    def __init__(self, name: str, row_count: int, rails: Sequence[str] = ("VCC", "GND")) -> None:
        if row_count < 0:
            raise ValueError("row_count must be non-negative.")
        self.name = name
        self._rows: List[Node] = [Node(f"{name}.row{i}") for i in range(row_count)]
        self._rails: Dict[str, Node] = {rail: Node(f"{name}.{rail}") for rail in rails}

    @property
    def rows(self) -> List[Node]:
        return self._rows

    @property
    def rails(self) -> Dict[str, Node]:
        return self._rails

    def node(self, target: int | str) -> Node:
        """Return the row node (int target) or rail node (str target)."""
        if isinstance(target, int):
            if target < 0 or target >= len(self._rows):
                raise IndexError(f"Row index {target} out of bounds")
            return self._rows[target]
        if target not in self._rails:
            raise KeyError(f"Rail {target} does not exist")
        return self._rails[target]

    def connect(self, pin: Node, target: int | str) -> None:
        """
        Plug `pin` into a row or rail.

        Args:
            pin: Component terminal node.
            target: Row index or rail name.

        Raises:
            IndexError: Row index out of bounds.
            KeyError: Unknown rail name.
        """
        pin.merge_with(self.node(target))

    def connect_multiple(self, pins: Iterable[Node], target: int | str) -> None:
        for pin in pins:
            self.connect(pin, target)
