from __future__ import annotations
from dataclasses import dataclass, field
from itertools import count

from ..errors import MergeCycleError

_anonymous = count()


@dataclass(eq=False)
class Node:
    """
    Represents a unit of electrical connectivity (a net) in the circuit.

    Nodes are compared by identity. Wiring two terminals together merges their
    nodes: the merged node points at another node, and following those pointers
    leads to the master node that stands for the whole net. Only master nodes
    receive an unknown in the MNA system and only their voltage is meaningful.

    Attributes:
        name: Label used in reports and error messages. Generated if omitted.
        voltage: Settled voltage of the net, None until the first solved step.
    """
    name: str = ""
    voltage: float | None = None
    _merge_target: Node | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"n{next(_anonymous)}"

    @property
    def is_master(self) -> bool:
        return self._merge_target is None

    @property
    def master(self) -> Node:
        """
        Resolve the merge chain to its terminal node.

        The chain is walked iteratively and every visited node is then pointed
        straight at the master, so repeated lookups are O(1).

        Raises:
            MergeCycleError: If the chain loops back on itself. `merge_with`
                never builds such a chain; it only appears when merge targets
                are rewired by hand.
        """
        root = self
        seen = set()
        while root._merge_target is not None:
            seen.add(id(root))
            root = root._merge_target
            if id(root) in seen:
                raise MergeCycleError(f"Merge chain of node '{self.name}' loops through '{root.name}'.")

        node = self
        while node._merge_target is not None and node._merge_target is not root:
            nxt = node._merge_target
            node._merge_target = root
            node = nxt
        return root

    def same_net(self, other: Node) -> bool:
        return self.master is other.master

    def merge_with(self, other: Node) -> None:
        """
        Merge this node's net into the net of `other`.

        A node that is still its own master is pointed straight at `other`.
        A node that was already merged keeps its current net: its master is
        pointed at `other`, so both nets become one. The pointer is always
        written on a master that is not part of the net of `other`, so no
        merge cycle can form.

        Merging two nodes that are already on the same net (a redundant wire,
        or a node with itself) changes nothing.

        Args:
            other: Node to connect to. After the call `self.master is other.master`.
        """
        root = self.master
        if other.master is root:
            return
        root._merge_target = other

    def __repr__(self) -> str:
        return f"Node({self.name!r})"
