"""
Bipartite matching through OR-Tools max-flow.
"""

from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from ortools.graph.python import max_flow


def bipartite_max_flow(left: List[Hashable], right: List[Hashable],
                       edges: Iterable[Tuple[Hashable, Hashable]],
                       right_capacity: Optional[Dict[Hashable, int]] = None) -> int:
    """
    Maximum flow from source -> left (capacity 1) -> right -> sink.

    Args:
        left: Left-side nodes, each able to send one unit
        right: Right-side nodes
        edges: (left, right) arcs
        right_capacity: Units each right node may absorb (default 1)

    Returns:
        The maximum flow value
    """
    if not left or not right:
        return 0

    left_index = {node: 2 + i for i, node in enumerate(left)}
    right_index = {node: 2 + len(left) + i for i, node in enumerate(right)}
    source, sink = 0, 1

    smf = max_flow.SimpleMaxFlow()
    for index in left_index.values():
        smf.add_arc_with_capacity(source, index, 1)
    for node, index in right_index.items():
        capacity = 1 if right_capacity is None else right_capacity.get(node, 0)
        if capacity > 0:
            smf.add_arc_with_capacity(index, sink, capacity)
    has_arcs = False
    for tail, head in edges:
        if tail in left_index and head in right_index:
            smf.add_arc_with_capacity(left_index[tail], right_index[head], 1)
            has_arcs = True
    if not has_arcs:
        return 0

    status = smf.solve(source, sink)
    if status != smf.OPTIMAL:
        raise RuntimeError(f"max flow did not solve to optimality (status {status})")
    return smf.optimal_flow()
