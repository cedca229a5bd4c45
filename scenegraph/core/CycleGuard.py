from typing import List, Set

from .GraphPrimitives import Edge, Graph


def container_edges_from(graph: Graph, node_id: str) -> List[Edge]:
    """Outgoing edges of node_id that nest it inside a container."""
    result = []
    for edge in graph.get_outgoing_edges(node_id):
        target = graph.get_node_by_id(edge.target)
        if target is not None and target.kind.isContainer():
            result.append(edge)
    return result


def would_create_cycle(graph: Graph, candidate_source_id: str, candidate_target_id: str) -> bool:
    """
    Would adding candidate_source -> candidate_target close a container cycle?

    Walks upward from the candidate target through the containers that already
    hold it. Reaching the candidate source means the source already (transitively)
    contains the target, so nesting the source inside the target loops.
    """
    if candidate_source_id == candidate_target_id:
        return True

    visited: Set[str] = set()
    stack: List[str] = [candidate_target_id]
    while stack:
        node_id = stack.pop()
        if node_id == candidate_source_id:
            return True
        if node_id in visited:
            continue
        visited.add(node_id)
        for edge in container_edges_from(graph, node_id):
            if edge.target not in visited:
                stack.append(edge.target)
    return False
