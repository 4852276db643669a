import heapq

import numpy as np

from Route import Route


def find_route(topology, source, destination, cost_function, weights=None, empty_network=False):
    """Cheapest route from ``source`` to ``destination`` under ``cost_function``.

    Only links with free circuits are usable, or with any capacity at all when
    ``empty_network`` is set. Only nodes touching a usable link take part in
    the search. Ties go to the route with fewer hops, then to the lower node
    index. Returns ``None`` when the destination cannot be reached.
    """
    if source not in topology.node_index or destination not in topology.node_index:
        return None
    if weights is None:
        weights = cost_function.edge_weights(topology)

    usable = topology.usable_mask(empty_network)
    in_graph = np.any(usable, axis=1)
    src = topology.index(source)
    dst = topology.index(destination)
    if not in_graph[src] or not in_graph[dst]:
        return None

    labels = {src: (cost_function.origin, 0)}  # node -> (cost, hops)
    previous = {src: None}
    settled = set()
    heap = [(cost_function.origin, 0, src)]

    while heap:
        cost, hops, u = heapq.heappop(heap)
        if u in settled:
            continue
        settled.add(u)

        if u == dst:
            break

        for v in np.flatnonzero(usable[u]):
            v = int(v)
            if v in settled:
                continue
            label = (cost_function.extend(cost, float(weights[u, v])), hops + 1)
            if v not in labels or label < labels[v]:
                labels[v] = label
                previous[v] = u
                heapq.heappush(heap, (label[0], label[1], v))

    if dst not in settled:
        return None

    # Reconstruct path
    path = []
    current = dst
    while current is not None:
        path.append(current)
        current = previous[current]
    path.reverse()

    links = list(zip(path[:-1], path[1:]))
    delay = sum(float(topology.delay_matrix[u, v]) for u, v in links)
    return Route([topology.node(i) for i in path], links, delay,
                 cost_function.path_value(labels[dst][0]))


def hop_distance(topology, source, destination, cost_function, empty_network=False):
    """Hop count of the route ``find_route`` picks, or ``None`` when there is none."""
    route = find_route(topology, source, destination, cost_function, empty_network=empty_network)
    return None if route is None else route.hops
