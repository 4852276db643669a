from typing import List, Tuple


class Route:
    def __init__(self, nodes: List[str], links: List[Tuple[int, int]], delay: float, cost: float = 0.0):
        self.nodes = nodes  # node identifiers from source to destination
        self.links = links  # (u, v) index pairs in path order
        self.delay = delay  # cumulative propagation delay
        self.cost = cost  # path metric under the policy that chose it

    @property
    def hops(self) -> int:
        return len(self.links)

    def __repr__(self):
        return f"Route({'-'.join(self.nodes)}, hops={self.hops}, delay={self.delay:g})"
