"""
AdvancementGraph - the advancement DAG held as one edge list with forward and backward indices.

`depends_on` (backward) and `advances_to` (forward) are two views over the same
edges, so they can never disagree.
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from constants import ADVANCEMENT_OUTCOMES, MAX_GAME_FEEDS
from bracketflow.exceptions import CapacityExceeded, CycleDetected, InvalidConfiguration


@dataclass(frozen=True)
class AdvancementEdge:
    source: str
    target: str
    outcome: str


class AdvancementGraph:
    """
    Arena of game ids plus the winner/loser edges between them.

    Edges are validated on insertion: at most two feeds per target and no
    target that is already an ancestor of its source.
    """

    def __init__(self, nodes: Iterable[str] = (), edges: Iterable[AdvancementEdge] = ()):
        self._nodes: List[str] = []
        self._node_set: Set[str] = set()
        self._edges: List[AdvancementEdge] = []
        self._incoming: Dict[str, List[AdvancementEdge]] = defaultdict(list)
        self._outgoing: Dict[str, List[AdvancementEdge]] = defaultdict(list)
        for node in nodes:
            self.add_node(node)
        for edge in edges:
            self.add_edge(edge.source, edge.target, edge.outcome)

    def add_node(self, game_id: str) -> None:
        if game_id not in self._node_set:
            self._node_set.add(game_id)
            self._nodes.append(game_id)

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._node_set

    @property
    def nodes(self) -> List[str]:
        return list(self._nodes)

    @property
    def edges(self) -> List[AdvancementEdge]:
        return list(self._edges)

    def has_edge(self, source: str, target: str, outcome: str) -> bool:
        return AdvancementEdge(source, target, outcome) in self._outgoing.get(source, [])

    def depends_on(self, game_id: str) -> List[str]:
        """Upstream games feeding game_id, in insertion order."""
        return [edge.source for edge in self._incoming.get(game_id, [])]

    def incoming(self, game_id: str) -> List[AdvancementEdge]:
        return list(self._incoming.get(game_id, []))

    def advances_to(self, game_id: str, outcome: Optional[str] = None) -> List[str]:
        """Downstream games receiving the winner and/or loser of game_id."""
        return [edge.target for edge in self._outgoing.get(game_id, [])
                if outcome is None or edge.outcome == outcome]

    def ancestors(self, game_id: str) -> Set[str]:
        """All games reachable backwards from game_id through depends_on edges."""
        seen: Set[str] = set()
        queue = deque(self.depends_on(game_id))
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self.depends_on(current))
        return seen

    def is_ancestor(self, candidate: str, game_id: str) -> bool:
        return candidate in self.ancestors(game_id)

    def validate_edge(self, source: str, target: str, outcome: str) -> None:
        """
        Raises if the edge cannot be added.

        Raises:
            InvalidConfiguration: unknown outcome or game
            CycleDetected: target is the source or one of its ancestors
            CapacityExceeded: target already has two feeds
        """
        if outcome not in ADVANCEMENT_OUTCOMES:
            raise InvalidConfiguration(f"Invalid advancement outcome: {outcome}", "outcome")
        for game_id in (source, target):
            if game_id not in self._node_set:
                raise InvalidConfiguration(f"Game {game_id} is not part of this division", "game_id")
        if self.has_edge(source, target, outcome):
            return
        feeds = self.depends_on(target)
        if len(feeds) >= MAX_GAME_FEEDS:
            raise CapacityExceeded(target, feeds)
        if source == target or self.is_ancestor(target, source):
            raise CycleDetected(source, target)

    def can_add_edge(self, source: str, target: str, outcome: str) -> bool:
        try:
            self.validate_edge(source, target, outcome)
        except (CycleDetected, CapacityExceeded, InvalidConfiguration):
            return False
        return True

    def add_edge(self, source: str, target: str, outcome: str) -> bool:
        """Adds a validated edge; returns False if the identical edge already existed."""
        self.validate_edge(source, target, outcome)
        if self.has_edge(source, target, outcome):
            return False
        edge = AdvancementEdge(source, target, outcome)
        self._edges.append(edge)
        self._incoming[target].append(edge)
        self._outgoing[source].append(edge)
        return True

    def remove_edges_from(self, source: str, outcome: Optional[str] = None) -> List[AdvancementEdge]:
        removed = [edge for edge in self._outgoing.get(source, [])
                   if outcome is None or edge.outcome == outcome]
        for edge in removed:
            self._edges.remove(edge)
            self._incoming[edge.target].remove(edge)
            self._outgoing[source].remove(edge)
        return removed

    def remove_edges_to(self, target: str) -> List[AdvancementEdge]:
        removed = list(self._incoming.get(target, []))
        for edge in removed:
            self._edges.remove(edge)
            self._incoming[target].remove(edge)
            self._outgoing[edge.source].remove(edge)
        return removed
