"""
Tests for the advancement DAG
"""

import pytest

from bracketflow.exceptions import CapacityExceeded, CycleDetected, InvalidConfiguration
from constants import OUTCOME_WINNER, OUTCOME_LOSER
from utils.advancement_graph import AdvancementGraph


@pytest.fixture
def graph():
    return AdvancementGraph(nodes=["g1", "g2", "g3", "g4", "g5"])


class TestAdvancementGraph:

    def test_forward_and_backward_views_agree(self, graph):
        graph.add_edge("g1", "g3", OUTCOME_WINNER)
        graph.add_edge("g2", "g3", OUTCOME_WINNER)
        graph.add_edge("g1", "g4", OUTCOME_LOSER)

        assert graph.depends_on("g3") == ["g1", "g2"]
        assert graph.advances_to("g1", OUTCOME_WINNER) == ["g3"]
        assert graph.advances_to("g1", OUTCOME_LOSER) == ["g4"]
        assert graph.advances_to("g1") == ["g3", "g4"]

    def test_third_feed_rejected(self, graph):
        graph.add_edge("g1", "g3", OUTCOME_WINNER)
        graph.add_edge("g2", "g3", OUTCOME_WINNER)

        with pytest.raises(CapacityExceeded) as exc_info:
            graph.add_edge("g4", "g3", OUTCOME_WINNER)

        assert exc_info.value.feeding_games == ["g1", "g2"]
        assert graph.depends_on("g3") == ["g1", "g2"]

    def test_self_loop_rejected(self, graph):
        with pytest.raises(CycleDetected):
            graph.add_edge("g1", "g1", OUTCOME_WINNER)

    def test_transitive_cycle_rejected(self, graph):
        graph.add_edge("g1", "g2", OUTCOME_WINNER)
        graph.add_edge("g2", "g3", OUTCOME_WINNER)

        with pytest.raises(CycleDetected):
            graph.add_edge("g3", "g1", OUTCOME_LOSER)
        assert graph.ancestors("g3") == {"g1", "g2"}
        assert graph.is_ancestor("g1", "g3")

    def test_identical_edge_is_noop(self, graph):
        assert graph.add_edge("g1", "g3", OUTCOME_WINNER) is True
        assert graph.add_edge("g1", "g3", OUTCOME_WINNER) is False
        assert len(graph.edges) == 1

    def test_unknown_node_or_outcome(self, graph):
        with pytest.raises(InvalidConfiguration):
            graph.add_edge("g1", "nope", OUTCOME_WINNER)
        with pytest.raises(InvalidConfiguration):
            graph.add_edge("g1", "g2", "draw")

    def test_can_add_edge(self, graph):
        graph.add_edge("g1", "g2", OUTCOME_WINNER)

        assert graph.can_add_edge("g2", "g3", OUTCOME_WINNER)
        assert not graph.can_add_edge("g2", "g1", OUTCOME_WINNER)

    def test_remove_edges(self, graph):
        graph.add_edge("g1", "g3", OUTCOME_WINNER)
        graph.add_edge("g1", "g4", OUTCOME_LOSER)
        graph.add_edge("g2", "g3", OUTCOME_WINNER)

        removed = graph.remove_edges_from("g1", OUTCOME_LOSER)
        assert [e.target for e in removed] == ["g4"]
        assert graph.depends_on("g4") == []

        graph.remove_edges_to("g3")
        assert graph.depends_on("g3") == []
        assert graph.advances_to("g1") == []
