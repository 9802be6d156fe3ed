"""Build review groups from pairwise REVIEW verdicts.

Records linked by REVIEW verdicts, directly or through a chain, end up in
the same group. Groups are the connected components of an undirected
graph whose nodes are records and whose edges are REVIEW pairs.
"""

from collections import deque
from collections.abc import Sequence

from pubdedupe.clustering.models import ReviewGroup, ReviewMember
from pubdedupe.decision import PairDecision, Verdict
from pubdedupe.normalize import NormalizedRecord


class ReviewGraph:
    """Undirected graph over batch records, stored as adjacency lists.

    Nodes get dense integer ids in order of first appearance, so traversal
    order depends only on the order edges were added.

    Attributes
    ----------
    batch_indices : list[int]
        Batch position of each node.
    adjacency : list[list[int]]
        Neighbor node ids per node, in edge insertion order.
    best_score : list[float]
        Highest edge score seen per node.
    """

    def __init__(self) -> None:
        """Initialize an empty graph."""
        self.batch_indices: list[int] = []
        self.adjacency: list[list[int]] = []
        self.best_score: list[float] = []
        self._node_of: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self.batch_indices)

    def node(self, batch_index: int) -> int:
        """Return the node id for a batch position, creating it if needed."""
        node_id = self._node_of.get(batch_index)
        if node_id is None:
            node_id = len(self.batch_indices)
            self._node_of[batch_index] = node_id
            self.batch_indices.append(batch_index)
            self.adjacency.append([])
            self.best_score.append(0.0)
        return node_id

    def add_edge(self, index_a: int, index_b: int, score: float) -> None:
        """Link two batch records.

        Parameters
        ----------
        index_a : int
            Batch position of the first record.
        index_b : int
            Batch position of the second record.
        score : float
            Similarity of the pair.
        """
        u = self.node(index_a)
        v = self.node(index_b)
        self.adjacency[u].append(v)
        self.adjacency[v].append(u)
        self.best_score[u] = max(self.best_score[u], score)
        self.best_score[v] = max(self.best_score[v], score)

    def components(self) -> list[list[int]]:
        """Compute connected components by breadth-first search.

        Seeds are taken in node-id order; members are listed in visit order.

        Returns
        -------
        list[list[int]]
            Node ids per component.
        """
        visited = bytearray(len(self))
        result: list[list[int]] = []

        for seed in range(len(self)):
            if visited[seed]:
                continue
            visited[seed] = 1
            queue = deque([seed])
            component: list[int] = []
            while queue:
                node_id = queue.popleft()
                component.append(node_id)
                for neighbor in self.adjacency[node_id]:
                    if not visited[neighbor]:
                        visited[neighbor] = 1
                        queue.append(neighbor)
            result.append(component)

        return result


def build_review_graph(decisions: Sequence[PairDecision]) -> ReviewGraph:
    """Build the REVIEW graph of a batch.

    Parameters
    ----------
    decisions : Sequence[PairDecision]
        Pair decisions; only REVIEW verdicts become edges.

    Returns
    -------
    ReviewGraph
        Graph with edges added in ``(index_a, index_b)`` order.
    """
    graph = ReviewGraph()
    review_pairs = sorted(
        (d for d in decisions if d.verdict == Verdict.REVIEW),
        key=lambda d: (d.index_a, d.index_b),
    )
    for decision in review_pairs:
        graph.add_edge(decision.index_a, decision.index_b, decision.score or 0.0)
    return graph


def build_review_groups(
    decisions: Sequence[PairDecision],
    normalized: Sequence[NormalizedRecord],
    *,
    key: str | None = None,
    first_group_id: int = 1,
) -> list[ReviewGroup]:
    """Group REVIEW-linked records into maximal connected components.

    Records with no REVIEW edge never appear in a group. Records removed by
    automatic resolution are still clustered.

    Parameters
    ----------
    decisions : Sequence[PairDecision]
        Pair decisions of one batch.
    normalized : Sequence[NormalizedRecord]
        Batch records indexed by batch position.
    key : str | None, optional
        Batch key stored on every group.
    first_group_id : int, optional
        ID given to the first group, by default 1.

    Returns
    -------
    list[ReviewGroup]
        Groups in deterministic order (order of first seed encountered).
    """
    graph = build_review_graph(decisions)

    groups: list[ReviewGroup] = []
    for offset, component in enumerate(graph.components()):
        members = tuple(
            ReviewMember(
                record=normalized[graph.batch_indices[node_id]].record,
                index=graph.batch_indices[node_id],
                similarity=graph.best_score[node_id],
            )
            for node_id in component
        )
        groups.append(ReviewGroup(group_id=first_group_id + offset, members=members, key=key))

    return groups
