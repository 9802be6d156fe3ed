"""Clustering of ambiguous matches into review groups.

This module transforms pairwise REVIEW verdicts into maximal connected
components that a human adjudicates one at a time.
"""

from pubdedupe.clustering.cluster_builder import (
    ReviewGraph,
    build_review_graph,
    build_review_groups,
)
from pubdedupe.clustering.models import ReviewGroup, ReviewMember, format_similarity

__all__ = [
    "ReviewGraph",
    "ReviewGroup",
    "ReviewMember",
    "build_review_graph",
    "build_review_groups",
    "format_similarity",
]
