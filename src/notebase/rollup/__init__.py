"""Rollup engine for NoteBase.

Aggregates a property of the rows linked through a relation column:
counts, sums, averages, min/max/range, empty percentages and the joined
original values.
"""

from notebase.formula.results import RollupResult
from notebase.rollup.aggregations import AGGREGATIONS, aggregate
from notebase.rollup.aggregator import (
    AsyncRelatedTableFetcher,
    RelatedTableFetcher,
    RollupPlan,
    acompute_rollup,
    aggregate_related,
    compute_rollup,
    plan_rollup,
)

__all__ = [
    "AGGREGATIONS",
    "AsyncRelatedTableFetcher",
    "RelatedTableFetcher",
    "RollupPlan",
    "RollupResult",
    "acompute_rollup",
    "aggregate",
    "aggregate_related",
    "compute_rollup",
    "plan_rollup",
]
