"""
Set reconciliation.

Rebuilds a complete, duplicate-free, ordered card list for a set from
Scryfall queries plus curated missing-number searches and placeholders.
"""

from setkeeper.reconcile.accumulator import CardAccumulator
from setkeeper.reconcile.cascade import (
    PhaseResult,
    QueryDescriptor,
    QueryFailure,
    QueryKind,
    belongs_to_set,
    fallback_queries,
    primary_queries,
    run_cascade,
    variant_queries,
)
from setkeeper.reconcile.pages import walk_pages
from setkeeper.reconcile.placeholders import inject_placeholders
from setkeeper.reconcile.reconciler import ReconciledSet, SetReconciler, finalize_cards
from setkeeper.reconcile.recovery import (
    RecoveryResult,
    absent_numbers,
    number_and_name_queries,
    number_queries,
    recover_missing_cards,
)

__all__ = [
    "CardAccumulator",
    "PhaseResult",
    "QueryDescriptor",
    "QueryFailure",
    "QueryKind",
    "ReconciledSet",
    "RecoveryResult",
    "SetReconciler",
    "absent_numbers",
    "belongs_to_set",
    "fallback_queries",
    "finalize_cards",
    "inject_placeholders",
    "number_and_name_queries",
    "number_queries",
    "primary_queries",
    "recover_missing_cards",
    "run_cascade",
    "variant_queries",
    "walk_pages",
]
