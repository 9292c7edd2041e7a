"""This module rolls group records up into per-OU statistics.

The statistics map is owned by the caller and passed in explicitly. Every fold
is a sum or a max, so the order in which records arrive does not change the
final totals.
"""
from typing import Iterable
from loguru import logger
from analysis.models import GroupRecord, ScopeStatistics


def seed_scope_statistics(
    scope_stats: dict[str, ScopeStatistics], scope_id: str, group_count: int
) -> ScopeStatistics:
    """Start the statistics of a scope with its enumerated group count.

    The group count has to be known before any group is processed, because
    progress is reported against the total over all scopes.
    """
    stats = scope_stats.setdefault(scope_id, ScopeStatistics())
    stats.group_count += group_count
    return stats


def fold_group_record(
    scope_stats: dict[str, ScopeStatistics], record: GroupRecord
) -> ScopeStatistics:
    """Add one processed group to the statistics of its scope.

    Parameters
    ----------
    scope_stats
        The statistics map, keyed on the OU distinguished name.
    record
        The group to add. ``record.scope_id`` selects the entry; an unknown
        scope starts from zero.

    Returns
    -------
    ScopeStatistics
        The updated statistics of the record's scope.
    """
    stats = scope_stats.get(record.scope_id)
    if stats is None:
        logger.debug(f"{record.scope_id}: First record for an unseeded scope")
        stats = scope_stats[record.scope_id] = ScopeStatistics()
    stats.enabled_member_count += record.enabled_user_count
    stats.disabled_member_count += record.disabled_user_count
    stats.total_member_count += record.total_member_count
    stats.nested_group_total += record.ancestor_group_count
    stats.max_nesting_depth = max(
        stats.max_nesting_depth, record.ancestor_group_count
    )
    return stats


def fold_group_records(
    scope_stats: dict[str, ScopeStatistics], records: Iterable[GroupRecord]
) -> dict[str, ScopeStatistics]:
    """Fold a batch of records and return the same map."""
    for record in records:
        fold_group_record(scope_stats, record)
    return scope_stats
